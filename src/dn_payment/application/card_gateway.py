"""Card / gateway webhook rail.

The callback body is only a hint: after the shared-secret check, the order
is re-queried server to server and only a gateway-confirmed SUCCESS is
recorded, for the total the gateway reports. A callback total that
disagrees with the gateway is rejected. Replays of an already-recorded
order answer 200 so the gateway stops retrying.
"""

import logging
from collections.abc import Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from src.dn_common.enums import PaymentRail
from src.dn_common.errors import (
    InvalidPayloadError,
    PayerNotFoundError,
    PaymentAlreadyUsedError,
    VerificationFailedError,
)
from src.dn_common.satang import baht_to_satang
from src.dn_gateway.user.service import UserService
from src.dn_payment.application.guard import IdempotencyGuard
from src.dn_payment.application.ledger_writer import LedgerWriter
from src.dn_payment.application.schemas import CallbackResponse
from src.dn_payment.application.verifier import GatewayVerifier
from src.dn_payment.domain.earmark import parse_earmark
from src.dn_payment.domain.models import LedgerCredit
from src.dn_payment.infrastructure.gateway_client import GatewayOrderStatus

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("orderno", "status", "total", "merchantid")
SECRET_FIELD = "secret"
PROMPTPAY_CARD_TYPE = "PP"


def _field(form: Mapping[str, str], name: str) -> str:
    value = form.get(name)
    return str(value).strip() if value is not None else ""


class CardGatewayRail:
    def __init__(
        self,
        verifier: GatewayVerifier | None = None,
        guard: IdempotencyGuard | None = None,
        writer: LedgerWriter | None = None,
        users: UserService | None = None,
    ) -> None:
        self._verifier = verifier or GatewayVerifier()
        self._guard = guard or IdempotencyGuard()
        self._writer = writer or LedgerWriter()
        self._users = users or UserService()

    async def handle_callback(self, db: AsyncSession, form: Mapping[str, str]) -> CallbackResponse:
        self._verifier.check_secret(form.get(SECRET_FIELD))

        missing = [name for name in REQUIRED_FIELDS if not _field(form, name)]
        if missing:
            logger.warning("Gateway callback missing fields %s", missing)
            raise InvalidPayloadError(f"missing fields: {', '.join(missing)}")

        reference = _field(form, "orderno")
        try:
            total = baht_to_satang(_field(form, "total"))
        except ValueError:
            raise InvalidPayloadError("invalid total") from None
        if total <= 0:
            raise InvalidPayloadError("invalid total")

        confirmed = await self._verifier.confirm(reference)
        total = self._confirmed_total(reference, total, confirmed)

        if await self._guard.is_already_used(db, reference):
            logger.info("Gateway callback replay for %s", reference)
            return CallbackResponse(status="duplicate", reference=reference)

        email = _field(form, "customeremail")
        user = await self._users.find_by_email(email, db) if email else None
        if user is None:
            logger.error(
                "Confirmed gateway payment %s (%d satang) has no matching donor %r",
                reference,
                total,
                email,
            )
            raise PayerNotFoundError(email)

        rail = PaymentRail.QR if _field(form, "cardtype") == PROMPTPAY_CARD_TYPE else PaymentRail.CARD
        payload = {key: value for key, value in form.items() if key != SECRET_FIELD}

        try:
            await self._writer.record(
                db,
                LedgerCredit(
                    reference=reference,
                    amount=total,
                    total=total,
                    rail=rail,
                    user_id=str(user.id),
                    project_id=parse_earmark(_field(form, "productdetail")),
                    payer_identifier=email,
                    raw_payload=payload,
                ),
            )
        except PaymentAlreadyUsedError:
            return CallbackResponse(status="duplicate", reference=reference)

        return CallbackResponse(status="success", reference=reference)

    @staticmethod
    def _confirmed_total(reference: str, claimed: int, confirmed: GatewayOrderStatus) -> int:
        if confirmed.total is None:
            logger.warning("Gateway confirmed %s without a total; using callback total", reference)
            return claimed
        try:
            total = baht_to_satang(confirmed.total)
        except ValueError:
            logger.warning("Unreadable gateway total %r for %s", confirmed.total, reference)
            raise VerificationFailedError(reference) from None
        if total != claimed:
            logger.error(
                "Gateway callback %s claims %d satang but gateway reports %d; not recorded",
                reference,
                claimed,
                total,
            )
            raise VerificationFailedError(reference)
        return total
