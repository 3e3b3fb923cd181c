"""Proof-of-payment verifiers.

Both produce a rail-agnostic `VerifiedPayment` (or raise) and never touch
the ledger. Nothing may be written until verification returns.
"""

import hmac
import logging

from config.settings import settings
from src.dn_common.errors import (
    InsufficientUpstreamDataError,
    InvalidReceiverError,
    InvalidSlipError,
    UnauthorizedCallbackError,
    VerificationFailedError,
)
from src.dn_common.satang import baht_to_satang
from src.dn_payment.domain.constants import EXPECTED_RECEIVER
from src.dn_payment.domain.models import ReceiverIdentity, VerifiedPayment
from src.dn_payment.domain.receiver import receiver_matches
from src.dn_payment.domain.vocabulary import GatewayOutcome, normalize_status
from src.dn_payment.infrastructure.gateway_client import GatewayOrderStatus, PaySolutionsClient
from src.dn_payment.infrastructure.slip_client import EasySlipClient, parse_slip

logger = logging.getLogger(__name__)


class SlipVerifier:
    """Bank-slip image → vendor OCR → receiver check → VerifiedPayment."""

    def __init__(
        self,
        client: EasySlipClient | None = None,
        expected: ReceiverIdentity = EXPECTED_RECEIVER,
    ) -> None:
        self._client = client or EasySlipClient()
        self._expected = expected

    async def verify(self, image: bytes) -> VerifiedPayment:
        payload = await self._client.verify(image)
        slip = parse_slip(payload)

        account = slip.receiver_account
        if account is None:
            logger.info("Slip has no receiver account: %s", payload)
            raise InvalidReceiverError(self._expected.describe())

        bank = account.bank
        matched = receiver_matches(
            name_th=account.name.th,
            name_en=account.name.en,
            account_number=bank.account if bank else None,
            account_type=bank.type if bank else None,
            expected=self._expected,
        )
        if not matched:
            logger.info(
                "Receiver mismatch: name=%s/%s account=%s",
                account.name.th,
                account.name.en,
                bank.account if bank else None,
            )
            raise InvalidReceiverError(self._expected.describe())

        if not slip.trans_ref:
            # Money may have moved without a reference we can record
            logger.error("Slip verified without transRef, raw payload for reconciliation: %s", payload)
            raise InsufficientUpstreamDataError("transaction reference")

        try:
            amount = baht_to_satang(slip.amount.amount)
        except ValueError:
            raise InvalidSlipError("unreadable amount") from None
        if amount <= 0:
            raise InvalidSlipError("amount must be positive")

        return VerifiedPayment(
            reference=slip.trans_ref,
            amount=amount,
            payer_identifier=slip.sender_name,
            raw_payload=payload,
        )


class GatewayVerifier:
    """Callback secret check plus server-to-server order-status re-query."""

    def __init__(
        self,
        client: PaySolutionsClient | None = None,
        callback_secret: str | None = None,
    ) -> None:
        self._client = client or PaySolutionsClient()
        self._callback_secret = (
            callback_secret if callback_secret is not None else settings.PAYSOLUTIONS_CALLBACK_SECRET
        )

    def check_secret(self, supplied: str | None) -> None:
        if not self._callback_secret:
            logger.error("PAYSOLUTIONS_CALLBACK_SECRET is not configured; rejecting callback")
            raise UnauthorizedCallbackError()
        if not supplied or not hmac.compare_digest(
            supplied.encode("utf-8"), self._callback_secret.encode("utf-8")
        ):
            raise UnauthorizedCallbackError()

    async def outcome(self, reference: str) -> tuple[GatewayOutcome, GatewayOrderStatus | None]:
        """Normalised gateway outcome for `reference`; PENDING when the gateway has no row yet."""
        rows = await self._client.order_status(reference)
        if not rows:
            return GatewayOutcome.PENDING, None
        row = rows[0]
        return normalize_status(row.status, row.status_name), row

    async def confirm(self, reference: str) -> GatewayOrderStatus:
        outcome, row = await self.outcome(reference)
        if outcome is not GatewayOutcome.SUCCESS or row is None:
            logger.warning(
                "Gateway did not confirm %s: status=%s name=%s",
                reference,
                row.status if row else None,
                row.status_name if row else None,
            )
            raise VerificationFailedError(reference)
        return row
