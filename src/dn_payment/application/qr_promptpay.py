"""QR / PromptPay rail.

A donor asks for a QR, pays it from a banking app, and the page polls
`status`. Polling only asks the gateway; the gateway's order status is what
completes an attempt. Expiry stops the polling, never the payment: a late
SUCCESS still lands, and an expired attempt is never completed on our side.

Attempt lifecycle (only PENDING rows move):

    PENDING ──► COMPLETED   (ledger writer, via status poll or webhook)
            ├─► FAILED      (gateway reports failure)
            └─► CANCELLED   (donor cancels)
"""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.dn_common.datetime_utils import utc_now
from src.dn_common.enums import PaymentRail, PaymentStatus
from src.dn_common.errors import (
    InvalidPayloadError,
    PaymentAlreadyUsedError,
    QrPaymentNotFoundError,
)
from src.dn_common.satang import baht_to_satang
from src.dn_payment.application.ledger_writer import LedgerWriter
from src.dn_payment.application.schemas import (
    QrCancelResponse,
    QrPaymentResponse,
    QrStatusResponse,
)
from src.dn_payment.application.verifier import GatewayVerifier
from src.dn_payment.domain.constants import (
    EARMARK_DETAIL_PREFIX,
    GENERAL_FUND_DETAIL,
    QR_EXPIRY,
)
from src.dn_payment.domain.models import LedgerCredit, QrPaymentAttempt
from src.dn_payment.domain.repository import QrAttemptRepositoryProtocol
from src.dn_payment.domain.vocabulary import GatewayOutcome
from src.dn_payment.infrastructure.gateway_client import PaySolutionsClient
from src.dn_payment.infrastructure.persistence import QrAttemptRepository

logger = logging.getLogger(__name__)

# Attempt status → status reported to the polling client
_CLIENT_STATUS: dict[str, str] = {
    PaymentStatus.PENDING.value: "PENDING",
    PaymentStatus.COMPLETED.value: "SUCCESS",
    PaymentStatus.FAILED.value: "FAIL",
    PaymentStatus.CANCELLED.value: "CANCELLED",
}


def product_detail(project_id: int | None) -> str:
    if project_id is None:
        return GENERAL_FUND_DETAIL
    return f"{EARMARK_DETAIL_PREFIX}{project_id}"


def new_reference_no() -> str:
    """Merchant-side reference for QR creation; the gateway assigns the order number."""
    return uuid.uuid4().hex[:20].upper()


class QrPromptPayRail:
    def __init__(
        self,
        gateway: PaySolutionsClient | None = None,
        verifier: GatewayVerifier | None = None,
        attempts: QrAttemptRepositoryProtocol | None = None,
        writer: LedgerWriter | None = None,
        clock: Callable[[], datetime] = utc_now,
        promptpay_id: str | None = None,
    ) -> None:
        self._gateway = gateway or PaySolutionsClient()
        self._verifier = verifier or GatewayVerifier(client=self._gateway)
        self._attempts: QrAttemptRepositoryProtocol = attempts or QrAttemptRepository()
        self._writer = writer or LedgerWriter()
        self._clock = clock
        self._promptpay_id = promptpay_id if promptpay_id is not None else settings.PROMPTPAY_ID

    async def create(
        self,
        db: AsyncSession,
        user_id: str,
        email: str,
        amount: int,
        project_id: int | None = None,
    ) -> QrPaymentResponse:
        if amount <= 0:
            raise InvalidPayloadError("amount must be positive")

        created = await self._gateway.create_qr(
            reference_no=new_reference_no(),
            amount=amount,
            product_detail=product_detail(project_id),
            customer_email=email,
        )
        now = self._clock()
        attempt = QrPaymentAttempt(
            reference=created.reference,
            user_id=user_id,
            amount=amount,
            project_id=project_id,
            promptpay_id=self._promptpay_id,
            qr_image=created.qr_image,
            status=PaymentStatus.PENDING.value,
            created_at=now,
            expires_at=now + QR_EXPIRY,
        )
        try:
            await self._attempts.insert(db, attempt)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("QR %s created for user %s: %d satang", attempt.reference, user_id, amount)
        return QrPaymentResponse.from_attempt(attempt)

    async def pending(self, db: AsyncSession, user_id: str) -> QrPaymentResponse | None:
        attempt = await self._attempts.latest_pending(db, user_id)
        return QrPaymentResponse.from_attempt(attempt) if attempt else None

    async def status(self, db: AsyncSession, user_id: str, reference: str) -> QrStatusResponse:
        attempt = await self._owned_attempt(db, user_id, reference)
        if attempt.is_terminal:
            return self._status_response(attempt, attempt.status)

        outcome, row = await self._verifier.outcome(reference)

        if outcome is GatewayOutcome.SUCCESS:
            total = attempt.amount
            if row is not None and row.total is not None:
                try:
                    total = baht_to_satang(row.total)
                except ValueError:
                    logger.warning("Unreadable gateway total %r for %s", row.total, reference)
            if total != attempt.amount:
                logger.warning(
                    "QR %s: gateway total %d differs from requested %d satang",
                    reference,
                    total,
                    attempt.amount,
                )
            try:
                result = await self._writer.record(
                    db,
                    LedgerCredit(
                        reference=reference,
                        amount=attempt.amount,
                        total=total,
                        rail=PaymentRail.QR,
                        user_id=attempt.user_id,
                        project_id=attempt.project_id,
                        raw_payload=row.model_dump(by_alias=True) if row else {},
                    ),
                )
            except PaymentAlreadyUsedError:
                # The webhook got there first
                logger.info("QR %s already recorded", reference)
                return self._status_response(attempt, PaymentStatus.COMPLETED.value)
            return self._status_response(
                attempt, PaymentStatus.COMPLETED.value, balance_after=result.balance_after
            )

        if outcome is GatewayOutcome.FAILURE:
            await self._transition(db, reference, PaymentStatus.FAILED)
            logger.info("QR %s failed at the gateway", reference)
            return self._status_response(attempt, PaymentStatus.FAILED.value)

        return self._status_response(attempt, PaymentStatus.PENDING.value)

    async def cancel(self, db: AsyncSession, user_id: str, reference: str) -> QrCancelResponse:
        attempt = await self._owned_attempt(db, user_id, reference)
        if attempt.is_terminal:
            return QrCancelResponse(reference=reference, status=_CLIENT_STATUS[attempt.status])

        moved = await self._transition(db, reference, PaymentStatus.CANCELLED)
        if not moved:
            # Completed or failed between the read and the update
            current = await self._attempts.get(db, reference)
            status = current.status if current else PaymentStatus.CANCELLED.value
            return QrCancelResponse(reference=reference, status=_CLIENT_STATUS[status])

        logger.info("QR %s cancelled by user %s", reference, user_id)
        return QrCancelResponse(reference=reference, status="CANCELLED")

    async def _owned_attempt(self, db: AsyncSession, user_id: str, reference: str) -> QrPaymentAttempt:
        attempt = await self._attempts.get(db, reference)
        if attempt is None or str(attempt.user_id) != str(user_id):
            raise QrPaymentNotFoundError(reference)
        return attempt

    async def _transition(self, db: AsyncSession, reference: str, new_status: PaymentStatus) -> bool:
        try:
            moved = await self._attempts.transition(db, reference, new_status.value)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return moved

    def _status_response(
        self,
        attempt: QrPaymentAttempt,
        status: str,
        balance_after: int | None = None,
    ) -> QrStatusResponse:
        return QrStatusResponse(
            reference=attempt.reference,
            status=_CLIENT_STATUS[status],
            expires_at=attempt.expires_at.isoformat(),
            expired=status == PaymentStatus.PENDING.value and attempt.is_expired(self._clock()),
            balance_after_satang=balance_after,
        )
