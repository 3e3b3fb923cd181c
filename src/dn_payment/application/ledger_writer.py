"""LedgerWriter — the only path by which balances and project totals change.

One transaction on the caller's session:
  1. lock the earmarked project row (unknown project → general fund)
  2. insert the COMPLETED payment record (reference is UNIQUE)
  3. credit the donor balance (UPDATE ... RETURNING, row-locked)
  4. write the project's current_amount and progress_percentage together
  5. close any PENDING QR attempt carrying the same reference
  6. commit

Any failure rolls the whole transaction back. A unique violation on the
reference means a concurrent request already redeemed it. After commit the
notification is scheduled in the background; the response never waits on
Redis.
"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.dn_account.domain.repository import BalanceRepositoryProtocol
from src.dn_account.infrastructure.persistence import BalanceRepository
from src.dn_common.enums import STATUS_LABELS, PaymentStatus
from src.dn_common.errors import (
    InvalidPayloadError,
    LedgerTransactionError,
    PaymentAlreadyUsedError,
)
from src.dn_payment.domain.models import LedgerCredit, LedgerResult
from src.dn_payment.domain.repository import (
    PaymentRepositoryProtocol,
    QrAttemptRepositoryProtocol,
)
from src.dn_payment.infrastructure.notifier import RedisNotifier
from src.dn_payment.infrastructure.persistence import (
    REFERENCE_CONSTRAINT,
    PaymentRepository,
    QrAttemptRepository,
)
from src.dn_project.domain.repository import ProjectRepositoryProtocol
from src.dn_project.infrastructure.persistence import ProjectRepository

logger = logging.getLogger(__name__)


def is_duplicate_reference(exc: IntegrityError) -> bool:
    return REFERENCE_CONSTRAINT in str(exc.orig)


class LedgerWriter:
    def __init__(
        self,
        payments: PaymentRepositoryProtocol | None = None,
        balances: BalanceRepositoryProtocol | None = None,
        projects: ProjectRepositoryProtocol | None = None,
        qr_attempts: QrAttemptRepositoryProtocol | None = None,
        notifier: RedisNotifier | None = None,
    ) -> None:
        self._payments: PaymentRepositoryProtocol = payments or PaymentRepository()
        self._balances: BalanceRepositoryProtocol = balances or BalanceRepository()
        self._projects: ProjectRepositoryProtocol = projects or ProjectRepository()
        self._qr_attempts: QrAttemptRepositoryProtocol = qr_attempts or QrAttemptRepository()
        self._notifier = notifier or RedisNotifier()

    async def record(self, db: AsyncSession, credit: LedgerCredit) -> LedgerResult:
        if credit.amount <= 0:
            raise InvalidPayloadError("amount must be positive")

        try:
            result = await self._write(db, credit)
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            if is_duplicate_reference(exc):
                logger.info("Reference %s lost the race to a concurrent redemption", credit.reference)
                raise PaymentAlreadyUsedError(credit.reference) from None
            self._log_for_reconciliation(credit, exc)
            raise LedgerTransactionError(credit.reference) from exc
        except SQLAlchemyError as exc:
            await db.rollback()
            self._log_for_reconciliation(credit, exc)
            raise LedgerTransactionError(credit.reference) from exc
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Recorded %s payment %s: %d satang to user %s (project %s)",
            credit.rail.value,
            credit.reference,
            credit.amount,
            credit.user_id,
            result.record.project_id,
        )
        self._notifier.notify(credit.rail.value, credit.amount)
        return result

    async def _write(self, db: AsyncSession, credit: LedgerCredit) -> LedgerResult:
        project = None
        if credit.project_id is not None:
            project = await self._projects.lock_project(db, credit.project_id)
            if project is None:
                logger.warning(
                    "Payment %s earmarked for unknown project %s; recording to the general fund",
                    credit.reference,
                    credit.project_id,
                )

        record = await self._payments.insert_completed(
            db,
            credit,
            project.id if project else None,
            STATUS_LABELS[credit.rail],
        )

        balance = await self._balances.credit(db, credit.user_id, credit.amount)
        if balance is None:
            logger.error(
                "No balance row for user %s; payment %s (%d satang, %s) not recorded",
                credit.user_id,
                credit.reference,
                credit.amount,
                credit.rail.value,
            )
            raise LedgerTransactionError(credit.reference)

        progress = None
        if project is not None:
            updated = project.credited(credit.amount)
            await self._projects.save_totals(db, updated)
            progress = str(updated.progress_percentage)

        await self._qr_attempts.transition(db, credit.reference, PaymentStatus.COMPLETED.value)

        return LedgerResult(record=record, balance_after=balance.balance, project_progress=progress)

    @staticmethod
    def _log_for_reconciliation(credit: LedgerCredit, exc: Exception) -> None:
        logger.error(
            "Ledger write failed; reconcile manually: reference=%s amount=%d total=%d "
            "user_id=%s rail=%s project_id=%s payload=%s",
            credit.reference,
            credit.amount,
            credit.total,
            credit.user_id,
            credit.rail.value,
            credit.project_id,
            credit.raw_payload,
            exc_info=exc,
        )
