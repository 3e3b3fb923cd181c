"""Raw SQL persistence for payment_records and qr_payment_attempts.

payment_records is append-only. Its `uq_payment_records_reference`
constraint is what makes a reference redeemable exactly once; the
IntegrityError it raises is interpreted by the ledger writer.

Transaction ownership: the CALLER commits or rolls back.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.dn_common.enums import PaymentStatus
from src.dn_common.errors import InternalError
from src.dn_payment.domain.models import (
    DonationTotal,
    LedgerCredit,
    PaymentRecord,
    QrPaymentAttempt,
)

REFERENCE_CONSTRAINT = "uq_payment_records_reference"

# ---------------------------------------------------------------------------
# SQL: payment_records
# ---------------------------------------------------------------------------

_PAYMENT_COLUMNS = """
    id, reference, status, status_label, amount, total, rail,
    payer_identifier, user_id, project_id, created_at, payment_date
"""

_REFERENCE_EXISTS_SQL = text("""
    SELECT 1 FROM payment_records WHERE reference = :reference LIMIT 1
""")

_INSERT_PAYMENT_SQL = text(f"""
    INSERT INTO payment_records
        (reference, status, status_label, amount, total, rail,
         payer_identifier, user_id, project_id, raw_payload, payment_date)
    VALUES
        (:reference, :status, :status_label, :amount, :total, :rail,
         :payer_identifier, :user_id, :project_id, CAST(:raw_payload AS JSONB), NOW())
    RETURNING {_PAYMENT_COLUMNS}
""")

_LIST_BY_USER_SQL = text(f"""
    SELECT {_PAYMENT_COLUMNS}
    FROM payment_records
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
    ORDER BY id DESC
    LIMIT :limit
""")

_COMPLETED_TOTAL_SQL = text("""
    SELECT COUNT(*) AS count,
           COUNT(DISTINCT user_id) AS donors,
           COALESCE(SUM(total), 0) AS total
    FROM payment_records
    WHERE status = 'COMPLETED'
""")

# ---------------------------------------------------------------------------
# SQL: qr_payment_attempts
# ---------------------------------------------------------------------------

_ATTEMPT_COLUMNS = """
    reference, user_id, amount, project_id, promptpay_id, qr_image,
    status, created_at, expires_at, updated_at
"""

_INSERT_ATTEMPT_SQL = text("""
    INSERT INTO qr_payment_attempts
        (reference, user_id, amount, project_id, promptpay_id, qr_image,
         status, created_at, expires_at)
    VALUES
        (:reference, :user_id, :amount, :project_id, :promptpay_id, :qr_image,
         :status, :created_at, :expires_at)
""")

_GET_ATTEMPT_SQL = text(f"""
    SELECT {_ATTEMPT_COLUMNS}
    FROM qr_payment_attempts
    WHERE reference = :reference
""")

_LATEST_PENDING_SQL = text(f"""
    SELECT {_ATTEMPT_COLUMNS}
    FROM qr_payment_attempts
    WHERE user_id = :user_id AND status = 'PENDING' AND expires_at > NOW()
    ORDER BY created_at DESC
    LIMIT 1
""")

# Terminal states are final: only PENDING rows move.
_TRANSITION_SQL = text("""
    UPDATE qr_payment_attempts
    SET status = :new_status, updated_at = NOW()
    WHERE reference = :reference AND status = 'PENDING'
    RETURNING reference
""")


def _row_to_payment(row: Any) -> PaymentRecord:
    return PaymentRecord(
        id=row.id,
        reference=row.reference,
        status=row.status,
        status_label=row.status_label,
        amount=row.amount,
        total=row.total,
        rail=row.rail,
        payer_identifier=row.payer_identifier,
        user_id=row.user_id,
        project_id=row.project_id,
        created_at=row.created_at,
        payment_date=row.payment_date,
    )


def _row_to_attempt(row: Any) -> QrPaymentAttempt:
    return QrPaymentAttempt(
        reference=row.reference,
        user_id=row.user_id,
        amount=row.amount,
        project_id=row.project_id,
        promptpay_id=row.promptpay_id,
        qr_image=row.qr_image,
        status=row.status,
        created_at=row.created_at,
        expires_at=row.expires_at,
        updated_at=row.updated_at,
    )


class PaymentRepository:
    async def reference_exists(self, db: AsyncSession, reference: str) -> bool:
        result = await db.execute(_REFERENCE_EXISTS_SQL, {"reference": reference})
        return result.fetchone() is not None

    async def insert_completed(
        self,
        db: AsyncSession,
        credit: LedgerCredit,
        project_id: int | None,
        status_label: str,
    ) -> PaymentRecord:
        result = await db.execute(
            _INSERT_PAYMENT_SQL,
            {
                "reference": credit.reference,
                "status": PaymentStatus.COMPLETED.value,
                "status_label": status_label,
                "amount": credit.amount,
                "total": credit.total,
                "rail": credit.rail.value,
                "payer_identifier": credit.payer_identifier,
                "user_id": credit.user_id,
                "project_id": project_id,
                "raw_payload": json.dumps(credit.raw_payload, ensure_ascii=False, default=str),
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Payment insert returned no rows")
        return _row_to_payment(row)

    async def list_by_user(
        self, db: AsyncSession, user_id: str, cursor_id: int | None, limit: int
    ) -> list[PaymentRecord]:
        result = await db.execute(
            _LIST_BY_USER_SQL,
            {"user_id": user_id, "cursor_id": cursor_id, "limit": limit},
        )
        return [_row_to_payment(row) for row in result.fetchall()]

    async def completed_total(self, db: AsyncSession) -> DonationTotal:
        result = await db.execute(_COMPLETED_TOTAL_SQL)
        row = result.fetchone()
        if row is None:
            return DonationTotal(count=0, total=0, donors=0)
        return DonationTotal(count=int(row.count), total=int(row.total), donors=int(row.donors))


class QrAttemptRepository:
    async def insert(self, db: AsyncSession, attempt: QrPaymentAttempt) -> None:
        await db.execute(
            _INSERT_ATTEMPT_SQL,
            {
                "reference": attempt.reference,
                "user_id": attempt.user_id,
                "amount": attempt.amount,
                "project_id": attempt.project_id,
                "promptpay_id": attempt.promptpay_id,
                "qr_image": attempt.qr_image,
                "status": attempt.status,
                "created_at": attempt.created_at,
                "expires_at": attempt.expires_at,
            },
        )

    async def get(self, db: AsyncSession, reference: str) -> QrPaymentAttempt | None:
        result = await db.execute(_GET_ATTEMPT_SQL, {"reference": reference})
        row = result.fetchone()
        return _row_to_attempt(row) if row else None

    async def latest_pending(self, db: AsyncSession, user_id: str) -> QrPaymentAttempt | None:
        result = await db.execute(_LATEST_PENDING_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_attempt(row) if row else None

    async def transition(self, db: AsyncSession, reference: str, new_status: str) -> bool:
        """Move a PENDING attempt to `new_status`; False when it was not pending."""
        result = await db.execute(
            _TRANSITION_SQL, {"reference": reference, "new_status": new_status}
        )
        return result.fetchone() is not None
