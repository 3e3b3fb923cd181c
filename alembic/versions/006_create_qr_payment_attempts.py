"""006: create qr_payment_attempts table

Revision ID: 006
Revises: 005
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE qr_payment_attempts (
            reference       VARCHAR(128)    PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            amount          BIGINT          NOT NULL,
            project_id      INTEGER,
            promptpay_id    VARCHAR(32)     NOT NULL,
            qr_image        TEXT            NOT NULL,
            status          VARCHAR(16)     NOT NULL DEFAULT 'PENDING',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            expires_at      TIMESTAMPTZ     NOT NULL,
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_qr_payment_attempts_status
                CHECK (status IN ('PENDING', 'COMPLETED', 'FAILED', 'CANCELLED')),
            CONSTRAINT ck_qr_payment_attempts_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_qr_payment_attempts_expiry CHECK (expires_at > created_at)
        );
    """)
    op.execute("""
        CREATE INDEX idx_qr_payment_attempts_user_pending
            ON qr_payment_attempts (user_id, created_at DESC)
            WHERE status = 'PENDING';
    """)
    op.execute("""
        CREATE TRIGGER trg_qr_payment_attempts_updated_at
            BEFORE UPDATE ON qr_payment_attempts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS qr_payment_attempts CASCADE;")
