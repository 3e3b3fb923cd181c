"""005: create payment_records table

Revision ID: 005
Revises: 004
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE payment_records (
            id                  BIGSERIAL       PRIMARY KEY,
            reference           VARCHAR(128)    NOT NULL,
            status              VARCHAR(16)     NOT NULL,
            status_label        VARCHAR(128)    NOT NULL,
            amount              BIGINT          NOT NULL,
            total               BIGINT          NOT NULL,
            rail                VARCHAR(8)      NOT NULL,
            payer_identifier    VARCHAR(255),
            user_id             VARCHAR(64),
            project_id          INTEGER         REFERENCES fundraising_projects (id),
            raw_payload         JSONB           NOT NULL DEFAULT '{}'::jsonb,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            payment_date        TIMESTAMPTZ,
            CONSTRAINT uq_payment_records_reference UNIQUE (reference),
            CONSTRAINT ck_payment_records_status
                CHECK (status IN ('PENDING', 'COMPLETED', 'FAILED', 'CANCELLED')),
            CONSTRAINT ck_payment_records_rail CHECK (rail IN ('BANK', 'QR', 'CARD')),
            CONSTRAINT ck_payment_records_amount_gt_0 CHECK (amount > 0)
        );
    """)
    op.execute("CREATE INDEX idx_payment_records_user ON payment_records (user_id, id DESC);")
    op.execute("CREATE INDEX idx_payment_records_project ON payment_records (project_id);")
    op.execute("""
        COMMENT ON TABLE payment_records IS
            'Append-only donation ledger; one row per redeemed reference, amounts in satang';
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS payment_records CASCADE;")
