"""004: create fundraising_projects table

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE fundraising_projects (
            id                  SERIAL          PRIMARY KEY,
            title               VARCHAR(255)    NOT NULL,
            target_amount       BIGINT          NOT NULL,
            current_amount      BIGINT          NOT NULL DEFAULT 0,
            progress_percentage NUMERIC(5,2)    NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_fundraising_projects_target_gt_0   CHECK (target_amount > 0),
            CONSTRAINT ck_fundraising_projects_current_gte_0 CHECK (current_amount >= 0),
            CONSTRAINT ck_fundraising_projects_progress      CHECK (progress_percentage BETWEEN 0 AND 100)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_fundraising_projects_updated_at
            BEFORE UPDATE ON fundraising_projects
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE fundraising_projects IS 'Earmark targets; amounts in satang';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS fundraising_projects CASCADE;")
