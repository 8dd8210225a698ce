"""001: create updated_at trigger function and hodl_accounts table

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE hodl_accounts (
            account_id              VARCHAR(66)     PRIMARY KEY,
            balance                 NUMERIC(78, 0)  NOT NULL DEFAULT 0,
            checkpoint_count        BIGINT          NOT NULL DEFAULT 0,
            last_checkpoint_bucket  BIGINT          NOT NULL DEFAULT 0,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_hodl_accounts_balance_gte_0  CHECK (balance >= 0),
            CONSTRAINT ck_hodl_accounts_count_gte_0    CHECK (checkpoint_count >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_hodl_accounts_updated_at
            BEFORE UPDATE ON hodl_accounts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE hodl_accounts IS "
        "'Token holders; the zero address row holds total supply';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS hodl_accounts CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
