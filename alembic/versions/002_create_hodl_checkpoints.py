"""002: create hodl_checkpoints table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # cumulative_metric = uint256 balance x seconds, beyond NUMERIC(78, 0)
    op.execute("""
        CREATE TABLE hodl_checkpoints (
            account_id              VARCHAR(66)     NOT NULL
                                    REFERENCES hodl_accounts (account_id),
            bucket                  BIGINT          NOT NULL,
            last_event_timestamp    BIGINT          NOT NULL,
            last_balance            NUMERIC(78, 0)  NOT NULL,
            cumulative_metric       NUMERIC(100, 0) NOT NULL DEFAULT 0,
            prev_bucket             BIGINT          NULL,
            next_bucket             BIGINT          NULL,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_hodl_checkpoints              PRIMARY KEY (account_id, bucket),
            CONSTRAINT ck_hodl_checkpoints_balance_gte_0 CHECK (last_balance >= 0),
            CONSTRAINT ck_hodl_checkpoints_metric_gte_0  CHECK (cumulative_metric >= 0),
            CONSTRAINT ck_hodl_checkpoints_event_in_bucket
                CHECK (last_event_timestamp >= bucket),
            CONSTRAINT ck_hodl_checkpoints_prev_before
                CHECK (prev_bucket IS NULL OR prev_bucket < bucket),
            CONSTRAINT ck_hodl_checkpoints_next_after
                CHECK (next_bucket IS NULL OR next_bucket > bucket)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_hodl_checkpoints_updated_at
            BEFORE UPDATE ON hodl_checkpoints
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE hodl_checkpoints IS "
        "'One row per account per active bucket; PK is the ordered lookup index';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS hodl_checkpoints CASCADE;")
