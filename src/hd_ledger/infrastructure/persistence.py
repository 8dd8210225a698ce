"""HodlRepository — PostgreSQL side of the ledger store contract.

The ledger core is synchronous, so this repository never runs it directly.
It loads the rows one operation needs into an InMemoryLedgerStore snapshot
and, for writes, upserts the records the core reports as changed.

Transaction ownership: The CALLER (application service) is responsible for
starting and committing the transaction.

Balances and metrics are NUMERIC columns: asyncpg hands back Decimal, and
values are bound as Decimal so uint256 amounts survive unchanged.
"""

from decimal import Decimal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.hd_ledger.domain.models import Account, Checkpoint
from src.hd_ledger.engine.memory_store import InMemoryLedgerStore

# ---------------------------------------------------------------------------
# SQL: reads
# ---------------------------------------------------------------------------

_GET_ACCOUNT_SQL = text("""
    SELECT account_id, balance, checkpoint_count, last_checkpoint_bucket
    FROM hodl_accounts
    WHERE account_id = :account_id
""")

_LOCK_ACCOUNTS_SQL = text("""
    SELECT account_id, balance, checkpoint_count, last_checkpoint_bucket
    FROM hodl_accounts
    WHERE account_id = ANY(:account_ids)
    ORDER BY account_id
    FOR UPDATE
""")

_GET_ACCOUNTS_SQL = text("""
    SELECT account_id, balance, checkpoint_count, last_checkpoint_bucket
    FROM hodl_accounts
    WHERE account_id = ANY(:account_ids)
""")

_GET_CHECKPOINT_SQL = text("""
    SELECT account_id, bucket, last_event_timestamp, last_balance,
           cumulative_metric, prev_bucket, next_bucket
    FROM hodl_checkpoints
    WHERE account_id = :account_id AND bucket = :bucket
""")

# Floor checkpoint plus its chain predecessor: the PK index walks backwards
_FLOOR_CHECKPOINTS_SQL = text("""
    SELECT account_id, bucket, last_event_timestamp, last_balance,
           cumulative_metric, prev_bucket, next_bucket
    FROM hodl_checkpoints
    WHERE account_id = :account_id AND bucket <= :bucket
    ORDER BY bucket DESC
    LIMIT 2
""")

_LIST_CHECKPOINTS_SQL = text("""
    SELECT account_id, bucket, last_event_timestamp, last_balance,
           cumulative_metric, prev_bucket, next_bucket
    FROM hodl_checkpoints
    WHERE account_id = :account_id
      AND (CAST(:cursor_bucket AS BIGINT) IS NULL OR bucket < CAST(:cursor_bucket AS BIGINT))
    ORDER BY bucket DESC
    LIMIT :limit
""")

# ---------------------------------------------------------------------------
# SQL: writes
# ---------------------------------------------------------------------------

_UPSERT_ACCOUNT_SQL = text("""
    INSERT INTO hodl_accounts
        (account_id, balance, checkpoint_count, last_checkpoint_bucket)
    VALUES
        (:account_id, :balance, :checkpoint_count, :last_checkpoint_bucket)
    ON CONFLICT (account_id) DO UPDATE
    SET balance                = EXCLUDED.balance,
        checkpoint_count       = EXCLUDED.checkpoint_count,
        last_checkpoint_bucket = EXCLUDED.last_checkpoint_bucket
""")

_UPSERT_CHECKPOINT_SQL = text("""
    INSERT INTO hodl_checkpoints
        (account_id, bucket, last_event_timestamp, last_balance,
         cumulative_metric, prev_bucket, next_bucket)
    VALUES
        (:account_id, :bucket, :last_event_timestamp, :last_balance,
         :cumulative_metric, :prev_bucket, :next_bucket)
    ON CONFLICT (account_id, bucket) DO UPDATE
    SET last_event_timestamp = EXCLUDED.last_event_timestamp,
        last_balance         = EXCLUDED.last_balance,
        cumulative_metric    = EXCLUDED.cumulative_metric,
        prev_bucket          = EXCLUDED.prev_bucket,
        next_bucket          = EXCLUDED.next_bucket
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_account(row: object) -> Account:
    return Account(
        id=row.account_id,  # type: ignore[attr-defined]
        balance=int(row.balance),  # type: ignore[attr-defined]
        checkpoint_count=row.checkpoint_count,  # type: ignore[attr-defined]
        last_checkpoint_bucket=row.last_checkpoint_bucket,  # type: ignore[attr-defined]
    )


def _row_to_checkpoint(row: object) -> Checkpoint:
    return Checkpoint(
        account_id=row.account_id,  # type: ignore[attr-defined]
        bucket=row.bucket,  # type: ignore[attr-defined]
        last_event_timestamp=row.last_event_timestamp,  # type: ignore[attr-defined]
        last_balance=int(row.last_balance),  # type: ignore[attr-defined]
        cumulative_metric=int(row.cumulative_metric),  # type: ignore[attr-defined]
        prev_bucket=row.prev_bucket,  # type: ignore[attr-defined]
        next_bucket=row.next_bucket,  # type: ignore[attr-defined]
    )


class HodlRepository:
    """Concrete repository — snapshot loads and upserts, all raw SQL."""

    async def get_account(self, db: AsyncSession, account_id: str) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"account_id": account_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def load_transfer_snapshot(
        self, db: AsyncSession, account_ids: list[str]
    ) -> InMemoryLedgerStore:
        """Row-lock the accounts and load each one's latest checkpoint.

        With time-ordered events the latest checkpoint is the only one the
        updater can read: it is either the current bucket or its predecessor.
        """
        snapshot = InMemoryLedgerStore()
        result = await db.execute(
            _LOCK_ACCOUNTS_SQL, {"account_ids": sorted(set(account_ids))}
        )
        for row in result.fetchall():
            account = _row_to_account(row)
            snapshot.save_account(account)
            if account.has_checkpoints:
                cp = await self._get_checkpoint(db, account.id, account.last_checkpoint_bucket)
                if cp is not None:
                    snapshot.save_checkpoint(cp)
        return snapshot

    async def load_query_snapshot(
        self, db: AsyncSession, account_ids: list[str], timestamps: list[int]
    ) -> InMemoryLedgerStore:
        """Load the accounts and, per query time, the floor checkpoint and its predecessor."""
        snapshot = InMemoryLedgerStore()
        result = await db.execute(
            _GET_ACCOUNTS_SQL, {"account_ids": sorted(set(account_ids))}
        )
        for row in result.fetchall():
            account = _row_to_account(row)
            snapshot.save_account(account)
            if not account.has_checkpoints:
                continue
            for ts in sorted(set(timestamps)):
                cp_result = await db.execute(
                    _FLOOR_CHECKPOINTS_SQL, {"account_id": account.id, "bucket": ts}
                )
                for cp_row in cp_result.fetchall():
                    snapshot.save_checkpoint(_row_to_checkpoint(cp_row))
        return snapshot

    async def list_checkpoints(
        self,
        db: AsyncSession,
        account_id: str,
        cursor_bucket: int | None,
        limit: int,
    ) -> list[Checkpoint]:
        result = await db.execute(
            _LIST_CHECKPOINTS_SQL,
            {"account_id": account_id, "cursor_bucket": cursor_bucket, "limit": limit},
        )
        return [_row_to_checkpoint(row) for row in result.fetchall()]

    async def flush(
        self,
        db: AsyncSession,
        accounts: list[Account],
        checkpoints: list[Checkpoint],
    ) -> None:
        """Upsert changed records within the caller's transaction. Accounts first (FK)."""
        for account in accounts:
            await db.execute(
                _UPSERT_ACCOUNT_SQL,
                {
                    "account_id": account.id,
                    "balance": Decimal(account.balance),
                    "checkpoint_count": account.checkpoint_count,
                    "last_checkpoint_bucket": account.last_checkpoint_bucket,
                },
            )
        for cp in checkpoints:
            await db.execute(
                _UPSERT_CHECKPOINT_SQL,
                {
                    "account_id": cp.account_id,
                    "bucket": cp.bucket,
                    "last_event_timestamp": cp.last_event_timestamp,
                    "last_balance": Decimal(cp.last_balance),
                    "cumulative_metric": Decimal(cp.cumulative_metric),
                    "prev_bucket": cp.prev_bucket,
                    "next_bucket": cp.next_bucket,
                },
            )

    async def _get_checkpoint(
        self, db: AsyncSession, account_id: str, bucket: int
    ) -> Checkpoint | None:
        result = await db.execute(
            _GET_CHECKPOINT_SQL, {"account_id": account_id, "bucket": bucket}
        )
        row = result.fetchone()
        return _row_to_checkpoint(row) if row else None
