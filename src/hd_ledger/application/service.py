"""HodlApplicationService — async composition around the synchronous ledger core.

Writes: load a row-locked snapshot, run LedgerUpdater, flush, commit.
Ingestion is serialized by one lock per service: the core is single-writer.
Reads: load a REPEATABLE READ snapshot, run QueryEngine. No explicit commit.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.hd_common.database import begin_snapshot
from src.hd_common.enums import TransferKind
from src.hd_common.errors import AccountNotFoundError, EventOrderError
from src.hd_ledger.application.schemas import (
    AccountResponse,
    BatchTransferResponse,
    CheckpointItem,
    CheckpointListResponse,
    MetricResponse,
    RatioResponse,
    TransferRequest,
    TransferResponse,
    cursor_decode,
    cursor_encode,
    normalize_account_id,
)
from src.hd_ledger.domain.models import TransferEvent, TransferOutcome
from src.hd_ledger.domain.repository import HodlRepositoryProtocol
from src.hd_ledger.engine.query import QueryEngine
from src.hd_ledger.engine.updater import LedgerUpdater
from src.hd_ledger.infrastructure.persistence import HodlRepository

logger = logging.getLogger(__name__)


class HodlApplicationService:
    def __init__(
        self,
        repo: HodlRepositoryProtocol | None = None,
        bucket_size: int | None = None,
        sentinel: str | None = None,
        decimal_places: int | None = None,
    ) -> None:
        self._repo: HodlRepositoryProtocol = repo or HodlRepository()
        self._bucket_size = bucket_size or settings.BUCKET_SIZE_SECONDS
        self._sentinel = normalize_account_id(sentinel or settings.SENTINEL_ACCOUNT_ID)
        self._places = (
            decimal_places if decimal_places is not None else settings.RATIO_DECIMAL_PLACES
        )
        self._write_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def ingest_transfer(
        self, db: AsyncSession, request: TransferRequest
    ) -> TransferResponse:
        async with self._write_lock:
            try:
                outcome = await self._apply(db, request.to_event())
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        return TransferResponse.from_outcome(outcome)

    async def ingest_batch(
        self, db: AsyncSession, requests: list[TransferRequest]
    ) -> BatchTransferResponse:
        """Apply a time-ordered batch in one transaction: all events or none."""
        if not requests:
            return BatchTransferResponse(applied=0, skipped=0, last_timestamp=None)

        for prev, cur in zip(requests, requests[1:]):
            if cur.timestamp < prev.timestamp:
                raise EventOrderError(prev.timestamp, cur.timestamp)

        applied = skipped = 0
        async with self._write_lock:
            try:
                for request in requests:
                    outcome = await self._apply(db, request.to_event())
                    if outcome.kind == TransferKind.NOOP:
                        skipped += 1
                    else:
                        applied += 1
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        logger.info(
            "Ingested batch: applied=%d skipped=%d last_ts=%d",
            applied, skipped, requests[-1].timestamp,
        )
        return BatchTransferResponse(
            applied=applied, skipped=skipped, last_timestamp=requests[-1].timestamp
        )

    async def _apply(self, db: AsyncSession, event: TransferEvent) -> TransferOutcome:
        if event.amount == 0:
            # Zero transfers touch nothing, not even the account rows
            return TransferOutcome(kind=TransferKind.NOOP, timestamp=event.timestamp, amount=0)

        snapshot = await self._repo.load_transfer_snapshot(
            db, [event.from_account, event.to_account, self._sentinel]
        )
        outcome = LedgerUpdater(snapshot, self._bucket_size, self._sentinel).apply(event)
        await self._repo.flush(db, outcome.accounts, outcome.checkpoints)
        return outcome

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_account(self, db: AsyncSession, account_id: str) -> AccountResponse:
        account_id = normalize_account_id(account_id)
        account = await self._repo.get_account(db, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return AccountResponse.from_domain(account)

    async def get_metric(
        self, db: AsyncSession, account_id: str, timestamp: int
    ) -> MetricResponse:
        account_id = normalize_account_id(account_id)
        engine = await self._query_engine(db, [account_id], [timestamp])
        return MetricResponse(
            account_id=account_id,
            timestamp=timestamp,
            cumulative_metric=str(engine.metric_at(account_id, timestamp)),
        )

    async def get_ratio(
        self, db: AsyncSession, account_id: str, start: int, end: int
    ) -> RatioResponse:
        return await self.get_account_ratio(db, account_id, self._sentinel, start, end)

    async def get_account_ratio(
        self, db: AsyncSession, account_id: str, other_id: str, start: int, end: int
    ) -> RatioResponse:
        account_id = normalize_account_id(account_id)
        other_id = normalize_account_id(other_id)
        engine = await self._query_engine(db, [account_id, other_id], [start, end])
        ratio = engine.account_ratio(account_id, other_id, start, end)
        return RatioResponse.from_result(account_id, other_id, start, end, ratio)

    async def list_checkpoints(
        self,
        db: AsyncSession,
        account_id: str,
        cursor: str | None,
        limit: int,
    ) -> CheckpointListResponse:
        account_id = normalize_account_id(account_id)
        cursor_bucket = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        checkpoints = await self._repo.list_checkpoints(db, account_id, cursor_bucket, limit + 1)
        has_more = len(checkpoints) > limit
        page = checkpoints[:limit]

        next_cursor = cursor_encode(page[-1].bucket) if has_more and page else None
        return CheckpointListResponse(
            items=[CheckpointItem.from_domain(cp) for cp in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def _query_engine(
        self, db: AsyncSession, account_ids: list[str], timestamps: list[int]
    ) -> QueryEngine:
        # All snapshot SELECTs must see the same committed state
        await begin_snapshot(db)
        snapshot = await self._repo.load_query_snapshot(db, account_ids, timestamps)
        return QueryEngine(snapshot, self._bucket_size, self._sentinel, self._places)
