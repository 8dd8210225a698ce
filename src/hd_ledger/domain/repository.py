"""Store and repository Protocols — dependency inversion for testability.

LedgerStoreProtocol is the synchronous contract the ledger core runs
against. HodlRepositoryProtocol is the async PostgreSQL side: it loads the
records an operation needs into an in-memory snapshot that conforms to
LedgerStoreProtocol, and flushes what the core changed.
"""

from typing import TYPE_CHECKING, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.hd_ledger.domain.models import Account, Checkpoint

if TYPE_CHECKING:
    from src.hd_ledger.engine.memory_store import InMemoryLedgerStore


class LedgerStoreProtocol(Protocol):
    def get_account(self, account_id: str) -> Account | None: ...

    def save_account(self, account: Account) -> None: ...

    def get_checkpoint(self, account_id: str, bucket: int) -> Checkpoint | None: ...

    def save_checkpoint(self, checkpoint: Checkpoint) -> None: ...

    def floor_checkpoint(self, account_id: str, bucket: int) -> Checkpoint | None:
        """Latest checkpoint of the account whose bucket is <= `bucket`."""
        ...


class HodlRepositoryProtocol(Protocol):
    """Async persistence used by the application service.

    Unit tests inject a mock that conforms to this Protocol.
    Infrastructure layer provides the real implementation.
    """

    async def get_account(self, db: AsyncSession, account_id: str) -> Account | None: ...

    async def load_transfer_snapshot(
        self, db: AsyncSession, account_ids: list[str]
    ) -> "InMemoryLedgerStore": ...

    async def load_query_snapshot(
        self, db: AsyncSession, account_ids: list[str], timestamps: list[int]
    ) -> "InMemoryLedgerStore": ...

    async def list_checkpoints(
        self,
        db: AsyncSession,
        account_id: str,
        cursor_bucket: int | None,
        limit: int,
    ) -> list[Checkpoint]: ...

    async def flush(
        self,
        db: AsyncSession,
        accounts: list[Account],
        checkpoints: list[Checkpoint],
    ) -> None: ...
