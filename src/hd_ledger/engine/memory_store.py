import bisect
from collections.abc import Iterator
from dataclasses import dataclass, field

from src.hd_ledger.domain.models import Account, Checkpoint


@dataclass
class InMemoryLedgerStore:
    """Dict-backed LedgerStoreProtocol with a sorted bucket index per account.

    Used as the full store in tests and as the per-operation snapshot that
    the SQL repository loads rows into.
    """

    accounts: dict[str, Account] = field(default_factory=dict)
    checkpoints: dict[tuple[str, int], Checkpoint] = field(default_factory=dict)
    _buckets: dict[str, list[int]] = field(default_factory=dict)
    # _buckets[account_id] = ascending bucket starts

    def get_account(self, account_id: str) -> Account | None:
        return self.accounts.get(account_id)

    def save_account(self, account: Account) -> None:
        self.accounts[account.id] = account

    def get_checkpoint(self, account_id: str, bucket: int) -> Checkpoint | None:
        return self.checkpoints.get((account_id, bucket))

    def save_checkpoint(self, checkpoint: Checkpoint) -> None:
        key = (checkpoint.account_id, checkpoint.bucket)
        if key not in self.checkpoints:
            bisect.insort(self._buckets.setdefault(checkpoint.account_id, []), checkpoint.bucket)
        self.checkpoints[key] = checkpoint

    def floor_checkpoint(self, account_id: str, bucket: int) -> Checkpoint | None:
        buckets = self._buckets.get(account_id)
        if not buckets:
            return None
        i = bisect.bisect_right(buckets, bucket)
        if i == 0:
            return None
        return self.checkpoints[(account_id, buckets[i - 1])]

    def iter_accounts(self) -> Iterator[Account]:
        return iter(self.accounts.values())

    def iter_checkpoints(self, account_id: str) -> Iterator[Checkpoint]:
        """Checkpoints of one account in ascending bucket order."""
        for b in self._buckets.get(account_id, []):
            yield self.checkpoints[(account_id, b)]
