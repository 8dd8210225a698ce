"""Domain models for hd_ledger — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field

from src.hd_common.enums import TransferKind


@dataclass
class Account:
    id: str
    balance: int = 0                 # token base units; total supply for the sentinel
    checkpoint_count: int = 0
    last_checkpoint_bucket: int = 0  # meaningful only when checkpoint_count > 0

    @property
    def has_checkpoints(self) -> bool:
        return self.checkpoint_count > 0


@dataclass
class Checkpoint:
    """One account's HODL state for one time bucket."""

    account_id: str
    bucket: int
    last_event_timestamp: int
    last_balance: int                # balance held since last_event_timestamp
    cumulative_metric: int           # sum of balance x seconds up to last_event_timestamp
    prev_bucket: int | None = None   # None = no link; bucket 0 is a real bucket
    next_bucket: int | None = None

    @property
    def id(self) -> str:
        return checkpoint_id(self.account_id, self.bucket)

    def metric_at(self, timestamp: int) -> int:
        """Extrapolate the cumulative metric forward from this checkpoint."""
        return self.cumulative_metric + self.last_balance * (timestamp - self.last_event_timestamp)


@dataclass(frozen=True)
class TransferEvent:
    """One token transfer from the ordered feed."""

    from_account: str
    to_account: str
    amount: int
    timestamp: int


@dataclass
class TransferOutcome:
    """Result of applying one TransferEvent."""

    kind: TransferKind
    timestamp: int
    amount: int
    accounts: list[Account] = field(default_factory=list)          # records written
    checkpoints: list[Checkpoint] = field(default_factory=list)


def checkpoint_id(account_id: str, bucket: int) -> str:
    return f"{account_id}-{bucket}"
