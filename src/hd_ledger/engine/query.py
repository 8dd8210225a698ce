"""QueryEngine — read-only HODL score lookups over stored checkpoints.

metric_at() only extrapolates forward from the nearest checkpoint at or
before the query time. It never interpolates between two checkpoints: a
checkpoint folds several intra-bucket events together, so a straight line
between two of them is not the real step function. Extrapolation with the
balance held since that checkpoint is exact, because no event touched the
account in between.

Query times must sit on a bucket boundary. For an aligned time T, every
checkpoint in an earlier bucket has last_event_timestamp < T, so the floor
lookup by bucket is at most one step away from the answer.
"""

from decimal import Decimal

from src.hd_common.errors import (
    AlignmentError,
    DivisionByZeroError,
    InvariantViolationError,
    TimeRangeError,
)
from src.hd_common.fixed_point import divide
from src.hd_common.time_buckets import is_aligned, validate_bucket_size
from src.hd_ledger.domain.models import Checkpoint
from src.hd_ledger.domain.repository import LedgerStoreProtocol


class QueryEngine:
    def __init__(
        self,
        store: LedgerStoreProtocol,
        bucket_size: int,
        sentinel: str,
        decimal_places: int = 18,
    ) -> None:
        validate_bucket_size(bucket_size)
        self._store = store
        self._bucket_size = bucket_size
        self._sentinel = sentinel
        self._places = decimal_places

    def metric_at(self, account_id: str, timestamp: int) -> int:
        """Cumulative balance x seconds held by the account up to `timestamp`."""
        if not is_aligned(timestamp, self._bucket_size):
            raise AlignmentError(timestamp, self._bucket_size)

        account = self._store.get_account(account_id)
        if account is None or not account.has_checkpoints:
            return 0

        checkpoint = self.find_checkpoint(account_id, timestamp)
        if checkpoint is None:
            return 0
        return checkpoint.metric_at(timestamp)

    def find_checkpoint(self, account_id: str, timestamp: int) -> Checkpoint | None:
        """Latest checkpoint with last_event_timestamp <= timestamp, or None."""
        checkpoint = self._store.floor_checkpoint(account_id, timestamp)
        while checkpoint is not None and checkpoint.last_event_timestamp > timestamp:
            if checkpoint.prev_bucket is None:
                return None
            prev = self._store.get_checkpoint(account_id, checkpoint.prev_bucket)
            if prev is None:
                raise InvariantViolationError(
                    f"checkpoint {checkpoint.id} links to missing "
                    f"{account_id}-{checkpoint.prev_bucket}"
                )
            checkpoint = prev
        return checkpoint

    def ratio(self, account_id: str, start: int, end: int) -> Decimal:
        """Share of the population's HODL score earned by the account in [start, end]."""
        return self.account_ratio(account_id, self._sentinel, start, end)

    def account_ratio(self, account_id: str, other_id: str, start: int, end: int) -> Decimal:
        """HODL score delta of account_id over that of other_id in [start, end]."""
        if end <= start:
            raise TimeRangeError(start, end)

        delta = self.metric_at(account_id, end) - self.metric_at(account_id, start)
        other_delta = self.metric_at(other_id, end) - self.metric_at(other_id, start)
        if other_delta == 0:
            if other_id == self._sentinel:
                raise DivisionByZeroError()
            raise DivisionByZeroError(f"HODL delta of {other_id} is zero, cannot compute ratio")
        return divide(delta, other_delta, self._places)
