"""LedgerUpdater — the single writer turning transfers into checkpoints.

Accumulation uses the balance held *before* the event: that is what the
account held during the interval ending at the event timestamp. The
balance stored on the checkpoint is the one held *after* it.

Every event runs against a StagedLedgerStore and is committed only when all
three touched accounts (from, to, sentinel) were updated, so a failing
event leaves the backing store untouched.
"""

import logging

from src.hd_common.enums import TransferKind
from src.hd_common.errors import InvariantViolationError
from src.hd_common.time_buckets import bucket_of, validate_bucket_size
from src.hd_ledger.domain.models import Account, Checkpoint, TransferEvent, TransferOutcome
from src.hd_ledger.domain.repository import LedgerStoreProtocol
from src.hd_ledger.engine.staged_store import StagedLedgerStore

logger = logging.getLogger(__name__)


class LedgerUpdater:
    def __init__(self, store: LedgerStoreProtocol, bucket_size: int, sentinel: str) -> None:
        validate_bucket_size(bucket_size)
        self._store = store
        self._bucket_size = bucket_size
        self._sentinel = sentinel

    def apply(self, event: TransferEvent) -> TransferOutcome:
        return self.apply_transfer(
            event.from_account, event.to_account, event.amount, event.timestamp
        )

    def apply_transfer(
        self, from_id: str, to_id: str, amount: int, timestamp: int
    ) -> TransferOutcome:
        """Apply one transfer. Timestamps must be non-decreasing across calls."""
        if amount == 0:
            return TransferOutcome(kind=TransferKind.NOOP, timestamp=timestamp, amount=0)
        if amount < 0:
            raise InvariantViolationError(f"transfer amount must be non-negative, got {amount}")

        is_mint = from_id == self._sentinel
        is_burn = to_id == self._sentinel
        if is_mint and is_burn:
            raise InvariantViolationError("cannot mint & burn in same Transfer event")

        staged = StagedLedgerStore(self._store)
        from_acct = _get_or_create_account(staged, from_id)
        to_acct = _get_or_create_account(staged, to_id)
        supply = _get_or_create_account(staged, self._sentinel)

        prior_from = from_acct.balance
        prior_to = to_acct.balance
        prior_supply = supply.balance

        if not is_mint:
            if from_acct.balance < amount:
                raise InvariantViolationError(
                    f"transfer of {amount} from {from_id} exceeds balance {from_acct.balance}"
                )
            from_acct.balance -= amount
        if not is_burn:
            to_acct.balance += amount
        if is_mint:
            supply.balance += amount
        elif is_burn:
            supply.balance -= amount

        if not is_mint:
            self._update_checkpoint(staged, from_acct, timestamp, prior_from)
        if not is_burn:
            self._update_checkpoint(staged, to_acct, timestamp, prior_to)
        self._update_checkpoint(staged, supply, timestamp, prior_supply)

        for account in (from_acct, to_acct, supply):
            staged.save_account(account)
        accounts, checkpoints = staged.commit()

        kind = TransferKind.MINT if is_mint else TransferKind.BURN if is_burn else TransferKind.TRANSFER
        logger.debug(
            "Applied %s: %s -> %s amount=%d ts=%d supply=%d",
            kind.value, from_id, to_id, amount, timestamp, supply.balance,
        )
        return TransferOutcome(
            kind=kind,
            timestamp=timestamp,
            amount=amount,
            accounts=accounts,
            checkpoints=checkpoints,
        )

    def _update_checkpoint(
        self,
        store: LedgerStoreProtocol,
        account: Account,
        timestamp: int,
        prior_balance: int,
    ) -> Checkpoint:
        bucket = bucket_of(timestamp, self._bucket_size)
        checkpoint = store.get_checkpoint(account.id, bucket)

        if checkpoint is None:
            checkpoint = Checkpoint(
                account_id=account.id,
                bucket=bucket,
                last_event_timestamp=timestamp,
                last_balance=account.balance,
                cumulative_metric=0,
            )
            if account.has_checkpoints:
                prev = store.get_checkpoint(account.id, account.last_checkpoint_bucket)
                if prev is None:
                    raise InvariantViolationError(
                        f"last checkpoint {account.id}-{account.last_checkpoint_bucket} is missing"
                    )
                checkpoint.cumulative_metric = (
                    prev.cumulative_metric + prior_balance * (timestamp - prev.last_event_timestamp)
                )
                checkpoint.prev_bucket = prev.bucket
                prev.next_bucket = bucket
                store.save_checkpoint(prev)

            account.checkpoint_count += 1
            account.last_checkpoint_bucket = bucket
        else:
            checkpoint.cumulative_metric += prior_balance * (timestamp - checkpoint.last_event_timestamp)
            checkpoint.last_event_timestamp = timestamp
            checkpoint.last_balance = account.balance

        store.save_checkpoint(checkpoint)
        return checkpoint


def _get_or_create_account(store: LedgerStoreProtocol, account_id: str) -> Account:
    account = store.get_account(account_id)
    if account is None:
        account = Account(id=account_id)
        store.save_account(account)
    return account
