"""StagedLedgerStore — write-buffering unit of work over another store.

Reads fall through to the base store and are copied on first access, so
mutating a returned record never touches the base. commit() writes every
staged record to the base in one pass; dropping the object discards them.
"""

from dataclasses import replace

from src.hd_ledger.domain.models import Account, Checkpoint
from src.hd_ledger.domain.repository import LedgerStoreProtocol


class StagedLedgerStore:
    def __init__(self, base: LedgerStoreProtocol) -> None:
        self._base = base
        self._accounts: dict[str, Account] = {}
        self._checkpoints: dict[tuple[str, int], Checkpoint] = {}
        self._dirty_accounts: set[str] = set()
        self._dirty_checkpoints: set[tuple[str, int]] = set()

    def get_account(self, account_id: str) -> Account | None:
        if account_id not in self._accounts:
            account = self._base.get_account(account_id)
            if account is None:
                return None
            self._accounts[account_id] = replace(account)
        return self._accounts[account_id]

    def save_account(self, account: Account) -> None:
        self._accounts[account.id] = account
        self._dirty_accounts.add(account.id)

    def get_checkpoint(self, account_id: str, bucket: int) -> Checkpoint | None:
        key = (account_id, bucket)
        if key not in self._checkpoints:
            checkpoint = self._base.get_checkpoint(account_id, bucket)
            if checkpoint is None:
                return None
            self._checkpoints[key] = replace(checkpoint)
        return self._checkpoints[key]

    def save_checkpoint(self, checkpoint: Checkpoint) -> None:
        key = (checkpoint.account_id, checkpoint.bucket)
        self._checkpoints[key] = checkpoint
        self._dirty_checkpoints.add(key)

    def floor_checkpoint(self, account_id: str, bucket: int) -> Checkpoint | None:
        base_floor = self._base.floor_checkpoint(account_id, bucket)
        best = base_floor.bucket if base_floor is not None else None
        for acct, b in self._dirty_checkpoints:
            if acct == account_id and b <= bucket and (best is None or b > best):
                best = b
        if best is None:
            return None
        return self.get_checkpoint(account_id, best)

    def commit(self) -> tuple[list[Account], list[Checkpoint]]:
        """Write staged records to the base store; return what was written."""
        accounts = [self._accounts[a] for a in sorted(self._dirty_accounts)]
        checkpoints = [self._checkpoints[k] for k in sorted(self._dirty_checkpoints)]
        for account in accounts:
            self._base.save_account(account)
        for checkpoint in checkpoints:
            self._base.save_checkpoint(checkpoint)
        self._dirty_accounts.clear()
        self._dirty_checkpoints.clear()
        return accounts, checkpoints
