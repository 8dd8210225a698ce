"""Population-wide conservation checks.

INV-SUPPLY: sentinel balance == sum of all other balances
INV-HODL:   sentinel metric_at(T) == sum of all other metric_at(T)
"""
import logging
from collections.abc import Iterable

from src.hd_ledger.domain.repository import LedgerStoreProtocol
from src.hd_ledger.engine.query import QueryEngine

logger = logging.getLogger(__name__)


def verify_supply(
    store: LedgerStoreProtocol, account_ids: Iterable[str], sentinel: str
) -> list[str]:
    """Check INV-SUPPLY. Returns list of violation strings."""
    violations: list[str] = []
    holders = 0
    for account_id in account_ids:
        if account_id == sentinel:
            continue
        account = store.get_account(account_id)
        if account is None:
            continue
        if account.balance < 0:
            violations.append(f"INV-SUPPLY violated: {account_id} balance {account.balance} < 0")
        holders += account.balance

    supply_account = store.get_account(sentinel)
    supply = supply_account.balance if supply_account else 0
    if holders != supply:
        violations.append(f"INV-SUPPLY violated: sum(balances)={holders} != supply={supply}")

    for msg in violations:
        logger.error(msg)
    return violations


def verify_conservation(
    engine: QueryEngine, account_ids: Iterable[str], sentinel: str, timestamp: int
) -> list[str]:
    """Check INV-HODL at a bucket-aligned timestamp. Returns list of violation strings."""
    violations: list[str] = []
    total = sum(
        engine.metric_at(account_id, timestamp)
        for account_id in account_ids
        if account_id != sentinel
    )
    population = engine.metric_at(sentinel, timestamp)
    if total != population:
        msg = (
            f"INV-HODL violated at t={timestamp}: sum(metrics)={total} "
            f"!= sentinel metric={population}"
        )
        violations.append(msg)
        logger.error(msg)
    return violations
