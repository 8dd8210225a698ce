"""
Property-based tests for the HODL ledger.

For any time-ordered sequence of valid transfers, at every bucket boundary T:
    supply balance         == sum of holder balances
    sentinel metric_at(T)  == sum of holder metric_at(T)
    metric_at(T) is non-decreasing in T for every account
    holder ratios over any window sum to ~1
"""

from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from src.hd_ledger.domain.invariants import verify_conservation, verify_supply
from src.hd_ledger.engine.memory_store import InMemoryLedgerStore
from src.hd_ledger.engine.query import QueryEngine
from src.hd_ledger.engine.updater import LedgerUpdater

SENTINEL = "0x0000000000000000000000000000000000000000"
HOLDERS = [f"0x{i:040x}" for i in range(1, 5)]
HOUR = 3600


@st.composite
def transfer_sequence(draw):
    """Generate valid (from, to, amount, timestamp) events in time order.

    Balances are tracked while drawing so debits never exceed what the
    sender holds. Amounts include uint256-scale values.
    """
    balances = dict.fromkeys(HOLDERS, 0)
    ts = draw(st.integers(min_value=0, max_value=2 * HOUR))
    events = []
    for _ in range(draw(st.integers(min_value=1, max_value=25))):
        ts += draw(st.sampled_from([0, 1, 59, 1800, HOUR, HOUR + 1, 5 * HOUR]))
        funded = [h for h in HOLDERS if balances[h] > 0]
        kind = draw(st.sampled_from(["mint", "transfer", "burn"] if funded else ["mint"]))
        if kind == "mint":
            to = draw(st.sampled_from(HOLDERS))
            amount = draw(st.one_of(st.integers(1, 10**6), st.integers(1, 10**30)))
            balances[to] += amount
            events.append((SENTINEL, to, amount, ts))
            continue
        src = draw(st.sampled_from(funded))
        amount = draw(st.integers(min_value=1, max_value=balances[src]))
        balances[src] -= amount
        if kind == "burn":
            events.append((src, SENTINEL, amount, ts))
        else:
            to = draw(st.sampled_from(HOLDERS))
            balances[to] += amount
            events.append((src, to, amount, ts))
    return events


def _replay(events) -> tuple[InMemoryLedgerStore, QueryEngine]:
    store = InMemoryLedgerStore()
    updater = LedgerUpdater(store, bucket_size=HOUR, sentinel=SENTINEL)
    for from_id, to_id, amount, ts in events:
        updater.apply_transfer(from_id, to_id, amount, ts)
    return store, QueryEngine(store, bucket_size=HOUR, sentinel=SENTINEL)


def _boundaries(events) -> list[int]:
    last = events[-1][3]
    return [h * HOUR for h in range(last // HOUR + 3)]


@settings(max_examples=100, deadline=None)
@given(events=transfer_sequence())
def test_supply_matches_holder_balances(events) -> None:
    store, _ = _replay(events)
    assert verify_supply(store, HOLDERS, SENTINEL) == []


@settings(max_examples=100, deadline=None)
@given(events=transfer_sequence())
def test_population_metric_is_conserved(events) -> None:
    _, engine = _replay(events)
    for t in _boundaries(events):
        assert verify_conservation(engine, HOLDERS, SENTINEL, t) == []


@settings(max_examples=100, deadline=None)
@given(events=transfer_sequence())
def test_metric_is_non_decreasing(events) -> None:
    _, engine = _replay(events)
    for account_id in [SENTINEL, *HOLDERS]:
        values = [engine.metric_at(account_id, t) for t in _boundaries(events)]
        assert values == sorted(values)


@settings(max_examples=100, deadline=None)
@given(events=transfer_sequence())
def test_checkpoint_chain_is_linked(events) -> None:
    store, _ = _replay(events)
    for account_id in [SENTINEL, *HOLDERS]:
        chain = list(store.iter_checkpoints(account_id))
        account = store.get_account(account_id)
        if not chain:
            continue
        assert account is not None
        assert account.checkpoint_count == len(chain)
        assert account.last_checkpoint_bucket == chain[-1].bucket
        assert chain[0].prev_bucket is None
        assert chain[-1].next_bucket is None
        for older, newer in zip(chain, chain[1:]):
            assert older.next_bucket == newer.bucket
            assert newer.prev_bucket == older.bucket


@settings(max_examples=100, deadline=None)
@given(events=transfer_sequence())
def test_holder_ratios_sum_to_one(events) -> None:
    _, engine = _replay(events)
    end = _boundaries(events)[-1]
    start = end - HOUR
    if engine.metric_at(SENTINEL, end) == engine.metric_at(SENTINEL, start):
        return  # everything burnt before the window

    total = sum(engine.ratio(h, start, end) for h in HOLDERS)
    # Each ratio is rounded to 18 places independently
    assert abs(total - 1) <= Decimal(len(HOLDERS)) * Decimal("1e-18")
