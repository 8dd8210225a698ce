# tests/unit/test_hodl_persistence.py
"""Unit tests for HodlRepository using MagicMock AsyncSession."""
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.hd_ledger.domain.models import Account, Checkpoint
from src.hd_ledger.infrastructure.persistence import HodlRepository

ALICE = "0x00000000000000000000000000000000000000a1"


def _make_account_row(**kwargs):
    row = MagicMock()
    row.account_id = kwargs.get("account_id", ALICE)
    row.balance = kwargs.get("balance", Decimal("1000"))
    row.checkpoint_count = kwargs.get("checkpoint_count", 1)
    row.last_checkpoint_bucket = kwargs.get("last_checkpoint_bucket", 3600)
    return row


def _make_checkpoint_row(**kwargs):
    row = MagicMock()
    row.account_id = kwargs.get("account_id", ALICE)
    row.bucket = kwargs.get("bucket", 3600)
    row.last_event_timestamp = kwargs.get("last_event_timestamp", 3700)
    row.last_balance = kwargs.get("last_balance", Decimal("1000"))
    row.cumulative_metric = kwargs.get("cumulative_metric", Decimal("0"))
    row.prev_bucket = kwargs.get("prev_bucket")
    row.next_bucket = kwargs.get("next_bucket")
    return row


def _result(one=None, rows=None):
    result_mock = MagicMock()
    result_mock.fetchone.return_value = one
    result_mock.fetchall.return_value = rows or []
    return result_mock


@pytest.fixture
def db():
    return MagicMock()


class TestGetAccount:
    async def test_converts_numeric_to_int(self, db) -> None:
        big = 10**40 + 7
        db.execute = AsyncMock(return_value=_result(one=_make_account_row(balance=Decimal(big))))

        account = await HodlRepository().get_account(db, ALICE)

        assert account is not None
        assert account.balance == big
        assert isinstance(account.balance, int)

    async def test_returns_none_when_not_found(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(one=None))
        assert await HodlRepository().get_account(db, ALICE) is None


class TestLoadTransferSnapshot:
    async def test_loads_latest_checkpoint(self, db) -> None:
        db.execute = AsyncMock(side_effect=[
            _result(rows=[_make_account_row()]),
            _result(one=_make_checkpoint_row(bucket=3600)),
        ])

        snapshot = await HodlRepository().load_transfer_snapshot(db, [ALICE, ALICE])

        assert snapshot.get_account(ALICE).balance == 1000  # type: ignore[union-attr]
        assert snapshot.get_checkpoint(ALICE, 3600) is not None
        lock_params = db.execute.await_args_list[0].args[1]
        assert lock_params == {"account_ids": [ALICE]}

    async def test_account_without_checkpoints_skips_lookup(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(rows=[_make_account_row(checkpoint_count=0)]))

        snapshot = await HodlRepository().load_transfer_snapshot(db, [ALICE])

        assert db.execute.await_count == 1
        assert list(snapshot.iter_checkpoints(ALICE)) == []


class TestLoadQuerySnapshot:
    async def test_loads_floor_and_predecessor_per_timestamp(self, db) -> None:
        db.execute = AsyncMock(side_effect=[
            _result(rows=[_make_account_row(checkpoint_count=3, last_checkpoint_bucket=10800)]),
            _result(rows=[
                _make_checkpoint_row(bucket=3600, prev_bucket=0),
                _make_checkpoint_row(bucket=0, last_event_timestamp=10, next_bucket=3600),
            ]),
            _result(rows=[
                _make_checkpoint_row(bucket=10800, prev_bucket=3600),
                _make_checkpoint_row(bucket=3600, prev_bucket=0, next_bucket=10800),
            ]),
        ])

        snapshot = await HodlRepository().load_query_snapshot(db, [ALICE], [14400, 7200])

        assert [cp.bucket for cp in snapshot.iter_checkpoints(ALICE)] == [0, 3600, 10800]
        floor_params = [c.args[1] for c in db.execute.await_args_list[1:]]
        assert floor_params == [
            {"account_id": ALICE, "bucket": 7200},
            {"account_id": ALICE, "bucket": 14400},
        ]

    async def test_unknown_account_is_absent(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(rows=[]))

        snapshot = await HodlRepository().load_query_snapshot(db, [ALICE], [3600])

        assert snapshot.get_account(ALICE) is None


class TestListCheckpoints:
    async def test_maps_rows(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(rows=[
            _make_checkpoint_row(bucket=7200, cumulative_metric=Decimal("3600000")),
        ]))

        items = await HodlRepository().list_checkpoints(db, ALICE, None, 21)

        assert items[0].cumulative_metric == 3_600_000
        assert db.execute.await_args.args[1] == {
            "account_id": ALICE, "cursor_bucket": None, "limit": 21,
        }


class TestFlush:
    async def test_upserts_accounts_before_checkpoints(self, db) -> None:
        db.execute = AsyncMock()
        account = Account(id=ALICE, balance=10**30, checkpoint_count=1, last_checkpoint_bucket=0)
        cp = Checkpoint(
            account_id=ALICE, bucket=0, last_event_timestamp=5,
            last_balance=10**30, cumulative_metric=0,
        )

        await HodlRepository().flush(db, [account], [cp])

        calls = db.execute.await_args_list
        assert len(calls) == 2
        assert "hodl_accounts" in str(calls[0].args[0])
        assert "hodl_checkpoints" in str(calls[1].args[0])
        assert calls[0].args[1]["balance"] == Decimal(10**30)
        assert calls[1].args[1]["prev_bucket"] is None
