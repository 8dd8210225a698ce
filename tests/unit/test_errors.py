"""Tests for hd_common.errors and hd_common.response."""

from src.hd_common.errors import (
    AccountNotFoundError,
    AlignmentError,
    AppError,
    DivisionByZeroError,
    EventOrderError,
    InvariantViolationError,
    QueryError,
    RateLimitError,
    TimeRangeError,
)
from src.hd_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_is_exception(self) -> None:
        err = AppError(code=6001, message="test")
        assert isinstance(err, Exception)


class TestQueryErrors:
    def test_alignment(self) -> None:
        err = AlignmentError(3601, 3600)
        assert err.code == 6001
        assert err.http_status == 422
        assert "3601" in err.message
        assert isinstance(err, QueryError)

    def test_time_range(self) -> None:
        err = TimeRangeError(7200, 3600)
        assert err.code == 6002
        assert err.http_status == 422
        assert isinstance(err, QueryError)

    def test_division_by_zero(self) -> None:
        err = DivisionByZeroError()
        assert err.code == 6003
        assert "zero" in err.message
        assert isinstance(err, QueryError)


class TestOtherErrors:
    def test_invariant_violation_is_not_query_error(self) -> None:
        err = InvariantViolationError("cannot mint & burn in same Transfer event")
        assert err.code == 9101
        assert err.http_status == 500
        assert err.message.startswith("Invariant: ")
        assert not isinstance(err, QueryError)

    def test_account_not_found(self) -> None:
        err = AccountNotFoundError("0xabc")
        assert err.code == 6004
        assert err.http_status == 404

    def test_event_order(self) -> None:
        err = EventOrderError(previous=200, current=100)
        assert err.code == 6005
        assert "100 follows 200" in err.message

    def test_rate_limit(self) -> None:
        err = RateLimitError()
        assert err.code == 9001
        assert err.http_status == 429


class TestApiResponse:
    def test_success(self) -> None:
        resp = success_response({"ratio": "0.8"})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"ratio": "0.8"}

    def test_error(self) -> None:
        resp = error_response(6001, "not aligned")
        assert resp.code == 6001
        assert resp.data is None

    def test_serialization(self) -> None:
        d = ApiResponse().model_dump()
        assert set(d) == {"code", "message", "data", "timestamp", "request_id"}
        assert d["request_id"].startswith("req_")

    def test_request_id_passthrough(self) -> None:
        assert success_response(None, "req_abc").request_id == "req_abc"
        assert error_response(6004, "missing", "req_def").request_id == "req_def"
