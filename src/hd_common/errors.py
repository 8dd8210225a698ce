"""Unified error codes and custom exceptions.

Error code ranges:
  6xxx: HODL query / ingestion
  9xxx: System (91xx: ledger invariants)

The exception class is the error kind. Query errors (6001-6003) share
QueryError so callers can tell a bad request from a corrupted store.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 6xxx: Query / ingestion ---

class QueryError(AppError):
    """Recoverable error in a metric or ratio query."""


class AlignmentError(QueryError):
    def __init__(self, timestamp: int, bucket_size: int) -> None:
        super().__init__(
            6001,
            f"Timestamp {timestamp} is not aligned to a {bucket_size}s bucket boundary",
            422,
        )


class TimeRangeError(QueryError):
    def __init__(self, start: int, end: int) -> None:
        super().__init__(
            6002,
            f"End timestamp must be greater than start timestamp: start={start}, end={end}",
            422,
        )


class DivisionByZeroError(QueryError):
    def __init__(self, detail: str = "Total HODL delta is zero, cannot compute ratio") -> None:
        super().__init__(6003, detail, 422)


class AccountNotFoundError(AppError):
    def __init__(self, account_id: str) -> None:
        super().__init__(6004, f"Account not found: {account_id}", 404)


class EventOrderError(AppError):
    def __init__(self, previous: int, current: int) -> None:
        super().__init__(
            6005,
            f"Transfer batch is not time-ordered: {current} follows {previous}",
            422,
        )


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class InvariantViolationError(AppError):
    """Ledger invariant broken: impossible event or corrupted checkpoint chain."""

    def __init__(self, detail: str) -> None:
        super().__init__(9101, f"Invariant: {detail}", 500)
