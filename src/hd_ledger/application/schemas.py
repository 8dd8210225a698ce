"""Pydantic schemas and cursor utilities for the hd_ledger API.

Balances and HODL scores are uint256-sized; they go out as decimal strings.
"""

import base64
import json
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from src.hd_ledger.domain.models import Account, Checkpoint, TransferEvent, TransferOutcome

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_bucket: int) -> str:
    """Encode the last returned bucket into an opaque Base64 cursor string."""
    payload = json.dumps({"bucket": last_bucket})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen bucket. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["bucket"])
    except Exception:
        return None


def normalize_account_id(account_id: str) -> str:
    return account_id.strip().lower()


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class TransferRequest(BaseModel):
    from_account: str = Field(..., min_length=1, max_length=66)
    to_account: str = Field(..., min_length=1, max_length=66)
    amount: int = Field(..., ge=0, description="Token base units; 0 is a no-op")
    timestamp: int = Field(..., ge=0, description="Block timestamp, unix seconds")

    @field_validator("from_account", "to_account")
    @classmethod
    def _normalize(cls, v: str) -> str:
        return normalize_account_id(v)

    def to_event(self) -> TransferEvent:
        return TransferEvent(
            from_account=self.from_account,
            to_account=self.to_account,
            amount=self.amount,
            timestamp=self.timestamp,
        )


class BatchTransferRequest(BaseModel):
    transfers: list[TransferRequest] = Field(..., min_length=1, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AccountResponse(BaseModel):
    account_id: str
    balance: str
    checkpoint_count: int
    last_checkpoint_bucket: int  # 0 until the first checkpoint; see checkpoint_count

    @classmethod
    def from_domain(cls, account: Account) -> "AccountResponse":
        return cls(
            account_id=account.id,
            balance=str(account.balance),
            checkpoint_count=account.checkpoint_count,
            last_checkpoint_bucket=account.last_checkpoint_bucket,
        )


class TransferResponse(BaseModel):
    kind: str
    timestamp: int
    amount: str
    accounts: list[AccountResponse]

    @classmethod
    def from_outcome(cls, outcome: TransferOutcome) -> "TransferResponse":
        return cls(
            kind=outcome.kind.value,
            timestamp=outcome.timestamp,
            amount=str(outcome.amount),
            accounts=[AccountResponse.from_domain(a) for a in outcome.accounts],
        )


class BatchTransferResponse(BaseModel):
    applied: int
    skipped: int  # zero-amount transfers
    last_timestamp: int | None  # None for an empty batch


class MetricResponse(BaseModel):
    account_id: str
    timestamp: int
    cumulative_metric: str


class RatioResponse(BaseModel):
    account_id: str
    denominator_id: str
    start: int
    end: int
    ratio: str

    @classmethod
    def from_result(
        cls, account_id: str, denominator_id: str, start: int, end: int, ratio: Decimal
    ) -> "RatioResponse":
        return cls(
            account_id=account_id,
            denominator_id=denominator_id,
            start=start,
            end=end,
            ratio=format(ratio, "f"),  # str() switches to exponent form below 1e-6
        )


class CheckpointItem(BaseModel):
    id: str
    bucket: int
    last_event_timestamp: int
    last_balance: str
    cumulative_metric: str
    prev_bucket: int | None
    next_bucket: int | None

    @classmethod
    def from_domain(cls, cp: Checkpoint) -> "CheckpointItem":
        return cls(
            id=cp.id,
            bucket=cp.bucket,
            last_event_timestamp=cp.last_event_timestamp,
            last_balance=str(cp.last_balance),
            cumulative_metric=str(cp.cumulative_metric),
            prev_bucket=cp.prev_bucket,
            next_bucket=cp.next_bucket,
        )


class CheckpointListResponse(BaseModel):
    items: list[CheckpointItem]
    next_cursor: str | None
    has_more: bool
