"""Global enums."""

from enum import Enum


class TransferKind(str, Enum):
    """Classification of one transfer event relative to the sentinel account."""
    MINT = "MINT"          # from == sentinel
    BURN = "BURN"          # to == sentinel
    TRANSFER = "TRANSFER"
    NOOP = "NOOP"          # zero amount, nothing touched
