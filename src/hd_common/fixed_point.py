"""Fixed-precision division for HODL ratios.

Metric deltas are uint256 x seconds, far beyond float precision. Ratios are
computed with integer arithmetic and rounded half-to-even at a fixed number
of fractional digits, so every deployment returns the same digits.
"""

from decimal import Decimal


def divide(numerator: int, denominator: int, places: int) -> Decimal:
    """Return numerator / denominator rounded half-even to `places` decimals.

    divide(4, 5, 2) -> Decimal("0.80"); divide(1, 8, 2) -> Decimal("0.12").
    """
    if denominator == 0:
        raise ZeroDivisionError("denominator must be non-zero")
    if places < 0:
        raise ValueError(f"places must be >= 0, got {places}")

    negative = (numerator < 0) != (denominator < 0)
    num, den = abs(numerator), abs(denominator)

    quotient, remainder = divmod(num * 10**places, den)
    # Half-even: round up past the midpoint, or at the midpoint when odd
    twice = remainder * 2
    if twice > den or (twice == den and quotient % 2 == 1):
        quotient += 1

    # Tuple construction is exact; Decimal arithmetic would round at context precision
    sign = 1 if negative and quotient else 0
    digits = tuple(int(d) for d in str(quotient))
    return Decimal((sign, digits, -places))
