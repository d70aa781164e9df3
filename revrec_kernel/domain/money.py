"""
Money -- Fixed-point, two-place decimal helpers.

Responsibility:
    The single place that decides how monetary values are represented and
    rounded.  Every amount in the system is a ``Decimal`` with scale 2.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Decimal-only arithmetic: floats are rejected at conversion time so a
      binary representation error can never leak into a schedule.
    - One rounding rule: ROUND_HALF_UP to 2 places.  A tie at exactly half a
      cent rounds away from zero (1000/3 = 333.333... -> 333.33,
      0.125 -> 0.13, -0.125 -> -0.13).  The rounding residual of a split is
      always absorbed by the final period, so this rule decides how large
      that final period is.

Failure modes:
    - TypeError when a float (or another non-numeric type) is converted.
    - InvalidOperation propagates for unparseable strings.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

MONEY_PLACES = 2
MONEY_ROUNDING = ROUND_HALF_UP
CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Differences at or below one cent are rounding noise, not adjustments.
NOISE_THRESHOLD = Decimal("0.01")


def to_decimal(value: Decimal | int | str) -> Decimal:
    """Convert a str/int/Decimal to Decimal without rounding.

    Raises:
        TypeError: for floats and other unsupported types.
    """
    if isinstance(value, bool):
        raise TypeError("bool is not a monetary amount")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, str):
        return Decimal(value.strip())
    raise TypeError(
        f"Monetary amounts must be Decimal, int or str, not {type(value).__name__}"
    )


def quantize_money(value: Decimal | int | str) -> Decimal:
    """Round to two places using ROUND_HALF_UP."""
    return to_decimal(value).quantize(CENT, rounding=MONEY_ROUNDING)


def format_money(value: Decimal) -> str:
    """Render a monetary amount with exactly two places ("1234.50")."""
    return f"{quantize_money(value):.2f}"


def is_noise(difference: Decimal, threshold: Decimal = NOISE_THRESHOLD) -> bool:
    """True when a difference is small enough to be ignored."""
    return abs(difference) <= threshold


def sum_money(values) -> Decimal:
    """Exact decimal sum of an iterable of amounts."""
    total = ZERO
    for value in values:
        total += value
    return total
