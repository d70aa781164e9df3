"""
Lightweight domain validation helpers.

Pure checks with no I/O.  Each helper returns the typed error describing
the violation, or None, so that callers can place it in a ``Result``
without using exceptions for control flow.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from revrec_kernel.domain.money import quantize_money
from revrec_kernel.exceptions import InvalidAmountError, InvalidTermError


def parse_amount(value: Any) -> Decimal | None:
    """Parse a positive, finite, at-most-two-place amount; None when invalid."""
    if isinstance(value, bool) or not isinstance(value, (Decimal, int, str)):
        return None
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
        if not amount.is_finite() or amount <= 0:
            return None
        # Trailing zeros are fine ("1000.000"); a third significant place is not.
        if quantize_money(amount) != amount:
            return None
    except InvalidOperation:
        return None
    return amount


def amount_error(value: Any) -> InvalidAmountError | None:
    """Return InvalidAmountError unless ``value`` is a valid contract amount."""
    if parse_amount(value) is None:
        return InvalidAmountError(value)
    return None


def term_error(term_months: Any) -> InvalidTermError | None:
    """Return InvalidTermError unless ``term_months`` is a positive int."""
    if isinstance(term_months, bool) or not isinstance(term_months, int):
        return InvalidTermError(term_months)
    if term_months <= 0:
        return InvalidTermError(term_months)
    return None

