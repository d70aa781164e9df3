"""
Months -- Calendar-month keys and term arithmetic.

Responsibility:
    Schedules are keyed by calendar month, never by position.  A month key
    is the first day of the month; any date normalizes to its key.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O, no clock access.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterator
from datetime import date, timedelta

# Allowed slack between a stated end date and start + term.
END_DATE_TOLERANCE = timedelta(days=1)


def month_key(value: date) -> date:
    """Normalize a date to the first day of its month."""
    return value.replace(day=1)


def month_end(value: date) -> date:
    """Last day of the month containing ``value``."""
    last_day = calendar.monthrange(value.year, value.month)[1]
    return value.replace(day=last_day)


def add_months(value: date, months: int) -> date:
    """Shift ``value`` by whole months, clamping the day to the month length.

    >>> add_months(date(2024, 1, 31), 1)
    datetime.date(2024, 2, 29)
    """
    index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def month_sequence(start: date, count: int) -> Iterator[date]:
    """Yield ``count`` consecutive month keys starting at ``start``'s month."""
    first = month_key(start)
    for index in range(count):
        yield add_months(first, index)


def expected_end_date(start: date, term_months: int) -> date:
    """Last day covered by a term beginning on ``start``."""
    return add_months(start, term_months) - timedelta(days=1)


def end_date_matches_term(start: date, end: date, term_months: int) -> bool:
    """True when ``end`` agrees with ``start + term_months`` within one day.

    Both conventions are accepted: an end date on the last covered day
    (Jan 1 + 12 -> Dec 31) and one on the anniversary (Jan 1 + 12 -> Jan 1),
    which differ by exactly the tolerance.
    """
    expected = expected_end_date(start, term_months)
    return abs(end - expected) <= END_DATE_TOLERANCE


def term_months_between(start: date, end: date) -> int:
    """Term length implied by a start and end date.

    Jan 1 -> Dec 31 and Jan 1 -> Jan 1 of the next year are both 12 months.
    """
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end_date_matches_term(start, end, months + 1):
        return months + 1
    return months
