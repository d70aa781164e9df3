"""
Pure domain layer.

Data transfer objects, money and month helpers with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (except the Clock abstraction itself)
- I/O

All domain objects are immutable and deterministic.
"""

from revrec_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from revrec_kernel.domain.dtos import (
    AccountMapping,
    AdjustmentMode,
    AdjustmentType,
    Contract,
    ContractStatus,
    ContractTerms,
    ScheduleEntry,
)
from revrec_kernel.domain.money import (
    CENT,
    MONEY_PLACES,
    MONEY_ROUNDING,
    NOISE_THRESHOLD,
    ZERO,
    format_money,
    is_noise,
    quantize_money,
    sum_money,
    to_decimal,
)
from revrec_kernel.domain.months import (
    add_months,
    end_date_matches_term,
    expected_end_date,
    month_end,
    month_key,
    month_sequence,
    term_months_between,
)
from revrec_kernel.domain.result import Result

__all__ = [
    "AccountMapping",
    "AdjustmentMode",
    "AdjustmentType",
    "CENT",
    "Clock",
    "Contract",
    "ContractStatus",
    "ContractTerms",
    "DeterministicClock",
    "MONEY_PLACES",
    "MONEY_ROUNDING",
    "NOISE_THRESHOLD",
    "Result",
    "ScheduleEntry",
    "SystemClock",
    "ZERO",
    "add_months",
    "end_date_matches_term",
    "expected_end_date",
    "format_money",
    "is_noise",
    "month_end",
    "month_key",
    "month_sequence",
    "quantize_money",
    "sum_money",
    "term_months_between",
    "to_decimal",
]
