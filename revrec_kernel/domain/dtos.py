"""
Domain DTOs -- Contracts, schedule entries and edit terms.

Responsibility:
    Frozen, strongly typed records that flow between the service layer and
    the engines.  Loosely typed input (request payloads, ORM rows) is
    converted into these once, at the boundary; engines accept nothing else.

Architecture position:
    Kernel > Domain -- pure data definitions with ZERO I/O.

Invariants enforced:
    - All monetary fields are Decimal (never float).
    - ``recognition_month`` is always the first day of a month.
    - ``adjusts_schedule_id`` is a weak reference: an id value only, never
      an owning pointer to the corrected entry.
    - ``ContractTerms`` can only be built through ``create()``, which
      validates amount, term and dates and returns a ``Result``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from revrec_kernel.domain.money import quantize_money
from revrec_kernel.domain.months import (
    end_date_matches_term,
    expected_end_date,
    month_key,
)
from revrec_kernel.domain.result import Result
from revrec_kernel.domain.validation import amount_error, parse_amount, term_error
from revrec_kernel.exceptions import InvalidContractDatesError


class ContractStatus(str, Enum):
    """Contract lifecycle states."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AdjustmentType(str, Enum):
    """Why a schedule row deviates from the plain straight-line shape."""

    RETROACTIVE = "retroactive"
    CATCH_UP = "catch_up"
    PROSPECTIVE = "prospective"
    REVERSAL = "reversal"


class AdjustmentMode(str, Enum):
    """Strategy chosen by the operator when editing a contract."""

    RETROACTIVE = "retroactive"
    CATCH_UP = "catch_up"
    PROSPECTIVE = "prospective"
    NONE = "none"


@dataclass(frozen=True)
class Contract:
    """
    A customer contract recognized straight-line over its term.

    Guarantees:
        - ``amount`` is a two-place Decimal.
    Non-goals:
        - Does not hold its schedule; entries reference the contract by id.
    """

    id: UUID
    tenant_id: str
    external_reference: str
    amount: Decimal
    start_date: date
    end_date: date
    term_months: int
    status: ContractStatus = ContractStatus.ACTIVE
    opening_balance_posted: bool | None = None
    customer_name: str | None = None
    description: str | None = None
    version: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", quantize_money(self.amount))

    @property
    def opening_balance_initialized(self) -> bool:
        """Unknown (None) counts as initialized; only an explicit False does not."""
        return self.opening_balance_posted is not False


@dataclass(frozen=True)
class ScheduleEntry:
    """
    One recognition row of a contract's schedule.

    Contract:
        Original rows (``is_adjustment = False``) describe the target shape
        of the schedule, one per month.  Adjustment rows are signed
        corrections against a posted original and are history only.
    Guarantees:
        - ``recognition_month`` is a month key (first of month).
        - A posted row is never rewritten; corrections are new rows.
    """

    contract_id: UUID
    recognition_month: date
    amount: Decimal
    posted: bool = False
    is_adjustment: bool = False
    adjusts_schedule_id: UUID | None = None
    adjustment_type: AdjustmentType | None = None
    reason: str | None = None
    id: UUID | None = None
    journal_entry_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "recognition_month", month_key(self.recognition_month))

    @property
    def is_original(self) -> bool:
        return not self.is_adjustment

    def as_posted(self, journal_entry_id: str | None = None) -> ScheduleEntry:
        """Copy of this entry flagged as posted."""
        return replace(self, posted=True, journal_entry_id=journal_entry_id)


@dataclass(frozen=True)
class AccountMapping:
    """Ledger accounts used for recognition and adjustment postings."""

    deferred_revenue_account_id: str
    revenue_account_id: str
    deferred_revenue_account_name: str = ""
    revenue_account_name: str = ""


@dataclass(frozen=True)
class ContractTerms:
    """
    Validated amount, dates and term for a new or edited contract.

    Contract:
        Build with ``ContractTerms.create``; the constructor itself performs
        no validation.
    Guarantees (when built through ``create``):
        - ``amount`` > 0 with at most two places.
        - ``term_months`` >= 1.
        - ``end_date`` is after ``start_date`` and agrees with
          ``start_date + term_months`` within one day.
    """

    amount: Decimal
    start_date: date
    term_months: int
    end_date: date
    external_reference: str = ""

    @classmethod
    def create(
        cls,
        amount: Decimal | int | str,
        start_date: date,
        term_months: int,
        end_date: date | None = None,
        external_reference: str = "",
    ) -> Result[ContractTerms]:
        """Validate raw edit values and build the terms."""
        error = amount_error(amount) or term_error(term_months)
        if error is not None:
            return Result.failure(error)

        if end_date is None:
            end_date = expected_end_date(start_date, term_months)
        if end_date <= start_date:
            return Result.failure(InvalidContractDatesError(
                start_date, end_date, term_months, "end date must be after start date",
            ))
        if not end_date_matches_term(start_date, end_date, term_months):
            return Result.failure(InvalidContractDatesError(
                start_date, end_date, term_months,
                f"expected approximately {expected_end_date(start_date, term_months).isoformat()}",
            ))

        return Result.success(cls(
            amount=quantize_money(parse_amount(amount)),
            start_date=start_date,
            term_months=term_months,
            end_date=end_date,
            external_reference=external_reference,
        ))

    @property
    def first_month(self) -> date:
        return month_key(self.start_date)
