"""
Module: revrec_engines.schedule
Responsibility:
    Straight-line apportionment of a contract amount over its term, and the
    calendar-month keyed view of a schedule that every adjustment strategy
    matches against.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import revrec_kernel.domain and revrec_kernel.exceptions.

Invariants enforced:
    - sum(generate(amount, n)) == amount exactly (Decimal equality).
    - Every period but the last equals ``monthly_amount(amount, n)``; the
      last absorbs the rounding residual, which may be negative.
    - Rounding is ROUND_HALF_UP to two places (money.MONEY_ROUNDING).
    - Purity: no clock access, no I/O.

Failure modes:
    - Result.failure(InvalidTermError) when term_months is not a positive int.
    - Result.failure(InvalidAmountError) when amount is not a positive,
      finite, two-place decimal.

Usage:
    from revrec_engines.schedule import ScheduleGenerator

    amounts = ScheduleGenerator().generate(Decimal("10000.00"), 12).unwrap()
    # eleven x 833.33, then 833.37
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from revrec_engines.tracer import traced_engine
from revrec_kernel.domain.dtos import ContractTerms, ScheduleEntry
from revrec_kernel.domain.money import quantize_money
from revrec_kernel.domain.months import month_key, month_sequence
from revrec_kernel.domain.result import Result
from revrec_kernel.domain.validation import amount_error, parse_amount, term_error
from revrec_kernel.logging_config import get_logger

logger = get_logger("engines.schedule")


class ScheduleGenerator:
    """
    Produces per-month recognition amounts for a contract.

    Contract:
        Stateless; every method is a pure function of its arguments.
    Guarantees:
        - ``generate`` returns exactly ``term_months`` amounts whose sum is
          the input amount.
    Non-goals:
        - Milestone or usage based recognition.  Straight-line only.
    """

    @staticmethod
    def monthly_amount(amount: Decimal, term_months: int) -> Decimal:
        """Rounded per-month baseline (``amount / term_months``, half-up)."""
        return quantize_money(amount / Decimal(term_months))

    @traced_engine("schedule", "1.0", fingerprint_fields=("amount", "term_months"))
    def generate(self, amount: Decimal, term_months: int) -> Result[list[Decimal]]:
        """Split ``amount`` over ``term_months``; the last month takes the residual."""
        error = term_error(term_months) or amount_error(amount)
        if error is not None:
            return Result.failure(error)

        total = quantize_money(parse_amount(amount))
        baseline = self.monthly_amount(total, term_months)
        amounts = [baseline] * term_months
        amounts[-1] = baseline + (total - baseline * term_months)

        logger.debug(
            "schedule_generated",
            extra={
                "amount": str(total),
                "term_months": term_months,
                "baseline": str(baseline),
                "last_month": str(amounts[-1]),
            },
        )
        return Result.success(amounts)

    @staticmethod
    def month_map(amounts: Sequence[Decimal], start: date) -> dict[date, Decimal]:
        """Key amounts by calendar month, beginning at ``start``'s month."""
        return dict(zip(month_sequence(start, len(amounts)), amounts))

    def target_map(self, terms: ContractTerms) -> Result[dict[date, Decimal]]:
        """Month-keyed target schedule for validated terms."""
        generated = self.generate(terms.amount, terms.term_months)
        if not generated:
            return Result.failure(generated.error)
        return Result.success(self.month_map(generated.value, terms.start_date))

    def build(self, contract_id: UUID, terms: ContractTerms) -> Result[list[ScheduleEntry]]:
        """Fresh, unposted schedule rows for a new (or fully regenerated) contract."""
        target = self.target_map(terms)
        if not target:
            return Result.failure(target.error)
        return Result.success([
            ScheduleEntry(contract_id=contract_id, recognition_month=month, amount=amount)
            for month, amount in target.value.items()
        ])


def originals(entries: Iterable[ScheduleEntry]) -> list[ScheduleEntry]:
    """Non-adjustment rows sorted by month."""
    return sorted(
        (e for e in entries if not e.is_adjustment),
        key=lambda e: e.recognition_month,
    )


def posted_originals(entries: Iterable[ScheduleEntry]) -> list[ScheduleEntry]:
    """
    Posted non-adjustment rows, sorted by month, at their stored amount.

    Adjustment rows never feed a recalculation, posted or not.
    """
    return [e for e in originals(entries) if e.posted]


def unposted_originals(entries: Iterable[ScheduleEntry]) -> list[ScheduleEntry]:
    return [e for e in originals(entries) if not e.posted]


def posted_months(entries: Iterable[ScheduleEntry]) -> set[date]:
    return {month_key(e.recognition_month) for e in posted_originals(entries)}
