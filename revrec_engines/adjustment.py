"""
Module: revrec_engines.adjustment
Responsibility:
    Given a contract whose amount, dates or term changed after some months
    were already posted, compute the adjustment rows and the new unposted
    schedule rows that converge on the corrected schedule.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Built on revrec_engines.schedule; "today" is a parameter, never read
    from a clock.

Invariants enforced:
    - Posted rows are never rewritten.  Corrections are new, unposted
      ``is_adjustment`` rows referencing the posted original by id.
    - Schedules are matched by calendar month, never by position.
    - Retroactive: for every posted month still in the new term,
      ``new == old + adjustment`` (the adjustment is omitted when
      the difference is within the noise threshold).  A posted month that
      left the term is reversed in full.  Absence from the new term is
      checked before any amount difference.
    - Catch-up: the designated month carries ``baseline + (new_total -
      posted_total)``; every other unposted month carries the baseline.
    - Prospective: ``sum(unposted) == new_total - posted_total`` exactly;
      only the final unposted month absorbs the rounding residual.
    - All or nothing: a strategy returns a complete AdjustmentPlan or a
      failed Result, never a partial plan.

Failure modes (returned as Result.failure):
    - InvalidTermError / InvalidAmountError from the schedule generator.
    - PostedScheduleExistsError for ``none`` when months are posted.
    - MissingCatchUpMonthError / CatchUpMonthNotUnpostedError for catch-up.
    - NoUnpostedMonthsError when nothing is left to spread into.

Usage:
    from revrec_engines.adjustment import AdjustmentCalculator, AdjustmentRequest

    request = AdjustmentRequest(
        contract_id=contract.id,
        terms=ContractTerms.create("9000.00", date(2024, 1, 1), 6).unwrap(),
        entries=tuple(current_rows),
        today=clock.today(),
        reference=contract.external_reference,
    )
    plan = AdjustmentCalculator().calculate(AdjustmentMode.RETROACTIVE, request).unwrap()
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from revrec_engines.schedule import ScheduleGenerator, posted_originals
from revrec_engines.tracer import traced_engine
from revrec_kernel.domain.dtos import (
    AdjustmentMode,
    AdjustmentType,
    ContractTerms,
    ScheduleEntry,
)
from revrec_kernel.domain.money import (
    NOISE_THRESHOLD,
    is_noise,
    quantize_money,
    sum_money,
)
from revrec_kernel.domain.months import month_key
from revrec_kernel.domain.result import Result
from revrec_kernel.exceptions import (
    CatchUpMonthNotUnpostedError,
    MissingCatchUpMonthError,
    NoUnpostedMonthsError,
    PostedScheduleExistsError,
)
from revrec_kernel.logging_config import get_logger

logger = get_logger("engines.adjustment")


@dataclass(frozen=True)
class AdjustmentRequest:
    """
    Snapshot an adjustment is computed against.

    Contract:
        ``entries`` is the contract's complete current schedule (originals
        and adjustments, posted and unposted).  The resulting plan is only
        valid relative to exactly this snapshot.
    """

    contract_id: UUID
    terms: ContractTerms
    entries: tuple[ScheduleEntry, ...]
    today: date
    reference: str = ""
    catch_up_month: date | None = None


@dataclass(frozen=True)
class AdjustmentPlan:
    """
    Rows to persist for one contract edit.

    Guarantees:
        - ``adjustment_entries`` are unposted, ``is_adjustment = True`` and
          reference the posted original they correct.
        - ``unposted_entries`` are non-adjustment rows, one per month, that
          replace every current unposted original.
        - ``review_months`` lists new months earlier than "today".
    """

    mode: AdjustmentMode
    adjustment_entries: tuple[ScheduleEntry, ...] = ()
    unposted_entries: tuple[ScheduleEntry, ...] = ()
    review_months: tuple[date, ...] = ()
    catch_up_difference: Decimal | None = None

    @property
    def entries(self) -> tuple[ScheduleEntry, ...]:
        return self.adjustment_entries + self.unposted_entries

    @property
    def adjustment_total(self) -> Decimal:
        return sum_money(e.amount for e in self.adjustment_entries)

    @property
    def unposted_total(self) -> Decimal:
        return sum_money(e.amount for e in self.unposted_entries)


class AdjustmentCalculator:
    """
    Computes adjustment plans for the three correction strategies, plus a
    full regeneration for contracts with nothing posted.

    Contract:
        Stateless apart from configuration; safe to share.
    Non-goals:
        - Does not decide when entries are posted or submit them anywhere.
    """

    def __init__(
        self,
        generator: ScheduleGenerator | None = None,
        noise_threshold: Decimal = NOISE_THRESHOLD,
    ):
        self._generator = generator or ScheduleGenerator()
        self._noise_threshold = noise_threshold

    def calculate(self, mode: AdjustmentMode, request: AdjustmentRequest) -> Result[AdjustmentPlan]:
        """Dispatch to the strategy registered for ``mode``."""
        strategy = _STRATEGIES[AdjustmentMode(mode)]
        result = strategy(self, request)
        if result:
            plan = result.value
            logger.info(
                "adjustment_plan_computed",
                extra={
                    "mode": plan.mode.value,
                    "contract_id": str(request.contract_id),
                    "adjustment_count": len(plan.adjustment_entries),
                    "unposted_count": len(plan.unposted_entries),
                    "review_months": [m.isoformat() for m in plan.review_months],
                },
            )
        else:
            logger.warning(
                "adjustment_plan_rejected",
                extra={
                    "mode": AdjustmentMode(mode).value,
                    "contract_id": str(request.contract_id),
                    "error_code": result.error.code,
                },
            )
        return result

    @traced_engine("adjustment.retroactive", "1.0", fingerprint_fields=("request",))
    def retroactive(self, request: AdjustmentRequest) -> Result[AdjustmentPlan]:
        """Correct every posted month individually, then rebuild the unposted rest."""
        target = self._generator.target_map(request.terms)
        if not target:
            return Result.failure(target.error)
        target_map = target.value
        ref = request.reference

        posted = posted_originals(request.entries)
        adjustments: list[ScheduleEntry] = []
        for entry in posted:
            new_amount = target_map.get(entry.recognition_month)
            if new_amount is None:
                # Month left the term: reverse the original in full.
                adjustments.append(self._adjustment(
                    entry, -entry.amount, AdjustmentType.REVERSAL,
                    f"Date change - month removed from schedule ({ref})",
                ))
                continue

            difference = new_amount - entry.amount
            if not is_noise(difference, self._noise_threshold):
                adjustments.append(self._adjustment(
                    entry, difference, AdjustmentType.RETROACTIVE,
                    f"Contract amount correction ({ref})",
                ))

        posted_set = {e.recognition_month for e in posted}
        current_month = month_key(request.today)
        unposted: list[ScheduleEntry] = []
        review: list[date] = []
        for month, amount in target_map.items():
            if month in posted_set:
                continue
            reason = None
            if month < current_month:
                review.append(month)
                reason = f"New past month - requires manual review ({ref})"
            unposted.append(ScheduleEntry(
                contract_id=request.contract_id,
                recognition_month=month,
                amount=amount,
                reason=reason,
            ))

        return Result.success(AdjustmentPlan(
            mode=AdjustmentMode.RETROACTIVE,
            adjustment_entries=tuple(adjustments),
            unposted_entries=tuple(unposted),
            review_months=tuple(review),
        ))

    @traced_engine("adjustment.catch_up", "1.0", fingerprint_fields=("request",))
    def catch_up(self, request: AdjustmentRequest) -> Result[AdjustmentPlan]:
        """Leave posted months alone; one unposted month absorbs the difference."""
        if request.catch_up_month is None:
            return Result.failure(MissingCatchUpMonthError())

        target = self._generator.target_map(request.terms)
        if not target:
            return Result.failure(target.error)
        target_map = target.value

        posted = posted_originals(request.entries)
        posted_set = {e.recognition_month for e in posted}
        difference = request.terms.amount - sum_money(e.amount for e in posted)
        baseline = next(iter(target_map.values()))
        catch_up_month = month_key(request.catch_up_month)

        unposted_months = [m for m in target_map if m not in posted_set]
        if catch_up_month not in unposted_months:
            return Result.failure(CatchUpMonthNotUnpostedError(catch_up_month))

        rows = []
        for month in unposted_months:
            if month == catch_up_month:
                rows.append(ScheduleEntry(
                    contract_id=request.contract_id,
                    recognition_month=month,
                    amount=baseline + difference,
                    adjustment_type=AdjustmentType.CATCH_UP,
                    reason=f"Catch-up adjustment for contract {request.reference}",
                ))
            else:
                rows.append(ScheduleEntry(
                    contract_id=request.contract_id,
                    recognition_month=month,
                    amount=baseline,
                ))

        return Result.success(AdjustmentPlan(
            mode=AdjustmentMode.CATCH_UP,
            unposted_entries=tuple(rows),
            catch_up_difference=difference,
        ))

    @traced_engine("adjustment.prospective", "1.0", fingerprint_fields=("request",))
    def prospective(self, request: AdjustmentRequest) -> Result[AdjustmentPlan]:
        """Leave posted months alone; spread what remains over the unposted months."""
        target = self._generator.target_map(request.terms)
        if not target:
            return Result.failure(target.error)

        posted = posted_originals(request.entries)
        posted_set = {e.recognition_month for e in posted}
        remaining = request.terms.amount - sum_money(e.amount for e in posted)

        months = [m for m in target.value if m not in posted_set]
        if not months:
            return Result.failure(NoUnpostedMonthsError(AdjustmentMode.PROSPECTIVE.value))

        per_month = quantize_money(remaining / Decimal(len(months)))
        last_amount = remaining - per_month * (len(months) - 1)
        reason = f"Prospective adjustment for contract {request.reference}"

        rows = tuple(
            ScheduleEntry(
                contract_id=request.contract_id,
                recognition_month=month,
                amount=last_amount if index == len(months) - 1 else per_month,
                adjustment_type=AdjustmentType.PROSPECTIVE,
                reason=reason,
            )
            for index, month in enumerate(months)
        )
        return Result.success(AdjustmentPlan(
            mode=AdjustmentMode.PROSPECTIVE,
            unposted_entries=rows,
        ))

    @traced_engine("adjustment.regenerate", "1.0", fingerprint_fields=("request",))
    def regenerate(self, request: AdjustmentRequest) -> Result[AdjustmentPlan]:
        """Mode ``none``: throw the schedule away and build it fresh."""
        posted = posted_originals(request.entries)
        if posted:
            return Result.failure(PostedScheduleExistsError(len(posted)))

        built = self._generator.build(request.contract_id, request.terms)
        if not built:
            return Result.failure(built.error)
        return Result.success(AdjustmentPlan(
            mode=AdjustmentMode.NONE,
            unposted_entries=tuple(built.value),
        ))

    @staticmethod
    def _adjustment(
        original: ScheduleEntry,
        amount: Decimal,
        adjustment_type: AdjustmentType,
        reason: str,
    ) -> ScheduleEntry:
        return ScheduleEntry(
            contract_id=original.contract_id,
            recognition_month=original.recognition_month,
            amount=amount,
            is_adjustment=True,
            adjusts_schedule_id=original.id,
            adjustment_type=adjustment_type,
            reason=reason,
        )


_STRATEGIES: dict[AdjustmentMode, Callable[[AdjustmentCalculator, AdjustmentRequest], Result[AdjustmentPlan]]] = {
    AdjustmentMode.RETROACTIVE: AdjustmentCalculator.retroactive,
    AdjustmentMode.CATCH_UP: AdjustmentCalculator.catch_up,
    AdjustmentMode.PROSPECTIVE: AdjustmentCalculator.prospective,
    AdjustmentMode.NONE: AdjustmentCalculator.regenerate,
}
