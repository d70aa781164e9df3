"""
Module: revrec_engines.preview
Responsibility:
    Describe what a contract edit would do before it is committed: old and
    new monthly baselines, which posted months change and by how much, and
    the catch-up figures when that mode is chosen.  Produces no entries.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Posted months are matched to the new schedule by calendar month, the
      same way the retroactive strategy matches them.  A posted month that
      leaves the term shows a new amount of zero.
    - Differences within the noise threshold are not listed.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from revrec_engines.schedule import ScheduleGenerator, posted_originals
from revrec_engines.tracer import traced_engine
from revrec_kernel.domain.dtos import AdjustmentMode, Contract, ContractTerms, ScheduleEntry
from revrec_kernel.domain.money import NOISE_THRESHOLD, ZERO, is_noise, sum_money
from revrec_kernel.domain.months import month_key
from revrec_kernel.domain.result import Result


@dataclass(frozen=True)
class AffectedMonth:
    month: date
    old_amount: Decimal
    new_amount: Decimal
    difference: Decimal


@dataclass(frozen=True)
class CatchUpDetails:
    month: date
    normal_amount: Decimal
    catch_up_amount: Decimal
    total_amount: Decimal


@dataclass(frozen=True)
class EditPreview:
    mode: AdjustmentMode
    old_amount: Decimal
    new_amount: Decimal
    old_monthly_amount: Decimal
    new_monthly_amount: Decimal
    old_start_date: date
    new_start_date: date
    old_end_date: date
    new_end_date: date
    old_term_months: int
    new_term_months: int
    posted_count: int
    affected_posted_months: tuple[AffectedMonth, ...] = ()
    catch_up: CatchUpDetails | None = None

    @property
    def total_adjustment(self) -> Decimal:
        return sum_money(m.difference for m in self.affected_posted_months)


@traced_engine("preview", "1.0", fingerprint_fields=("terms", "mode", "catch_up_month"))
def preview_edit(
    contract: Contract,
    entries: Sequence[ScheduleEntry],
    terms: ContractTerms,
    mode: AdjustmentMode,
    catch_up_month: date | None = None,
    generator: ScheduleGenerator | None = None,
    noise_threshold: Decimal = NOISE_THRESHOLD,
) -> Result[EditPreview]:
    """Summarize the effect of editing ``contract`` to ``terms`` under ``mode``."""
    generator = generator or ScheduleGenerator()
    mode = AdjustmentMode(mode)

    target = generator.target_map(terms)
    if not target:
        return Result.failure(target.error)
    target_map = target.value

    posted = posted_originals(entries)
    affected: list[AffectedMonth] = []
    catch_up = None

    if posted and mode is AdjustmentMode.RETROACTIVE:
        for entry in posted:
            new_amount = target_map.get(entry.recognition_month, ZERO)
            difference = new_amount - entry.amount
            if not is_noise(difference, noise_threshold):
                affected.append(AffectedMonth(
                    month=entry.recognition_month,
                    old_amount=entry.amount,
                    new_amount=new_amount,
                    difference=difference,
                ))

    new_monthly = generator.monthly_amount(terms.amount, terms.term_months)
    if mode is AdjustmentMode.CATCH_UP and catch_up_month is not None:
        difference = terms.amount - sum_money(e.amount for e in posted)
        catch_up = CatchUpDetails(
            month=month_key(catch_up_month),
            normal_amount=new_monthly,
            catch_up_amount=difference,
            total_amount=new_monthly + difference,
        )

    return Result.success(EditPreview(
        mode=mode,
        old_amount=contract.amount,
        new_amount=terms.amount,
        old_monthly_amount=generator.monthly_amount(contract.amount, contract.term_months),
        new_monthly_amount=new_monthly,
        old_start_date=contract.start_date,
        new_start_date=terms.start_date,
        old_end_date=contract.end_date,
        new_end_date=terms.end_date,
        old_term_months=contract.term_months,
        new_term_months=terms.term_months,
        posted_count=len(posted),
        affected_posted_months=tuple(affected),
        catch_up=catch_up,
    ))
