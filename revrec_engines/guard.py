"""
Module: revrec_engines.guard
Responsibility:
    Precondition checks deciding whether an adjustment mode may be applied
    to a contract, given how many of its original months are posted.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - ``none`` is only legal while nothing has been posted.
    - ``catch_up`` and ``prospective`` need at least one unposted month.
    - ``catch_up`` needs an explicit target month.

Failure modes (all returned as Result.failure, never raised):
    - PostedScheduleExistsError
    - NoUnpostedMonthsError
    - MissingCatchUpMonthError
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from revrec_engines.schedule import originals
from revrec_engines.tracer import traced_engine
from revrec_kernel.domain.dtos import AdjustmentMode, ScheduleEntry
from revrec_kernel.domain.result import Result
from revrec_kernel.exceptions import (
    MissingCatchUpMonthError,
    NoUnpostedMonthsError,
    PostedScheduleExistsError,
)


class ValidationGuard:
    """Checks which adjustment mode is legal for the current posted/unposted split."""

    @traced_engine(
        "validation_guard", "1.0",
        fingerprint_fields=("mode", "posted_count", "unposted_count", "catch_up_month"),
    )
    def check(
        self,
        mode: AdjustmentMode,
        posted_count: int,
        unposted_count: int,
        catch_up_month: date | None = None,
    ) -> Result[AdjustmentMode]:
        mode = AdjustmentMode(mode)

        if mode is AdjustmentMode.NONE and posted_count > 0:
            return Result.failure(PostedScheduleExistsError(posted_count))

        if mode in (AdjustmentMode.CATCH_UP, AdjustmentMode.PROSPECTIVE) and unposted_count == 0:
            return Result.failure(NoUnpostedMonthsError(mode.value))

        if mode is AdjustmentMode.CATCH_UP and catch_up_month is None:
            return Result.failure(MissingCatchUpMonthError())

        return Result.success(mode)

    def check_entries(
        self,
        mode: AdjustmentMode,
        entries: Iterable[ScheduleEntry],
        catch_up_month: date | None = None,
    ) -> Result[AdjustmentMode]:
        """Count posted/unposted original rows and run ``check``."""
        rows = originals(entries)
        posted_count = sum(1 for e in rows if e.posted)
        return self.check(mode, posted_count, len(rows) - posted_count, catch_up_month)
