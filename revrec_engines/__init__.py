"""
Module: revrec_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines.  This is
    the canonical import surface for revrec_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import revrec_kernel.domain, revrec_kernel.exceptions and
    revrec_kernel.logging_config.  MUST NOT import revrec_services,
    revrec_kernel.db or revrec_config.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      "Today" is passed in by the caller.
    - Decimal-only arithmetic; floats are rejected at the boundary.
    - Caller-input failures are returned as ``Result.failure`` values,
      never raised.

Audit relevance:
    Engine entry points are wrapped by ``@traced_engine`` and emit
    REVREC_ENGINE_TRACE records with an input fingerprint and duration.
"""

from revrec_engines.adjustment import (
    AdjustmentCalculator,
    AdjustmentPlan,
    AdjustmentRequest,
)
from revrec_engines.guard import ValidationGuard
from revrec_engines.journal import (
    AdjustmentPosting,
    JournalLine,
    LineSide,
    journal_lines,
    posting_for,
    remaining_deferred,
    reversal_for_delete,
)
from revrec_engines.preview import (
    AffectedMonth,
    CatchUpDetails,
    EditPreview,
    preview_edit,
)
from revrec_engines.reconciliation import (
    BalanceComparison,
    MissingOpeningBalance,
    ReconciliationEngine,
    TieOutReport,
)
from revrec_engines.schedule import ScheduleGenerator
from revrec_engines.tracer import traced_engine

__all__ = [
    "AdjustmentCalculator",
    "AdjustmentPlan",
    "AdjustmentPosting",
    "AdjustmentRequest",
    "AffectedMonth",
    "BalanceComparison",
    "CatchUpDetails",
    "EditPreview",
    "JournalLine",
    "LineSide",
    "MissingOpeningBalance",
    "ReconciliationEngine",
    "ScheduleGenerator",
    "TieOutReport",
    "ValidationGuard",
    "journal_lines",
    "posting_for",
    "preview_edit",
    "remaining_deferred",
    "reversal_for_delete",
    "traced_engine",
]
