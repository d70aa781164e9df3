"""
Module: revrec_engines.reconciliation
Responsibility:
    Independently recompute expected deferred-revenue and recognized-revenue
    balances from contract and schedule data, and compare them with balances
    reported by an external ledger within a tolerance (tie-out).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Read-only over its inputs; safe to run concurrently with anything.

Invariants enforced:
    - Fixed-point Decimal arithmetic only; floats are rejected.
    - compare_balances is symmetric: |a - b| == |b - a|.
    - matches is True iff difference <= tolerance.
    - A contract whose opening balance is explicitly not posted
      (``opening_balance_posted is False``) is excluded from the expected
      deferred balance; unknown (None) counts as posted.

Failure modes:
    - TypeError when a balance is given as float.

Usage:
    engine = ReconciliationEngine()
    report = engine.tie_out(
        contracts, entries, as_of=date(2024, 6, 30),
        external_deferred=Decimal("6000.00"),
        external_revenue=Decimal("6000.00"),
    )
    report.overall_matches
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from revrec_engines.tracer import traced_engine
from revrec_kernel.domain.dtos import Contract, ScheduleEntry
from revrec_kernel.domain.money import (
    NOISE_THRESHOLD,
    quantize_money,
    sum_money,
    to_decimal,
)
from revrec_kernel.domain.months import month_end
from revrec_kernel.logging_config import get_logger

logger = get_logger("engines.reconciliation")


@dataclass(frozen=True)
class BalanceComparison:
    """Internally computed balance versus the external ledger's balance."""

    software_balance: Decimal
    external_balance: Decimal
    difference: Decimal
    tolerance: Decimal
    matches: bool

    @property
    def within_tolerance(self) -> bool:
        return self.matches


@dataclass(frozen=True)
class MissingOpeningBalance:
    """Contracts whose opening deferred-revenue transaction is not posted yet."""

    count: int
    total_amount: Decimal
    external_references: tuple[str, ...]


@dataclass(frozen=True)
class TieOutReport:
    """
    Balance sheet and P&L tie-out for one tenant as of a date.

    Guarantees:
        - overall_matches == balance_sheet.matches and profit_and_loss.matches
    """

    as_of: date
    period_start: date | None
    balance_sheet: BalanceComparison
    profit_and_loss: BalanceComparison
    missing_opening_balance: MissingOpeningBalance | None = None

    @property
    def overall_matches(self) -> bool:
        return self.balance_sheet.matches and self.profit_and_loss.matches


class ReconciliationEngine:
    """Expected-balance calculations and tolerance-based comparison."""

    def __init__(self, tolerance: Decimal = NOISE_THRESHOLD):
        self._tolerance = to_decimal(tolerance)

    @staticmethod
    def _posted_through(
        entries: Iterable[ScheduleEntry],
        through: date,
        period_start: date | None = None,
    ) -> Decimal:
        return sum_money(
            e.amount
            for e in entries
            if e.posted
            and e.recognition_month <= through
            and (period_start is None or e.recognition_month >= period_start)
        )

    def expected_deferred_balance(
        self,
        contracts: Sequence[Contract],
        entries: Iterable[ScheduleEntry],
        as_of: date,
    ) -> Decimal:
        """Contract amounts (opening balance posted) minus posted recognition to date.

        Adjustment rows count: a posted adjustment moved money between
        deferred and revenue exactly like an original month did.
        """
        contract_total = sum_money(
            c.amount for c in contracts if c.opening_balance_initialized
        )
        contract_ids = {c.id for c in contracts}
        recognized = self._posted_through(
            (e for e in entries if e.contract_id in contract_ids), as_of,
        )
        return quantize_money(contract_total - recognized)

    def expected_recognized_revenue(
        self,
        entries: Iterable[ScheduleEntry],
        through: date,
        period_start: date | None = None,
    ) -> Decimal:
        """Posted recognition with month <= ``through`` (and >= ``period_start``)."""
        return quantize_money(self._posted_through(entries, through, period_start))

    def recognized_to_date(
        self,
        contract_id: UUID,
        entries: Iterable[ScheduleEntry],
        through: date,
    ) -> Decimal:
        return self.expected_recognized_revenue(
            (e for e in entries if e.contract_id == contract_id), through,
        )

    def deferred_balance_for_month(
        self,
        contract: Contract,
        entries: Iterable[ScheduleEntry],
        month: date,
    ) -> Decimal:
        """Deferred balance left on one contract at the end of ``month``."""
        recognized = self.recognized_to_date(contract.id, entries, month_end(month))
        return quantize_money(contract.amount - recognized)

    def compare_balances(
        self,
        software: Decimal | int | str,
        external: Decimal | int | str,
        tolerance: Decimal | int | str | None = None,
    ) -> BalanceComparison:
        software = to_decimal(software)
        external = to_decimal(external)
        tolerance = self._tolerance if tolerance is None else to_decimal(tolerance)

        difference = abs(software - external)
        return BalanceComparison(
            software_balance=software,
            external_balance=external,
            difference=difference,
            tolerance=tolerance,
            matches=difference <= tolerance,
        )

    @staticmethod
    def missing_opening_balance(contracts: Sequence[Contract]) -> MissingOpeningBalance | None:
        missing = [c for c in contracts if not c.opening_balance_initialized]
        if not missing:
            return None
        return MissingOpeningBalance(
            count=len(missing),
            total_amount=sum_money(c.amount for c in missing),
            external_references=tuple(c.external_reference for c in missing),
        )

    @traced_engine("reconciliation.tie_out", "1.0", fingerprint_fields=("as_of", "period_start"))
    def tie_out(
        self,
        contracts: Sequence[Contract],
        entries: Sequence[ScheduleEntry],
        as_of: date,
        external_deferred: Decimal | int | str,
        external_revenue: Decimal | int | str,
        period_start: date | None = None,
        tolerance: Decimal | int | str | None = None,
    ) -> TieOutReport:
        """Compare both expected balances with the external ledger's figures."""
        contract_ids = {c.id for c in contracts}
        own_entries = [e for e in entries if e.contract_id in contract_ids]

        balance_sheet = self.compare_balances(
            self.expected_deferred_balance(contracts, own_entries, as_of),
            external_deferred,
            tolerance,
        )
        profit_and_loss = self.compare_balances(
            self.expected_recognized_revenue(own_entries, as_of, period_start),
            external_revenue,
            tolerance,
        )
        report = TieOutReport(
            as_of=as_of,
            period_start=period_start,
            balance_sheet=balance_sheet,
            profit_and_loss=profit_and_loss,
            missing_opening_balance=self.missing_opening_balance(contracts),
        )

        log = logger.info if report.overall_matches else logger.warning
        log(
            "tie_out_completed",
            extra={
                "as_of": as_of.isoformat(),
                "overall_matches": report.overall_matches,
                "deferred_difference": str(balance_sheet.difference),
                "revenue_difference": str(profit_and_loss.difference),
                "contract_count": len(contracts),
            },
        )
        return report

