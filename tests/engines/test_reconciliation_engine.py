"""
Tests for ReconciliationEngine.

Covers:
- Expected deferred balance (opening balance semantics, posted adjustments)
- Expected recognized revenue with a period window
- Tolerance comparison
- Tie-out report assembly and missing opening balance summary
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from revrec_engines.reconciliation import ReconciliationEngine
from revrec_kernel.domain.dtos import AdjustmentType, ScheduleEntry


class TestExpectedBalances:
    def setup_method(self):
        self.engine = ReconciliationEngine()

    def test_deferred_is_amount_minus_posted_to_date(self, make_contract, make_schedule):
        contract = make_contract("12000.00", date(2024, 1, 1), 12)
        rows = make_schedule(contract, "1000.00", posted_through=4)

        assert self.engine.expected_deferred_balance([contract], rows, date(2024, 2, 29)) == Decimal("10000.00")
        assert self.engine.expected_deferred_balance([contract], rows, date(2024, 6, 30)) == Decimal("8000.00")

    def test_contract_without_opening_balance_is_excluded(self, make_contract, make_schedule):
        posted = make_contract("1200.00", opening_balance_posted=True)
        unknown = make_contract("2400.00", opening_balance_posted=None)
        missing = make_contract("3600.00", opening_balance_posted=False)

        balance = self.engine.expected_deferred_balance(
            [posted, unknown, missing], [], date(2024, 1, 31),
        )
        assert balance == Decimal("3600.00")

    def test_posted_adjustments_count(self, make_contract, make_schedule):
        contract = make_contract("12000.00", date(2024, 1, 1), 12)
        rows = make_schedule(contract, "1000.00", posted_through=1)
        rows.append(ScheduleEntry(
            contract.id, date(2024, 1, 1), Decimal("500.00"), posted=True,
            is_adjustment=True, adjusts_schedule_id=rows[0].id,
            adjustment_type=AdjustmentType.RETROACTIVE,
        ))
        rows.append(ScheduleEntry(
            contract.id, date(2024, 1, 1), Decimal("250.00"),
            is_adjustment=True, adjusts_schedule_id=rows[0].id,
            adjustment_type=AdjustmentType.RETROACTIVE,
        ))
        assert self.engine.expected_deferred_balance([contract], rows, date(2024, 1, 31)) == Decimal("10500.00")

    def test_entries_of_other_contracts_are_ignored(self, make_contract, make_schedule):
        contract = make_contract()
        other = make_contract()
        rows = make_schedule(other, "1000.00", posted_through=12)
        assert self.engine.expected_deferred_balance([contract], rows, date(2024, 12, 31)) == Decimal("12000.00")

    def test_recognized_revenue_window(self, make_contract, make_schedule):
        contract = make_contract("24000.00", date(2023, 7, 1), 24)
        rows = make_schedule(contract, "1000.00", posted_through=12)

        assert self.engine.expected_recognized_revenue(rows, date(2024, 6, 30)) == Decimal("12000.00")
        assert self.engine.expected_recognized_revenue(
            rows, date(2024, 6, 30), period_start=date(2024, 1, 1),
        ) == Decimal("6000.00")

    def test_per_contract_figures(self, make_contract, make_schedule):
        contract = make_contract("12000.00", date(2024, 1, 1), 12)
        rows = make_schedule(contract, "1000.00", posted_through=3)
        assert self.engine.recognized_to_date(contract.id, rows, date(2024, 12, 31)) == Decimal("3000.00")
        assert self.engine.deferred_balance_for_month(contract, rows, date(2024, 2, 1)) == Decimal("10000.00")


class TestCompareBalances:
    def setup_method(self):
        self.engine = ReconciliationEngine()

    @pytest.mark.parametrize(
        "software,external,matches",
        [
            ("1000.00", "1000.00", True),
            ("1000.00", "1000.01", True),
            ("1000.01", "1000.00", True),
            ("1000.00", "1000.02", False),
            ("0.00", "-5.00", False),
        ],
    )
    def test_matches_within_tolerance(self, software, external, matches):
        comparison = self.engine.compare_balances(software, external)
        assert comparison.matches is matches
        assert comparison.difference == abs(Decimal(software) - Decimal(external))
        assert comparison.within_tolerance is matches

    def test_custom_tolerance(self):
        assert ReconciliationEngine(Decimal("1.00")).compare_balances("10", "10.75").matches
        assert not self.engine.compare_balances("10", "10.75").matches
        assert self.engine.compare_balances("10", "10.75", tolerance="1").matches


class TestTieOut:
    def setup_method(self):
        self.engine = ReconciliationEngine()

    def test_report_matches_when_ledger_agrees(self, make_contract, make_schedule):
        contract = make_contract("12000.00", date(2024, 1, 1), 12)
        rows = make_schedule(contract, "1000.00", posted_through=6)

        report = self.engine.tie_out(
            [contract], rows, date(2024, 6, 30),
            external_deferred="6000.00",
            external_revenue="6000.00",
            period_start=date(2024, 1, 1),
        )
        assert report.overall_matches
        assert report.balance_sheet.software_balance == Decimal("6000.00")
        assert report.missing_opening_balance is None

    def test_report_flags_mismatch_and_missing_opening_balance(self, make_contract, make_schedule):
        good = make_contract("12000.00", date(2024, 1, 1), 12)
        missing = replace(make_contract("5000.00"), external_reference="INV-2002", opening_balance_posted=False)
        rows = make_schedule(good, "1000.00", posted_through=6)

        report = self.engine.tie_out(
            [good, missing], rows, date(2024, 6, 30),
            external_deferred="6000.00",
            external_revenue="5900.00",
        )
        assert report.balance_sheet.matches
        assert not report.profit_and_loss.matches
        assert not report.overall_matches
        assert report.missing_opening_balance.count == 1
        assert report.missing_opening_balance.total_amount == Decimal("5000.00")
        assert report.missing_opening_balance.external_references == ("INV-2002",)

    def test_tie_out_emits_engine_trace(self, captured_logs, make_contract):
        self.engine.tie_out([make_contract()], [], date(2024, 1, 31), "12000.00", "0.00")
        traces = [r for r in captured_logs() if r["message"] == "REVREC_ENGINE_TRACE"]
        assert traces[-1]["engine_name"] == "reconciliation.tie_out"
        assert len(traces[-1]["input_fingerprint"]) == 16

    def test_posted_row_for_future_month_is_not_counted(self, make_contract):
        contract = make_contract("1200.00", date(2024, 1, 1), 12)
        rows = [ScheduleEntry(contract.id, date(2024, 9, 1), Decimal("100.00"), posted=True, id=uuid4())]
        assert self.engine.expected_deferred_balance([contract], rows, date(2024, 8, 31)) == Decimal("1200.00")
