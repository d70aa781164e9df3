"""
Tests for edit previews and journal shaping.

Covers:
- Preview of retroactive changes by calendar month, orphans shown at zero
- Catch-up preview figures
- Posting requests dated at month end
- Debit/credit expansion of signed amounts
- Reversal of the remaining deferred balance on delete
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import uuid4

from revrec_engines.journal import (
    LineSide,
    journal_lines,
    posting_for,
    remaining_deferred,
    reversal_for_delete,
)
from revrec_engines.preview import preview_edit
from revrec_kernel.domain.dtos import AdjustmentMode, AdjustmentType, ScheduleEntry


class TestPreviewEdit:
    def test_retroactive_lists_changed_posted_months(self, make_contract, make_schedule, make_terms):
        contract = make_contract("12000.00", date(2024, 1, 1), 12)
        rows = make_schedule(contract, "1000.00", posted_through=3)

        preview = preview_edit(
            contract, rows, make_terms("9000.00", date(2024, 1, 1), 6), AdjustmentMode.RETROACTIVE,
        ).unwrap()

        assert preview.posted_count == 3
        assert preview.old_monthly_amount == Decimal("1000.00")
        assert preview.new_monthly_amount == Decimal("1500.00")
        assert preview.old_term_months == 12 and preview.new_term_months == 6
        assert [m.difference for m in preview.affected_posted_months] == [Decimal("500.00")] * 3
        assert preview.total_adjustment == Decimal("1500.00")
        assert preview.catch_up is None

    def test_orphaned_month_shows_zero(self, make_contract, make_schedule, make_terms):
        contract = make_contract("12000.00", date(2024, 1, 1), 12)
        rows = make_schedule(contract, "1000.00", posted_through=2)

        preview = preview_edit(
            contract, rows, make_terms("12000.00", date(2024, 2, 1), 12), AdjustmentMode.RETROACTIVE,
        ).unwrap()

        assert len(preview.affected_posted_months) == 1
        jan = preview.affected_posted_months[0]
        assert (jan.month, jan.new_amount, jan.difference) == (
            date(2024, 1, 1), Decimal("0.00"), Decimal("-1000.00"),
        )

    def test_posted_adjustments_are_not_preview_input(self, make_contract, make_schedule, make_terms):
        contract = make_contract("12000.00", date(2024, 1, 1), 12)
        rows = make_schedule(contract, "1000.00", posted_through=1)
        jan_fix = replace(
            rows[0],
            id=uuid4(),
            amount=Decimal("500.00"),
            is_adjustment=True,
            adjusts_schedule_id=rows[0].id,
            adjustment_type=AdjustmentType.RETROACTIVE,
        )

        preview = preview_edit(
            contract, rows + [jan_fix], make_terms("18000.00"), AdjustmentMode.RETROACTIVE,
        ).unwrap()

        jan = preview.affected_posted_months[0]
        assert (jan.old_amount, jan.difference) == (Decimal("1000.00"), Decimal("500.00"))

    def test_catch_up_details(self, make_contract, make_schedule, make_terms):
        contract = make_contract("3000.00", date(2024, 1, 1), 3)
        rows = make_schedule(contract, "1000.00", posted_through=2)

        preview = preview_edit(
            contract, rows, make_terms("4500.00", date(2024, 1, 1), 3),
            AdjustmentMode.CATCH_UP, catch_up_month=date(2024, 3, 15),
        ).unwrap()

        assert preview.affected_posted_months == ()
        assert preview.catch_up.month == date(2024, 3, 1)
        assert preview.catch_up.normal_amount == Decimal("1500.00")
        assert preview.catch_up.catch_up_amount == Decimal("2500.00")
        assert preview.catch_up.total_amount == Decimal("4000.00")

    def test_invalid_terms_fail(self, make_contract, make_terms):
        contract = make_contract()
        result = preview_edit(contract, [], replace(make_terms(), term_months=0), AdjustmentMode.NONE)
        assert result.error.code == "INVALID_TERM"


class TestJournalShaping:
    def test_posting_dated_at_month_end(self, accounts):
        entry = ScheduleEntry(
            uuid4(), date(2024, 2, 1), Decimal("500.00"),
            is_adjustment=True, adjustment_type=AdjustmentType.RETROACTIVE,
            reason="Contract amount correction (INV-1)", id=uuid4(),
        )
        posting = posting_for(entry, accounts)
        assert posting.posting_date == date(2024, 2, 29)
        assert posting.deferred_account_id == "2400"
        assert posting.revenue_account_id == "4000"
        assert posting.memo == "Contract amount correction (INV-1)"
        assert posting.schedule_entry_id == entry.id

    def test_positive_amount_debits_deferred(self, accounts):
        entry = ScheduleEntry(uuid4(), date(2024, 1, 1), Decimal("500.00"))
        debit, credit = journal_lines(posting_for(entry, accounts))
        assert (debit.account_id, debit.side, debit.amount) == ("2400", LineSide.DEBIT, Decimal("500.00"))
        assert (credit.account_id, credit.side, credit.amount) == ("4000", LineSide.CREDIT, Decimal("500.00"))

    def test_negative_amount_debits_revenue(self, accounts):
        entry = ScheduleEntry(uuid4(), date(2024, 1, 1), Decimal("-1000.00"))
        debit, credit = journal_lines(posting_for(entry, accounts))
        assert debit.account_id == "4000" and credit.account_id == "2400"
        assert debit.amount == credit.amount == Decimal("1000.00")


class TestReversalForDelete:
    def test_remaining_deferred_includes_posted_adjustments(self, make_contract, make_schedule):
        contract = make_contract("12000.00", date(2024, 1, 1), 12)
        rows = make_schedule(contract, "1000.00", posted_through=4)
        rows.append(ScheduleEntry(contract.id, date(2024, 1, 1), Decimal("-200.00"), posted=True, is_adjustment=True))
        assert remaining_deferred(contract, rows) == Decimal("8200.00")

    def test_reversal_takes_remaining_off_the_books(self, make_contract, make_schedule, accounts):
        contract = make_contract("12000.00", date(2024, 1, 1), 12)
        rows = make_schedule(contract, "1000.00", posted_through=5)

        posting = reversal_for_delete(contract, rows, date(2024, 6, 15), accounts)
        assert posting.amount == Decimal("-7000.00")
        assert posting.posting_date == date(2024, 6, 15)
        assert posting.memo == "Waterfall Reversal - Contract INV-1001 deleted"
        assert posting.contract_id == contract.id

    def test_nothing_to_reverse_when_fully_recognized(self, make_contract, make_schedule, accounts):
        contract = make_contract("12000.00", date(2024, 1, 1), 12)
        rows = make_schedule(contract, "1000.00", posted_through=12)
        assert reversal_for_delete(contract, rows, date(2025, 1, 15), accounts) is None

    def test_one_cent_is_noise(self, make_contract, accounts):
        contract = make_contract("0.01", date(2024, 1, 1), 1)
        assert reversal_for_delete(contract, [], date(2024, 1, 15), accounts) is None
