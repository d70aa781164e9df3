"""
Tests for ScheduleGenerator.

Covers:
- Even and uneven straight-line splits
- Last-month residual (positive and negative)
- Month keying from any start day
- Input validation returned as failed Results
- Effective amounts of posted originals after posted corrections
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from revrec_engines.schedule import (
    ScheduleGenerator,
    originals,
    posted_months,
    posted_originals,
    unposted_originals,
)
from revrec_kernel.domain.dtos import AdjustmentType, ScheduleEntry
from revrec_kernel.exceptions import InvalidAmountError, InvalidTermError


class TestGenerate:
    """Straight-line split of an amount over a term."""

    def setup_method(self):
        self.generator = ScheduleGenerator()

    def test_even_split(self):
        amounts = self.generator.generate(Decimal("12000.00"), 12).unwrap()
        assert amounts == [Decimal("1000.00")] * 12

    def test_uneven_split_last_month_absorbs_residual(self):
        amounts = self.generator.generate(Decimal("10000.00"), 12).unwrap()
        assert amounts[:11] == [Decimal("833.33")] * 11
        assert amounts[11] == Decimal("833.37")
        assert sum(amounts) == Decimal("10000.00")

    def test_negative_residual(self):
        # 200/3 rounds up to 66.67, so the last month comes out a cent short
        amounts = self.generator.generate(Decimal("200.00"), 3).unwrap()
        assert amounts == [Decimal("66.67"), Decimal("66.67"), Decimal("66.66")]

    def test_single_month(self):
        assert self.generator.generate(Decimal("99.99"), 1).unwrap() == [Decimal("99.99")]

    def test_amount_smaller_than_term(self):
        amounts = self.generator.generate(Decimal("0.05"), 12).unwrap()
        assert sum(amounts) == Decimal("0.05")
        assert amounts[0] == Decimal("0.00")

    def test_string_amount_accepted(self):
        assert self.generator.generate("600", 6).unwrap() == [Decimal("100.00")] * 6

    @pytest.mark.parametrize("term", [0, -3, 2.5])
    def test_invalid_term(self, term):
        result = self.generator.generate(Decimal("100.00"), term)
        assert isinstance(result.error, InvalidTermError)

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1.00"), Decimal("NaN")])
    def test_invalid_amount(self, amount):
        result = self.generator.generate(amount, 12)
        assert isinstance(result.error, InvalidAmountError)

    def test_monthly_amount_rounds_half_up(self):
        assert ScheduleGenerator.monthly_amount(Decimal("1000.00"), 3) == Decimal("333.33")
        assert ScheduleGenerator.monthly_amount(Decimal("0.25"), 2) == Decimal("0.13")


class TestMonthKeying:
    def setup_method(self):
        self.generator = ScheduleGenerator()

    def test_mid_month_start_keys_by_calendar_month(self, make_terms):
        terms = make_terms("300.00", date(2024, 11, 15), 3)
        target = self.generator.target_map(terms).unwrap()
        assert list(target) == [date(2024, 11, 1), date(2024, 12, 1), date(2025, 1, 1)]

    def test_build_produces_unposted_originals(self, make_terms):
        contract_id = uuid4()
        rows = self.generator.build(contract_id, make_terms("1200.00", date(2024, 1, 1), 12)).unwrap()
        assert len(rows) == 12
        assert all(not r.posted and not r.is_adjustment for r in rows)
        assert all(r.contract_id == contract_id for r in rows)


class TestScheduleViews:
    """Selections over a mixed schedule of originals and adjustments."""

    def _rows(self):
        contract_id = uuid4()
        jan = ScheduleEntry(contract_id, date(2024, 1, 1), Decimal("1000.00"), posted=True, id=uuid4())
        feb = ScheduleEntry(contract_id, date(2024, 2, 1), Decimal("1000.00"), posted=True, id=uuid4())
        mar = ScheduleEntry(contract_id, date(2024, 3, 1), Decimal("1000.00"), id=uuid4())
        jan_fix = ScheduleEntry(
            contract_id, date(2024, 1, 1), Decimal("500.00"), posted=True,
            is_adjustment=True, adjusts_schedule_id=jan.id,
            adjustment_type=AdjustmentType.RETROACTIVE, id=uuid4(),
        )
        feb_pending = ScheduleEntry(
            contract_id, date(2024, 2, 1), Decimal("-200.00"),
            is_adjustment=True, adjusts_schedule_id=feb.id,
            adjustment_type=AdjustmentType.RETROACTIVE, id=uuid4(),
        )
        return [mar, jan_fix, feb_pending, feb, jan]

    def test_originals_sorted_by_month(self):
        months = [e.recognition_month for e in originals(self._rows())]
        assert months == [date(2024, 1, 1), date(2024, 2, 1), date(2024, 3, 1)]

    def test_posted_originals_at_stored_amount(self):
        posted = {e.recognition_month: e.amount for e in posted_originals(self._rows())}
        assert posted == {
            date(2024, 1, 1): Decimal("1000.00"),
            date(2024, 2, 1): Decimal("1000.00"),
        }
        assert all(not e.is_adjustment for e in posted_originals(self._rows()))

    def test_unposted_originals_and_posted_months(self):
        assert [e.recognition_month for e in unposted_originals(self._rows())] == [date(2024, 3, 1)]
        assert posted_months(self._rows()) == {date(2024, 1, 1), date(2024, 2, 1)}
