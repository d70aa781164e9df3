"""
Tests for JournalPostingService.

Covers:
- Pending adjustment rows posted in month order and marked posted
- Stop at the first rejection; later rows stay unposted
- Every attempt recorded in JournalEntryLog
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select

from revrec_kernel.domain.dtos import AdjustmentMode
from revrec_kernel.exceptions import AccountMappingMissingError, PostingFailedError
from revrec_kernel.models import JournalEntryLog
from revrec_services.contract_service import ContractService
from revrec_services.journal_posting import JournalPostingService
from revrec_services.providers import SimulatedLedgerProvider

TENANT = "acme"


@pytest.fixture
def edited_contract(session, clock, make_terms):
    """12000 over 12 months, Jan-Mar posted, then raised to 18000 retroactively."""
    service = ContractService(session, clock)
    contract = service.create_contract(TENANT, "INV-1001", make_terms("12000.00"))
    for index, month in enumerate((date(2024, 1, 1), date(2024, 2, 1), date(2024, 3, 1)), start=1):
        service.mark_posted(contract.id, month, f"JE-{index}")
    service.edit_contract(contract.id, make_terms("18000.00"), AdjustmentMode.RETROACTIVE)
    return service, contract


class TestPostPendingAdjustments:
    def test_posts_each_adjustment_in_month_order(self, session, accounts, edited_contract):
        service, contract = edited_contract
        ledger = SimulatedLedgerProvider()
        batch = JournalPostingService(session, ledger, accounts).post_pending_adjustments(contract.id, TENANT)

        assert batch.success
        assert batch.entry_ids == ("SIM-JE-000001", "SIM-JE-000002", "SIM-JE-000003")
        assert [p.posting_date for p in ledger.postings] == [
            date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31),
        ]
        assert all(p.amount == Decimal("500.00") for p in ledger.postings)
        assert ledger.postings[0].memo == "Contract amount correction (INV-1001)"

        adjustments = [r for r in service.get_schedule(contract.id) if r.is_adjustment]
        assert all(a.posted for a in adjustments)
        assert [a.journal_entry_id for a in adjustments] == list(batch.entry_ids)

    def test_stops_at_first_failure(self, session, accounts, edited_contract):
        service, contract = edited_contract
        ledger = SimulatedLedgerProvider(
            reject_when=lambda p: "period locked" if p.posting_date.month == 2 else None,
        )
        batch = JournalPostingService(session, ledger, accounts).post_pending_adjustments(contract.id, TENANT)

        assert not batch.success
        assert batch.entry_ids == ("SIM-JE-000001",)
        assert batch.failure.error == "period locked"
        assert len(ledger.postings) == 1

        posted = [r.posted for r in service.get_schedule(contract.id) if r.is_adjustment]
        assert posted == [True, False, False]

        with pytest.raises(PostingFailedError) as exc_info:
            batch.raise_for_failure()
        assert exc_info.value.month == date(2024, 2, 29)

    def test_attempts_are_logged(self, session, accounts, edited_contract):
        _, contract = edited_contract
        ledger = SimulatedLedgerProvider(reject_when=lambda p: "rejected" if p.posting_date.month == 3 else None)
        JournalPostingService(session, ledger, accounts).post_pending_adjustments(contract.id, TENANT)

        logs = session.scalars(select(JournalEntryLog).order_by(JournalEntryLog.posting_date)).all()
        assert [(log.success, log.error) for log in logs] == [
            (True, None), (True, None), (False, "rejected"),
        ]
        assert all(log.platform == ledger.platform for log in logs)
        assert logs[0].schedule_entry_id is not None

    def test_nothing_pending(self, session, accounts, clock, make_terms):
        service = ContractService(session, clock)
        contract = service.create_contract(TENANT, "INV-9", make_terms())
        batch = JournalPostingService(session, SimulatedLedgerProvider(), accounts).post_pending_adjustments(
            contract.id, TENANT,
        )
        assert batch.success and batch.entry_ids == ()

    def test_requires_account_mapping(self, session, edited_contract):
        _, contract = edited_contract
        with pytest.raises(AccountMappingMissingError):
            JournalPostingService(session, SimulatedLedgerProvider(), None).post_pending_adjustments(
                contract.id, TENANT,
            )
