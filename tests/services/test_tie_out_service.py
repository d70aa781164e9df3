"""Tests for TieOutService against the simulated ledger."""

from datetime import date
from decimal import Decimal

import pytest

from revrec_config import get_active_config
from revrec_kernel.exceptions import AccountMappingMissingError, BalanceUnavailableError
from revrec_services.accounting_provider import BalanceResult
from revrec_services.contract_service import ContractService
from revrec_services.providers import SimulatedLedgerProvider
from revrec_services.tie_out_service import TieOutService

TENANT = "acme"


def _seed(session, clock, make_terms, ledger, accounts, posted_months=6):
    """One contract whose first ``posted_months`` months are posted in both places."""
    service = ContractService(session, clock)
    contract = service.create_contract(TENANT, "INV-1001", make_terms("12000.00"), opening_balance_posted=True)
    ledger.record_opening_balance(accounts.deferred_revenue_account_id, date(2024, 1, 1), Decimal("12000.00"))
    for month in range(1, posted_months + 1):
        entry = service.mark_posted(contract.id, date(2024, month, 1), f"JE-{month}")
        ledger.post_adjustment_entry(
            date(2024, month, 28),
            accounts.deferred_revenue_account_id,
            accounts.revenue_account_id,
            entry.amount,
            "Monthly recognition",
        )
    return service, contract


class _UnavailableLedger(SimulatedLedgerProvider):
    def get_deferred_balance(self, account_id, as_of):
        return BalanceResult(success=False, error="token expired")


class TestTieOutService:
    def test_ledger_in_agreement(self, session, clock, make_terms, accounts):
        ledger = SimulatedLedgerProvider()
        _seed(session, clock, make_terms, ledger, accounts)

        report = TieOutService(session, ledger, accounts).run(TENANT, date(2024, 6, 30))

        assert report.overall_matches
        assert report.balance_sheet.software_balance == Decimal("6000.00")
        assert report.balance_sheet.external_balance == Decimal("6000.00")
        assert report.profit_and_loss.software_balance == Decimal("6000.00")
        assert report.period_start == date(2024, 1, 1)

    def test_revenue_is_year_to_date(self, session, clock, make_terms, accounts):
        ledger = SimulatedLedgerProvider()
        ledger.post_adjustment_entry(date(2023, 12, 31), "2400", "4000", Decimal("999.00"), "prior year")
        ledger.record_opening_balance("2400", date(2023, 12, 1), Decimal("999.00"))
        _seed(session, clock, make_terms, ledger, accounts, posted_months=2)

        report = TieOutService(session, ledger, accounts).run(TENANT, date(2024, 2, 29))

        assert report.profit_and_loss.external_balance == Decimal("2000.00")
        assert report.profit_and_loss.matches
        assert report.balance_sheet.matches

    def test_unposted_ledger_entry_shows_difference(self, session, clock, make_terms, accounts):
        ledger = SimulatedLedgerProvider()
        service, contract = _seed(session, clock, make_terms, ledger, accounts, posted_months=3)
        service.mark_posted(contract.id, date(2024, 4, 1), "JE-4")

        report = TieOutService(session, ledger, accounts).run(TENANT, date(2024, 4, 30))

        assert not report.overall_matches
        assert report.balance_sheet.difference == Decimal("1000.00")
        assert report.profit_and_loss.difference == Decimal("1000.00")

    def test_cancelled_contracts_excluded(self, session, clock, make_terms, accounts):
        ledger = SimulatedLedgerProvider()
        service, contract = _seed(session, clock, make_terms, ledger, accounts, posted_months=0)
        service.cancel_contract(contract.id)

        report = TieOutService(session, ledger, accounts).run(TENANT, date(2024, 6, 30))
        assert report.balance_sheet.software_balance == Decimal("0.00")

    def test_missing_opening_balance_reported(self, session, clock, make_terms, accounts):
        service = ContractService(session, clock)
        service.create_contract(TENANT, "INV-7", make_terms("5000.00"), opening_balance_posted=False)

        report = TieOutService(session, SimulatedLedgerProvider(), accounts).run(TENANT, date(2024, 6, 30))
        assert report.missing_opening_balance.external_references == ("INV-7",)
        assert report.balance_sheet.matches

    def test_unavailable_balance_raises(self, session, clock, make_terms, accounts):
        ledger = _UnavailableLedger()
        _seed(session, clock, make_terms, ledger, accounts, posted_months=1)

        with pytest.raises(BalanceUnavailableError) as exc_info:
            TieOutService(session, ledger, accounts).run(TENANT, date(2024, 6, 30))
        assert exc_info.value.account_id == "2400"

    def test_account_mapping_required(self, session):
        with pytest.raises(AccountMappingMissingError):
            TieOutService(session, SimulatedLedgerProvider()).run(TENANT, date(2024, 6, 30))

    def test_account_mapping_from_config(self, session):
        service = TieOutService(session, SimulatedLedgerProvider(), config=get_active_config())
        report = service.run(TENANT, date(2024, 6, 30))
        assert report.overall_matches
