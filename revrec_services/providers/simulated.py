"""
revrec_services.providers.simulated -- In-memory ledger standing in for a
connected accounting platform.

Each posting is kept in memory and balances are derived from them, so
tie-out runs against something that behaves like a ledger.  Registered
for ``quickbooks`` and ``xero`` until real API clients replace it.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from revrec_kernel.domain.money import quantize_money, sum_money, to_decimal
from revrec_kernel.logging_config import get_logger
from revrec_services.accounting_provider import (
    AccountingAccount,
    AccountingProvider,
    AccountType,
    BalanceResult,
    JournalEntryResult,
)
from revrec_services.providers.registry import provider_for

logger = get_logger("services.providers.simulated")

_DEFAULT_ACCOUNTS = (
    AccountingAccount("2400", "Deferred Revenue", AccountType.LIABILITY, "OtherCurrentLiabilities"),
    AccountingAccount("4000", "Subscription Revenue", AccountType.INCOME, "SalesOfProductIncome"),
    AccountingAccount("4100", "Services Revenue", AccountType.INCOME, "ServiceFeeIncome"),
    AccountingAccount("1100", "Accounts Receivable", AccountType.ASSET, "AccountsReceivable"),
)


@dataclass(frozen=True)
class SimulatedPosting:
    entry_id: str
    posting_date: date
    deferred_account_id: str
    revenue_account_id: str
    amount: Decimal
    memo: str


class SimulatedLedgerProvider(AccountingProvider):
    """
    In-memory ledger.

    Deferred balance = opening balances - postings (both up to ``as_of``).
    Revenue balance = postings dated within the requested window.

    ``reject_when`` lets callers simulate a platform refusing an entry: it
    receives the posting and returns an error message, or None to accept.
    """

    entry_prefix = "SIM-JE"

    def __init__(self, reject_when: Callable[[SimulatedPosting], str | None] | None = None):
        self.postings: list[SimulatedPosting] = []
        self.opening_balances: list[tuple[str, date, Decimal]] = []
        self._reject_when = reject_when
        self._sequence = itertools.count(1)

    def get_accounts(self) -> list[AccountingAccount]:
        return list(_DEFAULT_ACCOUNTS)

    def record_opening_balance(self, account_id: str, as_of: date, amount: Decimal) -> None:
        """Invoice-time credit to deferred revenue for a new contract."""
        self.opening_balances.append((account_id, as_of, quantize_money(amount)))

    def post_adjustment_entry(
        self,
        posting_date: date,
        deferred_account_id: str,
        revenue_account_id: str,
        amount: Decimal,
        memo: str,
    ) -> JournalEntryResult:
        posting = SimulatedPosting(
            entry_id=f"{self.entry_prefix}-{next(self._sequence):06d}",
            posting_date=posting_date,
            deferred_account_id=deferred_account_id,
            revenue_account_id=revenue_account_id,
            amount=quantize_money(to_decimal(amount)),
            memo=memo,
        )
        if self._reject_when is not None:
            error = self._reject_when(posting)
            if error:
                logger.warning(
                    "simulated_posting_rejected",
                    extra={"platform": self.platform, "posting_date": posting_date, "error": error},
                )
                return JournalEntryResult(success=False, error=error)

        self.postings.append(posting)
        logger.info(
            "simulated_posting_recorded",
            extra={
                "platform": self.platform,
                "entry_id": posting.entry_id,
                "posting_date": posting_date,
                "amount": str(posting.amount),
            },
        )
        return JournalEntryResult(success=True, entry_id=posting.entry_id)

    def get_deferred_balance(self, account_id: str, as_of: date) -> BalanceResult:
        opening = sum_money(
            amount for acct, when, amount in self.opening_balances
            if acct == account_id and when <= as_of
        )
        recognized = sum_money(
            p.amount for p in self.postings
            if p.deferred_account_id == account_id and p.posting_date <= as_of
        )
        return BalanceResult(success=True, balance=opening - recognized)

    def get_revenue_balance(self, account_id: str, start: date, end: date) -> BalanceResult:
        revenue = sum_money(
            p.amount for p in self.postings
            if p.revenue_account_id == account_id and start <= p.posting_date <= end
        )
        return BalanceResult(success=True, balance=revenue)


@provider_for("quickbooks")
class SimulatedQuickBooksProvider(SimulatedLedgerProvider):
    entry_prefix = "QB-JE"


@provider_for("xero")
class SimulatedXeroProvider(SimulatedLedgerProvider):
    entry_prefix = "XERO-JE"
