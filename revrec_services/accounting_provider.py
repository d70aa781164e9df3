"""
revrec_services.accounting_provider -- External ledger capability.

Responsibility:
    The one interface through which the services talk to an external
    accounting platform: list accounts, post an adjustment journal entry,
    and read the deferred-revenue and revenue balances used by tie-out.

Architecture position:
    Services -- integration boundary.  Concrete platforms are variants
    registered in ``revrec_services.providers``; callers depend on this
    interface only.

Invariants enforced:
    - Amount sign convention: positive increases recognized revenue (debit
      deferred / credit revenue); negative reverses it.
    - ``post_adjustment_entry`` reports failure as a result value; it does
      not raise for a rejected entry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class AccountType(str, Enum):
    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    INCOME = "Income"
    EXPENSE = "Expense"


@dataclass(frozen=True)
class AccountingAccount:
    id: str
    name: str
    account_type: AccountType
    account_sub_type: str = ""


@dataclass(frozen=True)
class JournalEntryResult:
    success: bool
    entry_id: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class BalanceResult:
    success: bool
    balance: Decimal | None = None
    error: str | None = None


class AccountingProvider(ABC):
    """
    Capability interface implemented once per accounting platform.

    Non-goals:
        - OAuth and token lifecycle.  A provider is handed to the services
          already connected.
    """

    platform: str = ""

    @abstractmethod
    def get_accounts(self) -> list[AccountingAccount]:
        ...

    @abstractmethod
    def post_adjustment_entry(
        self,
        posting_date: date,
        deferred_account_id: str,
        revenue_account_id: str,
        amount: Decimal,
        memo: str,
    ) -> JournalEntryResult:
        ...

    @abstractmethod
    def get_deferred_balance(self, account_id: str, as_of: date) -> BalanceResult:
        """Balance-sheet balance of the deferred revenue account at ``as_of``."""

    @abstractmethod
    def get_revenue_balance(self, account_id: str, start: date, end: date) -> BalanceResult:
        """P&L revenue recognized in the account between ``start`` and ``end``."""
