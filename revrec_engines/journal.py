"""
Module: revrec_engines.journal
Responsibility:
    Shape schedule rows into postings an external ledger accepts, and expand
    the signed-amount convention into a balanced debit/credit pair.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Produces data only; the
    service layer decides whether and when to submit it.

Invariants enforced:
    - posting_date is the last day of the entry's recognition month.
    - Positive amount: debit deferred revenue, credit revenue.
      Negative amount: debit revenue, credit deferred revenue.
    - journal_lines() always returns two lines of equal absolute amount.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from revrec_kernel.domain.dtos import AccountMapping, Contract, ScheduleEntry
from revrec_kernel.domain.money import NOISE_THRESHOLD, is_noise, sum_money
from revrec_kernel.domain.months import month_end


class LineSide(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


@dataclass(frozen=True)
class AdjustmentPosting:
    """
    One journal entry request for an external ledger.

    Contract:
        Field-for-field the arguments of
        ``AccountingProvider.post_adjustment_entry``.
    """

    posting_date: date
    deferred_account_id: str
    revenue_account_id: str
    amount: Decimal
    memo: str
    contract_id: UUID | None = None
    schedule_entry_id: UUID | None = None


@dataclass(frozen=True)
class JournalLine:
    account_id: str
    side: LineSide
    amount: Decimal


def posting_for(entry: ScheduleEntry, accounts: AccountMapping) -> AdjustmentPosting:
    """Posting request for a schedule row, dated at its month end."""
    return AdjustmentPosting(
        posting_date=month_end(entry.recognition_month),
        deferred_account_id=accounts.deferred_revenue_account_id,
        revenue_account_id=accounts.revenue_account_id,
        amount=entry.amount,
        memo=entry.reason or "",
        contract_id=entry.contract_id,
        schedule_entry_id=entry.id,
    )


def journal_lines(posting: AdjustmentPosting) -> tuple[JournalLine, JournalLine]:
    """Balanced debit/credit pair for a signed posting amount."""
    amount = abs(posting.amount)
    if posting.amount >= 0:
        debit_account, credit_account = posting.deferred_account_id, posting.revenue_account_id
    else:
        debit_account, credit_account = posting.revenue_account_id, posting.deferred_account_id
    return (
        JournalLine(debit_account, LineSide.DEBIT, amount),
        JournalLine(credit_account, LineSide.CREDIT, amount),
    )


def remaining_deferred(contract: Contract, entries: Iterable[ScheduleEntry]) -> Decimal:
    """Contract amount not yet recognized through posted rows (adjustments included)."""
    recognized = sum_money(
        e.amount for e in entries if e.posted and e.contract_id == contract.id
    )
    return contract.amount - recognized


def reversal_for_delete(
    contract: Contract,
    entries: Iterable[ScheduleEntry],
    posting_date: date,
    accounts: AccountMapping,
    threshold: Decimal = NOISE_THRESHOLD,
) -> AdjustmentPosting | None:
    """
    Posting that takes a deleted contract's remaining deferred balance off
    the books, or None when nothing meaningful remains.
    """
    remaining = remaining_deferred(contract, entries)
    if remaining <= 0 or is_noise(remaining, threshold):
        return None
    return AdjustmentPosting(
        posting_date=posting_date,
        deferred_account_id=accounts.deferred_revenue_account_id,
        revenue_account_id=accounts.revenue_account_id,
        amount=-remaining,
        memo=f"Waterfall Reversal - Contract {contract.external_reference} deleted",
        contract_id=contract.id,
    )
