"""
revrec_services.journal_posting -- Submit adjustment entries to an external ledger.

Responsibility:
    Take a contract's unposted adjustment rows, post each through an
    AccountingProvider, mark the row posted with the external entry id,
    and log every attempt in JournalEntryLog.

Architecture position:
    Services -- I/O orchestration over revrec_engines.journal (shaping) and
    an AccountingProvider (transport).

Invariants enforced:
    - Rows are submitted in recognition-month order.
    - Processing stops at the first rejected entry.  Later rows stay
      unposted; success is never assumed.
    - Every attempt, accepted or rejected, produces a JournalEntryLog row
      in the caller's session.

Failure modes:
    - AccountMappingMissingError when no account mapping is configured.
    - PostingFailedError from ``PostingBatch.raise_for_failure()``.  The
      service itself does not raise for a rejected entry, so the caller can
      commit the attempt log first.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from revrec_engines.journal import AdjustmentPosting, posting_for
from revrec_kernel.domain.dtos import AccountMapping
from revrec_kernel.exceptions import AccountMappingMissingError, PostingFailedError
from revrec_kernel.logging_config import LogContext, get_logger
from revrec_kernel.models.audit import JournalEntryLog
from revrec_kernel.models.schedule import ScheduleEntryModel
from revrec_services.accounting_provider import AccountingProvider, JournalEntryResult

logger = get_logger("services.journal_posting")


@dataclass(frozen=True)
class PostingFailure:
    posting: AdjustmentPosting
    error: str


@dataclass(frozen=True)
class PostingBatch:
    """Outcome of submitting a run of postings."""

    entry_ids: tuple[str, ...] = ()
    failure: PostingFailure | None = None

    @property
    def success(self) -> bool:
        return self.failure is None

    def raise_for_failure(self) -> None:
        if self.failure is not None:
            raise PostingFailedError(
                self.failure.posting.posting_date,
                self.failure.posting.amount,
                self.failure.error,
            )


class JournalPostingService:
    """Posts adjustment rows and reversals through one provider."""

    def __init__(
        self,
        session: Session,
        provider: AccountingProvider,
        accounts: AccountMapping | None,
    ):
        self.session = session
        self.provider = provider
        self.accounts = accounts

    def require_accounts(self, tenant_id: str) -> AccountMapping:
        if self.accounts is None:
            raise AccountMappingMissingError(tenant_id)
        return self.accounts

    def submit(self, posting: AdjustmentPosting, tenant_id: str) -> JournalEntryResult:
        """Send one posting and record the attempt."""
        result = self.provider.post_adjustment_entry(
            posting.posting_date,
            posting.deferred_account_id,
            posting.revenue_account_id,
            posting.amount,
            posting.memo,
        )
        self.session.add(JournalEntryLog(
            tenant_id=tenant_id,
            contract_id=posting.contract_id,
            schedule_entry_id=posting.schedule_entry_id,
            platform=self.provider.platform,
            posting_date=posting.posting_date,
            amount=posting.amount,
            memo=posting.memo,
            success=result.success,
            external_entry_id=result.entry_id,
            error=result.error,
        ))
        log = logger.info if result.success else logger.error
        log(
            "journal_entry_posted" if result.success else "journal_entry_rejected",
            extra={
                "platform": self.provider.platform,
                "posting_date": posting.posting_date,
                "amount": str(posting.amount),
                "external_entry_id": result.entry_id,
                "error": result.error,
            },
        )
        return result

    def post_pending_adjustments(self, contract_id: UUID, tenant_id: str) -> PostingBatch:
        """Post every unposted adjustment row of a contract, oldest month first."""
        accounts = self.require_accounts(tenant_id)
        rows = self.session.scalars(
            select(ScheduleEntryModel)
            .where(
                ScheduleEntryModel.contract_id == contract_id,
                ScheduleEntryModel.is_adjustment.is_(True),
                ScheduleEntryModel.posted.is_(False),
            )
            .order_by(ScheduleEntryModel.recognition_month, ScheduleEntryModel.created_at)
        ).all()

        entry_ids: list[str] = []
        with LogContext.bind(tenant_id=tenant_id, contract_id=str(contract_id)):
            for row in rows:
                posting = posting_for(row.to_dto(), accounts)
                result = self.submit(posting, tenant_id)
                if not result.success:
                    self.session.flush()
                    return PostingBatch(
                        entry_ids=tuple(entry_ids),
                        failure=PostingFailure(posting, result.error or "unknown error"),
                    )
                row.posted = True
                row.journal_entry_id = result.entry_id
                entry_ids.append(result.entry_id)
            self.session.flush()

        return PostingBatch(entry_ids=tuple(entry_ids))

    def post_reversal(self, posting: AdjustmentPosting, tenant_id: str) -> PostingBatch:
        """Post a standalone reversal (no schedule row behind it)."""
        self.require_accounts(tenant_id)
        result = self.submit(posting, tenant_id)
        self.session.flush()
        if not result.success:
            return PostingBatch(failure=PostingFailure(posting, result.error or "unknown error"))
        return PostingBatch(entry_ids=(result.entry_id,))
