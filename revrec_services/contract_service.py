"""
revrec_services.contract_service -- Contract lifecycle and schedule edits.

Responsibility:
    Create contracts with their recognition schedule, record month-by-month
    posting, preview and apply edits under an adjustment mode, cancel, and
    delete with a reversal of the remaining deferred balance.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Composes ScheduleGenerator, ValidationGuard, AdjustmentCalculator and
    preview_edit (pure engines) with the SQLAlchemy session.

Invariants enforced:
    - An edit reads, recomputes and writes a contract's schedule as one
      unit inside the caller's transaction.  The contract row is locked
      (SELECT ... FOR UPDATE where supported) and its ``version`` is
      compared with the caller's expected version before anything is
      written.
    - Posted rows are never updated or deleted (ORM listeners back this).
    - Every mutation appends a ContractAuditLog row.

Failure modes:
    - ContractNotFoundError, ContractNotActiveError,
      DuplicateExternalReferenceError.
    - OptimisticLockError on a stale expected_version.
    - Any engine error carried in a failed Result, raised via unwrap().

Usage:
    with session_scope() as session:
        service = ContractService(session, clock)
        terms = ContractTerms.create("12000.00", date(2024, 1, 1), 12).unwrap()
        contract = service.create_contract("acme", "INV-1001", terms)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from revrec_config.schema import RevrecConfig
from revrec_engines.adjustment import AdjustmentCalculator, AdjustmentPlan, AdjustmentRequest
from revrec_engines.guard import ValidationGuard
from revrec_engines.journal import remaining_deferred, reversal_for_delete
from revrec_engines.preview import EditPreview, preview_edit
from revrec_engines.schedule import ScheduleGenerator
from revrec_kernel.domain.clock import Clock, SystemClock
from revrec_kernel.domain.dtos import (
    AdjustmentMode,
    Contract,
    ContractStatus,
    ContractTerms,
    ScheduleEntry,
)
from revrec_kernel.domain.months import month_key
from revrec_kernel.exceptions import (
    ContractNotActiveError,
    ContractNotFoundError,
    DuplicateExternalReferenceError,
    ImmutabilityViolationError,
    OptimisticLockError,
    ScheduleEntryNotFoundError,
)
from revrec_kernel.logging_config import LogContext, get_logger
from revrec_kernel.models.audit import ContractAuditLog
from revrec_kernel.models.contract import ContractModel
from revrec_kernel.models.schedule import ScheduleEntryModel
from revrec_services.journal_posting import JournalPostingService, PostingBatch

logger = get_logger("services.contract")


@dataclass(frozen=True)
class EditResult:
    contract: Contract
    plan: AdjustmentPlan


@dataclass(frozen=True)
class DeleteResult:
    """
    Outcome of delete_with_reversal.

    ``deleted`` is False when the reversal was rejected; nothing was removed
    in that case and ``raise_for_failure()`` raises PostingFailedError.
    """

    contract_id: UUID
    remaining_balance: Decimal
    reversal: PostingBatch | None
    deleted: bool
    retained_as_cancelled: bool = False

    def raise_for_failure(self) -> None:
        if self.reversal is not None:
            self.reversal.raise_for_failure()


def _terms_snapshot(amount: Decimal, start: date, end: date, term: int) -> dict:
    return {
        "amount": str(amount),
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "term_months": term,
    }


class ContractService:
    """Contract lifecycle over one SQLAlchemy session."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: RevrecConfig | None = None,
        actor_id: str | None = None,
    ):
        self.session = session
        self.clock = clock or SystemClock()
        self.config = config or RevrecConfig()
        self.actor_id = actor_id
        self.generator = ScheduleGenerator()
        self.guard = ValidationGuard()
        self.calculator = AdjustmentCalculator(
            self.generator, noise_threshold=self.config.noise_threshold,
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def _load(self, contract_id: UUID, for_update: bool = False) -> ContractModel:
        stmt = select(ContractModel).where(ContractModel.id == contract_id)
        if for_update:
            stmt = stmt.with_for_update()
        model = self.session.scalars(stmt).one_or_none()
        if model is None:
            raise ContractNotFoundError(str(contract_id))
        return model

    def _rows(self, contract_id: UUID) -> list[ScheduleEntryModel]:
        return list(self.session.scalars(
            select(ScheduleEntryModel)
            .where(ScheduleEntryModel.contract_id == contract_id)
            .order_by(
                ScheduleEntryModel.recognition_month,
                ScheduleEntryModel.is_adjustment,
                ScheduleEntryModel.created_at,
            )
        ).all())

    def get_contract(self, contract_id: UUID) -> Contract:
        return self._load(contract_id).to_dto()

    def get_schedule(self, contract_id: UUID) -> list[ScheduleEntry]:
        """Every row of the contract's schedule, month order, originals first."""
        self._load(contract_id)
        return [row.to_dto() for row in self._rows(contract_id)]

    def _ensure_unique_reference(
        self, tenant_id: str, external_reference: str, exclude_id: UUID | None = None,
    ) -> None:
        stmt = select(ContractModel.id).where(
            ContractModel.tenant_id == tenant_id,
            ContractModel.external_reference == external_reference,
        )
        if exclude_id is not None:
            stmt = stmt.where(ContractModel.id != exclude_id)
        if self.session.scalars(stmt).first() is not None:
            raise DuplicateExternalReferenceError(tenant_id, external_reference)

    def _audit(self, model: ContractModel, action: str, **details) -> None:
        self.session.add(ContractAuditLog(
            tenant_id=model.tenant_id,
            contract_id=model.id,
            action=action,
            actor_id=self.actor_id,
            details=details,
        ))

    # =========================================================================
    # Create / post
    # =========================================================================

    def create_contract(
        self,
        tenant_id: str,
        external_reference: str,
        terms: ContractTerms,
        customer_name: str | None = None,
        description: str | None = None,
        opening_balance_posted: bool | None = None,
    ) -> Contract:
        """Persist a contract and its fresh, fully unposted schedule."""
        self._ensure_unique_reference(tenant_id, external_reference)

        model = ContractModel(
            tenant_id=tenant_id,
            external_reference=external_reference,
            customer_name=customer_name,
            description=description,
            amount=terms.amount,
            start_date=terms.start_date,
            end_date=terms.end_date,
            term_months=terms.term_months,
            status=ContractStatus.ACTIVE.value,
            opening_balance_posted=opening_balance_posted,
            version=1,
        )
        self.session.add(model)
        self.session.flush()

        entries = self.generator.build(model.id, terms).unwrap()
        for entry in entries:
            self.session.add(ScheduleEntryModel.from_dto(entry, tenant_id))

        self._audit(
            model, "created",
            **_terms_snapshot(terms.amount, terms.start_date, terms.end_date, terms.term_months),
        )
        self.session.flush()

        logger.info(
            "contract_created",
            extra={
                "tenant_id": tenant_id,
                "contract_id": str(model.id),
                "external_reference": external_reference,
                "amount": str(terms.amount),
                "term_months": terms.term_months,
            },
        )
        return model.to_dto()

    def mark_posted(self, contract_id: UUID, month: date, journal_entry_id: str) -> ScheduleEntry:
        """Flip the original row for ``month`` to posted.  One way only."""
        model = self._load(contract_id)
        month = month_key(month)
        row = self.session.scalars(
            select(ScheduleEntryModel).where(
                ScheduleEntryModel.contract_id == contract_id,
                ScheduleEntryModel.recognition_month == month,
                ScheduleEntryModel.is_adjustment.is_(False),
            )
        ).one_or_none()
        if row is None:
            raise ScheduleEntryNotFoundError(str(contract_id), month)
        if row.posted:
            raise ImmutabilityViolationError(
                entity_type="ScheduleEntry",
                entity_id=str(row.id),
                reason="Schedule entry is already posted",
            )

        row.posted = True
        row.journal_entry_id = journal_entry_id
        self._audit(
            model, "month_posted",
            month=month.isoformat(), journal_entry_id=journal_entry_id,
        )
        self.session.flush()
        logger.info(
            "schedule_month_posted",
            extra={"contract_id": str(contract_id), "month": month, "journal_entry_id": journal_entry_id},
        )
        return row.to_dto()

    # =========================================================================
    # Edit
    # =========================================================================

    def preview_edit(
        self,
        contract_id: UUID,
        terms: ContractTerms,
        mode: AdjustmentMode,
        catch_up_month: date | None = None,
    ) -> EditPreview:
        model = self._load(contract_id)
        entries = [row.to_dto() for row in self._rows(contract_id)]
        return preview_edit(
            model.to_dto(), entries, terms, mode, catch_up_month,
            generator=self.generator,
            noise_threshold=self.config.noise_threshold,
        ).unwrap()

    def edit_contract(
        self,
        contract_id: UUID,
        terms: ContractTerms,
        mode: AdjustmentMode,
        catch_up_month: date | None = None,
        expected_version: int | None = None,
    ) -> EditResult:
        """
        Apply new terms under ``mode``.

        Steps: lock + version check, guard, calculate, delete unposted rows,
        insert the plan's rows, update the contract, audit.  Any failure
        raises before the session is written to.
        """
        mode = AdjustmentMode(mode)
        model = self._load(contract_id, for_update=True)

        with LogContext.bind(
            tenant_id=model.tenant_id, contract_id=str(contract_id), actor_id=self.actor_id,
        ):
            if model.status != ContractStatus.ACTIVE.value:
                raise ContractNotActiveError(str(contract_id), model.status)
            if expected_version is not None and model.version != expected_version:
                raise OptimisticLockError(str(contract_id), expected_version, model.version)

            rows = self._rows(contract_id)
            entries = tuple(row.to_dto() for row in rows)
            self.guard.check_entries(mode, entries, catch_up_month).unwrap()

            reference = terms.external_reference or model.external_reference
            if reference != model.external_reference:
                self._ensure_unique_reference(model.tenant_id, reference, exclude_id=model.id)

            plan = self.calculator.calculate(mode, AdjustmentRequest(
                contract_id=model.id,
                terms=terms,
                entries=entries,
                today=self.clock.today(),
                reference=reference,
                catch_up_month=catch_up_month,
            )).unwrap()

            # Deletes must reach the database before the replacement rows
            # claim the same months.
            for row in rows:
                if not row.posted:
                    self.session.delete(row)
            self.session.flush()

            for entry in plan.entries:
                self.session.add(ScheduleEntryModel.from_dto(entry, model.tenant_id))

            before = _terms_snapshot(model.amount, model.start_date, model.end_date, model.term_months)
            model.amount = terms.amount
            model.start_date = terms.start_date
            model.end_date = terms.end_date
            model.term_months = terms.term_months
            model.external_reference = reference
            model.version += 1

            self._audit(
                model, "updated",
                mode=mode.value,
                before=before,
                after=_terms_snapshot(terms.amount, terms.start_date, terms.end_date, terms.term_months),
                adjustment_count=len(plan.adjustment_entries),
                adjustment_total=str(plan.adjustment_total),
                review_months=[m.isoformat() for m in plan.review_months],
                catch_up_month=catch_up_month.isoformat() if catch_up_month else None,
            )
            self.session.flush()

            logger.info(
                "contract_edited",
                extra={
                    "mode": mode.value,
                    "version": model.version,
                    "adjustment_count": len(plan.adjustment_entries),
                    "unposted_count": len(plan.unposted_entries),
                },
            )
            if plan.review_months:
                logger.warning(
                    "contract_edit_needs_review",
                    extra={"review_months": [m.isoformat() for m in plan.review_months]},
                )

        return EditResult(contract=model.to_dto(), plan=plan)

    # =========================================================================
    # Cancel / delete
    # =========================================================================

    def _delete_unposted(self, contract_id: UUID) -> int:
        removed = 0
        for row in self._rows(contract_id):
            if not row.posted:
                self.session.delete(row)
                removed += 1
        return removed

    def cancel_contract(self, contract_id: UUID) -> Contract:
        """Status cancelled; unposted rows removed, posted history kept."""
        model = self._load(contract_id, for_update=True)
        previous = model.status
        removed = self._delete_unposted(contract_id)
        model.status = ContractStatus.CANCELLED.value
        self._audit(
            model, "cancelled",
            old_status=previous, removed_unposted=removed,
        )
        self.session.flush()
        logger.info(
            "contract_cancelled",
            extra={"contract_id": str(contract_id), "removed_unposted": removed},
        )
        return model.to_dto()

    def delete_with_reversal(
        self,
        contract_id: UUID,
        posting_service: JournalPostingService,
    ) -> DeleteResult:
        """
        Reverse the remaining deferred balance in the external ledger, then
        delete the contract.

        A contract with posted rows cannot be removed without deleting
        posted history, so it is kept with status ``cancelled`` instead.
        """
        model = self._load(contract_id, for_update=True)
        contract = model.to_dto()
        entries = [row.to_dto() for row in self._rows(contract_id)]
        remaining = remaining_deferred(contract, entries)

        batch = None
        if remaining > self.config.noise_threshold:
            accounts = posting_service.require_accounts(model.tenant_id)
            posting = reversal_for_delete(
                contract, entries, self.clock.today(), accounts,
                threshold=self.config.noise_threshold,
            )
            if posting is not None:
                batch = posting_service.post_reversal(posting, model.tenant_id)
                if not batch.success:
                    logger.error(
                        "contract_delete_aborted",
                        extra={"contract_id": str(contract_id), "error": batch.failure.error},
                    )
                    return DeleteResult(contract.id, remaining, batch, deleted=False)

        has_posted = any(e.posted for e in entries)
        self._delete_unposted(contract_id)
        self._audit(
            model, "deleted",
            external_reference=model.external_reference,
            amount=str(model.amount),
            old_status=model.status,
            remaining_balance=str(remaining),
            reversal_entry_ids=list(batch.entry_ids) if batch else [],
        )
        if has_posted:
            model.status = ContractStatus.CANCELLED.value
        else:
            self.session.flush()
            self.session.delete(model)
        self.session.flush()

        logger.info(
            "contract_deleted",
            extra={
                "contract_id": str(contract_id),
                "remaining_balance": str(remaining),
                "retained_as_cancelled": has_posted,
            },
        )
        return DeleteResult(
            contract.id, remaining, batch, deleted=True, retained_as_cancelled=has_posted,
        )
