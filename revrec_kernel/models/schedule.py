"""
Module: revrec_kernel.models.schedule
Responsibility: ORM persistence for recognition schedule rows (original
    months and adjustment entries).
Architecture position: Kernel > Models.  May import from db/base.py and
    the pure domain DTOs it converts to and from.

Invariants enforced:
    - Partial UNIQUE(contract_id, recognition_month) WHERE NOT is_adjustment:
      no two original rows claim the same month.  Adjustment rows may share
      a month with the original they correct.
    - Posted rows are immutable (see db/immutability.py).  The only allowed
      UPDATE is the posting transition itself (posted False -> True plus
      journal_entry_id).
    - ``adjusts_schedule_id`` is a plain id column with no relationship(): the
      corrected row is never loaded or mutated through it.

Failure modes:
    - IntegrityError on a second original row for the same month.
    - ImmutabilityViolationError on UPDATE/DELETE of a posted row.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from revrec_kernel.db.base import TrackedBase, UUIDString
from revrec_kernel.domain.dtos import AdjustmentType, ScheduleEntry


class ScheduleEntryModel(TrackedBase):
    """One recognition row of a contract schedule."""

    __tablename__ = "recognition_schedules"

    contract_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("contracts.id", ondelete="CASCADE"),
        nullable=False,
    )
    tenant_id: Mapped[str] = mapped_column(String(100), nullable=False)

    recognition_month: Mapped[date] = mapped_column(nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)

    posted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    journal_entry_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    is_adjustment: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    adjusts_schedule_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    adjustment_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    contract = relationship("ContractModel", back_populates="schedule_entries")

    def __repr__(self) -> str:
        kind = "adj" if self.is_adjustment else "orig"
        return (
            f"<ScheduleEntry {self.recognition_month} {self.amount} {kind} "
            f"posted={self.posted}>"
        )

    def to_dto(self) -> ScheduleEntry:
        """Convert ORM model to frozen domain DTO."""
        return ScheduleEntry(
            id=self.id,
            contract_id=self.contract_id,
            recognition_month=self.recognition_month,
            amount=Decimal(self.amount),
            posted=self.posted,
            is_adjustment=self.is_adjustment,
            adjusts_schedule_id=self.adjusts_schedule_id,
            adjustment_type=(
                AdjustmentType(self.adjustment_type) if self.adjustment_type else None
            ),
            reason=self.reason,
            journal_entry_id=self.journal_entry_id,
        )

    @classmethod
    def from_dto(cls, dto: ScheduleEntry, tenant_id: str) -> ScheduleEntryModel:
        """Create ORM model from domain DTO."""
        model = cls(
            contract_id=dto.contract_id,
            tenant_id=tenant_id,
            recognition_month=dto.recognition_month,
            amount=dto.amount,
            posted=dto.posted,
            is_adjustment=dto.is_adjustment,
            adjusts_schedule_id=dto.adjusts_schedule_id,
            adjustment_type=dto.adjustment_type.value if dto.adjustment_type else None,
            reason=dto.reason,
            journal_entry_id=dto.journal_entry_id,
        )
        if dto.id is not None:
            model.id = dto.id
        return model


Index(
    "uq_schedule_original_month",
    ScheduleEntryModel.contract_id,
    ScheduleEntryModel.recognition_month,
    unique=True,
    sqlite_where=ScheduleEntryModel.is_adjustment == false(),
    postgresql_where=ScheduleEntryModel.is_adjustment == false(),
)
Index(
    "idx_schedule_tenant_month",
    ScheduleEntryModel.tenant_id,
    ScheduleEntryModel.recognition_month,
)
