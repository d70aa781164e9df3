"""
Module: revrec_kernel.models.audit
Responsibility: Append-only audit trail of contract mutations and of every
    attempt to post an adjustment entry to an external ledger.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Both tables are append-only: any UPDATE or DELETE raises
      ImmutabilityViolationError (db/immutability.py).
    - A failed posting attempt is recorded just like a successful one.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from revrec_kernel.db.base import TrackedBase, UUIDString


class ContractAuditLog(TrackedBase):
    """One contract mutation (create, edit, cancel, delete) and its payload."""

    __tablename__ = "contract_audit_log"

    __table_args__ = (
        Index("idx_contract_audit_contract", "contract_id"),
    )

    tenant_id: Mapped[str] = mapped_column(String(100), nullable=False)
    contract_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    actor_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<ContractAuditLog {self.action} contract={self.contract_id}>"


class JournalEntryLog(TrackedBase):
    """One attempt to post an adjustment entry to an external ledger."""

    __tablename__ = "journal_entry_log"

    __table_args__ = (
        Index("idx_journal_log_schedule", "schedule_entry_id"),
    )

    tenant_id: Mapped[str] = mapped_column(String(100), nullable=False)
    contract_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    schedule_entry_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    platform: Mapped[str] = mapped_column(String(30), nullable=False)
    posting_date: Mapped[date] = mapped_column(nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    memo: Mapped[str] = mapped_column(Text, nullable=False, default="")
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    external_entry_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        state = "ok" if self.success else "failed"
        return f"<JournalEntryLog {self.posting_date} {self.amount} {state}>"
