"""
Module: revrec_kernel.models.contract
Responsibility: ORM persistence for customer contracts.
Architecture position: Kernel > Models.  May import from db/base.py and
    the pure domain DTOs it converts to and from.

Invariants enforced:
    - UNIQUE(tenant_id, external_reference): one contract per reference
      per tenant.
    - ``version`` increments on every edit; services compare it against
      the caller's expected version before applying an adjustment plan.

Failure modes:
    - IntegrityError on duplicate (tenant_id, external_reference).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from revrec_kernel.db.base import TrackedBase
from revrec_kernel.domain.dtos import Contract as ContractDTO
from revrec_kernel.domain.dtos import ContractStatus


class ContractModel(TrackedBase):
    """
    A tenant's contract with its total amount and recognition term.

    Non-goals:
        - Does NOT validate that end_date agrees with the term; that is done
          by ContractTerms.create before a row is ever written.
    """

    __tablename__ = "contracts"

    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "external_reference",
            name="uq_contract_tenant_reference",
        ),
        Index("idx_contract_tenant_status", "tenant_id", "status"),
    )

    tenant_id: Mapped[str] = mapped_column(String(100), nullable=False)
    external_reference: Mapped[str] = mapped_column(String(100), nullable=False)
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    amount: Mapped[Decimal] = mapped_column(nullable=False)
    start_date: Mapped[date] = mapped_column(nullable=False)
    end_date: Mapped[date] = mapped_column(nullable=False)
    term_months: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ContractStatus.ACTIVE.value,
    )

    # None means "unknown"; only an explicit False excludes the contract
    # from expected deferred balances.
    opening_balance_posted: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    schedule_entries = relationship(
        "ScheduleEntryModel",
        back_populates="contract",
        order_by="ScheduleEntryModel.recognition_month",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return (
            f"<Contract {self.external_reference} {self.amount} "
            f"{self.term_months}m status={self.status} v{self.version}>"
        )

    def to_dto(self) -> ContractDTO:
        """Convert ORM model to frozen domain DTO."""
        return ContractDTO(
            id=self.id,
            tenant_id=self.tenant_id,
            external_reference=self.external_reference,
            amount=Decimal(self.amount),
            start_date=self.start_date,
            end_date=self.end_date,
            term_months=self.term_months,
            status=ContractStatus(self.status),
            opening_balance_posted=self.opening_balance_posted,
            customer_name=self.customer_name,
            description=self.description,
            version=self.version,
        )
