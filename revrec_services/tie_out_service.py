"""
revrec_services.tie_out_service -- Reconcile the schedule against an
external ledger.

Loads a tenant's active contracts and their schedule rows, asks the
provider for the deferred revenue balance at ``as_of`` and the revenue
recognized year-to-date, and hands both to ReconciliationEngine.

A provider that cannot report a balance is an error.  The report never
substitutes the expected figure for a missing external one.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from revrec_config.schema import RevrecConfig
from revrec_engines.reconciliation import ReconciliationEngine, TieOutReport
from revrec_kernel.domain.dtos import AccountMapping, ContractStatus
from revrec_kernel.exceptions import AccountMappingMissingError, BalanceUnavailableError
from revrec_kernel.logging_config import LogContext, get_logger
from revrec_kernel.models.contract import ContractModel
from revrec_kernel.models.schedule import ScheduleEntryModel
from revrec_services.accounting_provider import AccountingProvider

logger = get_logger("services.tie_out")


class TieOutService:
    def __init__(
        self,
        session: Session,
        provider: AccountingProvider,
        accounts: AccountMapping | None = None,
        config: RevrecConfig | None = None,
    ):
        self.session = session
        self.provider = provider
        self.config = config or RevrecConfig()
        self.accounts = accounts or self.config.account_mapping
        self.engine = ReconciliationEngine(self.config.reconciliation_tolerance)

    def run(self, tenant_id: str, as_of: date) -> TieOutReport:
        """Tie out ``tenant_id``'s schedule as of ``as_of``.

        Raises:
            AccountMappingMissingError: no account mapping configured.
            BalanceUnavailableError: the provider could not report a balance.
        """
        if self.accounts is None:
            raise AccountMappingMissingError(tenant_id)
        period_start = date(as_of.year, 1, 1)

        with LogContext.bind(tenant_id=tenant_id):
            models = self.session.scalars(
                select(ContractModel).where(
                    ContractModel.tenant_id == tenant_id,
                    ContractModel.status == ContractStatus.ACTIVE.value,
                )
            ).all()
            contracts = [m.to_dto() for m in models]
            ids = [c.id for c in contracts]
            entries = []
            if ids:
                entries = [
                    row.to_dto() for row in self.session.scalars(
                        select(ScheduleEntryModel).where(
                            ScheduleEntryModel.contract_id.in_(ids),
                        )
                    ).all()
                ]

            deferred = self.provider.get_deferred_balance(
                self.accounts.deferred_revenue_account_id, as_of,
            )
            if not deferred.success or deferred.balance is None:
                raise BalanceUnavailableError(
                    self.accounts.deferred_revenue_account_id,
                    deferred.error or "no balance returned",
                )
            revenue = self.provider.get_revenue_balance(
                self.accounts.revenue_account_id, period_start, as_of,
            )
            if not revenue.success or revenue.balance is None:
                raise BalanceUnavailableError(
                    self.accounts.revenue_account_id,
                    revenue.error or "no balance returned",
                )

            logger.info(
                "tie_out_started",
                extra={
                    "platform": self.provider.platform,
                    "as_of": as_of,
                    "contract_count": len(contracts),
                    "entry_count": len(entries),
                },
            )
            return self.engine.tie_out(
                contracts,
                entries,
                as_of,
                deferred.balance,
                revenue.balance,
                period_start=period_start,
            )
