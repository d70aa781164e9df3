"""
revrec_services -- Package init and public API.

Responsibility:
    Stateful orchestration services that compose the pure engines
    (revrec_engines/) with database sessions, the clock, and external
    accounting providers.  This is the only layer that may hold a session
    or read wall-clock time.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

        revrec_services/ -> revrec_engines/  (allowed)
        revrec_services/ -> revrec_kernel/   (allowed)
        revrec_engines/  -> revrec_services/ (FORBIDDEN)
        revrec_kernel/   -> revrec_services/ (FORBIDDEN)

Failure modes:
    - ImportError at startup if a service's dependency graph is broken.
"""

from revrec_kernel.logging_config import get_logger

logger = get_logger("services")

from revrec_services.accounting_provider import (  # noqa: E402
    AccountingAccount,
    AccountingProvider,
    AccountType,
    BalanceResult,
    JournalEntryResult,
)
from revrec_services.contract_service import (  # noqa: E402
    ContractService,
    DeleteResult,
    EditResult,
)
from revrec_services.journal_posting import (  # noqa: E402
    JournalPostingService,
    PostingBatch,
    PostingFailure,
)
from revrec_services.providers import (  # noqa: E402
    ProviderRegistry,
    SimulatedLedgerProvider,
    SimulatedQuickBooksProvider,
    SimulatedXeroProvider,
    get_accounting_provider,
)
from revrec_services.tie_out_service import TieOutService  # noqa: E402

__all__ = [
    "AccountType",
    "AccountingAccount",
    "AccountingProvider",
    "BalanceResult",
    "ContractService",
    "DeleteResult",
    "EditResult",
    "JournalEntryResult",
    "JournalPostingService",
    "PostingBatch",
    "PostingFailure",
    "ProviderRegistry",
    "SimulatedLedgerProvider",
    "SimulatedQuickBooksProvider",
    "SimulatedXeroProvider",
    "TieOutService",
    "get_accounting_provider",
]
