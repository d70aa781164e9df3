"""Accounting provider variants.  Importing this package registers them."""

from revrec_services.providers.registry import (
    ProviderRegistry,
    get_accounting_provider,
    provider_for,
)
from revrec_services.providers.simulated import (
    SimulatedLedgerProvider,
    SimulatedPosting,
    SimulatedQuickBooksProvider,
    SimulatedXeroProvider,
)

__all__ = [
    "ProviderRegistry",
    "SimulatedLedgerProvider",
    "SimulatedPosting",
    "SimulatedQuickBooksProvider",
    "SimulatedXeroProvider",
    "get_accounting_provider",
    "provider_for",
]
