"""Registry of accounting provider variants, keyed by platform name."""

from __future__ import annotations

from typing import ClassVar

from revrec_kernel.exceptions import UnsupportedPlatformError
from revrec_services.accounting_provider import AccountingProvider


class ProviderRegistry:
    """Class-level registry: platform name -> provider class."""

    _providers: ClassVar[dict[str, type[AccountingProvider]]] = {}

    @classmethod
    def register(cls, platform: str, provider_cls: type[AccountingProvider]) -> None:
        platform = platform.lower()
        if platform in cls._providers and cls._providers[platform] is not provider_cls:
            raise ValueError(
                f"Provider already registered for {platform}: "
                f"{cls._providers[platform].__name__}"
            )
        cls._providers[platform] = provider_cls

    @classmethod
    def get(cls, platform: str) -> type[AccountingProvider]:
        try:
            return cls._providers[platform.lower()]
        except KeyError:
            raise UnsupportedPlatformError(platform) from None

    @classmethod
    def platforms(cls) -> list[str]:
        return sorted(cls._providers)

    @classmethod
    def unregister(cls, platform: str) -> None:
        cls._providers.pop(platform.lower(), None)


def provider_for(platform: str):
    """Class decorator registering a provider variant for ``platform``."""

    def decorator(provider_cls: type[AccountingProvider]) -> type[AccountingProvider]:
        provider_cls.platform = platform
        ProviderRegistry.register(platform, provider_cls)
        return provider_cls

    return decorator


def get_accounting_provider(platform: str) -> AccountingProvider:
    """Instantiate the provider registered for ``platform``.

    Raises:
        UnsupportedPlatformError: if no variant is registered.
    """
    return ProviderRegistry.get(platform)()
