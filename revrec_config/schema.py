"""
Configuration schema (``revrec_config.schema``).

Frozen dataclasses describing the effective runtime configuration.
Validated in ``__post_init__``; invalid values raise ``ValueError`` with a
descriptive message.  No I/O happens here.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from revrec_kernel.domain.dtos import AccountMapping

SUPPORTED_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class RevrecConfig:
    """
    Effective configuration for the revenue recognition services.

    Guarantees:
        - ``reconciliation_tolerance`` and ``noise_threshold`` are
          non-negative Decimals (never float).
        - ``default_platform`` and ``log_level`` are normalized strings.
    """

    reconciliation_tolerance: Decimal = Decimal("0.01")
    noise_threshold: Decimal = Decimal("0.01")
    database_url: str = "sqlite:///:memory:"
    default_platform: str = "quickbooks"
    account_mapping: AccountMapping | None = None
    log_level: str = "INFO"

    def __post_init__(self):
        for name in ("reconciliation_tolerance", "noise_threshold"):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                raise ValueError(f"{name} must be a Decimal, got {type(value).__name__}")
            if value < 0:
                raise ValueError(f"{name} cannot be negative")
        if not self.database_url:
            raise ValueError("database_url is required")
        if not self.default_platform:
            raise ValueError("default_platform is required")
        object.__setattr__(self, "default_platform", self.default_platform.lower())
        level = self.log_level.upper()
        if level not in SUPPORTED_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(SUPPORTED_LOG_LEVELS)}, got {self.log_level!r}"
            )
        object.__setattr__(self, "log_level", level)

    def as_dict(self) -> dict:
        mapping = None
        if self.account_mapping is not None:
            mapping = {
                "deferred_revenue_account_id": self.account_mapping.deferred_revenue_account_id,
                "revenue_account_id": self.account_mapping.revenue_account_id,
                "deferred_revenue_account_name": self.account_mapping.deferred_revenue_account_name,
                "revenue_account_name": self.account_mapping.revenue_account_name,
            }
        return {
            "reconciliation_tolerance": str(self.reconciliation_tolerance),
            "noise_threshold": str(self.noise_threshold),
            "database_url": self.database_url,
            "default_platform": self.default_platform,
            "account_mapping": mapping,
            "log_level": self.log_level,
        }
