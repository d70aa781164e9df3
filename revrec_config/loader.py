"""
Configuration Loader (``revrec_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into a frozen
``RevrecConfig``.  Runtime callers use ``revrec_config.get_active_config()``.

Invariants enforced
-------------------
* All parse errors raise ``ValueError`` with descriptive messages.
* Monetary thresholds are parsed from their string form into Decimal;
  a YAML float (``0.01`` unquoted) is converted through ``str`` so no
  binary representation error reaches the engines.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown top-level keys  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from revrec_config.schema import RevrecConfig
from revrec_kernel.domain.dtos import AccountMapping

_KNOWN_KEYS = frozenset({
    "reconciliation_tolerance",
    "noise_threshold",
    "database_url",
    "default_platform",
    "account_mapping",
    "log_level",
})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file and return its contents as a dict."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def parse_decimal(value: Any, name: str) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"{name}: cannot parse decimal from {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{name}: cannot parse decimal from {value!r}") from exc


def parse_account_mapping(data: dict[str, Any] | None) -> AccountMapping | None:
    if data is None:
        return None
    try:
        return AccountMapping(
            deferred_revenue_account_id=str(data["deferred_revenue_account_id"]),
            revenue_account_id=str(data["revenue_account_id"]),
            deferred_revenue_account_name=str(data.get("deferred_revenue_account_name", "")),
            revenue_account_name=str(data.get("revenue_account_name", "")),
        )
    except KeyError as exc:
        raise ValueError(f"account_mapping: missing required key {exc.args[0]!r}") from exc


def parse_config(data: dict[str, Any]) -> RevrecConfig:
    """Parse a ``RevrecConfig`` from a dict; missing keys take schema defaults."""
    unknown = set(data) - _KNOWN_KEYS
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    kwargs: dict[str, Any] = {}
    for name in ("reconciliation_tolerance", "noise_threshold"):
        if name in data:
            kwargs[name] = parse_decimal(data[name], name)
    for name in ("database_url", "default_platform", "log_level"):
        if name in data:
            kwargs[name] = str(data[name])
    if "account_mapping" in data:
        kwargs["account_mapping"] = parse_account_mapping(data["account_mapping"])
    return RevrecConfig(**kwargs)


def load_config(path: Path | str) -> RevrecConfig:
    """Load and validate a configuration file."""
    return parse_config(load_yaml_file(Path(path)))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
