"""
revrec_config -- Runtime configuration.

``get_active_config()`` is the single public entrypoint.  Services receive
the returned ``RevrecConfig`` at construction time and never read files
or environment variables themselves.
"""

from __future__ import annotations

from pathlib import Path

from revrec_config.loader import compute_checksum, load_config
from revrec_config.schema import RevrecConfig
from revrec_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULTS_FILE = Path(__file__).parent / "defaults.yaml"


def get_active_config(path: Path | str | None = None) -> RevrecConfig:
    """Load configuration from ``path``, or the packaged defaults.

    Emits a REVREC_CONFIG_TRACE record carrying the config checksum.

    Raises:
        FileNotFoundError: if ``path`` does not exist.
        ValueError: if the configuration is invalid.
    """
    source = Path(path) if path is not None else _DEFAULTS_FILE
    config = load_config(source)
    _logger.info(
        "REVREC_CONFIG_TRACE",
        extra={
            "trace_type": "REVREC_CONFIG_TRACE",
            "source": str(source),
            "checksum": compute_checksum(config.as_dict()),
            "default_platform": config.default_platform,
        },
    )
    return config


__all__ = [
    "RevrecConfig",
    "compute_checksum",
    "get_active_config",
    "load_config",
]
