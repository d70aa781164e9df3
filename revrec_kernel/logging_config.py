"""
Module: revrec_kernel.logging_config
Responsibility: One JSON line per log record for everything under the
    ``revrec`` logger namespace, tagged with the tenant, contract and actor
    the current operation works on.
Architecture position: Kernel.  Imported by every other layer; imports
    nothing from the project except the exception base class.

Invariants enforced:
    - Context fields are limited to ``LOG_CONTEXT_FIELDS``; binding any
      other name is a programming error (TypeError).
    - Money (Decimal), ids (UUID) and dates serialize as strings, so amounts
      are never rendered through float.
    - A RevrecError attached to a record contributes its ``code`` and its
      structured attributes as ``exc_*`` fields.

Usage:
    logger = get_logger("services.contract")
    with LogContext.bind(tenant_id="acme", contract_id=str(contract.id)):
        logger.info("contract_edited", extra={"mode": "retroactive"})
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any, Iterator
from uuid import UUID

from revrec_kernel.exceptions import RevrecError

__all__ = [
    "LOG_CONTEXT_FIELDS",
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

LOG_CONTEXT_FIELDS = ("tenant_id", "contract_id", "actor_id")

_LOGGER_PREFIX = "revrec"

_context: ContextVar[dict[str, str]] = ContextVar("revrec_log_context", default={})


class LogContext:
    """Per-task (contextvar) fields stamped onto every record."""

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set({})

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[None]:
        """Add fields for the duration of the block; None values are skipped."""
        unknown = set(fields) - set(LOG_CONTEXT_FIELDS)
        if unknown:
            raise TypeError(f"Unknown log context fields: {', '.join(sorted(unknown))}")
        merged = {**_context.get(), **{k: str(v) for k, v in fields.items() if v is not None}}
        token = _context.set(merged)
        try:
            yield
        finally:
            _context.reset(token)


_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    # Decimal, UUID and anything else.
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    if isinstance(exc, RevrecError):
        fields["exc_code"] = exc.code
        for name, value in vars(exc).items():
            if not name.startswith("_"):
                fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Renders a record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        # Fields passed through ``extra=``.
        payload.update(
            (key, value) for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in payload
        )
        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``revrec`` namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``revrec`` logger.

    Idempotent: once a handler is attached, later calls are no-ops until
    ``reset_logging``.  ``level`` accepts a name (``RevrecConfig.log_level``)
    or a number.
    """
    root = logging.getLogger(_LOGGER_PREFIX)
    if root.handlers:
        return
    handler = handler or logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False


def reset_logging() -> None:
    """Detach handlers and restore defaults.  Tests only."""
    root = logging.getLogger(_LOGGER_PREFIX)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    root.propagate = True
