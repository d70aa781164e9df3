"""
Result -- Explicit success-or-error return value.

Responsibility:
    Pure calculation functions report caller-input failures by returning a
    failed Result instead of raising.  The error is a typed ``RevrecError``
    instance (code + structured attributes); it is only raised when the
    caller at the boundary decides to, via ``unwrap()``.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Exactly one of ``value`` / ``error`` is meaningful: a failed Result
      never carries a partial value, so a strategy either produces a full,
      consistent plan or nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from revrec_kernel.exceptions import RevrecError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a pure calculation.

    Contract:
        Either contains a value OR an error, never both.

    Guarantees:
        - Immutable (frozen dataclass)
        - bool(result) == result.is_ok for convenience
    """

    value: T | None = None
    error: RevrecError | None = None

    @classmethod
    def success(cls, value: T) -> Result[T]:
        """Create a successful result."""
        return cls(value=value, error=None)

    @classmethod
    def failure(cls, error: RevrecError) -> Result[T]:
        """Create a failed result carrying a typed error."""
        return cls(value=None, error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.is_ok

    def unwrap(self) -> T:
        """Return the value, or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
