"""
Typed Exception Hierarchy for revenue recognition.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers must be able to tell "the operator picked an illegal adjustment
mode" apart from "the ledger rejected our journal entry" without parsing
message strings. Every error therefore:

  1. Has its own class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message)

Engines never raise these for caller-input failures. They return them as
values inside a ``Result`` (see ``revrec_kernel.domain.result``); the
service layer calls ``Result.unwrap()`` which raises the carried error at
the boundary.

    result = AdjustmentCalculator().catch_up(...)
    if not result.is_ok:
        return api_response(code=result.error.code, month=result.error.month)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    RevrecError (base)
    |
    +-- ScheduleError
    |   +-- InvalidTermError
    |   +-- InvalidAmountError
    |   +-- ScheduleEntryNotFoundError
    |
    +-- AdjustmentError
    |   +-- PostedScheduleExistsError
    |   +-- NoUnpostedMonthsError
    |   +-- MissingCatchUpMonthError
    |   +-- CatchUpMonthNotUnpostedError
    |
    +-- ContractError
    |   +-- InvalidContractDatesError
    |   +-- ContractNotFoundError
    |   +-- DuplicateExternalReferenceError
    |   +-- ContractNotActiveError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- IntegrationError
        +-- UnsupportedPlatformError
        +-- AccountMappingMissingError
        +-- PostingFailedError
        +-- BalanceUnavailableError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                         | When
-------------|------------------------------|-----------------------------------
Schedule     | INVALID_TERM                 | term_months is not a positive int
             | INVALID_AMOUNT               | amount is not a positive decimal
             | SCHEDULE_ENTRY_NOT_FOUND     | no original row for that month
-------------|------------------------------|-----------------------------------
Adjustment   | POSTED_SCHEDULE_EXISTS       | mode "none" with posted months
             | NO_UNPOSTED_MONTHS           | catch_up/prospective, nothing open
             | MISSING_CATCH_UP_MONTH       | catch_up without a target month
             | CATCH_UP_MONTH_NOT_UNPOSTED  | target month is not open
-------------|------------------------------|-----------------------------------
Contract     | INVALID_CONTRACT_DATES       | end date disagrees with the term
             | CONTRACT_NOT_FOUND           | unknown contract id
             | DUPLICATE_EXTERNAL_REFERENCE | reference reused within a tenant
             | CONTRACT_NOT_ACTIVE          | editing a cancelled contract
-------------|------------------------------|-----------------------------------
Immutability | IMMUTABILITY_VIOLATION       | rewriting/deleting a posted row
-------------|------------------------------|-----------------------------------
Concurrency  | OPTIMISTIC_LOCK_CONFLICT     | stale contract snapshot
-------------|------------------------------|-----------------------------------
Integration  | UNSUPPORTED_PLATFORM         | no provider registered
             | ACCOUNT_MAPPING_MISSING      | deferred/revenue accounts unset
             | POSTING_FAILED               | external ledger rejected an entry
             | BALANCE_UNAVAILABLE          | ledger could not report a balance

All of these are local and non-retryable except OPTIMISTIC_LOCK_CONFLICT
(reload the snapshot and recompute) and POSTING_FAILED (retry policy is
the caller's decision).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal


class RevrecError(Exception):
    """
    Base exception for all revenue recognition errors.

    All subclasses define a ``code`` class attribute for machine-readable
    identification.
    """

    code: str = "REVREC_ERROR"


# Schedule generation


class ScheduleError(RevrecError):
    """Base exception for schedule generation input errors."""

    code: str = "SCHEDULE_ERROR"


class InvalidTermError(ScheduleError):
    """Term must be a positive whole number of months."""

    code: str = "INVALID_TERM"

    def __init__(self, term_months: object):
        self.term_months = term_months
        super().__init__(
            f"Term must be a positive whole number of months, got {term_months!r}"
        )


class InvalidAmountError(ScheduleError):
    """Amount must be a positive, finite decimal."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount: object):
        self.amount = str(amount)
        super().__init__(f"Amount must be a positive finite decimal, got {amount!r}")


class ScheduleEntryNotFoundError(ScheduleError):
    """No original schedule row exists for the contract and month."""

    code: str = "SCHEDULE_ENTRY_NOT_FOUND"

    def __init__(self, contract_id: str, month: date):
        self.contract_id = contract_id
        self.month = month
        super().__init__(
            f"No schedule entry for contract {contract_id} in {month.isoformat()}"
        )


# Adjustment strategy preconditions


class AdjustmentError(RevrecError):
    """Base exception for adjustment strategy precondition failures."""

    code: str = "ADJUSTMENT_ERROR"


class PostedScheduleExistsError(AdjustmentError):
    """Mode "none" requested while posted months exist."""

    code: str = "POSTED_SCHEDULE_EXISTS"

    def __init__(self, posted_count: int):
        self.posted_count = posted_count
        super().__init__(
            f'Cannot use "none" mode when {posted_count} posted month(s) exist'
        )


class NoUnpostedMonthsError(AdjustmentError):
    """The strategy needs at least one unposted month to absorb the change."""

    code: str = "NO_UNPOSTED_MONTHS"

    def __init__(self, mode: str):
        self.mode = mode
        super().__init__(f"{mode} mode requires at least one unposted month")


class MissingCatchUpMonthError(AdjustmentError):
    """Catch-up mode requested without a target month."""

    code: str = "MISSING_CATCH_UP_MONTH"

    def __init__(self) -> None:
        super().__init__("Catch-up mode requires specifying a catch-up month")


class CatchUpMonthNotUnpostedError(AdjustmentError):
    """The designated catch-up month is not one of the open months."""

    code: str = "CATCH_UP_MONTH_NOT_UNPOSTED"

    def __init__(self, month: date):
        self.month = month
        super().__init__(
            f"Catch-up month {month.isoformat()} must be an unposted month"
        )


# Contract records


class ContractError(RevrecError):
    """Base exception for contract record errors."""

    code: str = "CONTRACT_ERROR"


class InvalidContractDatesError(ContractError):
    """End date is not consistent with start date plus term."""

    code: str = "INVALID_CONTRACT_DATES"

    def __init__(self, start_date: date, end_date: date, term_months: int, reason: str):
        self.start_date = start_date
        self.end_date = end_date
        self.term_months = term_months
        self.reason = reason
        super().__init__(
            f"Invalid contract dates {start_date.isoformat()}..{end_date.isoformat()} "
            f"for {term_months} month(s): {reason}"
        )


class ContractNotFoundError(ContractError):
    """Contract with the given id does not exist for the tenant."""

    code: str = "CONTRACT_NOT_FOUND"

    def __init__(self, contract_id: str):
        self.contract_id = contract_id
        super().__init__(f"Contract not found: {contract_id}")


class DuplicateExternalReferenceError(ContractError):
    """External reference already used by another contract of the tenant."""

    code: str = "DUPLICATE_EXTERNAL_REFERENCE"

    def __init__(self, tenant_id: str, external_reference: str):
        self.tenant_id = tenant_id
        self.external_reference = external_reference
        super().__init__(
            f'External reference "{external_reference}" already exists for tenant {tenant_id}'
        )


class ContractNotActiveError(ContractError):
    """Only active contracts can be edited or posted."""

    code: str = "CONTRACT_NOT_ACTIVE"

    def __init__(self, contract_id: str, status: str):
        self.contract_id = contract_id
        self.status = status
        super().__init__(f"Contract {contract_id} is {status}, expected active")


# Immutability


class ImmutabilityError(RevrecError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to rewrite or delete a posted schedule entry."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Cannot modify {entity_type} {entity_id}: {reason}")


# Concurrency


class ConcurrencyError(RevrecError):
    """Base exception for concurrency errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """The contract changed since the caller read its schedule snapshot."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, contract_id: str, expected_version: int, actual_version: int):
        self.contract_id = contract_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Contract {contract_id} was modified concurrently: "
            f"expected version {expected_version}, found {actual_version}"
        )


# External accounting platforms


class IntegrationError(RevrecError):
    """Base exception for accounting platform integration errors."""

    code: str = "INTEGRATION_ERROR"


class UnsupportedPlatformError(IntegrationError):
    """No provider is registered for the platform."""

    code: str = "UNSUPPORTED_PLATFORM"

    def __init__(self, platform: str):
        self.platform = platform
        super().__init__(f"Unsupported accounting platform: {platform}")


class AccountMappingMissingError(IntegrationError):
    """Deferred revenue / revenue account mapping is not configured."""

    code: str = "ACCOUNT_MAPPING_MISSING"

    def __init__(self, tenant_id: str):
        self.tenant_id = tenant_id
        super().__init__(f"Account mapping not configured for tenant {tenant_id}")


class PostingFailedError(IntegrationError):
    """The external ledger rejected an adjustment entry."""

    code: str = "POSTING_FAILED"

    def __init__(self, month: date, amount: Decimal, error: str):
        self.month = month
        self.amount = str(amount)
        self.error = error
        super().__init__(
            f"Failed to post adjustment entry for {month.isoformat()} ({amount}): {error}"
        )


class BalanceUnavailableError(IntegrationError):
    """The external ledger could not report an account balance."""

    code: str = "BALANCE_UNAVAILABLE"

    def __init__(self, account_id: str, error: str):
        self.account_id = account_id
        self.error = error
        super().__init__(f"Balance unavailable for account {account_id}: {error}")
