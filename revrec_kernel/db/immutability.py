"""
ORM-Level Immutability Enforcement.

Posted recognition history must be tamper-proof: a posted schedule row is
never rewritten in place.  Corrections are expressed as new adjustment rows
that reference the corrected row.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events and check our invariants:

    session.flush()
         |
         v
    [before_update event] --> _check_*_immutability() --> ImmutabilityViolationError
         |                                                        ^
         v                                                        |
    [before_delete event] --> _check_*_delete() -----------------+
         |
         v
    SQL sent to database (only if checks pass)

PROTECTED ENTITIES

Entity               | When Immutable          | Allowed change
---------------------|-------------------------|------------------------------
ScheduleEntryModel   | After posted = True     | The posting transition itself
ContractAuditLog     | ALWAYS                  | updated_at only
JournalEntryLog      | ALWAYS                  | updated_at only

WHY CHECK "WAS POSTED" NOT "IS POSTED"?
   The posting workflow itself must set posted=True and journal_entry_id.
   We allow that transition but block any change after it has been flushed,
   using SQLAlchemy attribute history.

Usage:
    from revrec_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # init_engine_from_url() does this

    # In tests that must violate the rules on purpose:
    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from revrec_kernel.exceptions import ImmutabilityViolationError
from revrec_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = frozenset({"updated_at"})
_POSTING_FIELDS = frozenset({"posted", "journal_entry_id"})


def _blocked(entity_type: str, entity_id: str, operation: str, reason: str, **extra) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "operation": operation,
            **extra,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=entity_id,
        reason=reason,
    )


def _check_schedule_entry_immutability(mapper, connection, target):
    """
    Prevent updates to posted schedule rows.

    Logic:
        1. posted changing True -> anything: block.
        2. posted unchanged and True: block any non-audit field change.
        3. posted changing False -> True: allow, but only together with the
           posting fields (posted, journal_entry_id).
    """
    posted_history = get_history(target, "posted")

    if posted_history.deleted:
        was_posted_before = bool(posted_history.deleted[0])
        becoming_posted = bool(posted_history.added and posted_history.added[0])
    else:
        was_posted_before = bool(target.posted) and not posted_history.added
        becoming_posted = False

    if not (was_posted_before or becoming_posted):
        return

    allowed = _AUDIT_FIELDS | (_POSTING_FIELDS if becoming_posted and not was_posted_before else frozenset())
    for attr in inspect(target).attrs:
        if attr.key in allowed:
            continue
        if attr.history.has_changes():
            _blocked(
                "ScheduleEntry",
                str(target.id),
                "UPDATE",
                f"Cannot modify field '{attr.key}' on posted schedule entry",
                field=attr.key,
            )


def _check_schedule_entry_delete(mapper, connection, target):
    """Posted schedule rows cannot be deleted."""
    posted_history = get_history(target, "posted")
    was_posted = bool(posted_history.deleted[0]) if posted_history.deleted else bool(target.posted)
    if was_posted:
        _blocked(
            "ScheduleEntry",
            str(target.id),
            "DELETE",
            "Posted schedule entries cannot be deleted",
        )


def _check_append_only_update(mapper, connection, target):
    """Audit rows are append-only; any content change is blocked."""
    for attr in inspect(target).attrs:
        if attr.key in _AUDIT_FIELDS:
            continue
        if attr.history.has_changes():
            _blocked(
                type(target).__name__,
                str(target.id),
                "UPDATE",
                "Audit records are append-only",
                field=attr.key,
            )


def _check_append_only_delete(mapper, connection, target):
    _blocked(
        type(target).__name__,
        str(target.id),
        "DELETE",
        "Audit records cannot be deleted",
    )


def _listener_table():
    from revrec_kernel.models.audit import ContractAuditLog, JournalEntryLog
    from revrec_kernel.models.schedule import ScheduleEntryModel

    return (
        (ScheduleEntryModel, "before_update", _check_schedule_entry_immutability),
        (ScheduleEntryModel, "before_delete", _check_schedule_entry_delete),
        (ContractAuditLog, "before_update", _check_append_only_update),
        (ContractAuditLog, "before_delete", _check_append_only_delete),
        (JournalEntryLog, "before_update", _check_append_only_update),
        (JournalEntryLog, "before_delete", _check_append_only_delete),
    )


def register_immutability_listeners():
    """Register all immutability enforcement event listeners (idempotent)."""
    for target, event_name, listener_fn in _listener_table():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate immutability rules to verify detection.
    """
    for target, event_name, listener_fn in _listener_table():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
