"""ORM models for revenue recognition persistence."""

from revrec_kernel.models.audit import ContractAuditLog, JournalEntryLog
from revrec_kernel.models.contract import ContractModel
from revrec_kernel.models.schedule import ScheduleEntryModel

__all__ = [
    "ContractAuditLog",
    "ContractModel",
    "JournalEntryLog",
    "ScheduleEntryModel",
]
