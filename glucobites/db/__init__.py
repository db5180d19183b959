"""
Persistence Module

SQLAlchemy Core tables and the data store used by the report pipeline.
"""
from .store import AuditEntry, HealthDataStore, ScheduledRecipient, metadata

__all__ = [
    "AuditEntry",
    "HealthDataStore",
    "ScheduledRecipient",
    "metadata",
]
