# src/petsocial_moderation/services/__init__.py
"""Business logic services for the moderation pipeline."""

from .audit import AuditLogFilters, AuditLogQueries, AuditLogWriter, AuditWriteResult
from .audit_queue import AuditQueueProcessor
from .content import ContentRegistry, ContentResolver
from .moderation import BulkResult, DecisionRequest, ModerationDecisionEngine
from .moderation_queue import (
    ModerationQueueStore,
    Pagination,
    QueueQuery,
    ReportOptions,
    ReportOutcome,
)
from .retention import RetentionManager

__all__ = [
    "AuditLogFilters", "AuditLogQueries", "AuditLogWriter", "AuditWriteResult",
    "AuditQueueProcessor",
    "ContentRegistry", "ContentResolver",
    "BulkResult", "DecisionRequest", "ModerationDecisionEngine",
    "ModerationQueueStore", "Pagination", "QueueQuery", "ReportOptions", "ReportOutcome",
    "RetentionManager",
]
