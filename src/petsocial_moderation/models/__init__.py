# src/petsocial_moderation/models/__init__.py
"""SQLAlchemy models for the moderation service."""

from .audit import AuditLogEntry, AuditQueueEntry
from .moderation import (
    ModerationAction,
    ModerationActionLog,
    ModerationCase,
    ModerationContentType,
    ModerationPriority,
    ModerationReport,
    ModerationStatus,
    SoftDeleteRecord,
)

__all__ = [
    "AuditLogEntry", "AuditQueueEntry",
    "ModerationAction", "ModerationActionLog", "ModerationCase",
    "ModerationContentType", "ModerationPriority", "ModerationReport",
    "ModerationStatus",
    "SoftDeleteRecord",
]
