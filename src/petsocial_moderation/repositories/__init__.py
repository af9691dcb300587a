"""Repositories wrapping direct database access."""

from .audit_repo import AuditLogRepository, AuditQueueRepository

__all__ = ["AuditLogRepository", "AuditQueueRepository"]
