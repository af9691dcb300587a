"""Audit trail services.

Writes go to the primary ``audit_log`` table. When that store fails, the
write is parked in ``audit_queue`` and replayed later by
:class:`~petsocial_moderation.services.audit_queue.AuditQueueProcessor`.
Audit failures are reported through :class:`AuditWriteResult`; they are never
raised to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from petsocial_moderation.db.time import Clock, utcnow
from petsocial_moderation.models import (
    AuditLogEntry,
    AuditQueueEntry,
    ModerationActionLog,
    ModerationCase,
)
from petsocial_moderation.models.audit import AuditFields
from petsocial_moderation.repositories.audit_repo import (
    AuditLogRepository,
    AuditQueueRepository,
)

logger = logging.getLogger(__name__)

DEFAULT_QUERY_LIMIT = 100


@dataclass(frozen=True)
class AuditWriteResult:
    """Outcome of a single audit write.

    ``queued=True`` means the action is recorded but not yet durable in the
    primary log. ``success=False`` only when the queue write failed as well.
    """

    success: bool
    log_id: str | None = None
    queued: bool = False
    error: str | None = None


@dataclass(frozen=True)
class AuditLogFilters:
    """Search criteria for :meth:`AuditLogQueries.search_audit_logs`."""

    actor_id: str | None = None
    action: str | None = None
    target_type: str | None = None
    target_id: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class AuditLogWriter:
    """Records actions in the audit log with a queue fallback."""

    def __init__(
        self,
        db: Session,
        *,
        logs: AuditLogRepository | None = None,
        queue: AuditQueueRepository | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.db = db
        self.logs = logs or AuditLogRepository(db)
        self.queue = queue or AuditQueueRepository(db)
        self.clock = clock

    def write_audit(
        self,
        actor_id: str,
        action: str,
        target_type: str,
        target_id: str,
        reason: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditWriteResult:
        """Append one audit entry, queueing it if the primary store fails.

        Args:
            actor_id: User or moderator who performed the action.
            action: Free-form action name, e.g. ``"moderation.delete"``.
            target_type: Kind of entity affected.
            target_id: Identifier of the entity affected.
            reason: Optional human-readable reason.
            metadata: Optional JSON-serialisable context.

        Returns:
            The write outcome. No retries happen inline.
        """
        fields: dict[str, Any] = {
            "actor_id": actor_id,
            "action": action,
            "target_type": target_type,
            "target_id": target_id,
            "reason": reason or None,
            "metadata_": metadata or None,
            "created_at": self.clock(),
        }

        try:
            log_id = self._write(self.logs.add, fields)
        except SQLAlchemyError as exc:
            logger.error("Failed to write audit log directly: %s", exc)
        else:
            return AuditWriteResult(success=True, log_id=log_id, queued=False)

        try:
            queued_id = self._write(self.queue.add, fields)
        except SQLAlchemyError as exc:
            logger.error("Failed to queue audit log: %s", exc)
            return AuditWriteResult(
                success=False,
                error=f"Both audit log and queue failed: {exc}",
            )

        logger.warning("Audit log queued: %s", queued_id)
        return AuditWriteResult(success=True, log_id=queued_id, queued=True)

    def record_moderation_decision(
        self,
        action_log: ModerationActionLog,
        case: ModerationCase,
    ) -> AuditWriteResult:
        """Mirror an applied moderation decision into the general audit trail."""
        return self.write_audit(
            actor_id=action_log.performed_by,
            action=f"moderation.{action_log.action.value}",
            target_type=case.content_type.value,
            target_id=case.content_id,
            reason=action_log.justification,
            metadata={
                "action_log_id": action_log.id,
                "queue_item_id": case.id,
                "ai_score": case.ai_score,
                "report_count": case.report_count,
            },
        )

    def _write(self, insert: Callable[..., AuditFields], fields: dict[str, Any]) -> str:
        # The savepoint keeps a failed insert from poisoning the caller's session.
        try:
            with self.db.begin_nested():
                entry_id = insert(**fields).id
            self.db.commit()
        except SQLAlchemyError:
            if not self.db.is_active:
                self.db.rollback()
            raise
        return entry_id


class AuditLogQueries:
    """Read access to the audit trail for audit consumers."""

    def __init__(self, db: Session, *, logs: AuditLogRepository | None = None) -> None:
        self.db = db
        self.logs = logs or AuditLogRepository(db)

    def get_audit_logs_by_actor(
        self, actor_id: str, limit: int = DEFAULT_QUERY_LIMIT
    ) -> list[AuditLogEntry]:
        return self.logs.find(actor_id=actor_id, limit=limit)

    def get_audit_logs_by_target(
        self, target_type: str, target_id: str, limit: int = DEFAULT_QUERY_LIMIT
    ) -> list[AuditLogEntry]:
        return self.logs.find(target_type=target_type, target_id=target_id, limit=limit)

    def get_audit_logs_by_action(
        self, action: str, limit: int = DEFAULT_QUERY_LIMIT
    ) -> list[AuditLogEntry]:
        return self.logs.find(action=action, limit=limit)

    def search_audit_logs(
        self, filters: AuditLogFilters, limit: int = DEFAULT_QUERY_LIMIT
    ) -> list[AuditLogEntry]:
        """Filter by any combination of fields; the date range is inclusive."""
        return self.logs.find(
            actor_id=filters.actor_id,
            action=filters.action,
            target_type=filters.target_type,
            target_id=filters.target_id,
            start_date=filters.start_date,
            end_date=filters.end_date,
            limit=limit,
        )

    def get_audit_queue_entries(self) -> list[AuditQueueEntry]:
        """Every queued entry, oldest first, including exhausted ones."""
        return AuditQueueRepository(self.db).list_all()
