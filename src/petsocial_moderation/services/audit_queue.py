"""Replay of audit writes that could not reach the primary audit log."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from petsocial_moderation.core.settings import settings
from petsocial_moderation.db.time import Clock, utcnow
from petsocial_moderation.models import AuditQueueEntry
from petsocial_moderation.repositories.audit_repo import (
    AuditLogRepository,
    AuditQueueRepository,
)

logger = logging.getLogger(__name__)

_REPLAYED_FIELDS = (
    "id",
    "actor_id",
    "action",
    "target_type",
    "target_id",
    "reason",
    "metadata_",
    "created_at",
)


class AuditQueueProcessor:
    """Drains ``audit_queue`` into ``audit_log``.

    Meant to be triggered on a schedule (cron or the maintenance worker).
    Each entry is handled in its own savepoint and committed on its own, so
    an interrupted sweep never leaves a half-replayed entry behind.
    """

    def __init__(
        self,
        db: Session,
        *,
        logs: AuditLogRepository | None = None,
        queue: AuditQueueRepository | None = None,
        max_attempts: int | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.db = db
        self.logs = logs or AuditLogRepository(db)
        self.queue = queue or AuditQueueRepository(db)
        self.max_attempts = max_attempts or settings.audit_queue_max_attempts
        self.clock = clock

    def process_audit_queue(self) -> int:
        """Replay queued entries oldest first.

        Returns:
            Number of entries written to the primary audit log.
        """
        try:
            # Snapshot rows up front; commits below expire ORM state.
            entries = [_snapshot(entry) for entry in self.queue.pending(self.max_attempts)]
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to load audit queue: %s", exc, exc_info=True)
            return 0

        logger.debug("Found %d queued audit entries", len(entries))
        processed = 0
        for fields in entries:
            if self._replay(fields):
                processed += 1

        try:
            dropped = self.queue.purge_exhausted(self.max_attempts)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to purge exhausted audit entries: %s", exc, exc_info=True)
            return processed

        if dropped:
            logger.warning(
                "Deleted %d queued audit entries that exceeded %d attempts",
                dropped,
                self.max_attempts,
            )
        return processed

    def _replay(self, fields: dict[str, Any]) -> bool:
        entry_id = fields["id"]
        try:
            with self.db.begin_nested():
                if not self.queue.claim(entry_id):
                    logger.debug("Audit entry %s already replayed elsewhere", entry_id)
                    return False
                # Original id and created_at are preserved.
                self.logs.add(**fields)
            self.db.commit()
            return True
        except SQLAlchemyError as exc:
            if not self.db.is_active:
                self.db.rollback()
            logger.error("Failed to process queued audit entry %s: %s", entry_id, exc)

        try:
            self.queue.record_failure(entry_id, self.clock())
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to record replay attempt for %s: %s", entry_id, exc)
        return False


def _snapshot(entry: AuditQueueEntry) -> dict[str, Any]:
    return {name: getattr(entry, name) for name in _REPLAYED_FIELDS}
