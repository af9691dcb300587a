"""Data access helpers for the audit log and its retry queue."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from petsocial_moderation.db.time import as_utc
from petsocial_moderation.models.audit import AuditLogEntry, AuditQueueEntry

__all__ = ["AuditLogRepository", "AuditQueueRepository"]


class AuditLogRepository:
    """Primary, append-only audit store."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, **fields: Any) -> AuditLogEntry:
        """Insert an audit log row and flush so its id is assigned."""
        entry = AuditLogEntry(**fields)
        self.session.add(entry)
        self.session.flush()
        return entry

    def find(
        self,
        *,
        actor_id: str | None = None,
        action: str | None = None,
        target_type: str | None = None,
        target_id: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int = 100,
    ) -> list[AuditLogEntry]:
        """Return matching rows, newest first.

        Date bounds are compared in UTC; naive bounds are taken as UTC.
        """
        stmt = select(AuditLogEntry)
        if actor_id:
            stmt = stmt.where(AuditLogEntry.actor_id == actor_id)
        if action:
            stmt = stmt.where(AuditLogEntry.action == action)
        if target_type:
            stmt = stmt.where(AuditLogEntry.target_type == target_type)
        if target_id:
            stmt = stmt.where(AuditLogEntry.target_id == target_id)
        if start_date is not None:
            stmt = stmt.where(AuditLogEntry.created_at >= as_utc(start_date))
        if end_date is not None:
            stmt = stmt.where(AuditLogEntry.created_at <= as_utc(end_date))
        stmt = stmt.order_by(AuditLogEntry.created_at.desc(), AuditLogEntry.id).limit(limit)
        return list(self.session.scalars(stmt))


class AuditQueueRepository:
    """Staging store for audit writes awaiting replay."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, **fields: Any) -> AuditQueueEntry:
        """Queue an audit write with a fresh retry budget."""
        entry = AuditQueueEntry(attempts=0, **fields)
        self.session.add(entry)
        self.session.flush()
        return entry

    def list_all(self) -> list[AuditQueueEntry]:
        stmt = select(AuditQueueEntry).order_by(AuditQueueEntry.created_at, AuditQueueEntry.id)
        return list(self.session.scalars(stmt))

    def pending(self, max_attempts: int) -> list[AuditQueueEntry]:
        """Return replayable entries, oldest first."""
        stmt = (
            select(AuditQueueEntry)
            .where(AuditQueueEntry.attempts < max_attempts)
            .order_by(AuditQueueEntry.created_at, AuditQueueEntry.id)
        )
        return list(self.session.scalars(stmt))

    def claim(self, entry_id: str) -> bool:
        """Delete the entry; False if another sweep already took it."""
        result = self.session.execute(
            delete(AuditQueueEntry)
            .where(AuditQueueEntry.id == entry_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def record_failure(self, entry_id: str, attempted_at: datetime) -> None:
        self.session.execute(
            update(AuditQueueEntry)
            .where(AuditQueueEntry.id == entry_id)
            .values(attempts=AuditQueueEntry.attempts + 1, last_attempt=attempted_at)
            .execution_options(synchronize_session=False)
        )

    def purge_exhausted(self, max_attempts: int) -> int:
        """Hard-delete entries whose retry budget is spent."""
        result = self.session.execute(
            delete(AuditQueueEntry)
            .where(AuditQueueEntry.attempts >= max_attempts)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
