# src/petsocial_moderation/models/audit.py
"""Models for the cross-system audit trail and its retry queue."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from petsocial_moderation.db.ids import AUDIT_PREFIX, new_id
from petsocial_moderation.db.session import Base
from petsocial_moderation.db.time import utcnow


class AuditFields:
    """Columns shared by audit log rows and queued audit writes."""

    id: Mapped[str] = mapped_column(
        String(40), primary_key=True, default=lambda: new_id(AUDIT_PREFIX)
    )
    actor_id: Mapped[str] = mapped_column(String(255), nullable=False)
    # Free-form, e.g. "moderation.delete" or "bulk_decision".
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    target_type: Mapped[str] = mapped_column(String(100), nullable=False)
    target_id: Mapped[str] = mapped_column(String(255), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    metadata_: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class AuditLogEntry(AuditFields, Base):
    """Append-only record of a moderation or admin action."""

    __tablename__ = "audit_log"
    __table_args__ = (
        Index("ix_audit_log_actor", "actor_id"),
        Index("ix_audit_log_target", "target_type", "target_id"),
        Index("ix_audit_log_action", "action"),
        Index("ix_audit_log_created_at", "created_at"),
    )


class AuditQueueEntry(AuditFields, Base):
    """Audit write that could not reach the primary log and awaits replay."""

    __tablename__ = "audit_queue"
    __table_args__ = (Index("ix_audit_queue_attempts_created", "attempts", "created_at"),)

    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_attempt: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
