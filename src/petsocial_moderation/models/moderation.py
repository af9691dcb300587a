# src/petsocial_moderation/models/moderation.py
"""Models tracking moderation cases, decisions and tombstones."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from petsocial_moderation.db.ids import (
    ACTION_LOG_PREFIX,
    CASE_PREFIX,
    SOFT_DELETE_PREFIX,
    new_id,
)
from petsocial_moderation.db.session import Base
from petsocial_moderation.db.time import utcnow


class ModerationContentType(str, Enum):
    """Kinds of content that can be reported."""

    POST = "post"
    COMMENT = "comment"
    MEDIA = "media"
    WIKI_REVISION = "wiki_revision"


class ModerationPriority(str, Enum):
    """Case priority, escalated by report volume."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return PRIORITY_RANK[self]


PRIORITY_RANK: dict[ModerationPriority, int] = {
    ModerationPriority.LOW: 1,
    ModerationPriority.MEDIUM: 2,
    ModerationPriority.HIGH: 3,
    ModerationPriority.URGENT: 4,
}


class ModerationStatus(str, Enum):
    """Lifecycle of a case; ``resolved`` is terminal."""

    PENDING = "pending"
    IN_REVIEW = "in_review"
    RESOLVED = "resolved"


OPEN_STATUSES: tuple[ModerationStatus, ...] = (
    ModerationStatus.PENDING,
    ModerationStatus.IN_REVIEW,
)


class ModerationAction(str, Enum):
    """Decisions a moderator can apply to a case."""

    APPROVE = "approve"
    REJECT = "reject"
    REDACT = "redact"
    DELETE = "delete"


# Decisions that leave a soft-delete tombstone behind.
TOMBSTONE_ACTIONS: frozenset[ModerationAction] = frozenset(
    {ModerationAction.REDACT, ModerationAction.DELETE}
)


def _enum_column(enum_cls: type[Enum]) -> SAEnum:
    # Store the lowercase values, not the member names.
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=20,
        values_callable=lambda members: [member.value for member in members],
    )


class ModerationReport(Base):
    """A single user's report against a case.

    The composite key makes reporting a set union: the same reporter can
    never be counted twice for one case.
    """

    __tablename__ = "moderation_report"

    case_id: Mapped[str] = mapped_column(
        String(40),
        ForeignKey("moderation_case.id", ondelete="CASCADE"),
        primary_key=True,
    )
    reporter_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    reported_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class ModerationCase(Base):
    """Aggregated reports against one piece of content."""

    __tablename__ = "moderation_case"
    __table_args__ = (
        UniqueConstraint("content_type", "content_id", name="uq_moderation_case_content"),
        Index("ix_moderation_case_type_status", "content_type", "status"),
    )

    id: Mapped[str] = mapped_column(
        String(40), primary_key=True, default=lambda: new_id(CASE_PREFIX)
    )
    content_type: Mapped[ModerationContentType] = mapped_column(
        _enum_column(ModerationContentType), nullable=False
    )
    content_id: Mapped[str] = mapped_column(String(255), nullable=False)
    priority: Mapped[ModerationPriority] = mapped_column(
        _enum_column(ModerationPriority), nullable=False, default=ModerationPriority.LOW
    )
    # Always equal to the number of ModerationReport rows for the case.
    report_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    auto_flagged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    auto_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[ModerationStatus] = mapped_column(
        _enum_column(ModerationStatus), nullable=False, default=ModerationStatus.PENDING
    )
    assigned_to: Mapped[str | None] = mapped_column(String(255), nullable=True)
    justification: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    reports: Mapped[list[ModerationReport]] = relationship(
        order_by=ModerationReport.reported_at,
        lazy="selectin",
    )

    @property
    def reported_by(self) -> list[str]:
        """Reporter IDs in the order they reported."""
        return [report.reporter_id for report in self.reports]

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES


class ModerationActionLog(Base):
    """Immutable record of the one decision applied to a case."""

    __tablename__ = "moderation_action_log"

    id: Mapped[str] = mapped_column(
        String(40), primary_key=True, default=lambda: new_id(ACTION_LOG_PREFIX)
    )
    # Unique: a case is resolved at most once.
    queue_item_id: Mapped[str] = mapped_column(
        String(40),
        ForeignKey("moderation_case.id"),
        nullable=False,
        unique=True,
    )
    action: Mapped[ModerationAction] = mapped_column(
        _enum_column(ModerationAction), nullable=False
    )
    performed_by: Mapped[str] = mapped_column(String(255), nullable=False)
    justification: Mapped[str] = mapped_column(Text, nullable=False)
    metadata_: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class SoftDeleteRecord(Base):
    """Time-boxed tombstone for redacted or deleted content."""

    __tablename__ = "soft_delete_record"
    __table_args__ = (
        Index("ix_soft_delete_record_content", "content_type", "content_id"),
    )

    id: Mapped[str] = mapped_column(
        String(40), primary_key=True, default=lambda: new_id(SOFT_DELETE_PREFIX)
    )
    content_type: Mapped[ModerationContentType] = mapped_column(
        _enum_column(ModerationContentType), nullable=False
    )
    content_id: Mapped[str] = mapped_column(String(255), nullable=False)
    deleted_by: Mapped[str] = mapped_column(String(255), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    deleted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    # References the originating case and action.
    metadata_: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)
