"""Soft-delete tombstones and their retention window."""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from petsocial_moderation.core.settings import settings
from petsocial_moderation.db.time import Clock, utcnow
from petsocial_moderation.models import (
    ModerationAction,
    ModerationCase,
    ModerationContentType,
    SoftDeleteRecord,
)

logger = logging.getLogger(__name__)


class RetentionManager:
    """Creates tombstones for removed content and purges expired ones."""

    def __init__(
        self,
        db: Session,
        *,
        retention_days: int | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.db = db
        self.retention = timedelta(days=retention_days or settings.soft_delete_retention_days)
        self.clock = clock

    def create_tombstone(
        self,
        case: ModerationCase,
        action: ModerationAction,
        deleted_by: str,
        reason: str,
    ) -> SoftDeleteRecord:
        """Add a tombstone for the case's content to the current transaction.

        The caller owns the commit, so the tombstone lands atomically with
        the decision that produced it.
        """
        deleted_at = self.clock()
        record = SoftDeleteRecord(
            content_type=case.content_type,
            content_id=case.content_id,
            deleted_by=deleted_by,
            reason=reason,
            deleted_at=deleted_at,
            expires_at=deleted_at + self.retention,
            metadata_={"queue_item_id": case.id, "action": action.value},
        )
        self.db.add(record)
        self.db.flush()
        return record

    def cleanup_expired_soft_deletes(self) -> int:
        """Hard-delete every tombstone whose ``expires_at`` has passed.

        Returns:
            Number of records removed; 0 when nothing has expired.
        """
        result = self.db.execute(
            delete(SoftDeleteRecord)
            .where(SoftDeleteRecord.expires_at < self.clock())
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        deleted = result.rowcount or 0
        if deleted:
            logger.info("Purged %d expired soft-delete records", deleted)
        return deleted

    def get_soft_delete_records(
        self, content_type: ModerationContentType | None = None
    ) -> list[SoftDeleteRecord]:
        stmt = select(SoftDeleteRecord)
        if content_type is not None:
            stmt = stmt.where(SoftDeleteRecord.content_type == content_type)
        stmt = stmt.order_by(SoftDeleteRecord.deleted_at.desc(), SoftDeleteRecord.id)
        return list(self.db.scalars(stmt))

    def is_soft_deleted(self, content_type: ModerationContentType, content_id: str) -> bool:
        """True while an unexpired tombstone exists for the content."""
        stmt = (
            select(SoftDeleteRecord.id)
            .where(
                SoftDeleteRecord.content_type == content_type,
                SoftDeleteRecord.content_id == content_id,
                SoftDeleteRecord.expires_at >= self.clock(),
            )
            .limit(1)
        )
        return self.db.scalar(stmt) is not None
