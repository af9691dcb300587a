"""Tests for soft-delete tombstones and their expiry."""

from datetime import timedelta

from sqlalchemy import func, select

from petsocial_moderation.models import ModerationAction, ModerationContentType, SoftDeleteRecord
from petsocial_moderation.services.retention import RetentionManager


def _tombstone(db_session, clock, content_id: str, *, content_type=ModerationContentType.POST, days=90):
    record = SoftDeleteRecord(
        content_type=content_type,
        content_id=content_id,
        deleted_by="mod-1",
        reason="Spam",
        deleted_at=clock(),
        expires_at=clock() + timedelta(days=days),
    )
    db_session.add(record)
    db_session.commit()
    return record


def _remaining(db_session) -> list[str]:
    return sorted(db_session.scalars(select(SoftDeleteRecord.content_id)))


def test_create_tombstone_uses_retention_window(
    queue_store, db_session, clock
) -> None:
    case = queue_store.add_to_moderation_queue("comment", "c1", "u1")
    manager = RetentionManager(db_session, retention_days=30, clock=clock)

    record = manager.create_tombstone(case, ModerationAction.DELETE, "mod-1", "Abuse")

    assert record.expires_at - record.deleted_at == timedelta(days=30)
    assert record.content_type is ModerationContentType.COMMENT
    assert record.metadata_["queue_item_id"] == case.id


def test_cleanup_removes_only_expired_records(db_session, clock, retention) -> None:
    _tombstone(db_session, clock, "old", days=1)
    _tombstone(db_session, clock, "new", days=90)

    clock.advance(days=2)
    deleted = retention.cleanup_expired_soft_deletes()

    assert deleted == 1
    assert _remaining(db_session) == ["new"]


def test_cleanup_with_nothing_expired_is_a_no_op(db_session, clock, retention) -> None:
    _tombstone(db_session, clock, "p1")

    assert retention.cleanup_expired_soft_deletes() == 0
    assert _remaining(db_session) == ["p1"]


def test_record_expiring_exactly_now_is_kept(db_session, clock, retention) -> None:
    _tombstone(db_session, clock, "p1", days=90)

    clock.advance(days=90)

    assert retention.cleanup_expired_soft_deletes() == 0
    clock.advance(seconds=1)
    assert retention.cleanup_expired_soft_deletes() == 1


def test_ninety_day_window_after_moderator_delete(
    decision_engine, queue_store, db_session, clock, retention
) -> None:
    case = queue_store.add_to_moderation_queue("post", "p1", "u1")
    decision_engine.process_moderation_action(case.id, "delete", "mod-1", "Spam")

    clock.advance(days=89)
    assert retention.cleanup_expired_soft_deletes() == 0
    assert retention.is_soft_deleted(ModerationContentType.POST, "p1")

    clock.advance(days=2)
    assert retention.cleanup_expired_soft_deletes() == 1
    assert not retention.is_soft_deleted(ModerationContentType.POST, "p1")
    assert db_session.scalar(select(func.count()).select_from(SoftDeleteRecord)) == 0


def test_get_soft_delete_records_filters_by_type(db_session, clock, retention) -> None:
    _tombstone(db_session, clock, "p1")
    clock.advance(minutes=1)
    _tombstone(db_session, clock, "m1", content_type=ModerationContentType.MEDIA)

    everything = retention.get_soft_delete_records()
    media = retention.get_soft_delete_records(ModerationContentType.MEDIA)

    assert [record.content_id for record in everything] == ["m1", "p1"]
    assert [record.content_id for record in media] == ["m1"]
