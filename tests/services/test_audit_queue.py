"""Tests for replaying queued audit writes."""

import logging

from sqlalchemy import func, select

from petsocial_moderation.db.time import as_utc
from petsocial_moderation.models import AuditLogEntry, AuditQueueEntry
from petsocial_moderation.repositories import AuditQueueRepository
from petsocial_moderation.services.audit import AuditLogQueries, AuditLogWriter
from petsocial_moderation.services.audit_queue import AuditQueueProcessor


def _queue(db_session, clock, unavailable_log, *targets: str) -> list[str]:
    writer = AuditLogWriter(db_session, logs=unavailable_log, clock=clock)
    ids = []
    for target in targets:
        result = writer.write_audit("mod-1", "moderation.delete", "post", target, reason="Spam")
        assert result.queued
        ids.append(result.log_id)
        clock.advance(seconds=1)
    return ids


def _attempts(db_session, entry_id: str) -> int | None:
    return db_session.scalar(select(AuditQueueEntry.attempts).where(AuditQueueEntry.id == entry_id))


def test_queued_entry_is_replayed_with_original_timestamp(
    db_session, clock, unavailable_log
) -> None:
    """A queued write lands in the audit log once the store recovers."""
    queued_at = clock()
    [entry_id] = _queue(db_session, clock, unavailable_log, "p1")
    clock.advance(hours=1)

    processed = AuditQueueProcessor(db_session, clock=clock).process_audit_queue()

    assert processed == 1
    entry = db_session.get(AuditLogEntry, entry_id)
    assert entry is not None
    assert entry.target_id == "p1"
    assert entry.reason == "Spam"
    assert as_utc(entry.created_at) == queued_at
    assert db_session.scalar(select(func.count()).select_from(AuditQueueEntry)) == 0


def test_replay_processes_oldest_first(db_session, clock, unavailable_log, mocker) -> None:
    _queue(db_session, clock, unavailable_log, "p1", "p2", "p3")
    processor = AuditQueueProcessor(db_session, clock=clock)
    replay = mocker.spy(processor, "_replay")

    assert processor.process_audit_queue() == 3
    assert [call.args[0]["target_id"] for call in replay.call_args_list] == ["p1", "p2", "p3"]


def test_failed_replay_increments_attempts(db_session, clock, unavailable_log) -> None:
    [entry_id] = _queue(db_session, clock, unavailable_log, "p1")
    processor = AuditQueueProcessor(db_session, logs=unavailable_log, clock=clock)

    assert processor.process_audit_queue() == 0

    assert _attempts(db_session, entry_id) == 1
    last_attempt = db_session.scalar(
        select(AuditQueueEntry.last_attempt).where(AuditQueueEntry.id == entry_id)
    )
    assert as_utc(last_attempt) == clock()
    assert db_session.scalar(select(func.count()).select_from(AuditLogEntry)) == 0


def test_entry_is_dropped_after_five_failed_attempts(
    db_session, clock, unavailable_log, caplog
) -> None:
    [entry_id] = _queue(db_session, clock, unavailable_log, "p1")
    processor = AuditQueueProcessor(db_session, logs=unavailable_log, clock=clock)

    for expected in range(1, 5):
        processor.process_audit_queue()
        assert _attempts(db_session, entry_id) == expected

    with caplog.at_level(logging.WARNING):
        processor.process_audit_queue()

    assert _attempts(db_session, entry_id) is None
    assert "exceeded 5 attempts" in caplog.text
    assert AuditLogQueries(db_session).get_audit_logs_by_target("post", "p1") == []
    assert AuditLogQueries(db_session).get_audit_queue_entries() == []


def test_one_failing_entry_does_not_block_the_rest(
    db_session, clock, unavailable_log, mocker
) -> None:
    first, second = _queue(db_session, clock, unavailable_log, "p1", "p2")
    processor = AuditQueueProcessor(db_session, clock=clock)
    real_add = processor.logs.add

    def flaky_add(**fields):
        if fields["id"] == first:
            return unavailable_log.add(**fields)
        return real_add(**fields)

    mocker.patch.object(processor.logs, "add", side_effect=flaky_add)

    assert processor.process_audit_queue() == 1
    assert _attempts(db_session, first) == 1
    assert db_session.get(AuditLogEntry, second) is not None


def test_entry_claimed_elsewhere_is_skipped(db_session, clock, unavailable_log, mocker) -> None:
    [entry_id] = _queue(db_session, clock, unavailable_log, "p1")
    queue = AuditQueueRepository(db_session)
    mocker.patch.object(queue, "claim", return_value=False)
    processor = AuditQueueProcessor(db_session, queue=queue, clock=clock)

    assert processor.process_audit_queue() == 0
    assert db_session.get(AuditLogEntry, entry_id) is None
    assert _attempts(db_session, entry_id) == 0


def test_empty_queue_processes_nothing(db_session, clock) -> None:
    assert AuditQueueProcessor(db_session, clock=clock).process_audit_queue() == 0
