"""Moderation decision services."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from petsocial_moderation.db.time import Clock, utcnow
from petsocial_moderation.models import (
    ModerationAction,
    ModerationActionLog,
    ModerationCase,
    ModerationStatus,
)
from petsocial_moderation.models.moderation import OPEN_STATUSES, TOMBSTONE_ACTIONS
from petsocial_moderation.services.audit import AuditLogWriter
from petsocial_moderation.services.content import ContentResolver
from petsocial_moderation.services.errors import (
    AlreadyResolvedError,
    ContentNotFoundError,
    ModerationError,
    NotFoundError,
    ValidationError,
)
from petsocial_moderation.services.retention import RetentionManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecisionRequest:
    """One moderator decision, as submitted individually or in bulk."""

    queue_item_id: str
    action: ModerationAction | str
    performed_by: str
    justification: str


@dataclass(frozen=True)
class BulkItemError:
    item_id: str
    error: str


@dataclass
class BulkResult:
    """Per-item outcome of a bulk run; partial success is expected."""

    success: int = 0
    failed: int = 0
    errors: list[BulkItemError] = field(default_factory=list)


class ModerationDecisionEngine:
    """Applies moderator decisions to moderation cases.

    A case is resolved at most once: the status transition is a conditional
    UPDATE and action logs are unique per case, so of two concurrent
    decisions exactly one succeeds and the other gets AlreadyResolvedError.
    """

    def __init__(
        self,
        db: Session,
        *,
        content: ContentResolver,
        audit: AuditLogWriter | None = None,
        retention: RetentionManager | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.db = db
        self.content = content
        self.audit = audit
        self.retention = retention or RetentionManager(db, clock=clock)
        self.clock = clock

    def process_moderation_action(
        self,
        queue_item_id: str,
        action: ModerationAction | str,
        performed_by: str,
        justification: str,
    ) -> ModerationActionLog:
        """Resolve a case with a moderator decision.

        Args:
            queue_item_id: ID of the moderation case.
            action: approve, reject, redact or delete.
            performed_by: Moderator applying the decision.
            justification: Mandatory human-readable reason.

        Returns:
            The action log written for the decision.

        Raises:
            ValidationError: Empty justification or unknown action; nothing is changed.
            NotFoundError: No case with this ID.
            AlreadyResolvedError: The case was already resolved (safe to treat as done).
            ContentNotFoundError: The reported content no longer exists; the case stays open.
        """
        if not justification or not justification.strip():
            raise ValidationError("Justification is required")
        if not performed_by:
            raise ValidationError("performed_by is required")
        action = _parse_action(action)

        case = self.db.get(ModerationCase, queue_item_id)
        if case is None:
            raise NotFoundError(f"Moderation case {queue_item_id} not found")
        if not case.is_open:
            raise AlreadyResolvedError(queue_item_id)
        if self.content.get_content_by_id(case.content_type, case.content_id) is None:
            raise ContentNotFoundError(
                f"Content {case.content_type.value}/{case.content_id} not found"
            )

        now = self.clock()
        try:
            result = self.db.execute(
                update(ModerationCase)
                .where(
                    ModerationCase.id == queue_item_id,
                    ModerationCase.status.in_(OPEN_STATUSES),
                )
                .values(
                    status=ModerationStatus.RESOLVED,
                    justification=justification,
                    reviewed_at=now,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise AlreadyResolvedError(queue_item_id)

            action_log = ModerationActionLog(
                queue_item_id=case.id,
                action=action,
                performed_by=performed_by,
                justification=justification,
                metadata_={
                    "content_type": case.content_type.value,
                    "content_id": case.content_id,
                    "ai_score": case.ai_score,
                },
                created_at=now,
            )
            self.db.add(action_log)
            self.db.flush()

            if action in TOMBSTONE_ACTIONS:
                self.retention.create_tombstone(case, action, performed_by, justification)
            self.db.commit()
        except AlreadyResolvedError:
            self.db.rollback()
            raise
        except IntegrityError as err:
            # Another decision's action log won the unique constraint.
            self.db.rollback()
            raise AlreadyResolvedError(queue_item_id) from err
        except SQLAlchemyError:
            self.db.rollback()
            raise

        self.db.refresh(case)
        logger.info(
            "Case %s resolved with %s by %s",
            case.id,
            action.value,
            performed_by,
        )
        self._record_audit(action_log, case)
        return action_log

    def bulk_process_moderation_actions(self, items: Iterable[DecisionRequest]) -> BulkResult:
        """Apply each decision independently; one failure never blocks the rest."""
        result = BulkResult()
        for item in items:
            try:
                self.process_moderation_action(
                    item.queue_item_id,
                    item.action,
                    item.performed_by,
                    item.justification,
                )
            except ModerationError as err:
                result.failed += 1
                result.errors.append(BulkItemError(item_id=item.queue_item_id, error=str(err)))
            except SQLAlchemyError as err:
                logger.error(
                    "Database error processing case %s: %s", item.queue_item_id, err, exc_info=True
                )
                result.failed += 1
                result.errors.append(BulkItemError(item_id=item.queue_item_id, error="Database error"))
            else:
                result.success += 1
        return result

    def assign_to_moderator(self, queue_item_id: str, moderator_id: str) -> ModerationCase:
        """Assign a case and move it to ``in_review``.

        Re-assigning a case that is already in review is allowed.
        """
        if not moderator_id:
            raise ValidationError("moderator_id is required")

        result = self.db.execute(
            update(ModerationCase)
            .where(
                ModerationCase.id == queue_item_id,
                ModerationCase.status.in_(OPEN_STATUSES),
            )
            .values(
                assigned_to=moderator_id,
                status=ModerationStatus.IN_REVIEW,
                updated_at=self.clock(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            if self.db.get(ModerationCase, queue_item_id) is None:
                raise NotFoundError(f"Moderation case {queue_item_id} not found")
            raise AlreadyResolvedError(queue_item_id)
        self.db.commit()

        case = self.db.get(ModerationCase, queue_item_id)
        self.db.refresh(case)
        return case

    def get_action_logs(self, queue_item_id: str) -> list[ModerationActionLog]:
        stmt = (
            select(ModerationActionLog)
            .where(ModerationActionLog.queue_item_id == queue_item_id)
            .order_by(ModerationActionLog.created_at)
        )
        return list(self.db.scalars(stmt))

    def _record_audit(self, action_log: ModerationActionLog, case: ModerationCase) -> None:
        # The decision already stands; audit problems are only logged.
        if self.audit is None:
            return
        outcome = self.audit.record_moderation_decision(action_log, case)
        if not outcome.success:
            logger.error(
                "Decision %s on case %s is missing from the audit trail: %s",
                action_log.id,
                case.id,
                outcome.error,
            )


def _parse_action(value: ModerationAction | str) -> ModerationAction:
    try:
        return ModerationAction(value)
    except ValueError as err:
        raise ValidationError(f"Unknown moderation action: {value!r}") from err
