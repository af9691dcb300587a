"""Moderation queue: aggregation of user reports into prioritized cases."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Generic, Literal, TypeVar

from sqlalchemy import case as sql_case
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from petsocial_moderation.core.settings import settings
from petsocial_moderation.db.time import Clock, utcnow
from petsocial_moderation.models import (
    ModerationCase,
    ModerationContentType,
    ModerationPriority,
    ModerationReport,
    ModerationStatus,
)
from petsocial_moderation.models.moderation import OPEN_STATUSES, PRIORITY_RANK
from petsocial_moderation.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SortKey = Literal["priority", "ai_score", "created_at"]
SortOrder = Literal["asc", "desc"]


@dataclass(frozen=True)
class ReportOptions:
    """Optional signals attached to a report by automated flagging."""

    auto_flagged: bool = False
    auto_reason: str | None = None
    ai_score: float | None = None


@dataclass(frozen=True)
class Pagination:
    """1-based offset pagination."""

    page: int = 1
    page_size: int = 20


@dataclass(frozen=True)
class QueueQuery:
    status: ModerationStatus | None = None
    sort_by: SortKey | None = None
    sort_order: SortOrder = "desc"


@dataclass
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int


@dataclass
class QueueCounts:
    """Open (pending + in review) case counts."""

    total: int = 0
    by_content_type: dict[str, int] = field(default_factory=dict)
    by_status: dict[str, int] = field(default_factory=dict)


@dataclass
class ReportOutcome:
    case: ModerationCase
    created: bool = False


class _CaseClosedMeanwhile(Exception):
    """Raised inside a savepoint to undo a report on a case resolved concurrently."""


class ModerationQueueStore:
    """Creates and escalates moderation cases from user reports."""

    def __init__(self, db: Session, *, clock: Clock = utcnow) -> None:
        self.db = db
        self.clock = clock

    def add_to_moderation_queue(
        self,
        content_type: ModerationContentType | str,
        content_id: str,
        reporter_id: str,
        options: ReportOptions | None = None,
    ) -> ModerationCase:
        """Record a report against a piece of content.

        Args:
            content_type: Kind of content being reported.
            content_id: Identifier of the content.
            reporter_id: User submitting the report.
            options: Automated-flagging signals, used only when a new case is opened.

        Returns:
            The case the report was aggregated into. Reports from a user who
            already reported the content, and reports against content whose
            case is resolved, leave the case unchanged.

        Raises:
            ValidationError: If the content type, ids or AI score are invalid.
        """
        return self.submit_report(content_type, content_id, reporter_id, options).case

    def submit_report(
        self,
        content_type: ModerationContentType | str,
        content_id: str,
        reporter_id: str,
        options: ReportOptions | None = None,
    ) -> ReportOutcome:
        """Same as :meth:`add_to_moderation_queue`, also telling whether a case was opened."""
        options = options or ReportOptions()
        content_type = _parse_content_type(content_type)
        if not content_id or not reporter_id:
            raise ValidationError("content_id and reporter_id are required")
        if options.ai_score is not None and not 0 <= options.ai_score <= 100:
            raise ValidationError("ai_score must be between 0 and 100")

        case = self._find(content_type, content_id)
        if case is None:
            created = self._create(content_type, content_id, reporter_id, options)
            if created is not None:
                return ReportOutcome(created, created=True)
            # Another reporter opened the case first; join it.
            case = self._find(content_type, content_id)
            if case is None:  # pragma: no cover
                raise NotFoundError(f"Moderation case for {content_type.value}/{content_id} vanished")

        if not case.is_open:
            logger.debug("Ignoring report on resolved case %s", case.id)
            return ReportOutcome(case)

        if reporter_id in case.reported_by:
            return ReportOutcome(case)

        self._append_report(case, reporter_id)
        return ReportOutcome(case)

    def escalated_priority(self, report_count: int) -> ModerationPriority | None:
        """Priority unlocked by a report count, or None below the first threshold."""
        if report_count >= settings.escalation_urgent_reports:
            return ModerationPriority.URGENT
        if report_count >= settings.escalation_high_reports:
            return ModerationPriority.HIGH
        if report_count >= settings.escalation_medium_reports:
            return ModerationPriority.MEDIUM
        return None

    def get_case(self, queue_item_id: str) -> ModerationCase:
        case = self.db.get(ModerationCase, queue_item_id)
        if case is None:
            raise NotFoundError(f"Moderation case {queue_item_id} not found")
        return case

    def get_queue_items_by_type(
        self,
        content_type: ModerationContentType | str,
        pagination: Pagination | None = None,
        query: QueueQuery | None = None,
    ) -> Page[ModerationCase]:
        """Return one page of cases for a content type.

        Sorting by ``priority`` uses urgent=4 ... low=1 and ``ai_score`` treats
        a missing score as 0. Ties, and unsorted listings, fall back to
        creation order so pages stay stable between requests.
        """
        pagination = pagination or Pagination()
        query = query or QueueQuery()
        content_type = _parse_content_type(content_type)
        if pagination.page < 1 or pagination.page_size < 1:
            raise ValidationError("page and page_size must be positive")

        stmt = select(ModerationCase).where(ModerationCase.content_type == content_type)
        if query.status is not None:
            stmt = stmt.where(ModerationCase.status == query.status)

        total = self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0

        order_by = []
        if query.sort_by is not None:
            sort_column = _sort_expression(query.sort_by)
            order_by.append(sort_column.asc() if query.sort_order == "asc" else sort_column.desc())
        order_by.extend([ModerationCase.created_at.asc(), ModerationCase.id.asc()])

        items = list(
            self.db.scalars(
                stmt.order_by(*order_by)
                .offset((pagination.page - 1) * pagination.page_size)
                .limit(pagination.page_size)
            )
        )
        return Page(
            items=items,
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
            total_pages=math.ceil(total / pagination.page_size),
        )

    def get_queue_counts(self) -> QueueCounts:
        """Count open cases per content type and per status."""
        counts = QueueCounts(
            by_content_type={content_type.value: 0 for content_type in ModerationContentType},
            by_status={status.value: 0 for status in OPEN_STATUSES},
        )
        rows = self.db.execute(
            select(ModerationCase.content_type, ModerationCase.status, func.count())
            .where(ModerationCase.status.in_(OPEN_STATUSES))
            .group_by(ModerationCase.content_type, ModerationCase.status)
        )
        for content_type, status, count in rows:
            counts.by_content_type[content_type.value] += count
            counts.by_status[status.value] += count
            counts.total += count
        return counts

    def _find(
        self, content_type: ModerationContentType, content_id: str
    ) -> ModerationCase | None:
        stmt = select(ModerationCase).where(
            ModerationCase.content_type == content_type,
            ModerationCase.content_id == content_id,
        )
        return self.db.scalars(stmt).first()

    def _create(
        self,
        content_type: ModerationContentType,
        content_id: str,
        reporter_id: str,
        options: ReportOptions,
    ) -> ModerationCase | None:
        now = self.clock()
        high_signal = (
            options.ai_score is not None
            and options.ai_score > settings.ai_score_high_priority_threshold
        )
        case = ModerationCase(
            content_type=content_type,
            content_id=content_id,
            priority=ModerationPriority.HIGH if high_signal else ModerationPriority.LOW,
            report_count=1,
            auto_flagged=options.auto_flagged,
            auto_reason=options.auto_reason,
            ai_score=options.ai_score,
            status=ModerationStatus.PENDING,
            created_at=now,
            updated_at=now,
            reports=[ModerationReport(reporter_id=reporter_id, reported_at=now)],
        )
        try:
            with self.db.begin_nested():
                self.db.add(case)
                self.db.flush()
            self.db.commit()
        except IntegrityError:
            logger.debug("Case for %s/%s created concurrently", content_type.value, content_id)
            return None

        self.db.refresh(case)
        logger.info(
            "Opened moderation case %s for %s/%s (priority=%s)",
            case.id,
            content_type.value,
            content_id,
            case.priority.value,
        )
        return case

    def _append_report(self, case: ModerationCase, reporter_id: str) -> None:
        now = self.clock()
        try:
            with self.db.begin_nested():
                self.db.add(ModerationReport(case_id=case.id, reporter_id=reporter_id, reported_at=now))
                self.db.flush()
                # The reporter row is new; bump the count on the locked row version.
                result = self.db.execute(
                    update(ModerationCase)
                    .where(
                        ModerationCase.id == case.id,
                        ModerationCase.status.in_(OPEN_STATUSES),
                    )
                    .values(report_count=ModerationCase.report_count + 1, updated_at=now)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise _CaseClosedMeanwhile(case.id)
                self._escalate(case.id)
            self.db.commit()
        except IntegrityError:
            logger.debug("Reporter %s already counted on case %s", reporter_id, case.id)
        except _CaseClosedMeanwhile:
            logger.debug("Case %s resolved before report was counted", case.id)

        self.db.refresh(case)

    def _escalate(self, case_id: str) -> None:
        report_count = self.db.scalar(
            select(ModerationCase.report_count).where(ModerationCase.id == case_id)
        )
        target = self.escalated_priority(report_count or 0)
        if target is None:
            return
        # Only raise priority; an AI-flagged high case never drops to medium.
        lower = [priority for priority in ModerationPriority if priority.rank < target.rank]
        self.db.execute(
            update(ModerationCase)
            .where(ModerationCase.id == case_id, ModerationCase.priority.in_(lower))
            .values(priority=target)
            .execution_options(synchronize_session=False)
        )


def _parse_content_type(value: ModerationContentType | str) -> ModerationContentType:
    try:
        return ModerationContentType(value)
    except ValueError as err:
        raise ValidationError(f"Unknown content type: {value!r}") from err


def _sort_expression(sort_by: str):  # type: ignore[no-untyped-def]
    if sort_by == "priority":
        return sql_case(PRIORITY_RANK, value=ModerationCase.priority)
    if sort_by == "ai_score":
        return func.coalesce(ModerationCase.ai_score, 0)
    if sort_by == "created_at":
        return ModerationCase.created_at
    raise ValidationError(f"Unknown sort key: {sort_by!r}")
