"""Moderation endpoints: reporting, the review queue and decisions."""

from __future__ import annotations

import logging
from uuid import uuid4

from fastapi import APIRouter, HTTPException, Query, Response, status

from petsocial_moderation.api.v1.dependencies import (
    AuditWriterDep,
    CurrentActorDep,
    DecisionEngineDep,
    ModeratorDep,
    QueueStoreDep,
    RetentionDep,
)
from petsocial_moderation.core.settings import settings
from petsocial_moderation.models import (
    ModerationActionLog,
    ModerationCase,
    ModerationContentType,
    ModerationStatus,
    SoftDeleteRecord,
)
from petsocial_moderation.schemas.moderation import (
    AssignRequest,
    BulkDecisionRequest,
    BulkDecisionResponse,
    DecisionCreate,
    DecisionResponse,
    ModerationActionLogResponse,
    ModerationCaseResponse,
    QueueCountsResponse,
    QueuePageResponse,
    ReportCreate,
    SoftDeleteRecordResponse,
)
from petsocial_moderation.services.errors import (
    AlreadyResolvedError,
    ModerationError,
    NotFoundError,
)
from petsocial_moderation.services.moderation import DecisionRequest
from petsocial_moderation.services.moderation_queue import (
    Pagination,
    QueueQuery,
    ReportOptions,
    SortKey,
    SortOrder,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/moderation", tags=["moderation"])


def _http_error(err: ModerationError) -> HTTPException:
    """Translate a service error into the matching HTTP status.

    ValidationError and any other moderation error map to 400.
    """
    if isinstance(err, AlreadyResolvedError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(err, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(err))


@router.post(
    "/reports",
    response_model=ModerationCaseResponse,
    status_code=status.HTTP_201_CREATED,
)
async def report_content(
    report: ReportCreate,
    actor: CurrentActorDep,
    store: QueueStoreDep,
    response: Response,
) -> ModerationCase:
    """Report a piece of content. The caller is recorded as the reporter.

    Returns 201 when the report opened a new case and 200 when it joined
    (or was ignored by) an existing one.
    """
    try:
        outcome = store.submit_report(
            report.content_type,
            report.content_id,
            actor.actor_id,
            ReportOptions(
                auto_flagged=report.auto_flagged,
                auto_reason=report.auto_reason,
                ai_score=report.ai_score,
            ),
        )
    except ModerationError as err:
        raise _http_error(err) from err

    if not outcome.created:
        response.status_code = status.HTTP_200_OK
    return outcome.case


@router.get("/queue/{content_type}", response_model=QueuePageResponse)
async def get_queue(
    content_type: ModerationContentType,
    _moderator: ModeratorDep,
    store: QueueStoreDep,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status_filter: ModerationStatus | None = Query(None, alias="status"),
    sort_by: SortKey | None = Query(None),
    sort_order: SortOrder = Query("desc"),
) -> QueuePageResponse:
    """Get one page of moderation cases for a content type."""
    try:
        result = store.get_queue_items_by_type(
            content_type,
            Pagination(page=page, page_size=page_size),
            QueueQuery(status=status_filter, sort_by=sort_by, sort_order=sort_order),
        )
    except ModerationError as err:
        raise _http_error(err) from err

    return QueuePageResponse(
        items=[ModerationCaseResponse.model_validate(case) for case in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/queue-counts", response_model=QueueCountsResponse)
async def get_queue_counts(_moderator: ModeratorDep, store: QueueStoreDep) -> QueueCountsResponse:
    """Count open cases by content type and status."""
    return QueueCountsResponse.model_validate(store.get_queue_counts())


@router.get("/cases/{case_id}", response_model=ModerationCaseResponse)
async def get_case(case_id: str, _moderator: ModeratorDep, store: QueueStoreDep) -> ModerationCase:
    try:
        return store.get_case(case_id)
    except ModerationError as err:
        raise _http_error(err) from err


@router.get("/cases/{case_id}/actions", response_model=list[ModerationActionLogResponse])
async def get_case_actions(
    case_id: str,
    _moderator: ModeratorDep,
    store: QueueStoreDep,
    engine: DecisionEngineDep,
) -> list[ModerationActionLog]:
    """List the action logs recorded for a case."""
    try:
        store.get_case(case_id)
    except ModerationError as err:
        raise _http_error(err) from err
    return engine.get_action_logs(case_id)


@router.post("/cases/{case_id}/assign", response_model=ModerationCaseResponse)
async def assign_case(
    case_id: str,
    moderator: ModeratorDep,
    engine: DecisionEngineDep,
    request: AssignRequest | None = None,
) -> ModerationCase:
    """Assign a case to a moderator (the caller unless another ID is given)."""
    moderator_id = (request.moderator_id if request else None) or moderator.actor_id
    try:
        return engine.assign_to_moderator(case_id, moderator_id)
    except ModerationError as err:
        raise _http_error(err) from err


@router.post("/cases/{case_id}/decision", response_model=DecisionResponse)
async def decide_case(
    case_id: str,
    decision: DecisionCreate,
    moderator: ModeratorDep,
    engine: DecisionEngineDep,
) -> DecisionResponse:
    """Resolve a case with approve, reject, redact or delete."""
    try:
        action_log = engine.process_moderation_action(
            case_id,
            decision.action,
            moderator.actor_id,
            decision.justification,
        )
    except ModerationError as err:
        raise _http_error(err) from err

    return DecisionResponse(action_log=ModerationActionLogResponse.model_validate(action_log))


@router.post("/decisions/bulk", response_model=BulkDecisionResponse)
async def bulk_decide(
    payload: BulkDecisionRequest,
    moderator: ModeratorDep,
    engine: DecisionEngineDep,
    audit: AuditWriterDep,
) -> BulkDecisionResponse:
    """Apply many decisions; each item succeeds or fails on its own."""
    if len(payload.items) > settings.bulk_max_items:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Maximum {settings.bulk_max_items} items per bulk operation",
        )

    result = engine.bulk_process_moderation_actions(
        DecisionRequest(
            queue_item_id=item.queue_item_id,
            action=item.action,
            performed_by=moderator.actor_id,
            justification=item.justification,
        )
        for item in payload.items
    )

    audit.write_audit(
        moderator.actor_id,
        "bulk_decision",
        "bulk_operation",
        f"bulk_{uuid4().hex}",
        reason=payload.reason,
        metadata={
            "total": len(payload.items),
            "success": result.success,
            "failed": result.failed,
            "queue_item_ids": [item.queue_item_id for item in payload.items],
        },
    )
    if result.failed:
        logger.info(
            "Bulk decision by %s: %d succeeded, %d failed",
            moderator.actor_id,
            result.success,
            result.failed,
        )
    return BulkDecisionResponse.model_validate(result)


@router.get("/soft-deletes", response_model=list[SoftDeleteRecordResponse])
async def list_soft_deletes(
    _moderator: ModeratorDep,
    retention: RetentionDep,
    content_type: ModerationContentType | None = Query(None),
) -> list[SoftDeleteRecord]:
    """List tombstones that have not been purged yet."""
    return retention.get_soft_delete_records(content_type)
