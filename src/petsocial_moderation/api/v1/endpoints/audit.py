"""Read-only audit trail endpoints for administrators."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query

from petsocial_moderation.api.v1.dependencies import AdminDep, AuditQueriesDep
from petsocial_moderation.models import AuditLogEntry, AuditQueueEntry
from petsocial_moderation.schemas.audit import AuditLogResponse, AuditQueueEntryResponse
from petsocial_moderation.services.audit import AuditLogFilters

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/logs", response_model=list[AuditLogResponse])
async def search_audit_logs(
    _admin: AdminDep,
    queries: AuditQueriesDep,
    actor_id: str | None = Query(None),
    action: str | None = Query(None),
    target_type: str | None = Query(None),
    target_id: str | None = Query(None),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
) -> list[AuditLogEntry]:
    """Search the audit log, newest first."""
    filters = AuditLogFilters(
        actor_id=actor_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        start_date=start_date,
        end_date=end_date,
    )
    return queries.search_audit_logs(filters, limit=limit)


@router.get("/queue", response_model=list[AuditQueueEntryResponse])
async def get_audit_queue(_admin: AdminDep, queries: AuditQueriesDep) -> list[AuditQueueEntry]:
    """Entries waiting for replay into the audit log."""
    return queries.get_audit_queue_entries()
