"""System endpoints: public configuration and manual maintenance jobs."""

from __future__ import annotations

from fastapi import APIRouter

from petsocial_moderation.api.v1.dependencies import AdminDep, SessionDep
from petsocial_moderation.core.settings import settings
from petsocial_moderation.schemas.audit import SweepResponse
from petsocial_moderation.services.maintenance import run_audit_queue_sweep, run_retention_sweep

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of moderation configuration.

    Excludes secrets and connection strings.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
        },
        "moderation": {
            "escalation_thresholds": settings.escalation_thresholds,
            "ai_score_high_priority_threshold": settings.ai_score_high_priority_threshold,
            "bulk_max_items": settings.bulk_max_items,
        },
        "retention": {
            "soft_delete_retention_days": settings.soft_delete_retention_days,
        },
        "audit": {
            "queue_max_attempts": settings.audit_queue_max_attempts,
            "moderation_decisions_audited": settings.audit_moderation_decisions,
        },
    }


@router.post("/jobs/audit-queue", response_model=SweepResponse)
async def run_audit_queue_job(_admin: AdminDep, db: SessionDep) -> SweepResponse:
    """Replay queued audit entries now instead of waiting for the scheduler."""
    return SweepResponse(job="audit-queue", count=run_audit_queue_sweep(db))


@router.post("/jobs/retention", response_model=SweepResponse)
async def run_retention_job(_admin: AdminDep, db: SessionDep) -> SweepResponse:
    """Purge expired soft-delete records now."""
    return SweepResponse(job="retention", count=run_retention_sweep(db))
