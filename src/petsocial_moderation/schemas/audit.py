# src/petsocial_moderation/schemas/audit.py
"""Audit trail Pydantic schemas."""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from petsocial_moderation.schemas.types import UTCDateTime


class AuditLogResponse(BaseModel):
    """Schema for an audit log entry returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    actor_id: str
    action: str
    target_type: str
    target_id: str
    reason: str | None
    metadata: dict[str, Any] | None = Field(
        default=None, validation_alias=AliasChoices("metadata_", "metadata")
    )
    created_at: UTCDateTime


class AuditQueueEntryResponse(AuditLogResponse):
    """Queued audit write awaiting replay."""

    attempts: int
    last_attempt: UTCDateTime | None


class SweepResponse(BaseModel):
    """Result of a manually triggered maintenance sweep."""

    job: str
    count: int
