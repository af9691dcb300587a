# src/petsocial_moderation/schemas/moderation.py
"""Moderation-related Pydantic schemas."""

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from petsocial_moderation.models import (
    ModerationAction,
    ModerationContentType,
    ModerationPriority,
    ModerationStatus,
)
from petsocial_moderation.schemas.types import UTCDateTime


class ReportCreate(BaseModel):
    """Schema for reporting a piece of content."""

    content_type: ModerationContentType
    content_id: str = Field(..., min_length=1, max_length=255)
    auto_flagged: bool = False
    auto_reason: str | None = None
    ai_score: float | None = Field(None, ge=0, le=100, description="External AI score, 0-100")


class ModerationCaseResponse(BaseModel):
    """Schema for moderation case information returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    content_type: ModerationContentType
    content_id: str
    priority: ModerationPriority
    reported_by: list[str]
    report_count: int
    auto_flagged: bool
    auto_reason: str | None
    ai_score: float | None
    status: ModerationStatus
    assigned_to: str | None
    justification: str | None
    created_at: UTCDateTime
    updated_at: UTCDateTime
    reviewed_at: UTCDateTime | None


class QueuePageResponse(BaseModel):
    items: list[ModerationCaseResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class QueueCountsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    by_content_type: dict[str, int]
    by_status: dict[str, int]


class AssignRequest(BaseModel):
    """Assign a case; defaults to the calling moderator."""

    moderator_id: str | None = None


class DecisionCreate(BaseModel):
    """Schema for a moderator decision on one case."""

    action: ModerationAction
    justification: str = Field(..., description="Mandatory reason for the decision")


class ModerationActionLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    queue_item_id: str
    action: ModerationAction
    performed_by: str
    justification: str
    # ORM attribute is metadata_ (DeclarativeBase reserves metadata).
    metadata: dict[str, Any] | None = Field(
        default=None, validation_alias=AliasChoices("metadata_", "metadata")
    )
    created_at: UTCDateTime


class DecisionResponse(BaseModel):
    success: Literal[True] = True
    action_log: ModerationActionLogResponse


class BulkDecisionItem(BaseModel):
    queue_item_id: str
    action: ModerationAction
    justification: str


class BulkDecisionRequest(BaseModel):
    items: list[BulkDecisionItem] = Field(..., min_length=1)
    reason: str | None = Field(None, description="Reason recorded on the bulk audit entry")


class BulkItemErrorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: str
    error: str


class BulkDecisionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: int
    failed: int
    errors: list[BulkItemErrorResponse]


class SoftDeleteRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    content_type: ModerationContentType
    content_id: str
    deleted_by: str
    reason: str
    deleted_at: UTCDateTime
    expires_at: UTCDateTime
    metadata: dict[str, Any] | None = Field(
        default=None, validation_alias=AliasChoices("metadata_", "metadata")
    )
