# src/petsocial_moderation/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .audit import AuditLogResponse, AuditQueueEntryResponse, SweepResponse
from .moderation import (
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

__all__ = [
    "AuditLogResponse", "AuditQueueEntryResponse", "SweepResponse",
    "AssignRequest",
    "BulkDecisionRequest", "BulkDecisionResponse",
    "DecisionCreate", "DecisionResponse",
    "ModerationActionLogResponse", "ModerationCaseResponse",
    "QueueCountsResponse", "QueuePageResponse",
    "ReportCreate",
    "SoftDeleteRecordResponse",
]
