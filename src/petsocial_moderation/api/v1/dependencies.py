"""Shared API dependencies for authentication and service wiring."""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from petsocial_moderation.core.security import (
    MODERATOR_ROLES,
    JWTError,
    Role,
    decode_access_token,
)
from petsocial_moderation.core.settings import settings
from petsocial_moderation.db.session import get_db
from petsocial_moderation.services.audit import AuditLogQueries, AuditLogWriter
from petsocial_moderation.services.content import ContentResolver, get_content_resolver
from petsocial_moderation.services.moderation import ModerationDecisionEngine
from petsocial_moderation.services.moderation_queue import ModerationQueueStore
from petsocial_moderation.services.retention import RetentionManager

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


@dataclass(frozen=True)
class Actor:
    """Caller identity resolved from the bearer token."""

    actor_id: str
    role: Role


def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> Actor:
    """Get the calling actor from the JWT token.

    Raises:
        HTTPException: If the token is invalid or carries no subject.
    """
    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    subject = payload.get("sub")
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    try:
        role = Role(payload.get("role", Role.USER.value))
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown role",
        ) from err
    return Actor(actor_id=subject, role=role)


CurrentActorDep = Annotated[Actor, Depends(get_current_actor)]


def require_moderator(actor: CurrentActorDep) -> Actor:
    """Allow moderators and admins only."""
    if actor.role not in MODERATOR_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Moderator access required",
        )
    return actor


def require_admin(actor: CurrentActorDep) -> Actor:
    """Allow admins only."""
    if actor.role is not Role.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return actor


ModeratorDep = Annotated[Actor, Depends(require_moderator)]
AdminDep = Annotated[Actor, Depends(require_admin)]


def get_content_resolver_dep() -> ContentResolver:
    """Get the content resolver for dependency injection."""
    return get_content_resolver()


ContentResolverDep = Annotated[ContentResolver, Depends(get_content_resolver_dep)]


def get_audit_writer(db: SessionDep) -> AuditLogWriter:
    return AuditLogWriter(db)


AuditWriterDep = Annotated[AuditLogWriter, Depends(get_audit_writer)]


def get_audit_queries(db: SessionDep) -> AuditLogQueries:
    return AuditLogQueries(db)


AuditQueriesDep = Annotated[AuditLogQueries, Depends(get_audit_queries)]


def get_queue_store(db: SessionDep) -> ModerationQueueStore:
    return ModerationQueueStore(db)


QueueStoreDep = Annotated[ModerationQueueStore, Depends(get_queue_store)]


def get_retention_manager(db: SessionDep) -> RetentionManager:
    return RetentionManager(db)


RetentionDep = Annotated[RetentionManager, Depends(get_retention_manager)]


def get_decision_engine(
    db: SessionDep,
    content: ContentResolverDep,
    audit: AuditWriterDep,
) -> ModerationDecisionEngine:
    """Build the decision engine, mirroring decisions into the audit trail if enabled."""
    return ModerationDecisionEngine(
        db,
        content=content,
        audit=audit if settings.audit_moderation_decisions else None,
    )


DecisionEngineDep = Annotated[ModerationDecisionEngine, Depends(get_decision_engine)]
