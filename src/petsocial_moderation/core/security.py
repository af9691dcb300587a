"""Bearer-token helpers.

Authentication and role resolution belong to the surrounding platform; this
service only verifies the JWTs it issues and reads the ``sub`` and ``role``
claims from them.
"""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from jose import JWTError, jwt

from petsocial_moderation.core.settings import settings


class Role(str, Enum):
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


# Roles allowed to act as moderators.
MODERATOR_ROLES = frozenset({Role.MODERATOR, Role.ADMIN})


def create_access_token(subject: str, role: Role | str = Role.USER) -> str:
    """Create a signed JWT for ``subject`` carrying its role."""
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode: dict[str, Any] = {"sub": subject, "role": Role(role).value, "exp": expire}
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and verify a token.

    Raises:
        JWTError: If the signature, expiry or format is invalid.
    """
    payload: dict[str, Any] = jwt.decode(
        token,
        settings.secret_key,
        algorithms=[settings.jwt_algorithm],
    )
    return payload


__all__ = ["JWTError", "MODERATOR_ROLES", "Role", "create_access_token", "decode_access_token"]
