# src/petsocial_moderation/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import audit_router, moderation_router, system_router

__all__ = [
    "audit_router",
    "moderation_router",
    "system_router",
]
