# src/petsocial_moderation/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .audit import router as audit_router
from .moderation import router as moderation_router
from .system import router as system_router

__all__ = [
    "audit_router",
    "moderation_router",
    "system_router",
]
