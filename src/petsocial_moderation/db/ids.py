# src/petsocial_moderation/db/ids.py
"""Identifier helpers for moderation records."""

from uuid import uuid4

CASE_PREFIX = "mq"
ACTION_LOG_PREFIX = "mal"
SOFT_DELETE_PREFIX = "sdr"
AUDIT_PREFIX = "aud"


def new_id(prefix: str) -> str:
    """Return a unique string identifier such as ``mq_3f0c...``."""
    return f"{prefix}_{uuid4().hex}"
