# src/petsocial_moderation/schemas/types.py
"""Shared field types for API schemas."""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator

from petsocial_moderation.db.time import as_utc

# SQLite returns naive values for timezone-aware columns; always emit UTC offsets.
UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]
