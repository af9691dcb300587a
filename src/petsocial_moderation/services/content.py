"""Lookup of reported content by type and id.

Content storage lives outside this service. Each content type gets a lookup
callable registered by the host application; the moderation engine only
needs to know whether the content still exists.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from petsocial_moderation.core.settings import settings
from petsocial_moderation.models import ModerationContentType

ContentLookup = Callable[[str], object | None]


class ContentResolver(Protocol):
    """Anything that can resolve ``(content_type, content_id)`` to content."""

    def get_content_by_id(
        self, content_type: ModerationContentType, content_id: str
    ) -> object | None: ...


@dataclass(frozen=True)
class ContentReference:
    """Stand-in returned for content types without a registered lookup."""

    content_type: ModerationContentType
    content_id: str


class ContentRegistry:
    """Per-content-type lookup table implementing :class:`ContentResolver`."""

    def __init__(self, *, strict: bool | None = None) -> None:
        self._lookups: dict[ModerationContentType, ContentLookup] = {}
        self.strict = settings.content_lookup_strict if strict is None else strict

    def register(self, content_type: ModerationContentType, lookup: ContentLookup) -> None:
        self._lookups[ModerationContentType(content_type)] = lookup

    def get_content_by_id(
        self, content_type: ModerationContentType, content_id: str
    ) -> object | None:
        """Return the content, or None if it no longer exists."""
        lookup = self._lookups.get(ModerationContentType(content_type))
        if lookup is None:
            return None if self.strict else ContentReference(content_type, content_id)
        return lookup(content_id)


# Application-wide registry; hosts register their lookups at startup.
content_registry = ContentRegistry()


def get_content_resolver() -> ContentResolver:
    """Return the content resolver used by the API layer."""
    return content_registry
