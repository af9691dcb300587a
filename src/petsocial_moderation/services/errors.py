"""Error taxonomy for moderation operations."""

from __future__ import annotations


class ModerationError(Exception):
    """Base class for errors surfaced to moderation callers."""


class ValidationError(ModerationError):
    """Input rejected before any state change (e.g. empty justification)."""


class NotFoundError(ModerationError):
    """A referenced case or record does not exist."""


class ContentNotFoundError(NotFoundError):
    """The content behind a case can no longer be located."""


class AlreadyResolvedError(ModerationError):
    """The case is already resolved; callers may treat this as already handled."""

    def __init__(self, queue_item_id: str) -> None:
        super().__init__(f"Moderation case {queue_item_id} is already resolved")
        self.queue_item_id = queue_item_id
