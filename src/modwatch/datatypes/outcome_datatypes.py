"""
Result types returned by the moderation pipeline instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List


@dataclass(slots=True, frozen=True)
class NotificationOutcome:
    """Outcome of a best-effort notification (DM, log-channel post, deletion).

    Attributes:
        delivered: Whether the platform accepted the request.
        destination: Short description of where it was sent, for logs.
        error: Failure description when not delivered.
    """

    delivered: bool
    destination: str
    error: str | None = None

    @classmethod
    def ok(cls, destination: str) -> "NotificationOutcome":
        return cls(delivered=True, destination=destination)

    @classmethod
    def failed(cls, destination: str, error: str) -> "NotificationOutcome":
        return cls(delivered=False, destination=destination, error=error)


@dataclass(slots=True)
class CommandOutcome:
    """What the invoking moderator is told about a command.

    ``embed`` is set on success; rejections and errors only carry ``message``.
    """

    success: bool
    message: str
    embed: Any = None
    log_id: str | None = None
    notification: NotificationOutcome | None = None

    @classmethod
    def rejected(cls, message: str) -> "CommandOutcome":
        return cls(success=False, message=message)


@dataclass(slots=True)
class AutoModerationOutcome:
    """Record of what the listener did with one message."""

    skipped_reason: str | None = None
    flagged: bool = False
    flag_id: str | None = None
    deletion: NotificationOutcome | None = None
    notifications: List[NotificationOutcome] = field(default_factory=list)

    @classmethod
    def skipped(cls, reason: str) -> "AutoModerationOutcome":
        return cls(skipped_reason=reason)
