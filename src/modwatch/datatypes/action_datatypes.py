"""
Action types and the audit record of a moderator-initiated action.

``ModerationLog`` rows are written once per successfully executed command and
never changed afterwards.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

from modwatch.datatypes.discord_datatypes import GuildID, UserID


class ActionType(Enum):
    """Enumeration of moderator actions recorded in the audit trail."""

    WARN = "WARN"
    MUTE = "MUTE"
    KICK = "KICK"
    BAN = "BAN"
    UNBAN = "UNBAN"
    UNMUTE = "UNMUTE"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return self.value.capitalize()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_record_id() -> str:
    return uuid.uuid4().hex


@dataclass(slots=True, frozen=True)
class ModerationLog:
    """Audit record of one moderation action.

    Attributes:
        id: Unique record id.
        guild_id: Guild the action happened in.
        user_id: Member the action was taken against.
        moderator_id: Moderator who issued the command.
        action: Kind of action; fixed once created.
        reason: Free-text reason, if any.
        duration: Mute length in seconds; only set for MUTE.
        expires_at: ``created_at + duration``; set exactly when duration is.
        created_at: UTC creation time.
    """

    id: str
    guild_id: GuildID
    user_id: UserID
    moderator_id: UserID
    action: ActionType
    reason: str | None
    duration: int | None
    expires_at: datetime | None
    created_at: datetime

    def __post_init__(self) -> None:
        if (self.duration is None) != (self.expires_at is None):
            raise ValueError("duration and expires_at must be set together")
        if self.duration is not None:
            if self.action is not ActionType.MUTE:
                raise ValueError(f"duration is only meaningful for MUTE, not {self.action.value}")
            if self.duration <= 0:
                raise ValueError("duration must be positive")

    @classmethod
    def create(
        cls,
        *,
        guild_id: GuildID,
        user_id: UserID,
        moderator_id: UserID,
        action: ActionType,
        reason: str | None = None,
        duration_seconds: int | None = None,
        created_at: datetime | None = None,
    ) -> "ModerationLog":
        """Build a new record, deriving ``expires_at`` from the duration."""
        created = created_at or utcnow()
        expires_at = created + timedelta(seconds=duration_seconds) if duration_seconds is not None else None
        return cls(
            id=new_record_id(),
            guild_id=guild_id,
            user_id=user_id,
            moderator_id=moderator_id,
            action=action,
            reason=reason,
            duration=duration_seconds,
            expires_at=expires_at,
            created_at=created,
        )
