"""
Human review queue over stored content flags.

Both operations require the acting user to hold manage-messages or
moderate-members through their synchronised guild roles. Errors are raised as
``QueueServiceError`` subclasses carrying the HTTP status the API returns.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict

from modwatch.database.moderation_flags import ModerationFlagRepository
from modwatch.datatypes.action_datatypes import utcnow
from modwatch.datatypes.discord_datatypes import GuildID, UserID
from modwatch.datatypes.flag_datatypes import (
    ArtworkSummary,
    FlagPage,
    FlagType,
    ModerationFlag,
    QueueAction,
)
from modwatch.database.db_codec import to_db_timestamp
from modwatch.moderation.permissions import PermissionLookup
from modwatch.util.logger import get_logger

logger = get_logger("queue_service")


class QueueServiceError(Exception):
    """Base class for rejections the queue reports to its caller."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(QueueServiceError):
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(QueueServiceError):
    status_code = 403
    default_message = "Forbidden"


class InvalidRequestError(QueueServiceError):
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(QueueServiceError):
    status_code = 404
    default_message = "Flag not found"


class FlagAlreadyResolvedError(QueueServiceError):
    status_code = 409
    default_message = "Flag already resolved"


def serialize_artwork(artwork: ArtworkSummary | None) -> Dict[str, Any] | None:
    if artwork is None:
        return None
    user = None
    if artwork.user is not None:
        user = {"id": artwork.user.id, "username": artwork.user.username, "avatar": artwork.user.avatar}
    return {"id": artwork.id, "title": artwork.title, "published": artwork.published, "user": user}


def serialize_flag(flag: ModerationFlag, artwork: ArtworkSummary | None = None) -> Dict[str, Any]:
    """JSON shape of a flag in queue responses."""
    return {
        "id": flag.id,
        "artworkId": flag.artwork_id,
        "messageId": str(flag.message_id) if flag.message_id is not None else None,
        "content": flag.content,
        "flagType": flag.flag_type.value,
        "severity": flag.severity,
        "apiResponse": flag.api_response,
        "resolved": flag.resolved,
        "resolvedBy": flag.resolved_by,
        "resolvedAt": to_db_timestamp(flag.resolved_at),
        "createdAt": to_db_timestamp(flag.created_at),
        "artwork": serialize_artwork(artwork),
    }


class ModerationQueueService:
    """List and decide stored flags on behalf of a human moderator.

    Args:
        flags: Flag repository.
        permissions: Capability lookup for the acting user.
        guild_id: Guild whose roles grant moderation rights; None accepts
            roles from any synchronised guild.
        max_page_size: Upper bound for ``limit``.
    """

    def __init__(
        self,
        flags: ModerationFlagRepository,
        permissions: PermissionLookup,
        guild_id: GuildID | None = None,
        max_page_size: int = 100,
    ):
        self._flags = flags
        self._permissions = permissions
        self._guild_id = guild_id
        self._max_page_size = max_page_size

    async def _require_moderator(self, user_id: UserID) -> None:
        if not await self._permissions.can_moderate(user_id, self._guild_id):
            logger.info("[QUEUE] Rejected user %s without moderation capability", user_id)
            raise ForbiddenError()

    async def list_flags(
        self,
        user_id: UserID,
        page: int = 1,
        limit: int = 20,
        resolved: bool = False,
        flag_type: FlagType | None = None,
    ) -> FlagPage:
        """Return one page of flags, newest first, with artwork summaries."""
        await self._require_moderator(user_id)
        if page < 1 or not 1 <= limit <= self._max_page_size:
            raise InvalidRequestError()

        offset = (page - 1) * limit
        rows, total = await asyncio.gather(
            self._flags.list_page(resolved=resolved, flag_type=flag_type, offset=offset, limit=limit),
            self._flags.count(resolved=resolved, flag_type=flag_type),
        )
        return FlagPage(
            flags=[serialize_flag(flag, artwork) for flag, artwork in rows],
            page=page,
            limit=limit,
            total=total,
        )

    async def act(self, user_id: UserID, flag_id: str | None, action: str | QueueAction | None) -> QueueAction:
        """
        Apply a moderator decision to a flag.

        Returns:
            The action that was applied.

        Raises:
            ForbiddenError: The user lacks moderation capability.
            InvalidRequestError: Missing flag id or unknown action.
            NotFoundError: No flag with that id.
            FlagAlreadyResolvedError: Resolve or dismiss on a resolved flag.
        """
        await self._require_moderator(user_id)
        try:
            queue_action = action if isinstance(action, QueueAction) else QueueAction(action)
        except ValueError:
            raise InvalidRequestError() from None
        if not flag_id:
            raise InvalidRequestError()

        flag = await self._flags.get(flag_id)
        if flag is None:
            raise NotFoundError()

        if queue_action is QueueAction.ESCALATE:
            await self._escalate(flag, user_id)
        else:
            await self._resolve(flag, user_id, unpublish=queue_action is QueueAction.RESOLVE)

        logger.info("[QUEUE] %s flag %s by user %s", queue_action.value, flag.id, user_id)
        return queue_action

    async def _resolve(self, flag: ModerationFlag, user_id: UserID, *, unpublish: bool) -> None:
        if flag.resolved:
            raise FlagAlreadyResolvedError()
        updated = await self._flags.mark_resolved(
            flag.id,
            str(user_id),
            utcnow(),
            unpublish_artwork=unpublish and flag.artwork_id is not None,
        )
        if not updated:
            # Another moderator resolved it between the read and the update
            raise FlagAlreadyResolvedError()

    async def _escalate(self, flag: ModerationFlag, user_id: UserID) -> None:
        annotation = {
            "escalated": True,
            "escalatedBy": str(user_id),
            "escalatedAt": to_db_timestamp(utcnow()),
        }
        if await self._flags.merge_api_response(flag.id, annotation) is None:
            raise NotFoundError()
