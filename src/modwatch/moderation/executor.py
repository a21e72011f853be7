"""
Manual moderation actions: kick, ban, mute and warn.

Each action follows the same sequence:

1. validate the target (resolvable, not the moderator, not a bot, and
   outranked by the bot for actions with an enforcement call);
2. DM the target if they are a guild member (best-effort, outcome logged);
3. call the Discord enforcement primitive;
4. append one ``ModerationLog`` row;
5. build the confirmation embed for the moderator.

Validation failures return a rejection before any Discord or database call.
Failures in steps 3-4 are logged and reported with a generic message; an
enforcement that succeeded is not undone when the audit write fails.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from modwatch.configuration.settings import (
    BAN_DELETE_DAYS_MAX,
    MUTE_MAX_MINUTES,
    MUTE_MIN_MINUTES,
    ModerationSettings,
)
from modwatch.database.moderation_logs import ModerationLogRepository
from modwatch.datatypes.action_datatypes import ActionType, ModerationLog, utcnow
from modwatch.datatypes.discord_datatypes import GuildID, UserID, display_tag
from modwatch.datatypes.outcome_datatypes import CommandOutcome, NotificationOutcome
from modwatch.moderation.moderation_embed import (
    build_action_confirmation_embed,
    build_action_dm_embed,
    past_tense,
)
from modwatch.moderation.notifications import attempt_direct_message
from modwatch.util.discord_utils import bot_can_act_on, is_ignored_author
from modwatch.util.logger import get_logger

logger = get_logger("moderation_executor")

GENERIC_ERROR_MESSAGE = "An error occurred while executing the command."
TARGET_NOT_FOUND_MESSAGE = "User not found in this server!"

# Bot permission each enforcement call needs; warn has no enforcement call
_REQUIRED_BOT_PERMISSION = {
    ActionType.KICK: "kick_members",
    ActionType.BAN: "ban_members",
    ActionType.MUTE: "moderate_members",
}

_BOT_TARGET_MESSAGES = {
    ActionType.KICK: "You cannot kick bots through this command!",
    ActionType.BAN: "You cannot ban bots through this command!",
}

Enforcement = Callable[[Any, str], Awaitable[None]]


@dataclass(slots=True)
class ModerationRequest:
    """One moderation command invocation.

    Attributes:
        guild: Guild the command was invoked in.
        moderator: Member who invoked the command.
        target: User or member to act on; None when it could not be resolved.
        reason: Free-text reason; the configured default is used when empty.
        duration_minutes: Mute length; the configured default when None.
        delete_message_days: Ban only; days of the target's messages to delete.
    """

    guild: Any
    moderator: Any
    target: Any = None
    reason: str | None = None
    duration_minutes: int | None = None
    delete_message_days: int = 0


def clamp_delete_days(days: int | None) -> int:
    return min(max(int(days or 0), 0), BAN_DELETE_DAYS_MAX)


def resolve_member(guild: Any, target: Any) -> Any | None:
    """Return the guild member for ``target``, or None if it is not in the guild."""
    if target is None:
        return None
    getter = getattr(guild, "get_member", None)
    if getter is None:
        return None
    return getter(target.id)


class ModerationExecutor:
    """Carry out moderation commands and record them in the audit log."""

    def __init__(self, logs: ModerationLogRepository, settings: ModerationSettings):
        self._logs = logs
        self._settings = settings

    # --------------------------
    # Validation
    # --------------------------
    def _validate_target(self, action: ActionType, request: ModerationRequest, *, member_required: bool):
        """Run the pre-conditions in order.

        Returns:
            ``(member, rejection)``. ``member`` may be None for a ban of a user
            who already left; ``rejection`` is None when all checks pass.
        """
        verb = action.value.lower()
        member = resolve_member(request.guild, request.target)
        if request.target is None or (member_required and member is None):
            return None, TARGET_NOT_FOUND_MESSAGE

        if request.target.id == request.moderator.id:
            return None, f"You cannot {verb} yourself!"

        if is_ignored_author(request.target):
            return None, _BOT_TARGET_MESSAGES.get(action, f"You cannot {verb} bots!")

        permission_name = _REQUIRED_BOT_PERMISSION.get(action)
        if permission_name and member is not None and not bot_can_act_on(request.guild, member, permission_name):
            return None, f"I cannot {verb} this user! They may have higher permissions than me."

        return member, None

    def _platform_reason(self, action: ActionType, reason: str, moderator: Any) -> str:
        if action in self._settings.attribute_moderator_in_reason:
            return f"{reason} (by {display_tag(moderator)})"
        return reason

    # --------------------------
    # Shared execution path
    # --------------------------
    async def _execute(
        self,
        action: ActionType,
        request: ModerationRequest,
        enforce: Enforcement | None,
        *,
        member_required: bool = True,
        duration_minutes: int | None = None,
        delete_message_days: int | None = None,
    ) -> CommandOutcome:
        member, rejection = self._validate_target(action, request, member_required=member_required)
        if rejection is not None:
            logger.debug("[MODERATION] %s rejected in guild %s: %s", action.value, request.guild.id, rejection)
            return CommandOutcome.rejected(rejection)

        target = member if member is not None else request.target
        reason = request.reason or self._settings.default_reason
        moderator_tag = display_tag(request.moderator)
        created_at = utcnow()
        duration_seconds = duration_minutes * 60 if duration_minutes is not None else None
        expires_at = created_at + datetime.timedelta(seconds=duration_seconds) if duration_seconds else None

        if member is None:
            notification = NotificationOutcome.failed(f"DM to {target.id}", "not a guild member")
        else:
            dm_embed = build_action_dm_embed(
                action,
                guild_name=request.guild.name,
                reason=reason,
                moderator_tag=moderator_tag,
                duration_minutes=duration_minutes,
                expires_at=expires_at,
            )
            notification = await attempt_direct_message(target, dm_embed)
        if not notification.delivered:
            logger.info("[MODERATION] %s notice to %s not delivered: %s", action.value, target.id, notification.error)

        try:
            if enforce is not None:
                await enforce(target, self._platform_reason(action, reason, request.moderator))

            entry = await self._logs.create(
                ModerationLog.create(
                    guild_id=GuildID.from_guild(request.guild),
                    user_id=UserID.from_user(target),
                    moderator_id=UserID.from_user(request.moderator),
                    action=action,
                    reason=reason,
                    duration_seconds=duration_seconds,
                    created_at=created_at,
                )
            )
        except Exception:
            logger.exception(
                "[MODERATION] %s on user %s in guild %s by %s failed",
                action.value,
                target.id,
                request.guild.id,
                request.moderator.id,
            )
            return CommandOutcome(success=False, message=GENERIC_ERROR_MESSAGE, notification=notification)

        logger.info(
            "[MODERATION] %s applied to %s in guild %s by %s (reason: %s)",
            action.value,
            target.id,
            request.guild.id,
            request.moderator.id,
            reason,
        )
        embed = build_action_confirmation_embed(
            action,
            target,
            moderator_tag=moderator_tag,
            reason=reason,
            duration_minutes=duration_minutes,
            expires_at=expires_at,
            delete_message_days=delete_message_days,
        )
        return CommandOutcome(
            success=True,
            message=f"Successfully {past_tense(action)} {display_tag(target)}",
            embed=embed,
            log_id=entry.id,
            notification=notification,
        )

    # --------------------------
    # Public API
    # --------------------------
    async def kick(self, request: ModerationRequest) -> CommandOutcome:
        async def enforce(member: Any, platform_reason: str) -> None:
            await member.kick(reason=platform_reason)

        return await self._execute(ActionType.KICK, request, enforce)

    async def ban(self, request: ModerationRequest) -> CommandOutcome:
        """Ban a member, or a user who has already left the guild."""
        delete_days = clamp_delete_days(request.delete_message_days)

        async def enforce(user: Any, platform_reason: str) -> None:
            await request.guild.ban(
                user,
                reason=platform_reason,
                delete_message_seconds=delete_days * 86400,
            )

        return await self._execute(
            ActionType.BAN,
            request,
            enforce,
            member_required=False,
            delete_message_days=delete_days,
        )

    async def mute(self, request: ModerationRequest) -> CommandOutcome:
        """Time out a member for ``duration_minutes`` (1 minute to 7 days)."""
        minutes = request.duration_minutes
        if minutes is None:
            minutes = self._settings.default_mute_minutes
        if not MUTE_MIN_MINUTES <= minutes <= MUTE_MAX_MINUTES:
            return CommandOutcome.rejected(
                f"Mute duration must be between {MUTE_MIN_MINUTES} and {MUTE_MAX_MINUTES} minutes."
            )

        async def enforce(member: Any, platform_reason: str) -> None:
            await member.timeout_for(datetime.timedelta(minutes=minutes), reason=platform_reason)

        return await self._execute(ActionType.MUTE, request, enforce, duration_minutes=minutes)

    async def warn(self, request: ModerationRequest) -> CommandOutcome:
        return await self._execute(ActionType.WARN, request, None)
