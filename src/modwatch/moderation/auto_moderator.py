"""
Automatic moderation of incoming guild messages.

``AutoModerator.process_message`` is called once per message by the message
listener cog. It decides whether the message is in scope, classifies it, and
for flagged content deletes the message, stores a ``ModerationFlag``, tells the
author and posts to the moderation log channel. Every step after
classification is independent: a failure is logged and the remaining steps
still run.
"""

from __future__ import annotations

from typing import Any

from modwatch.configuration.settings import AutoModerationSettings
from modwatch.database.moderation_flags import ModerationFlagRepository
from modwatch.datatypes.action_datatypes import new_record_id, utcnow
from modwatch.datatypes.discord_datatypes import GuildID, MessageID, display_tag
from modwatch.datatypes.flag_datatypes import ClassificationResult, ModerationFlag, clamp_severity
from modwatch.datatypes.outcome_datatypes import AutoModerationOutcome
from modwatch.moderation.classifier import ContentClassifier
from modwatch.moderation.moderation_embed import (
    build_auto_moderation_log_embed,
    build_removal_dm_embed,
)
from modwatch.moderation.notifications import attempt_channel_post, attempt_direct_message
from modwatch.util.discord_utils import is_ignored_author, member_has_permission, safe_delete_message
from modwatch.util.logger import get_logger

logger = get_logger("auto_moderator")

SKIP_BOT_AUTHOR = "bot author"
SKIP_DIRECT_MESSAGE = "direct message"
SKIP_UNMONITORED_GUILD = "guild not monitored"
SKIP_DISABLED = "auto-moderation disabled"
SKIP_EMPTY = "empty content"
SKIP_EXEMPT = "author exempt"
SKIP_CLEAN = "not flagged"
SKIP_ERROR = "classification error"


class AutoModerator:
    """Classify guild messages and act on flagged ones.

    Args:
        flags: Repository the flags are written to.
        classifier: Content classifier collaborator.
        settings: Feature flag and log channel name.
        monitored_guild_id: Only messages from this guild are moderated;
            None moderates every guild.
    """

    def __init__(
        self,
        flags: ModerationFlagRepository,
        classifier: ContentClassifier,
        settings: AutoModerationSettings,
        monitored_guild_id: GuildID | None = None,
    ):
        self._flags = flags
        self._classifier = classifier
        self._settings = settings
        self._monitored_guild_id = monitored_guild_id

    def skip_reason(self, message: Any) -> str | None:
        """Return why ``message`` is out of scope, or None to classify it."""
        if is_ignored_author(message.author):
            return SKIP_BOT_AUTHOR
        if message.guild is None:
            return SKIP_DIRECT_MESSAGE
        if self._monitored_guild_id is not None and self._monitored_guild_id != message.guild.id:
            return SKIP_UNMONITORED_GUILD
        if not self._settings.enabled:
            return SKIP_DISABLED
        if not (message.content or "").strip():
            return SKIP_EMPTY
        # Staff with message management are never auto-moderated
        if member_has_permission(message.author, "manage_messages"):
            return SKIP_EXEMPT
        return None

    async def process_message(self, message: Any) -> AutoModerationOutcome:
        """Run the full pipeline for one message. Never raises ``Exception``."""
        reason = self.skip_reason(message)
        if reason is not None:
            return AutoModerationOutcome.skipped(reason)

        try:
            verdict = await self._classifier.classify(message.content)
        except Exception:
            logger.exception("[AUTO MOD] Classification failed for message %s", message.id)
            return AutoModerationOutcome.skipped(SKIP_ERROR)

        if not verdict.flagged:
            return AutoModerationOutcome.skipped(SKIP_CLEAN)

        return await self._handle_flagged(message, verdict)

    async def _handle_flagged(self, message: Any, verdict: ClassificationResult) -> AutoModerationOutcome:
        outcome = AutoModerationOutcome(flagged=True)
        content = message.content
        severity = clamp_severity(verdict.severity)

        outcome.deletion = await safe_delete_message(message)

        try:
            flag = await self._flags.create(
                ModerationFlag(
                    id=new_record_id(),
                    message_id=MessageID.from_message(message),
                    content=content,
                    flag_type=verdict.category,
                    severity=severity,
                    api_response=dict(verdict.raw),
                    created_at=utcnow(),
                )
            )
            outcome.flag_id = flag.id
        except Exception:
            logger.exception("[AUTO MOD] Failed to store flag for message %s", message.id)

        dm_embed = build_removal_dm_embed(message.guild.name, verdict.category, content)
        outcome.notifications.append(await attempt_direct_message(message.author, dm_embed))

        log_embed = build_auto_moderation_log_embed(
            message.author,
            message.channel.id,
            verdict.category,
            severity,
            content,
        )
        outcome.notifications.append(
            await attempt_channel_post(message.guild, self._settings.log_channel_name, log_embed)
        )

        logger.info(
            "[AUTO MOD] Removed message from %s in %s: %s (%.0f%%)",
            display_tag(message.author),
            message.guild.name,
            verdict.category.value,
            severity * 100,
        )
        return outcome
