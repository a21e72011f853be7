"""
Read side of guild monitoring: the dashboard summary of the monitored guild.

The summary combines the guild's live counters, the snapshots recorded by
``GuildMonitor`` over the last day and the day's moderation actions grouped by
action type.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List

from modwatch.database.guilds import GuildRepository, GuildSnapshot
from modwatch.database.moderation_logs import ModerationLogRepository
from modwatch.datatypes.action_datatypes import utcnow
from modwatch.datatypes.discord_datatypes import GuildID
from modwatch.moderation.queue_service import QueueServiceError
from modwatch.util.logger import get_logger

logger = get_logger("guild_stats")

SUMMARY_WINDOW = timedelta(hours=24)


class GuildNotConfiguredError(QueueServiceError):
    status_code = 500
    default_message = "Guild ID not configured"


class GuildNotFoundError(QueueServiceError):
    status_code = 404
    default_message = "Guild not found"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def summarize_history(history: List[GuildSnapshot]) -> Dict[str, int]:
    """Average and peak online members and total messages over ``history``."""
    if not history:
        return {"averageOnline": 0, "totalMessages24h": 0, "peakOnline": 0}
    online = [snapshot.online_count for snapshot in history]
    return {
        "averageOnline": _round_half_up(sum(online) / len(online)),
        "totalMessages24h": sum(snapshot.message_count for snapshot in history),
        "peakOnline": max(online),
    }


class GuildStatsService:
    """Build the statistics summary served by ``GET /api/stats``."""

    def __init__(
        self,
        guilds: GuildRepository,
        logs: ModerationLogRepository,
        guild_id: GuildID | None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._guilds = guilds
        self._logs = logs
        self._guild_id = guild_id
        self._clock = clock

    async def summary(self) -> Dict[str, Any]:
        if self._guild_id is None:
            raise GuildNotConfiguredError()

        since = self._clock() - SUMMARY_WINDOW
        guild = await self._guilds.get_guild_stats(self._guild_id, since=since)
        if guild is None:
            raise GuildNotFoundError()

        history = list(reversed(guild["stats"]))
        actions = await self._logs.count_by_action(self._guild_id, since=since)
        logger.debug("[STATS] Summarised %d snapshots for guild %s", len(history), self._guild_id)

        return {
            "current": {
                "name": guild["name"],
                "icon": guild["icon"],
                "memberCount": guild["member_count"],
                "onlineCount": guild["online_count"],
                "messagesPerMinute": guild["messages_per_min"],
            },
            "stats": summarize_history(history),
            "moderation": {
                "last24h": {action.value.lower(): total for action, total in actions.items()},
            },
            "history": [
                {
                    "timestamp": snapshot.timestamp.isoformat(),
                    "memberCount": snapshot.member_count,
                    "onlineCount": snapshot.online_count,
                    "messageCount": snapshot.message_count,
                }
                for snapshot in history
            ],
        }
