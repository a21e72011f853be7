"""Periodic guild statistics snapshots.

Every interval the monitor counts online members, drains the message counter
and writes the result to ``discord_guilds`` and ``guild_stats``. Handles its
own lifecycle (start/shutdown) the same way for every monitored guild.
"""

from __future__ import annotations

import asyncio
from typing import Any, Iterable

import discord

from modwatch.database.guilds import GuildRepository, GuildSnapshot
from modwatch.datatypes.action_datatypes import utcnow
from modwatch.datatypes.discord_datatypes import GuildID
from modwatch.monitoring.message_rate import MessageRateCounter
from modwatch.util.logger import get_logger

logger = get_logger("guild_monitor")


def count_online_members(guild: Any) -> int:
    """Members whose presence is anything but offline (needs the presences intent)."""
    return sum(1 for member in getattr(guild, "members", []) if member.status != discord.Status.offline)


class GuildMonitor:
    """
    Background task writing one statistics snapshot per guild per interval.

    Args:
        guilds: Repository the snapshots are written to.
        counter: Message counter shared with the message listener.
        interval: Seconds between snapshots.
        monitored_guild_id: Restrict snapshots to one guild; None for all.
    """

    def __init__(
        self,
        guilds: GuildRepository,
        counter: MessageRateCounter,
        interval: float = 300.0,
        monitored_guild_id: GuildID | None = None,
    ) -> None:
        self._guilds = guilds
        self._counter = counter
        self._interval = interval
        self._monitored_guild_id = monitored_guild_id
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _target_guilds(self, bot: discord.Bot) -> Iterable[Any]:
        if self._monitored_guild_id is None:
            return list(bot.guilds)
        guild = bot.get_guild(self._monitored_guild_id.to_int())
        if guild is None:
            logger.error("[MONITOR] Guild %s not found", self._monitored_guild_id)
            return []
        return [guild]

    async def snapshot_guild(self, guild: Any) -> GuildSnapshot:
        """Record one snapshot for ``guild`` and return it."""
        guild_id = GuildID.from_guild(guild)
        message_count = self._counter.drain(guild_id)
        messages_per_min = message_count / (self._interval / 60.0)
        snapshot = GuildSnapshot(
            guild_id=guild_id,
            member_count=guild.member_count or 0,
            online_count=count_online_members(guild),
            message_count=message_count,
            timestamp=utcnow(),
        )
        await self._guilds.record_stats(snapshot, messages_per_min)
        logger.info(
            "[MONITOR] Updated stats for guild %s: %d members, %d online, %.2f msg/min",
            guild.name,
            snapshot.member_count,
            snapshot.online_count,
            messages_per_min,
        )
        return snapshot

    async def _snapshot_all(self, bot: discord.Bot) -> None:
        for guild in self._target_guilds(bot):
            try:
                await self.snapshot_guild(guild)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("[MONITOR] Failed to update stats for guild %s: %s", guild.name, exc)

    async def _run_loop(self, bot: discord.Bot) -> None:
        logger.info("[MONITOR] Starting guild monitoring (interval=%.1fs)", self._interval)
        try:
            while True:
                await self._snapshot_all(bot)
                await asyncio.sleep(self._interval)
        except asyncio.CancelledError:
            logger.info("[MONITOR] Guild monitoring cancelled")
            raise

    def start(self, bot: discord.Bot) -> None:
        """Start the background task if not already running."""
        if self.running:
            logger.warning("[MONITOR] Monitoring task already running")
            return
        self._task = asyncio.create_task(self._run_loop(bot))

    async def shutdown(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("[MONITOR] Guild monitor shutdown complete")
