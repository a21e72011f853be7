"""Process-wide services shared by the bot's cogs.

Built once in ``main`` and handed to every cog's ``setup`` so the cogs never
reach for module-level state.
"""

from __future__ import annotations

from dataclasses import dataclass

from modwatch.configuration.app_configuration import AppConfig
from modwatch.database.database import Database
from modwatch.datatypes.discord_datatypes import GuildID
from modwatch.moderation.auto_moderator import AutoModerator
from modwatch.moderation.classifier import build_classifier
from modwatch.moderation.executor import ModerationExecutor
from modwatch.monitoring.guild_monitor import GuildMonitor
from modwatch.monitoring.message_rate import MessageRateCounter


@dataclass(slots=True)
class BotServices:
    database: Database
    executor: ModerationExecutor
    auto_moderator: AutoModerator
    message_counter: MessageRateCounter
    guild_monitor: GuildMonitor
    monitored_guild_id: GuildID | None
    monitoring_enabled: bool = True

    def is_monitored(self, guild_id: int | str) -> bool:
        return self.monitored_guild_id is None or self.monitored_guild_id == guild_id


def build_services(config: AppConfig, database: Database | None = None) -> BotServices:
    """Wire the moderation components from configuration."""
    database = database or Database(config.database_path)
    monitored_guild_id = config.monitored_guild_id
    counter = MessageRateCounter()
    monitoring = config.monitoring
    return BotServices(
        database=database,
        executor=ModerationExecutor(database.logs, config.moderation),
        auto_moderator=AutoModerator(
            database.flags,
            build_classifier(config.classifier),
            config.auto_moderation,
            monitored_guild_id,
        ),
        message_counter=counter,
        guild_monitor=GuildMonitor(
            database.guilds,
            counter,
            interval=monitoring.interval_seconds,
            monitored_guild_id=monitored_guild_id,
        ),
        monitored_guild_id=monitored_guild_id,
        monitoring_enabled=monitoring.enabled,
    )
