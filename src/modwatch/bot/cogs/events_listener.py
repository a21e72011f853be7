"""Event listener Cog for modwatch.

Handles bot lifecycle (on_ready), keeps the stored roles in step with Discord,
and reports application command errors. Message events live in
``MessageListenerCog``.
"""

import asyncio

import discord
from discord.ext import commands

from modwatch.bot import guild_sync
from modwatch.bot.runtime import BotServices
from modwatch.util.logger import get_logger

logger = get_logger("events_listener_cog")

COMMAND_ERROR_MESSAGE = "An error occurred while executing the command."


class EventsListenerCog(commands.Cog):
    """Cog containing lifecycle, role synchronisation and command error handlers."""

    def __init__(self, discord_bot_instance, services: BotServices):
        self.bot = discord_bot_instance
        self.services = services
        logger.info("Events listener cog loaded")

    def _monitored_guilds(self) -> list:
        return [guild for guild in self.bot.guilds if self.services.is_monitored(guild.id)]

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self):
        """Register and synchronise the monitored guilds, then start monitoring."""
        if self.bot.user:
            logger.info(f"Bot connected as {self.bot.user} (ID: {self.bot.user.id})")
        else:
            logger.warning("Bot partially connected, but user information not yet available.")

        logger.info("--==--==--==--==--==--==--==--==--==--==--==--==--==--==--==--==--")

        guilds = self._monitored_guilds()
        if self.services.monitored_guild_id is not None and not guilds:
            logger.error("Guild %s not found", self.services.monitored_guild_id)

        for guild in guilds:
            try:
                await guild_sync.sync_guild(self.services.database, guild)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Failed to synchronise guild %s", guild.id)

        if self.services.monitoring_enabled:
            self.services.guild_monitor.start(self.bot)

    @commands.Cog.listener(name="on_guild_role_create")
    async def on_guild_role_create(self, role: discord.Role):
        if self.services.is_monitored(role.guild.id):
            await self.services.database.roles.upsert_role(guild_sync.role_to_record(role))

    @commands.Cog.listener(name="on_guild_role_update")
    async def on_guild_role_update(self, before: discord.Role, after: discord.Role):
        if self.services.is_monitored(after.guild.id):
            await self.services.database.roles.upsert_role(guild_sync.role_to_record(after))

    @commands.Cog.listener(name="on_guild_role_delete")
    async def on_guild_role_delete(self, role: discord.Role):
        if self.services.is_monitored(role.guild.id):
            await self.services.database.roles.delete_role(guild_sync.role_to_record(role).id)

    @commands.Cog.listener(name="on_member_update")
    async def on_member_update(self, before: discord.Member, after: discord.Member):
        if not self.services.is_monitored(after.guild.id) or after.bot:
            return
        if [r.id for r in before.roles] == [r.id for r in after.roles]:
            return
        await guild_sync.sync_member_roles(self.services.database, after)

    @commands.Cog.listener(name="on_application_command_error")
    async def on_application_command_error(self, application_context: discord.ApplicationContext, error: Exception):
        """Log command errors and tell the invoker something went wrong."""
        if isinstance(error, commands.CommandNotFound):
            return

        command_name = getattr(application_context.command, "name", "<unknown>")
        logger.error(f"Error in command '{command_name}': {error}", exc_info=error)

        try:
            await application_context.respond(COMMAND_ERROR_MESSAGE, ephemeral=True)
        except discord.InteractionResponded:
            await application_context.followup.send(COMMAND_ERROR_MESSAGE, ephemeral=True)


def setup(discord_bot_instance, services: BotServices):
    """Register the EventsListenerCog with the bot."""
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance, services))
