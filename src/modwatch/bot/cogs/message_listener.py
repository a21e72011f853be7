"""Message listener Cog for modwatch.

Feeds every guild message to the message-rate counter and to automatic
moderation.
"""

import discord
from discord.ext import commands

from modwatch.bot.runtime import BotServices
from modwatch.datatypes.discord_datatypes import GuildID
from modwatch.util.discord_utils import is_ignored_author
from modwatch.util.logger import get_logger

logger = get_logger("message_listener_cog")


class MessageListenerCog(commands.Cog):
    """Cog responsible for handling message creation events."""

    def __init__(self, discord_bot_instance, services: BotServices):
        self.bot = discord_bot_instance
        self.services = services
        logger.info("Message listener cog loaded")

    def _count_message(self, message: discord.Message) -> None:
        if message.guild is None or is_ignored_author(message.author):
            return
        if not self.services.is_monitored(message.guild.id):
            return
        self.services.message_counter.record(GuildID.from_guild(message.guild))

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message) -> None:
        self._count_message(message)
        outcome = await self.services.auto_moderator.process_message(message)
        if outcome.flagged:
            logger.debug("Message %s flagged (flag %s)", message.id, outcome.flag_id)


def setup(discord_bot_instance, services: BotServices):
    """Register the MessageListenerCog with the bot."""
    discord_bot_instance.add_cog(MessageListenerCog(discord_bot_instance, services))
