"""
Moderation cog: slash commands for kicking, banning, muting and warning members.

Each command checks the invoker's live guild permission, builds a
``ModerationRequest`` and hands it to the shared ``ModerationExecutor``. The
executor runs the target checks, the Discord call and the audit write. The
interaction is deferred before the executor runs; a successful action is then
announced in the channel and everything else is answered ephemerally.

Quick usage example
    from modwatch.bot.cogs import moderation_cmds
    moderation_cmds.setup(bot, services)
"""

import discord
from discord import Option
from discord.ext import commands

from modwatch.bot.runtime import BotServices
from modwatch.configuration.settings import BAN_DELETE_DAYS_MAX, MUTE_MAX_MINUTES, MUTE_MIN_MINUTES
from modwatch.datatypes.outcome_datatypes import CommandOutcome
from modwatch.moderation.executor import GENERIC_ERROR_MESSAGE, ModerationRequest
from modwatch.util.discord_utils import has_permissions
from modwatch.util.logger import get_logger

logger = get_logger("moderation_cog")

NO_PERMISSION_MESSAGE = "You do not have permission to use this command."


class ModerationActionCog(commands.Cog):
    """Cog containing the manual moderation slash commands."""

    def __init__(self, discord_bot_instance, services: BotServices):
        self.discord_bot_instance = discord_bot_instance
        self.executor = services.executor
        logger.info("Moderation cog loaded")

    async def _authorize(self, ctx: discord.ApplicationContext, permission_name: str) -> bool:
        """Reply with a rejection unless the invoker holds ``permission_name``."""
        if ctx.guild is None:
            await ctx.respond("This command can only be used in a server.", ephemeral=True)
            return False
        if not has_permissions(ctx, **{permission_name: True}):
            await ctx.respond(NO_PERMISSION_MESSAGE, ephemeral=True)
            return False
        return True

    async def _announce(self, ctx: discord.ApplicationContext, embed: discord.Embed) -> bool:
        """Post a confirmation embed publicly in the invoking channel."""
        if ctx.channel is None:
            return False
        try:
            await ctx.channel.send(embed=embed)
        except discord.HTTPException as exc:
            logger.warning("Could not announce moderation action in channel: %s", exc)
            return False
        return True

    async def _reply(self, ctx: discord.ApplicationContext, outcome: CommandOutcome) -> None:
        try:
            if outcome.embed is None:
                await ctx.send_followup(outcome.message, ephemeral=True)
            elif await self._announce(ctx, outcome.embed):
                await ctx.send_followup(outcome.message, ephemeral=True)
            else:
                await ctx.send_followup(embed=outcome.embed, ephemeral=True)
        except discord.HTTPException as exc:
            logger.error("Failed to send command response: %s", exc)

    def _request(self, ctx: discord.ApplicationContext, user, reason, **extra) -> ModerationRequest:
        return ModerationRequest(
            guild=ctx.guild,
            moderator=ctx.author,
            target=user,
            reason=reason,
            **extra,
        )

    async def _run(self, ctx: discord.ApplicationContext, handler, request: ModerationRequest) -> None:
        await ctx.defer(ephemeral=True)
        try:
            outcome = await handler(request)
        except Exception:
            logger.exception("Unhandled error in moderation command")
            outcome = CommandOutcome.rejected(GENERIC_ERROR_MESSAGE)
        await self._reply(ctx, outcome)

    @commands.slash_command(name="kick", description="Kick a user from the server")
    @discord.default_permissions(kick_members=True)
    async def kick(
        self,
        ctx: discord.ApplicationContext,
        user: Option(discord.Member, "The user to kick", required=True),  # type: ignore
        reason: Option(str, "The reason for the kick", required=False, default=None),  # type: ignore
    ) -> None:
        """Remove a member from the guild; they can rejoin with an invite."""
        if not await self._authorize(ctx, "kick_members"):
            return
        await self._run(ctx, self.executor.kick, self._request(ctx, user, reason))

    @commands.slash_command(name="ban", description="Ban a user from the server")
    @discord.default_permissions(ban_members=True)
    async def ban(
        self,
        ctx: discord.ApplicationContext,
        user: Option(discord.User, "The user to ban", required=True),  # type: ignore
        reason: Option(str, "The reason for the ban", required=False, default=None),  # type: ignore
        delete_days: Option(
            int,
            "Number of days of messages to delete (0-7)",
            min_value=0,
            max_value=BAN_DELETE_DAYS_MAX,
            default=0,
        ),  # type: ignore
    ) -> None:
        """Ban a user, including one who already left the guild."""
        if not await self._authorize(ctx, "ban_members"):
            return
        request = self._request(ctx, user, reason, delete_message_days=delete_days)
        await self._run(ctx, self.executor.ban, request)

    @commands.slash_command(name="mute", description="Mute a user")
    @discord.default_permissions(moderate_members=True)
    async def mute(
        self,
        ctx: discord.ApplicationContext,
        user: Option(discord.Member, "The user to mute", required=True),  # type: ignore
        duration: Option(
            int,
            "Duration in minutes",
            min_value=MUTE_MIN_MINUTES,
            max_value=MUTE_MAX_MINUTES,
            required=False,
            default=None,
        ),  # type: ignore
        reason: Option(str, "The reason for the mute", required=False, default=None),  # type: ignore
    ) -> None:
        """Time out a member for up to seven days."""
        if not await self._authorize(ctx, "moderate_members"):
            return
        request = self._request(ctx, user, reason, duration_minutes=duration)
        await self._run(ctx, self.executor.mute, request)

    @commands.slash_command(name="warn", description="Warn a user")
    @discord.default_permissions(moderate_members=True)
    async def warn(
        self,
        ctx: discord.ApplicationContext,
        user: Option(discord.Member, "The user to warn", required=True),  # type: ignore
        reason: Option(str, "The reason for the warning", required=False, default=None),  # type: ignore
    ) -> None:
        """Record a warning and DM the member; nothing is enforced."""
        if not await self._authorize(ctx, "moderate_members"):
            return
        await self._run(ctx, self.executor.warn, self._request(ctx, user, reason))


def setup(discord_bot_instance, services: BotServices):
    """Register the moderation cog with the bot."""
    discord_bot_instance.add_cog(ModerationActionCog(discord_bot_instance, services))
