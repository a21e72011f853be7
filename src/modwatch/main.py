"""
modwatch Discord bot
====================

Runs the moderation bot: manual moderation slash commands, automatic message
moderation, role synchronisation for the review queue and periodic guild
statistics, all recorded in the SQLite audit store.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. MODWATCH_HOME environment variable, if set.
    2. If running in a frozen/compiled context, the executable's directory.
    3. Otherwise the repository root (two levels above this package).
    """
    if env_home := os.getenv("MODWATCH_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()

import asyncio

import discord
from dotenv import load_dotenv

from modwatch.util.logger import get_logger, handle_exception

logger = get_logger("main")


def load_environment() -> str:
    """Load ``.env`` and return the Discord bot token.

    Raises
    ------
    SystemExit
        If ``DISCORD_BOT_TOKEN`` is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Intents for message content, member roles and presences (online counts)."""
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    intents.members = True
    intents.presences = True
    intents.moderation = True
    return intents


def load_cogs(discord_bot_instance: discord.Bot, services) -> None:
    from modwatch.bot.cogs import events_listener, message_listener, moderation_cmds

    events_listener.setup(discord_bot_instance, services)
    message_listener.setup(discord_bot_instance, services)
    moderation_cmds.setup(discord_bot_instance, services)

    logger.info("All cogs loaded successfully.")


def create_bot(services) -> discord.Bot:
    """Instantiate the Discord bot and register all cogs."""
    debug_guilds = [services.monitored_guild_id.to_int()] if services.monitored_guild_id else None
    bot = discord.Bot(intents=build_intents(), debug_guilds=debug_guilds)
    load_cogs(bot, services)
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot | None, services) -> None:
    """Stop the monitor, close the bot and the database."""
    try:
        await services.guild_monitor.shutdown()
    except Exception as exc:
        logger.exception("Error during guild monitor shutdown: %s", exc)

    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing the Discord client: %s", exc)

    try:
        await services.database.shutdown()
    except Exception as exc:
        logger.exception("Error during database shutdown: %s", exc)

    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap the database and the bot, returning an exit code."""
    token = load_environment()

    from modwatch.bot.runtime import build_services
    from modwatch.configuration.app_configuration import app_config

    services = build_services(app_config)
    logger.info("Initializing database at %s...", services.database.db_path)
    if not await services.database.initialize():
        logger.critical("Failed to initialize database")
        return 1

    try:
        bot = create_bot(services)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        await services.database.shutdown()
        return 1

    exit_code = 0
    try:
        await start_bot(bot, token)
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot, services)
    return exit_code


def main() -> int:
    """Console entry point; returns the process exit code."""
    sys.excepthook = handle_exception
    os.chdir(BASE_DIR)
    logger.info("Starting modwatch moderation bot…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
