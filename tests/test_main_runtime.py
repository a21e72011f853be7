import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from modwatch import main
from modwatch.bot import runtime
from modwatch.datatypes.discord_datatypes import GuildID


class FakeBot:
    def __init__(self, *args, **kwargs) -> None:
        self.kwargs = kwargs
        self.cogs = []
        self._closed = False
        self.close = AsyncMock(side_effect=self._mark_closed)

    def _mark_closed(self) -> None:
        self._closed = True

    def is_closed(self) -> bool:
        return self._closed

    def add_cog(self, cog) -> None:
        self.cogs.append(cog)


def make_services(monitored=None, initialize=True):
    return SimpleNamespace(
        database=SimpleNamespace(
            db_path="test.db",
            initialize=AsyncMock(return_value=initialize),
            shutdown=AsyncMock(),
        ),
        guild_monitor=SimpleNamespace(shutdown=AsyncMock()),
        monitored_guild_id=monitored,
        executor=object(),
    )


def test_build_intents():
    intents = main.build_intents()
    assert intents.message_content
    assert intents.members
    assert intents.presences


def test_load_environment_requires_token(monkeypatch):
    monkeypatch.setattr(main, "load_dotenv", lambda **_: None)
    monkeypatch.delenv("DISCORD_BOT_TOKEN", raising=False)
    with pytest.raises(SystemExit):
        main.load_environment()

    monkeypatch.setenv("DISCORD_BOT_TOKEN", "abc")
    assert main.load_environment() == "abc"


def test_resolve_base_dir_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("MODWATCH_HOME", str(tmp_path))
    assert main.resolve_base_dir() == tmp_path.resolve()


def test_create_bot_registers_cogs(monkeypatch):
    monkeypatch.setattr(main.discord, "Bot", FakeBot)

    bot = main.create_bot(make_services(monitored=GuildID(100)))

    assert bot.kwargs["debug_guilds"] == [100]
    assert len(bot.cogs) == 3


@pytest.mark.asyncio
async def test_async_main_successful_shutdown(monkeypatch):
    services = make_services()
    monkeypatch.setattr(main, "load_environment", lambda: "token")
    monkeypatch.setattr(runtime, "build_services", lambda config: services)
    monkeypatch.setattr(main, "create_bot", lambda svc: FakeBot())
    start_bot_mock = AsyncMock()
    monkeypatch.setattr(main, "start_bot", start_bot_mock)
    shutdown_mock = AsyncMock()
    monkeypatch.setattr(main, "shutdown_runtime", shutdown_mock)

    assert await main.async_main() == 0

    start_bot_mock.assert_awaited_once()
    shutdown_mock.assert_awaited_once()


@pytest.mark.asyncio
async def test_async_main_database_failure(monkeypatch):
    services = make_services(initialize=False)
    monkeypatch.setattr(main, "load_environment", lambda: "token")
    monkeypatch.setattr(runtime, "build_services", lambda config: services)
    create_bot = AsyncMock()
    monkeypatch.setattr(main, "create_bot", create_bot)

    assert await main.async_main() == 1
    create_bot.assert_not_called()


@pytest.mark.asyncio
async def test_start_bot_swallows_cancellation():
    bot = SimpleNamespace(start=AsyncMock(side_effect=asyncio.CancelledError()))
    await main.start_bot(bot, "token")
    bot.start.assert_awaited_once_with("token")


@pytest.mark.asyncio
async def test_shutdown_runtime_closes_everything():
    services = make_services()
    bot = FakeBot()

    await main.shutdown_runtime(bot, services)

    services.guild_monitor.shutdown.assert_awaited_once()
    bot.close.assert_awaited_once()
    services.database.shutdown.assert_awaited_once()


@pytest.mark.asyncio
async def test_shutdown_runtime_continues_after_errors():
    services = make_services()
    services.guild_monitor.shutdown = AsyncMock(side_effect=RuntimeError("stuck"))

    await main.shutdown_runtime(None, services)

    services.database.shutdown.assert_awaited_once()


def test_build_services_wires_shared_counter(monkeypatch, tmp_path):
    from modwatch.configuration.app_configuration import AppConfig
    from modwatch.moderation.classifier import KeywordContentClassifier

    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("DISCORD_GUILD_ID", raising=False)
    monkeypatch.setenv("MODWATCH_DB_PATH", str(tmp_path / "wired.db"))
    config = AppConfig(tmp_path / "missing.yml")

    services = runtime.build_services(config)

    assert services.database.db_path == (tmp_path / "wired.db").resolve()
    assert services.guild_monitor._counter is services.message_counter
    assert isinstance(services.auto_moderator._classifier, KeywordContentClassifier)
    assert services.is_monitored(12345)
