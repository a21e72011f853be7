import json
from pathlib import Path

import pytest

from modwatch.configuration.app_configuration import AppConfig
from modwatch.datatypes.action_datatypes import ActionType
from modwatch.datatypes.discord_datatypes import GuildID
from modwatch.datatypes.flag_datatypes import FlagType


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "app_config.yml"


@pytest.fixture(autouse=True)
def clear_overrides(monkeypatch):
    for name in ("DISCORD_GUILD_ID", "ENABLE_MODERATION_API", "MODWATCH_DB_PATH"):
        monkeypatch.delenv(name, raising=False)


def test_app_config_reload_parses_yaml(config_path: Path, tmp_path: Path) -> None:
    config_payload = {
        "guild_id": "123456789012345678",
        "database": {"path": str(tmp_path / "audit.db")},
        "moderation": {"default_reason": "Rule 1", "default_mute_minutes": 30},
        "auto_moderation": {"enabled": True, "log_channel_name": "audit"},
        "classifier": {"provider": "keyword", "fallback_severity": 0.6},
        "monitoring": {"enabled": False, "interval_seconds": 60},
        "api": {"port": 9000, "max_page_size": 40},
    }
    config_path.write_text(json.dumps(config_payload), encoding="utf-8")

    config = AppConfig(config_path)

    assert config.monitored_guild_id == GuildID("123456789012345678")
    assert config.database_path == (tmp_path / "audit.db").resolve()
    assert config.moderation.default_reason == "Rule 1"
    assert config.moderation.default_mute_minutes == 30
    assert config.auto_moderation.enabled is True
    assert config.auto_moderation.log_channel_name == "audit"
    assert config.classifier.provider == "keyword"
    assert config.classifier.fallback_severity == pytest.approx(0.6)
    assert config.monitoring.enabled is False
    assert config.monitoring.interval_seconds == pytest.approx(60.0)
    assert config.api.port == 9000
    assert config.api.max_page_size == 40
    assert config.api.default_page_size == 20


def test_app_config_missing_file_returns_defaults(tmp_path: Path) -> None:
    config = AppConfig(tmp_path / "does_not_exist.yml")

    assert config.data == {}
    assert config.monitored_guild_id is None
    assert config.auto_moderation.enabled is False
    assert config.auto_moderation.log_channel_name == "mod-logs"
    assert config.moderation.default_reason == "No reason provided"
    assert config.moderation.default_mute_minutes == 60
    assert config.moderation.attribute_moderator_in_reason == frozenset({ActionType.BAN})
    assert config.classifier.model == "omni-moderation-latest"
    assert FlagType.SPAM in config.classifier.keyword_filters


def test_malformed_yaml_returns_empty(config_path: Path) -> None:
    config_path.write_text("guild_id: [unclosed", encoding="utf-8")
    assert AppConfig(config_path).data == {}


def test_environment_overrides(config_path: Path, tmp_path: Path, monkeypatch) -> None:
    config_path.write_text("guild_id: 1\nauto_moderation:\n  enabled: false\n", encoding="utf-8")
    monkeypatch.setenv("DISCORD_GUILD_ID", "42")
    monkeypatch.setenv("ENABLE_MODERATION_API", "true")
    monkeypatch.setenv("MODWATCH_DB_PATH", str(tmp_path / "env.db"))

    config = AppConfig(config_path)

    assert config.monitored_guild_id == GuildID(42)
    assert config.auto_moderation.enabled is True
    assert config.database_path == (tmp_path / "env.db").resolve()


def test_invalid_guild_id_disables_filter(config_path: Path) -> None:
    config_path.write_text("guild_id: not-a-snowflake\n", encoding="utf-8")
    assert AppConfig(config_path).monitored_guild_id is None


def test_mute_default_clamped_and_attribution_parsed(config_path: Path) -> None:
    config_path.write_text(
        "moderation:\n  default_mute_minutes: 99999\n  attribute_moderator_in_reason: [kick, bogus, BAN]\n",
        encoding="utf-8",
    )
    moderation = AppConfig(config_path).moderation

    assert moderation.default_mute_minutes == 10080
    assert moderation.attribute_moderator_in_reason == frozenset({ActionType.KICK, ActionType.BAN})


def test_reload_picks_up_changes(config_path: Path) -> None:
    config_path.write_text("guild_id: 1\n", encoding="utf-8")
    config = AppConfig(config_path)
    config_path.write_text("guild_id: 2\n", encoding="utf-8")

    config.reload()

    assert config.monitored_guild_id == GuildID(2)
