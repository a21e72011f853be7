from __future__ import annotations
from pathlib import Path
import fcntl
import os
from typing import Any, Dict
import yaml

from modwatch.configuration.settings import (
    ApiSettings,
    AutoModerationSettings,
    ClassifierSettings,
    ModerationSettings,
    MonitoringSettings,
)
from modwatch.datatypes.discord_datatypes import GuildID
from modwatch.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path(os.getenv("MODWATCH_CONFIG", "./config/app_config.yml")).resolve()
DEFAULT_DB_PATH = "./data/modwatch.db"

_TRUTHY = {"1", "true", "yes", "on"}


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml`` and exposes
    typed section helpers. A handful of deployment values can be overridden
    from the environment (usually populated from ``.env``):

    * ``DISCORD_GUILD_ID`` overrides ``guild_id``
    * ``ENABLE_MODERATION_API`` overrides ``auto_moderation.enabled``
    * ``MODWATCH_DB_PATH`` overrides ``database.path``
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                return data if isinstance(data, dict) else {}
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    def _section(self, key: str) -> Dict[str, Any]:
        value = self._data.get(key, {})
        return dict(value) if isinstance(value, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns an empty mapping when the file is missing or malformed.
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the cached configuration mapping. Callers must not mutate it."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def monitored_guild_id(self) -> GuildID | None:
        """The single community the bot moderates, or None to moderate every guild."""
        raw = os.getenv("DISCORD_GUILD_ID") or self._data.get("guild_id")
        if raw in (None, ""):
            return None
        try:
            return GuildID(raw)
        except ValueError:
            logger.error("[APP CONFIGURATION] Invalid guild id %r; moderating every guild", raw)
            return None

    @property
    def database_path(self) -> Path:
        env_path = os.getenv("MODWATCH_DB_PATH")
        if env_path:
            return Path(env_path).resolve()
        value = self._section("database").get("path") or DEFAULT_DB_PATH
        return Path(str(value)).resolve()

    @property
    def moderation(self) -> ModerationSettings:
        return ModerationSettings(self._section("moderation"))

    @property
    def auto_moderation(self) -> AutoModerationSettings:
        section = self._section("auto_moderation")
        env_flag = os.getenv("ENABLE_MODERATION_API")
        if env_flag is not None:
            section["enabled"] = env_flag.strip().lower() in _TRUTHY
        return AutoModerationSettings(section)

    @property
    def classifier(self) -> ClassifierSettings:
        return ClassifierSettings(self._section("classifier"))

    @property
    def monitoring(self) -> MonitoringSettings:
        return MonitoringSettings(self._section("monitoring"))

    @property
    def api(self) -> ApiSettings:
        return ApiSettings(self._section("api"))


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
