from typing import Any, Dict, List

from modwatch.datatypes.action_datatypes import ActionType
from modwatch.datatypes.flag_datatypes import FlagType


MUTE_MIN_MINUTES = 1
MUTE_MAX_MINUTES = 10080  # 7 days
BAN_DELETE_DAYS_MAX = 7

DEFAULT_KEYWORD_FILTERS: Dict[str, List[str]] = {
    FlagType.HATE_SPEECH.value: ["hate", "racist", "sexist"],
    FlagType.HARASSMENT.value: ["kys", "kill yourself", "die"],
    FlagType.SPAM.value: ["discord.gg/", "bit.ly/", "tinyurl.com/"],
}


class SettingsSection:
    """Typed accessors over one mapping section of ``app_config.yml``.

    Subclasses only add properties; ``get`` and ``as_dict`` stay available for
    keys without a dedicated accessor.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for `key` or `default` if missing."""
        return self.data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        return self.data


class ModerationSettings(SettingsSection):
    """Settings for the manual moderation commands."""

    @property
    def default_reason(self) -> str:
        return str(self.data.get("default_reason") or "No reason provided")

    @property
    def default_mute_minutes(self) -> int:
        value = int(self.data.get("default_mute_minutes", 60))
        return min(max(value, MUTE_MIN_MINUTES), MUTE_MAX_MINUTES)

    @property
    def attribute_moderator_in_reason(self) -> frozenset[ActionType]:
        """Actions whose platform-level reason gets a ``(by <moderator>)`` suffix."""
        raw = self.data.get("attribute_moderator_in_reason", ["ban"])
        if not isinstance(raw, (list, tuple)):
            return frozenset()
        actions = set()
        for name in raw:
            try:
                actions.add(ActionType(str(name).upper()))
            except ValueError:
                continue
        return frozenset(actions)


class AutoModerationSettings(SettingsSection):
    """Settings for the automatic message listener."""

    @property
    def enabled(self) -> bool:
        return bool(self.data.get("enabled", False))

    @property
    def log_channel_name(self) -> str:
        return str(self.data.get("log_channel_name") or "mod-logs")


class ClassifierSettings(SettingsSection):
    """Settings for the content classifier."""

    @property
    def provider(self) -> str:
        return str(self.data.get("provider") or "openai").lower()

    @property
    def model(self) -> str:
        return str(self.data.get("model") or "omni-moderation-latest")

    @property
    def fallback_severity(self) -> float:
        return float(self.data.get("fallback_severity", 0.8))

    @property
    def keyword_filters(self) -> Dict[FlagType, List[str]]:
        raw = self.data.get("keyword_filters")
        if not isinstance(raw, dict):
            raw = DEFAULT_KEYWORD_FILTERS
        filters: Dict[FlagType, List[str]] = {}
        for category, words in raw.items():
            try:
                flag_type = FlagType(str(category).upper())
            except ValueError:
                continue
            if isinstance(words, (list, tuple)):
                filters[flag_type] = [str(word).lower() for word in words if str(word).strip()]
        return filters


class MonitoringSettings(SettingsSection):
    """Settings for the periodic guild statistics task."""

    @property
    def enabled(self) -> bool:
        return bool(self.data.get("enabled", True))

    @property
    def interval_seconds(self) -> float:
        return float(self.data.get("interval_seconds", 300.0))


class ApiSettings(SettingsSection):
    """Settings for the moderation queue HTTP service."""

    @property
    def host(self) -> str:
        return str(self.data.get("host") or "127.0.0.1")

    @property
    def port(self) -> int:
        return int(self.data.get("port", 8000))

    @property
    def default_page_size(self) -> int:
        return int(self.data.get("default_page_size", 20))

    @property
    def max_page_size(self) -> int:
        return int(self.data.get("max_page_size", 100))
