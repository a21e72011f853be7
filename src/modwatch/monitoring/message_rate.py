"""Per-guild message counter feeding the periodic guild statistics."""

from __future__ import annotations

from collections import Counter

from modwatch.datatypes.discord_datatypes import GuildID


class MessageRateCounter:
    """
    Count messages per guild between two statistics snapshots.

    The message listener calls ``record`` for every counted message; the guild
    monitor calls ``drain`` once per interval, which returns the count and
    resets it in the same step so no message is counted twice.
    """

    def __init__(self) -> None:
        self._counts: Counter[GuildID] = Counter()

    def record(self, guild_id: GuildID) -> None:
        self._counts[guild_id] += 1

    def peek(self, guild_id: GuildID) -> int:
        return self._counts.get(guild_id, 0)

    def drain(self, guild_id: GuildID) -> int:
        """Return the messages counted since the last drain and reset to zero."""
        return self._counts.pop(guild_id, 0)
