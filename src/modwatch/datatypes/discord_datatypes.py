"""
Type-safe wrapper classes for Discord identifiers.

Discord snowflakes are 64-bit integers but the audit store and the HTTP
surface carry them as strings. These wrappers keep that conversion in one
place and stop a guild id from being passed where a user id is expected.
"""

from __future__ import annotations

from typing import Any, Union


class SnowflakeID:
    """
    Base wrapper for a Discord snowflake ID.

    The value is stored as a normalised decimal string. Equality accepts the
    same wrapper type, a ``str`` or an ``int``; two different wrapper types
    never compare equal even when the numbers match.

    Example:
        >>> uid = UserID(123456789012345678)
        >>> uid.to_int()
        123456789012345678
        >>> str(uid)
        '123456789012345678'
        >>> uid == "123456789012345678"
        True
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, int, "SnowflakeID"]) -> None:
        """
        Args:
            value: The snowflake as a string, int, or wrapper of the same type.

        Raises:
            ValueError: If the value is not a non-negative integer.
        """
        if isinstance(value, SnowflakeID):
            if not isinstance(value, type(self)):
                raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}")
            self._value = value._value
            return
        if isinstance(value, bool):
            raise ValueError(f"Cannot create {type(self).__name__} from bool")
        if isinstance(value, int):
            number = value
        elif isinstance(value, str):
            number = int(value.strip())
        else:
            raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}: {value}")
        if number < 0:
            raise ValueError(f"{type(self).__name__} must be non-negative, got {number}")
        self._value = str(number)

    @classmethod
    def from_object(cls, obj: Any):
        """Create the wrapper from any Discord model exposing an ``id`` attribute."""
        return cls(obj.id)

    def to_int(self) -> int:
        """Convert to an integer for Discord API calls."""
        return int(self._value)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SnowflakeID):
            return type(self) is type(other) and self._value == other._value
        if isinstance(other, str):
            return self._value == other
        if isinstance(other, int) and not isinstance(other, bool):
            return self._value == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._value))


class UserID(SnowflakeID):
    """Snowflake of a Discord user or guild member."""

    __slots__ = ()

    @classmethod
    def from_user(cls, user: Any) -> "UserID":
        return cls(user.id)


class GuildID(SnowflakeID):
    """Snowflake of a Discord guild (community)."""

    __slots__ = ()

    @classmethod
    def from_guild(cls, guild: Any) -> "GuildID":
        return cls(guild.id)


class ChannelID(SnowflakeID):
    """Snowflake of a text channel or thread."""

    __slots__ = ()

    @classmethod
    def from_channel(cls, channel: Any) -> "ChannelID":
        return cls(channel.id)


class MessageID(SnowflakeID):
    """Snowflake of a chat message."""

    __slots__ = ()

    @classmethod
    def from_message(cls, message: Any) -> "MessageID":
        return cls(message.id)


class RoleID(SnowflakeID):
    """Snowflake of a guild role."""

    __slots__ = ()

    @classmethod
    def from_role(cls, role: Any) -> "RoleID":
        return cls(role.id)


def display_tag(user: Any) -> str:
    """Return the human-readable handle of a user (``name`` or legacy ``name#1234``)."""
    name = getattr(user, "name", None) or str(user)
    discriminator = getattr(user, "discriminator", None)
    if discriminator and discriminator != "0":
        return f"{name}#{discriminator}"
    return str(name)
