"""
Named Discord permission bits.

Role permissions arrive from Discord as decimal strings because the bitmask
exceeds 53 bits. ``Capability`` gives every bit the bot reasons about a name
so checks never depend on hand-written shifts.
"""

from __future__ import annotations

from enum import IntFlag
from typing import Iterable

from modwatch.util.logger import get_logger

logger = get_logger("permission_datatypes")


class Capability(IntFlag):
    """Discord permission bits (positions match the Discord API)."""

    NONE = 0
    KICK_MEMBERS = 1 << 1
    BAN_MEMBERS = 1 << 2
    ADMINISTRATOR = 1 << 3
    MANAGE_CHANNELS = 1 << 4
    MANAGE_GUILD = 1 << 5
    VIEW_AUDIT_LOG = 1 << 7
    VIEW_CHANNEL = 1 << 10
    SEND_MESSAGES = 1 << 11
    MANAGE_MESSAGES = 1 << 13
    READ_MESSAGE_HISTORY = 1 << 16
    MANAGE_ROLES = 1 << 28
    MODERATE_MEMBERS = 1 << 40

    @classmethod
    def from_permission_string(cls, value: str | int | None) -> "Capability":
        """Parse a stored bitmask into the named bits it contains.

        Bits with no name here are dropped. Malformed input yields ``NONE``.
        """
        if value is None or value == "":
            return cls.NONE
        try:
            bits = int(value)
        except (TypeError, ValueError):
            logger.warning("[PERMISSIONS] Ignoring malformed permission bitmask %r", value)
            return cls.NONE
        if bits < 0:
            logger.warning("[PERMISSIONS] Ignoring negative permission bitmask %r", value)
            return cls.NONE
        known = 0
        for member in cls:
            known |= member.value
        return cls(bits & known)

    @classmethod
    def union(cls, capabilities: Iterable["Capability"]) -> "Capability":
        combined = cls.NONE
        for capability in capabilities:
            combined |= capability
        return combined

    def has_any(self, required: "Capability") -> bool:
        """True if at least one bit of ``required`` is present."""
        return bool(self & required)

    def to_permission_string(self) -> str:
        return str(int(self))


MODERATION_CAPABILITIES = Capability.MANAGE_MESSAGES | Capability.MODERATE_MEMBERS
