"""
Permission lookup against the role data synchronised into the audit store.

Used where no live Discord member object is available (the queue API): the
stored bitmask of every role the user holds in the guild is combined and
tested against the required capabilities.
"""

from __future__ import annotations

from modwatch.database.roles import RoleRepository
from modwatch.datatypes.discord_datatypes import GuildID, UserID
from modwatch.datatypes.permission_datatypes import Capability, MODERATION_CAPABILITIES
from modwatch.util.logger import get_logger

logger = get_logger("permissions")


class PermissionLookup:
    """Answer "does this user hold any of these capabilities in this guild?"."""

    def __init__(self, roles: RoleRepository):
        self._roles = roles

    async def capabilities_of(self, user_id: UserID, guild_id: GuildID | None) -> Capability:
        """Union of the capabilities of every role the user holds in the guild."""
        permission_strings = await self._roles.get_member_permission_strings(user_id, guild_id)
        return Capability.union(Capability.from_permission_string(value) for value in permission_strings)

    async def has_any_capability(self, user_id: UserID, guild_id: GuildID | None, required: Capability) -> bool:
        """
        Args:
            user_id: Acting user.
            guild_id: Guild whose roles are consulted; None for every guild.
            required: Capabilities of which at least one must be held.

        Returns:
            False for users with no stored roles.
        """
        combined = await self.capabilities_of(user_id, guild_id)
        allowed = combined.has_any(required)
        if not allowed:
            logger.debug("[PERMISSIONS] User %s lacks %r in guild %s", user_id, required, guild_id)
        return allowed

    async def can_moderate(self, user_id: UserID, guild_id: GuildID | None) -> bool:
        return await self.has_any_capability(user_id, guild_id, MODERATION_CAPABILITIES)
