"""Tests for the audit store repositories."""

from datetime import datetime, timedelta, timezone

import pytest

from modwatch.database.guilds import GuildSnapshot
from modwatch.database.moderation_logs import ModerationLogRepository
from modwatch.database.roles import RoleRecord
from modwatch.datatypes.action_datatypes import ActionType, ModerationLog
from modwatch.datatypes.discord_datatypes import GuildID, MessageID, RoleID, UserID
from modwatch.datatypes.flag_datatypes import FlagType, ModerationFlag

BASE = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
GUILD = GuildID(100)


def make_flag(flag_id, minutes=0, **overrides):
    fields = dict(
        id=flag_id,
        content=f"content {flag_id}",
        flag_type=FlagType.SPAM,
        severity=0.5,
        api_response={"model": "test"},
        created_at=BASE + timedelta(minutes=minutes),
    )
    fields.update(overrides)
    return ModerationFlag(**fields)


class TestSchema:
    @pytest.mark.asyncio
    async def test_initialize_creates_tables(self, database):
        async with database.connection.read() as db:
            cursor = await db.execute("SELECT name FROM sqlite_master WHERE type='table'")
            tables = {row["name"] for row in await cursor.fetchall()}
        assert {"moderation_logs", "moderation_flags", "discord_roles", "user_discord_roles", "artworks"} <= tables

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, database):
        assert await database.initialize()
        assert database.initialized

    @pytest.mark.asyncio
    async def test_schema_rejects_duration_without_expiry(self, database):
        with pytest.raises(Exception):
            async with database.connection.transaction() as db:
                await db.execute(
                    "INSERT INTO moderation_logs (id, guild_id, user_id, moderator_id, action, duration, created_at)"
                    " VALUES ('x', '1', '2', '3', 'MUTE', 60, '2024-01-01T00:00:00+00:00')"
                )
        assert await database.logs.count() == 0


class TestModerationLogs:
    @pytest.mark.asyncio
    async def test_create_and_read_back(self, database):
        entry = ModerationLog.create(
            guild_id=GUILD,
            user_id=UserID(2),
            moderator_id=UserID(3),
            action=ActionType.MUTE,
            reason="spam",
            duration_seconds=3600,
            created_at=BASE,
        )
        await database.logs.create(entry)

        stored = await database.logs.get(entry.id)
        assert stored == entry
        assert stored.expires_at == BASE + timedelta(hours=1)

    @pytest.mark.asyncio
    async def test_list_for_user_newest_first(self, database):
        for minutes, action in enumerate([ActionType.WARN, ActionType.MUTE, ActionType.KICK]):
            await database.logs.create(
                ModerationLog.create(
                    guild_id=GUILD,
                    user_id=UserID(2),
                    moderator_id=UserID(3),
                    action=action,
                    duration_seconds=60 if action is ActionType.MUTE else None,
                    created_at=BASE + timedelta(minutes=minutes),
                )
            )

        history = await database.logs.list_for_user(GUILD, UserID(2))
        assert [entry.action for entry in history] == [ActionType.KICK, ActionType.MUTE, ActionType.WARN]
        assert await database.logs.count(GUILD) == 3
        assert await database.logs.count(GuildID(555)) == 0

    def test_repository_has_no_mutating_operations(self):
        for name in ("update", "delete", "remove"):
            assert not hasattr(ModerationLogRepository, name)


class TestModerationFlags:
    @pytest.mark.asyncio
    async def test_create_and_get(self, database):
        flag = make_flag("f1", message_id=MessageID(77))
        await database.flags.create(flag)

        stored = await database.flags.get("f1")
        assert stored.message_id == MessageID(77)
        assert stored.api_response == {"model": "test"}
        assert stored.resolved is False
        assert await database.flags.get("missing") is None

    @pytest.mark.asyncio
    async def test_list_page_filters_and_orders(self, database):
        for index in range(25):
            await database.flags.create(make_flag(f"spam-{index:02d}", minutes=index))
        await database.flags.create(make_flag("hate", minutes=100, flag_type=FlagType.HATE_SPEECH))
        await database.flags.create(
            make_flag("done", minutes=101, resolved=True, resolved_by="9", resolved_at=BASE)
        )

        rows = await database.flags.list_page(resolved=False, flag_type=FlagType.SPAM, offset=20, limit=20)
        assert [flag.id for flag, _ in rows] == [f"spam-{index:02d}" for index in range(4, -1, -1)]
        assert all(artwork is None for _, artwork in rows)
        assert await database.flags.count(resolved=False, flag_type=FlagType.SPAM) == 25
        assert await database.flags.count(resolved=False, flag_type=None) == 26
        assert await database.flags.count(resolved=True, flag_type=None) == 1

    @pytest.mark.asyncio
    async def test_list_page_includes_artwork_and_uploader(self, database):
        await database.artworks.upsert_user("u1", "painter", "avatar.png")
        await database.artworks.create("a1", user_id="u1", title="Sunset", created_at=BASE)
        await database.flags.create(make_flag("f1", artwork_id="a1", flag_type=FlagType.NSFW))

        [(flag, artwork)] = await database.flags.list_page(resolved=False, flag_type=None, offset=0, limit=10)
        assert flag.artwork_id == "a1"
        assert artwork.title == "Sunset"
        assert artwork.published is True
        assert artwork.user.username == "painter"

    @pytest.mark.asyncio
    async def test_mark_resolved_unpublishes_in_same_call(self, database):
        await database.artworks.create("a1", user_id=None, title="Sketch", created_at=BASE)
        await database.flags.create(make_flag("f1", artwork_id="a1"))

        assert await database.flags.mark_resolved("f1", "42", BASE, unpublish_artwork=True)
        flag = await database.flags.get("f1")
        assert (flag.resolved, flag.resolved_by, flag.resolved_at) == (True, "42", BASE)
        assert (await database.artworks.get("a1")).published is False

        # second resolution is refused
        assert not await database.flags.mark_resolved("f1", "43", BASE)
        assert (await database.flags.get("f1")).resolved_by == "42"

    @pytest.mark.asyncio
    async def test_merge_api_response_keeps_existing_keys(self, database):
        await database.flags.create(make_flag("f1", api_response={"categories": {"spam": True}}))

        merged = await database.flags.merge_api_response("f1", {"escalated": True})
        assert merged == {"categories": {"spam": True}, "escalated": True}
        assert (await database.flags.get("f1")).api_response == merged
        assert await database.flags.merge_api_response("missing", {"escalated": True}) is None


class TestRolesAndGuilds:
    @pytest.mark.asyncio
    async def test_member_permission_strings(self, database):
        await database.roles.replace_guild_roles(
            GUILD,
            [
                RoleRecord(RoleID(1), GUILD, "Mods", str(1 << 13)),
                RoleRecord(RoleID(2), GUILD, "Everyone", "0"),
            ],
        )
        await database.roles.set_member_roles(GUILD, UserID(5), [RoleID(1), RoleID(2), RoleID(404)])

        strings = await database.roles.get_member_permission_strings(UserID(5), GUILD)
        assert sorted(strings) == ["0", str(1 << 13)]
        assert await database.roles.get_member_permission_strings(UserID(6), GUILD) == []
        assert await database.roles.get_member_permission_strings(UserID(5), GuildID(999)) == []
        assert len(await database.roles.get_member_permission_strings(UserID(5), None)) == 2

    @pytest.mark.asyncio
    async def test_delete_role_removes_assignments(self, database):
        await database.roles.upsert_role(RoleRecord(RoleID(1), GUILD, "Mods", str(1 << 40)))
        await database.roles.set_member_roles(GUILD, UserID(5), [RoleID(1)])
        await database.roles.delete_role(RoleID(1))
        assert await database.roles.get_member_permission_strings(UserID(5), GUILD) == []

    @pytest.mark.asyncio
    async def test_guild_stats_history(self, database):
        await database.guilds.upsert_guild(GUILD, "Test Guild", None, 50)
        for minutes in (0, 5, 10):
            snapshot = GuildSnapshot(GUILD, 50, 10 + minutes, minutes * 2, BASE + timedelta(minutes=minutes))
            await database.guilds.record_stats(snapshot, messages_per_min=minutes / 5)

        stats = await database.guilds.get_guild_stats(GUILD, limit=2)
        assert stats["name"] == "Test Guild"
        assert stats["online_count"] == 20
        assert stats["messages_per_min"] == pytest.approx(2.0)
        assert [s.online_count for s in stats["stats"]] == [20, 15]
        assert await database.guilds.get_guild_stats(GuildID(1)) is None


class TestStatsQueries:
    @pytest.mark.asyncio
    async def test_guild_stats_since_excludes_older_snapshots(self, database):
        await database.guilds.upsert_guild(GUILD, "Test Guild", None, 50)
        for hours in (0, 2, 30):
            snapshot = GuildSnapshot(GUILD, 50, hours, 1, BASE - timedelta(hours=hours))
            await database.guilds.record_stats(snapshot, messages_per_min=0.0)

        stats = await database.guilds.get_guild_stats(GUILD, since=BASE - timedelta(hours=24))

        assert [s.online_count for s in stats["stats"]] == [0, 2]

    @pytest.mark.asyncio
    async def test_count_by_action_groups_within_window(self, database):
        entries = [
            (GUILD, ActionType.BAN, 1),
            (GUILD, ActionType.BAN, 2),
            (GUILD, ActionType.WARN, 3),
            (GUILD, ActionType.KICK, 48),
            (GuildID(200), ActionType.BAN, 1),
        ]
        for guild_id, action, hours_ago in entries:
            await database.logs.create(
                ModerationLog.create(
                    guild_id=guild_id,
                    user_id=UserID(2),
                    moderator_id=UserID(1),
                    action=action,
                    created_at=BASE - timedelta(hours=hours_ago),
                )
            )

        recent = await database.logs.count_by_action(GUILD, since=BASE - timedelta(hours=24))
        everything = await database.logs.count_by_action(GUILD)

        assert recent == {ActionType.BAN: 2, ActionType.WARN: 1}
        assert everything[ActionType.KICK] == 1
