import datetime
from types import SimpleNamespace

from modwatch.datatypes.action_datatypes import ActionType
from modwatch.datatypes.flag_datatypes import FlagType
from modwatch.moderation import moderation_embed


def _fields(embed):
    return {field.name: field.value for field in embed.fields}


def test_ban_dm_embed_has_appeal_notice():
    embed = moderation_embed.build_action_dm_embed(ActionType.BAN, "Test Guild", "spam", "mod")

    assert embed.title == "You have been banned"
    assert "**Test Guild**" in embed.description
    fields = _fields(embed)
    assert fields["Reason"] == "spam"
    assert fields["Moderator"] == "mod"
    assert fields["Appeal"] == moderation_embed.APPEAL_TEXT


def test_mute_dm_embed_shows_duration_and_expiry():
    expires = datetime.datetime(2024, 5, 1, 13, 0, tzinfo=datetime.timezone.utc)
    embed = moderation_embed.build_action_dm_embed(
        ActionType.MUTE, "Test Guild", "flood", "mod", duration_minutes=60, expires_at=expires
    )

    fields = _fields(embed)
    assert fields["Duration"] == "60 minutes"
    assert fields["Expires"] == f"<t:{int(expires.timestamp())}:R>"
    assert "Appeal" not in fields


def test_warn_dm_embed():
    embed = moderation_embed.build_action_dm_embed(ActionType.WARN, "Test Guild", "tone", "mod")
    assert embed.title == "Warning"
    assert embed.colour.value == 0xFFFF00


def test_confirmation_embed_for_ban():
    target = SimpleNamespace(id=2, name="spammer", discriminator="0")
    embed = moderation_embed.build_action_confirmation_embed(
        ActionType.BAN, target, "mod", "spam", delete_message_days=3
    )

    assert embed.title == "User Banned"
    assert embed.description == "Successfully banned spammer"
    fields = _fields(embed)
    assert fields["User"] == "spammer (2)"
    assert fields["Messages Deleted"] == "3 days"


def test_confirmation_embed_without_deleted_messages():
    target = SimpleNamespace(id=2, name="spammer", discriminator="0")
    embed = moderation_embed.build_action_confirmation_embed(ActionType.BAN, target, "mod", "spam")
    assert _fields(embed)["Messages Deleted"] == "None"


def test_removal_dm_embed_truncates_content():
    embed = moderation_embed.build_removal_dm_embed("Test Guild", FlagType.SPAM, "x" * 3000)

    fields = _fields(embed)
    assert embed.title == "Message Removed"
    assert fields["Reason"] == "SPAM content detected"
    assert len(fields["Message"]) == 1024
    assert fields["Message"].endswith("...")
    assert fields["Note"] == moderation_embed.REMOVAL_NOTE


def test_auto_moderation_log_embed():
    author = SimpleNamespace(id=5, name="poster", discriminator="0")
    embed = moderation_embed.build_auto_moderation_log_embed(author, 9, FlagType.VIOLENCE, 0.456, "text")

    fields = _fields(embed)
    assert embed.title == "Auto-Moderation: Message Removed"
    assert fields["User"] == "poster (5)"
    assert fields["Channel"] == "<#9>"
    assert fields["Reason"] == "VIOLENCE"
    assert fields["Severity"] == "46%"


def test_past_tense():
    assert moderation_embed.past_tense(ActionType.MUTE) == "muted"
    assert moderation_embed.past_tense(ActionType.UNBAN) == "unbanned"
