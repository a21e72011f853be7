import pytest

from modwatch.datatypes.permission_datatypes import Capability, MODERATION_CAPABILITIES


def test_named_bits_match_discord_positions():
    assert Capability.MANAGE_MESSAGES == 1 << 13
    assert Capability.MODERATE_MEMBERS == 1 << 40
    assert Capability.KICK_MEMBERS == 2
    assert Capability.BAN_MEMBERS == 4


def test_parse_permission_string_beyond_53_bits():
    value = str((1 << 40) | (1 << 13) | (1 << 60))
    parsed = Capability.from_permission_string(value)
    assert parsed == Capability.MODERATE_MEMBERS | Capability.MANAGE_MESSAGES


@pytest.mark.parametrize("value", [None, "", "not-a-number", "-8", "1.5"])
def test_malformed_permission_strings_grant_nothing(value):
    assert Capability.from_permission_string(value) == Capability.NONE


def test_union_and_has_any():
    combined = Capability.union(
        [Capability.from_permission_string("2"), Capability.from_permission_string(str(1 << 13))]
    )
    assert combined.has_any(MODERATION_CAPABILITIES)
    assert not Capability.KICK_MEMBERS.has_any(MODERATION_CAPABILITIES)
    assert Capability.union([]) == Capability.NONE


def test_to_permission_string():
    assert MODERATION_CAPABILITIES.to_permission_string() == str((1 << 13) | (1 << 40))
