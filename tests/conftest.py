"""
Pytest configuration and fixtures for modwatch tests.
"""

import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from modwatch.database.database import Database  # noqa: E402


@pytest_asyncio.fixture
async def database(tmp_path):
    """Initialized audit store in a temporary directory."""
    db = Database(tmp_path / "modwatch.db")
    assert await db.initialize()
    yield db
    await db.shutdown()


def make_permissions(**granted):
    names = (
        "administrator",
        "kick_members",
        "ban_members",
        "moderate_members",
        "manage_messages",
    )
    return SimpleNamespace(**{name: granted.get(name, False) for name in names})


def make_member(member_id, *, name=None, bot=False, top_role=1, **permissions):
    """Guild member stand-in with the attributes the pipeline touches."""
    return SimpleNamespace(
        id=member_id,
        name=name or f"user{member_id}",
        discriminator="0",
        bot=bot,
        top_role=top_role,
        guild_permissions=make_permissions(**permissions),
        send=AsyncMock(),
        kick=AsyncMock(),
        timeout_for=AsyncMock(),
    )


def make_guild(guild_id=100, *, members=(), owner_id=1, me=None, text_channels=()):
    me = me or make_member(999, name="modwatch", bot=True, top_role=10,
                           kick_members=True, ban_members=True, moderate_members=True)
    by_id = {member.id: member for member in members}
    return SimpleNamespace(
        id=guild_id,
        name="Test Guild",
        owner_id=owner_id,
        me=me,
        get_member=by_id.get,
        ban=AsyncMock(),
        text_channels=list(text_channels),
    )


@pytest.fixture
def member_factory():
    return make_member


@pytest.fixture
def guild_factory():
    return make_guild
