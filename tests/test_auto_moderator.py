from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from modwatch.configuration.settings import AutoModerationSettings
from modwatch.datatypes.discord_datatypes import GuildID
from modwatch.datatypes.flag_datatypes import ClassificationResult, FlagType
from modwatch.moderation import auto_moderator
from modwatch.moderation.auto_moderator import AutoModerator

HATE_VERDICT = ClassificationResult(
    flagged=True,
    category=FlagType.HATE_SPEECH,
    severity=0.93,
    raw={"flagged": True, "categories": {"hate": True}},
)


class StubClassifier:
    def __init__(self, verdict=None, error=None):
        self.verdict = verdict or ClassificationResult.clean()
        self.error = error
        self.calls = []

    async def classify(self, text):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.verdict


@pytest.fixture
def log_channel():
    return SimpleNamespace(name="mod-logs", send=AsyncMock())


@pytest.fixture
def make_message(member_factory, guild_factory, log_channel):
    guild = guild_factory(text_channels=[SimpleNamespace(name="general", send=AsyncMock()), log_channel])

    def _make(content="hello", *, author=None, in_guild=True):
        return SimpleNamespace(
            id=555,
            content=content,
            author=author or member_factory(2, name="poster"),
            guild=guild if in_guild else None,
            channel=SimpleNamespace(id=9),
            delete=AsyncMock(),
        )

    return _make


def make_moderator(database, classifier, enabled=True, monitored=None):
    return AutoModerator(
        database.flags,
        classifier,
        AutoModerationSettings({"enabled": enabled}),
        monitored_guild_id=monitored,
    )


@pytest.mark.asyncio
async def test_flagged_message_full_pipeline(database, make_message, log_channel):
    classifier = StubClassifier(HATE_VERDICT)
    message = make_message("offensive words")

    outcome = await make_moderator(database, classifier).process_message(message)

    assert outcome.flagged
    assert outcome.skipped_reason is None
    message.delete.assert_awaited_once()
    assert outcome.deletion.delivered

    flag = await database.flags.get(outcome.flag_id)
    assert flag.flag_type is FlagType.HATE_SPEECH
    assert flag.severity == pytest.approx(0.93)
    assert flag.content == "offensive words"
    assert flag.message_id == 555
    assert flag.api_response == HATE_VERDICT.raw
    assert flag.resolved is False

    dm_embed = message.author.send.call_args.kwargs["embed"]
    assert dm_embed.title == "Message Removed"
    assert dm_embed.fields[0].value == "HATE_SPEECH content detected"

    log_embed = log_channel.send.call_args.kwargs["embed"]
    assert log_embed.title == "Auto-Moderation: Message Removed"
    severity_field = next(field for field in log_embed.fields if field.name == "Severity")
    assert severity_field.value == "93%"
    assert [n.delivered for n in outcome.notifications] == [True, True]


@pytest.mark.asyncio
async def test_clean_message_untouched(database, make_message):
    message = make_message("have a nice day")

    outcome = await make_moderator(database, StubClassifier()).process_message(message)

    assert outcome.skipped_reason == auto_moderator.SKIP_CLEAN
    message.delete.assert_not_awaited()
    assert await database.flags.count(resolved=False, flag_type=None) == 0


@pytest.mark.asyncio
async def test_bot_author_never_classified(database, make_message, member_factory):
    classifier = StubClassifier(HATE_VERDICT)
    outcome = await make_moderator(database, classifier).process_message(
        make_message("anything", author=member_factory(3, bot=True))
    )

    assert outcome.skipped_reason == auto_moderator.SKIP_BOT_AUTHOR
    assert classifier.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kwargs, content, expected",
    [
        ({"enabled": False}, "text", auto_moderator.SKIP_DISABLED),
        ({"monitored": GuildID(777)}, "text", auto_moderator.SKIP_UNMONITORED_GUILD),
        ({}, "   ", auto_moderator.SKIP_EMPTY),
    ],
)
async def test_out_of_scope_messages(database, make_message, kwargs, content, expected):
    classifier = StubClassifier(HATE_VERDICT)
    outcome = await make_moderator(database, classifier, **kwargs).process_message(make_message(content))

    assert outcome.skipped_reason == expected
    assert classifier.calls == []


@pytest.mark.asyncio
async def test_direct_messages_skipped(database, make_message):
    outcome = await make_moderator(database, StubClassifier(HATE_VERDICT)).process_message(
        make_message("text", in_guild=False)
    )
    assert outcome.skipped_reason == auto_moderator.SKIP_DIRECT_MESSAGE


@pytest.mark.asyncio
async def test_monitored_guild_is_processed(database, make_message):
    moderator = make_moderator(database, StubClassifier(HATE_VERDICT), monitored=GuildID(100))
    outcome = await moderator.process_message(make_message("text"))
    assert outcome.flagged


@pytest.mark.asyncio
async def test_staff_with_manage_messages_exempt(database, make_message, member_factory):
    staff = member_factory(4, manage_messages=True)
    outcome = await make_moderator(database, StubClassifier(HATE_VERDICT)).process_message(
        make_message("text", author=staff)
    )
    assert outcome.skipped_reason == auto_moderator.SKIP_EXEMPT


@pytest.mark.asyncio
async def test_classifier_error_leaves_message(database, make_message):
    message = make_message("text")
    outcome = await make_moderator(database, StubClassifier(error=RuntimeError("boom"))).process_message(message)

    assert outcome.skipped_reason == auto_moderator.SKIP_ERROR
    message.delete.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_log_channel_and_closed_dms(database, make_message, guild_factory, member_factory):
    author = member_factory(2)
    author.send = AsyncMock(side_effect=RuntimeError("cannot send"))
    message = make_message("text", author=author)
    message.guild = guild_factory(text_channels=[])

    outcome = await make_moderator(database, StubClassifier(HATE_VERDICT)).process_message(message)

    assert outcome.flag_id is not None
    dm, channel = outcome.notifications
    assert dm.delivered is False
    assert channel.error == "channel not found"


@pytest.mark.asyncio
async def test_store_failure_still_notifies(make_message, log_channel):
    flags = SimpleNamespace(create=AsyncMock(side_effect=RuntimeError("locked")))
    moderator = AutoModerator(flags, StubClassifier(HATE_VERDICT), AutoModerationSettings({"enabled": True}))
    message = make_message("text")

    outcome = await moderator.process_message(message)

    assert outcome.flagged
    assert outcome.flag_id is None
    message.delete.assert_awaited_once()
    log_channel.send.assert_awaited_once()


@pytest.mark.asyncio
async def test_severity_clamped_before_storage(database, make_message):
    verdict = ClassificationResult(flagged=True, category=FlagType.SPAM, severity=1.4, raw={})
    outcome = await make_moderator(database, StubClassifier(verdict)).process_message(make_message("text"))

    assert (await database.flags.get(outcome.flag_id)).severity == 1.0
