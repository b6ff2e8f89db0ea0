from types import SimpleNamespace
from unittest.mock import AsyncMock

import discord
import pytest

from guildwarden.datatypes.action_datatypes import ActionType
from guildwarden.util import discord_utils


class FakeMember:
    def __init__(self, bot=False):
        self.id = 42
        self.bot = bot
        self.mention = "@User"
        self.timeout = AsyncMock()


@pytest.fixture(autouse=True)
def patch_member(monkeypatch):
    monkeypatch.setattr(discord_utils.discord, "Member", FakeMember, raising=False)
    yield


def test_is_ignored_author():
    assert discord_utils.is_ignored_author(FakeMember()) is False
    assert discord_utils.is_ignored_author(FakeMember(bot=True)) is True
    assert discord_utils.is_ignored_author(SimpleNamespace(bot=False)) is True


@pytest.mark.parametrize(
    "minutes, expected",
    [
        (1, "1 min"),
        (10, "10 mins"),
        (60, "1 hour"),
        (120, "2 hours"),
        (1440, "1 day"),
        (3 * 1440, "3 days"),
    ],
)
def test_format_duration(minutes, expected):
    assert discord_utils.format_duration(minutes) == expected


def test_every_action_has_an_embed_style():
    assert set(discord_utils.PUNISHMENT_STYLES) == set(ActionType)
    assert {action.value for action in ActionType} == {"ban", "warn", "timeout"}


@pytest.mark.asyncio
async def test_safe_delete_message_reports_failure():
    message = SimpleNamespace(id=1, delete=AsyncMock(side_effect=RuntimeError("gone")))
    assert await discord_utils.safe_delete_message(message) is False

    message = SimpleNamespace(id=2, delete=AsyncMock())
    assert await discord_utils.safe_delete_message(message) is True


@pytest.mark.asyncio
async def test_send_reply():
    message = SimpleNamespace(id=1, channel=SimpleNamespace(id=10), reply=AsyncMock())
    assert await discord_utils.send_reply(message, "hi") is True
    message.reply.assert_awaited_once_with("hi")

    message.reply = AsyncMock(side_effect=RuntimeError("nope"))
    assert await discord_utils.send_reply(message, "hi") is False


@pytest.mark.asyncio
async def test_apply_spam_action_requires_guild_member():
    message = SimpleNamespace(id=1, guild=None, author=FakeMember(), channel=SimpleNamespace(send=AsyncMock()))
    assert await discord_utils.apply_spam_action(ActionType.BAN, message, "spam") is False

    message = SimpleNamespace(id=1, guild=SimpleNamespace(id=5), author=SimpleNamespace(id=1), channel=None)
    assert await discord_utils.apply_spam_action(ActionType.BAN, message, "spam") is False


@pytest.mark.asyncio
async def test_apply_spam_action_ban_failure(monkeypatch):
    guild = SimpleNamespace(id=5, ban=AsyncMock(side_effect=RuntimeError("forbidden")))
    channel = SimpleNamespace(send=AsyncMock())
    message = SimpleNamespace(id=1, guild=guild, author=FakeMember(), channel=channel)

    assert await discord_utils.apply_spam_action(ActionType.BAN, message, "spam") is False
    channel.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_apply_spam_action_timeout_is_clamped(monkeypatch):
    guild = SimpleNamespace(id=5)
    channel = SimpleNamespace(send=AsyncMock())
    author = FakeMember()
    message = SimpleNamespace(id=1, guild=guild, author=author, channel=channel)

    applied = await discord_utils.apply_spam_action(
        ActionType.TIMEOUT, message, "spam", timeout_minutes=10 ** 6, notify=True
    )

    assert applied is True
    until = author.timeout.await_args.args[0]
    remaining = until - discord.utils.utcnow()
    assert remaining.days <= 28
    embed = channel.send.await_args.kwargs["embed"]
    assert isinstance(embed, discord.Embed)
    assert embed.fields[-1].value == "28 days"


@pytest.mark.asyncio
async def test_apply_spam_action_warn_only_notifies():
    guild = SimpleNamespace(id=5, ban=AsyncMock())
    channel = SimpleNamespace(send=AsyncMock())
    author = FakeMember()
    message = SimpleNamespace(id=1, guild=guild, author=author, channel=channel)

    assert await discord_utils.apply_spam_action(ActionType.WARN, message, "spam") is True

    author.timeout.assert_not_awaited()
    guild.ban.assert_not_awaited()
    embed = channel.send.await_args.kwargs["embed"]
    assert embed.title == "⚠️ Warn Issued"
    assert [field.name for field in embed.fields] == ["User", "Action", "Reason"]
