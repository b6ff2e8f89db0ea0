from types import SimpleNamespace

from guildwarden.datatypes.message_datatypes import InboundMessage


def make_discord_message(mentions=(), content="<@999> ping", guild_id=100):
    return SimpleNamespace(
        author=SimpleNamespace(id=1, display_name="alice"),
        content=content,
        channel=SimpleNamespace(id=10, name="general"),
        guild=SimpleNamespace(id=guild_id),
        mentions=list(mentions),
    )


def test_from_discord_copies_fields():
    raw = make_discord_message(mentions=[SimpleNamespace(id=999)])
    inbound = InboundMessage.from_discord(raw, SimpleNamespace(id=999))

    assert inbound.author_id == "1"
    assert inbound.author_name == "alice"
    assert inbound.content == "<@999> ping"
    assert inbound.channel_name == "general"
    assert inbound.channel_id == "10"
    assert inbound.guild_id == "100"
    assert inbound.mentions_bot is True
    assert inbound.bot_user_id == "999"
    assert inbound.raw is raw


def test_from_discord_without_mention():
    inbound = InboundMessage.from_discord(make_discord_message(mentions=[SimpleNamespace(id=5)]), SimpleNamespace(id=999))
    assert inbound.mentions_bot is False


def test_from_discord_before_login():
    inbound = InboundMessage.from_discord(make_discord_message(content=None), None)
    assert inbound.mentions_bot is False
    assert inbound.bot_user_id == ""
    assert inbound.content == ""
