import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from guildwarden.datatypes.guild_settings import ConfigurationError
from guildwarden.datatypes.message_datatypes import InboundMessage
from guildwarden.middleware import MIDDLEWARE_TYPES, build_middleware
from guildwarden.middleware import bridge as bridge_module
from guildwarden.middleware.bridge import BridgeMiddleware

OPTIONS = {
    "api_url": "http://localhost:4242/",
    "discord_channel": 20,
    "token": "secret",
    "nickname": "Relay",
}


class FakeResponse:
    def __init__(self, status=200, payload=None):
        self.status = status
        self.payload = payload

    async def json(self, content_type=None):
        return self.payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    def __init__(self, get_payload=None, status=200):
        self.posts = []
        self.gets = []
        self.get_payload = get_payload or []
        self.status = status
        self.closed = False

    def post(self, url, json=None, headers=None):
        self.posts.append((url, json, headers))
        return FakeResponse(self.status)

    def get(self, url, headers=None):
        self.gets.append((url, headers))
        return FakeResponse(self.status, self.get_payload)

    async def close(self):
        self.closed = True


def make_message(content, channel_id="20"):
    return InboundMessage(
        author_id="1",
        author_name="alice",
        content=content,
        channel_name="general",
        channel_id=channel_id,
        guild_id="100",
    )


def make_ready_bridge(session=None, **options):
    bridge = BridgeMiddleware("irc", {**OPTIONS, **options})
    bridge._session = session or FakeSession()
    bridge.channel = SimpleNamespace(send=AsyncMock())
    bridge.ready = True
    return bridge


class TestConfiguration:
    def test_defaults(self):
        bridge = BridgeMiddleware("irc", {"api_url": "http://x/", "discord_channel": "5"})
        assert bridge.api_url == "http://x"
        assert bridge.discord_channel_id == "5"
        assert bridge.gateway == "gateway1"
        assert bridge.nickname == "Discord Bridger"
        assert bridge.quit_keyword == "quit"
        assert bridge.poll_interval == 2.0
        assert bridge.ready is False

    @pytest.mark.parametrize(
        "options",
        [
            {"discord_channel": "5"},
            {"api_url": "http://x"},
            {"api_url": 5, "discord_channel": "5"},
            {"api_url": "http://x", "discord_channel": "5", "poll_interval": "soon"},
        ],
    )
    def test_invalid_options(self, options):
        with pytest.raises(ConfigurationError):
            BridgeMiddleware("irc", options)

    def test_poll_interval_has_floor(self):
        assert BridgeMiddleware("irc", {**OPTIONS, "poll_interval": 0}).poll_interval == 0.1

    def test_build_middleware(self):
        assert MIDDLEWARE_TYPES["bridge"] is BridgeMiddleware
        assert isinstance(build_middleware("irc", "bridge", OPTIONS), BridgeMiddleware)
        with pytest.raises(ConfigurationError):
            build_middleware("irc", "teleporter", {})


class TestExecute:
    def test_not_ready_does_nothing(self):
        bridge = BridgeMiddleware("irc", OPTIONS)
        assert bridge.execute(make_message("hello")) == ""

    @pytest.mark.asyncio
    async def test_relays_messages_from_bridged_channel(self):
        session = FakeSession()
        bridge = make_ready_bridge(session)

        assert bridge.execute(make_message("hello there")) == ""
        await asyncio.sleep(0)
        await asyncio.gather(*bridge._pending)

        url, payload, headers = session.posts[0]
        assert url == "http://localhost:4242/api/message"
        assert payload == {"text": "<alice> hello there", "username": "Relay", "gateway": "gateway1"}
        assert headers == {"Authorization": "Bearer secret"}

    @pytest.mark.asyncio
    async def test_ignores_other_channels(self):
        session = FakeSession()
        bridge = make_ready_bridge(session)

        assert bridge.execute(make_message("hello", channel_id="21")) == ""
        await asyncio.sleep(0)
        assert session.posts == []

    @pytest.mark.asyncio
    async def test_quit_keyword_closes_bridge(self):
        session = FakeSession()
        bridge = make_ready_bridge(session)

        assert bridge.execute(make_message("quit")) == ""
        assert bridge.ready is False
        for _ in range(3):
            await asyncio.sleep(0)
        await asyncio.gather(*list(bridge._pending), return_exceptions=True)

        assert session.posts[0][1]["text"] == "<alice> quit"
        assert session.closed is True
        assert bridge._session is None


class TestHttp:
    @pytest.mark.asyncio
    async def test_send_without_session(self):
        assert await BridgeMiddleware("irc", OPTIONS).send("hi") is False

    @pytest.mark.asyncio
    async def test_send_reports_rejection(self):
        bridge = make_ready_bridge(FakeSession(status=500))
        assert await bridge.send("hi") is False

    @pytest.mark.asyncio
    async def test_poll_once_posts_inbound_messages(self):
        payload = [
            {"text": "hi from irc", "username": "bob", "gateway": "gateway1"},
            {"text": "other gateway", "username": "eve", "gateway": "gateway2"},
            {"text": "", "username": "empty", "gateway": "gateway1"},
            "garbage",
        ]
        bridge = make_ready_bridge(FakeSession(get_payload=payload))

        assert await bridge.poll_once() == 1
        bridge.channel.send.assert_awaited_once_with("<bob> hi from irc")

    @pytest.mark.asyncio
    async def test_fetch_failure_returns_nothing(self):
        bridge = make_ready_bridge(FakeSession(status=502))
        assert await bridge.fetch() == []


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_initialize_requires_channel(self):
        bridge = BridgeMiddleware("irc", OPTIONS)
        guild = SimpleNamespace(id=100, get_channel=MagicMock(return_value=None))

        assert await bridge.initialize(guild) is False
        guild.get_channel.assert_called_once_with(20)
        assert bridge.ready is False

    @pytest.mark.asyncio
    async def test_initialize_and_close(self, monkeypatch):
        session = FakeSession()
        monkeypatch.setattr(bridge_module.aiohttp, "ClientSession", MagicMock(return_value=session))
        bridge = BridgeMiddleware("irc", {**OPTIONS, "welcome_message": "bridge up", "poll_interval": 60})
        channel = SimpleNamespace(send=AsyncMock())
        guild = SimpleNamespace(id=100, get_channel=MagicMock(return_value=channel))

        assert await bridge.initialize(guild) is True
        assert bridge.ready is True
        assert bridge.channel is channel
        assert session.posts[0][1]["text"] == "bridge up"

        await bridge.close()

        assert bridge.ready is False
        assert session.closed is True
        assert bridge._poll_task is None
