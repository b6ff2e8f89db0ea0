"""
Bridge middleware relaying a Discord channel to another chat network.

The bridge talks to a matterbridge-compatible HTTP API, which in turn is
connected to IRC (or any other network matterbridge supports):

- messages posted in the bridged Discord channel are sent with
  ``POST {api_url}/api/message`` as ``<username> content``
- ``GET {api_url}/api/messages`` is polled and every message received from
  the other side is posted into the Discord channel as ``<sender> text``

Posting the quit keyword (``quit`` by default) in the bridged channel shuts
the bridge down. The middleware never halts processing.

Options (``middlewares.<key>.options`` in the configuration):

- ``api_url`` (required): base URL of the matterbridge API
- ``discord_channel`` (required): id of the Discord channel to bridge
- ``gateway``: matterbridge gateway name, default ``gateway1``
- ``token``: bearer token for the API
- ``nickname``: username sent along with relayed messages
- ``poll_interval``: seconds between polls, default 2
- ``quit_keyword``: message that closes the bridge
- ``welcome_message``: sent to the other side once the bridge is up
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Mapping, Optional, Set

import aiohttp
import discord

from guildwarden.datatypes.guild_settings import ConfigurationError
from guildwarden.datatypes.message_datatypes import InboundMessage
from guildwarden.util.logger import get_logger

logger = get_logger("bridge_middleware")

DEFAULT_GATEWAY = "gateway1"
DEFAULT_NICKNAME = "Discord Bridger"
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_QUIT_KEYWORD = "quit"
REQUEST_TIMEOUT_SECONDS = 10


class BridgeMiddleware:
    """Relay one Discord channel through a matterbridge API."""

    def __init__(self, key: str, options: Mapping[str, Any]) -> None:
        api_url = options.get("api_url")
        channel_id = options.get("discord_channel")
        if not api_url or not isinstance(api_url, str):
            raise ConfigurationError(f"bridge middleware {key} needs an api_url")
        if channel_id in (None, ""):
            raise ConfigurationError(f"bridge middleware {key} needs a discord_channel")

        self.key = key
        self.api_url = api_url.rstrip("/")
        self.discord_channel_id = str(channel_id)
        self.gateway = str(options.get("gateway") or DEFAULT_GATEWAY)
        self.token = options.get("token") or None
        self.nickname = str(options.get("nickname") or DEFAULT_NICKNAME)
        self.quit_keyword = str(options.get("quit_keyword") or DEFAULT_QUIT_KEYWORD)
        self.welcome_message = options.get("welcome_message") or ""
        try:
            self.poll_interval = max(float(options.get("poll_interval", DEFAULT_POLL_INTERVAL)), 0.1)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"bridge middleware {key} has an invalid poll_interval") from exc

        self.ready = False
        self.channel: Optional[discord.abc.Messageable] = None
        self._session: Optional[aiohttp.ClientSession] = None
        self._poll_task: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()

    # --------------------------
    # Lifecycle
    # --------------------------
    async def initialize(self, guild: discord.Guild) -> bool:
        """Bind the bridge to its Discord channel and start polling.

        Returns:
            bool: True if the bridged channel exists in ``guild``.
        """
        if self.ready:
            return True

        channel = guild.get_channel(int(self.discord_channel_id))
        if channel is None:
            logger.warning(
                "[BRIDGE] Channel %s for bridge %s not found in guild %s",
                self.discord_channel_id,
                self.key,
                guild.id,
            )
            return False

        self.channel = channel
        self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SECONDS))
        self.ready = True
        self._poll_task = asyncio.create_task(self._poll_loop())
        logger.info("[BRIDGE] Bridge %s relaying channel %s via %s", self.key, self.discord_channel_id, self.api_url)

        if self.welcome_message:
            await self.send(str(self.welcome_message))
        return True

    async def close(self) -> None:
        """Stop polling and release the HTTP session."""
        self.ready = False
        if self._poll_task is not None and self._poll_task is not asyncio.current_task():
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass
        self._poll_task = None

        pending = [task for task in self._pending if task is not asyncio.current_task()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        if self._session is not None:
            await self._session.close()
            self._session = None
        logger.info("[BRIDGE] Bridge %s closed", self.key)

    # --------------------------
    # Middleware entry point
    # --------------------------
    def execute(self, message: InboundMessage) -> str:
        """Relay ``message`` if it was posted in the bridged channel."""
        if not self.ready or message.channel_id != self.discord_channel_id:
            return ""

        self._spawn(self.send(f"<{message.author_name}> {message.content}"))
        if message.content.strip() == self.quit_keyword:
            logger.info("[BRIDGE] Bridge %s closed by %s", self.key, message.author_name)
            self.ready = False
            self._spawn(self.close())
        return ""

    # --------------------------
    # HTTP API
    # --------------------------
    def _headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    def _spawn(self, coroutine) -> None:
        task = asyncio.get_running_loop().create_task(coroutine)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def send(self, text: str) -> bool:
        """Send ``text`` to the other side of the bridge."""
        if self._session is None:
            return False
        payload = {"text": text, "username": self.nickname, "gateway": self.gateway}
        try:
            async with self._session.post(f"{self.api_url}/api/message", json=payload, headers=self._headers()) as response:
                if response.status >= 400:
                    logger.warning("[BRIDGE] Relay rejected by %s with status %s", self.api_url, response.status)
                    return False
                return True
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error("[BRIDGE] Could not relay a message through %s: %s", self.api_url, exc)
            return False

    async def fetch(self) -> List[Dict[str, Any]]:
        """Fetch the messages buffered on the other side since the last poll."""
        if self._session is None:
            return []
        try:
            async with self._session.get(f"{self.api_url}/api/messages", headers=self._headers()) as response:
                if response.status >= 400:
                    logger.warning("[BRIDGE] Polling %s failed with status %s", self.api_url, response.status)
                    return []
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.error("[BRIDGE] Could not poll %s: %s", self.api_url, exc)
            return []
        return [item for item in data or [] if isinstance(item, dict)]

    async def poll_once(self) -> int:
        """Deliver pending messages from the other side; return how many were posted."""
        delivered = 0
        for item in await self.fetch():
            gateway = item.get("gateway")
            if gateway and gateway != self.gateway:
                continue
            text = item.get("text")
            if not text or self.channel is None:
                continue
            sender = item.get("username") or "unknown"
            try:
                await self.channel.send(f"<{sender}> {text}")
                delivered += 1
            except Exception as exc:
                logger.error("[BRIDGE] Could not post a relayed message into %s: %s", self.discord_channel_id, exc)
        return delivered

    async def _poll_loop(self) -> None:
        try:
            while self.ready:
                await self.poll_once()
                await asyncio.sleep(self.poll_interval)
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("[BRIDGE] Polling loop of %s stopped", self.key)
