"""
Transport-neutral view of an inbound guild message.

The decision procedures (middleware chain, command dispatch, spam detection)
only read the fields of :class:`InboundMessage`. The underlying py-cord message
rides along in ``raw`` so middlewares and commands that need Discord APIs can
still reach it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import discord


@dataclass(frozen=True, slots=True)
class InboundMessage:
    """Snapshot of a single message as seen by the dispatcher.

    Attributes:
        author_id: Snowflake of the author, as a string.
        author_name: Display name used when relaying the message elsewhere.
        content: Raw message body.
        channel_name: Name of the originating channel, used by channel filters.
        channel_id: Snowflake of the originating channel, as a string.
        guild_id: Snowflake of the originating guild, as a string.
        mentions_bot: Whether the bot user is mentioned in the message.
        bot_user_id: Snowflake of the bot user, used to strip the mention.
        raw: The underlying py-cord message, if any.
    """

    author_id: str
    author_name: str
    content: str
    channel_name: str
    channel_id: str
    guild_id: str
    mentions_bot: bool = False
    bot_user_id: str = ""
    raw: Optional[Any] = None

    @classmethod
    def from_discord(cls, message: discord.Message, bot_user: Optional[discord.ClientUser]) -> "InboundMessage":
        """Build an :class:`InboundMessage` from a py-cord guild message.

        Args:
            message: Message received in a guild text channel.
            bot_user: The connected bot user, or None before login completes.

        Returns:
            InboundMessage: Snapshot of the fields the dispatcher needs.
        """
        bot_user_id = str(bot_user.id) if bot_user else ""
        mentions_bot = bool(bot_user) and any(
            str(user.id) == bot_user_id for user in (message.mentions or [])
        )
        guild = message.guild
        return cls(
            author_id=str(message.author.id),
            author_name=getattr(message.author, "display_name", None) or str(message.author),
            content=message.content or "",
            channel_name=getattr(message.channel, "name", "") or "",
            channel_id=str(message.channel.id),
            guild_id=str(guild.id) if guild else "",
            mentions_bot=mentions_bot,
            bot_user_id=bot_user_id,
            raw=message,
        )
