"""
Resolving and running mention-triggered commands.

A message is treated as a command when it mentions the bot and, once the
mention is stripped, consists only of a small safe character set. The
command key is found by substring search over the guild's command table
(last match wins, see :func:`find_command_key`). The author must pass both
the command's channel filter and its access list.

Failures never escape: a command that raises is logged and produces no
reply.
"""

from __future__ import annotations

import inspect
import re
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional

from guildwarden.command.command_registry import CommandEntry, find_command_key
from guildwarden.datatypes.access_datatypes import has_access
from guildwarden.datatypes.message_datatypes import InboundMessage
from guildwarden.moderation.channel_filter import is_included
from guildwarden.util.logger import get_logger

logger = get_logger("command_dispatcher")

MAX_COMMAND_LENGTH = 256
SAFE_COMMAND_PATTERN = re.compile(r"^[a-zA-Z0-9.,!?\-= ]+$")
WHITESPACE_PATTERN = re.compile(r"\s+")

ReplyCallback = Callable[[str], Awaitable[Any]]


def normalize_command_text(content: str, bot_user_id: str = "") -> str:
    """Strip the bot mention, collapse whitespace, lowercase and trim."""
    text = content or ""
    if bot_user_id:
        text = text.replace(f"<@!{bot_user_id}>", " ").replace(f"<@{bot_user_id}>", " ")
    return WHITESPACE_PATTERN.sub(" ", text).lower().strip()


def is_safe(text: str) -> bool:
    """Return True if ``text`` is short and uses only the allowed characters."""
    return len(text) < MAX_COMMAND_LENGTH and bool(SAFE_COMMAND_PATTERN.match(text))


@dataclass(slots=True)
class CommandContext:
    """What a command gets to see besides the message itself."""

    bot: Any
    guild_config: Any
    owner_id: str
    settings_manager: Any = None


@dataclass(slots=True)
class CommandOutcome:
    """Result of trying to run a command for one message."""

    key: str = ""
    ran: bool = False
    reply: str = ""


class CommandDispatcher:
    """Find, authorize and run the command a message asks for."""

    def __init__(self, safe_predicate: Callable[[str], bool] = is_safe) -> None:
        self.safe_predicate = safe_predicate

    def resolve(self, message: InboundMessage, commands: Mapping[str, CommandEntry]) -> str:
        """Return the command key a message asks for, or ``""``."""
        if not message.mentions_bot:
            return ""
        text = normalize_command_text(message.content, message.bot_user_id)
        if not text or not self.safe_predicate(text):
            return ""
        return find_command_key(commands.keys(), text)

    def is_authorized(self, message: InboundMessage, entry: CommandEntry, owner_id: str) -> bool:
        """Check the channel filter and the access list of ``entry``."""
        return is_included(
            message.channel_name, entry.enabled_channels, entry.excluded_channels, True
        ) and has_access(entry.access, message.author_id, owner_id)

    async def dispatch(
        self,
        message: InboundMessage,
        commands: Mapping[str, CommandEntry],
        context: CommandContext,
        reply: Optional[ReplyCallback] = None,
        quiet: bool = False,
    ) -> CommandOutcome:
        """Run the command ``message`` asks for, if any and if allowed.

        Args:
            message: The inbound message.
            commands: The guild's command table, in registration order.
            context: Passed to the command's ``execute``. Its ``owner_id``
                decides who the ``owner`` access token matches.
            reply: Coroutine function delivering reply text on the origin channel.
            quiet: Run the command but do not deliver its reply.

        Returns:
            CommandOutcome: Which command matched, whether it ran, and the
            reply text it produced.
        """
        outcome = CommandOutcome()
        try:
            outcome.key = self.resolve(message, commands)
            if not outcome.key:
                return outcome

            entry = commands[outcome.key]
            if not self.is_authorized(message, entry, context.owner_id):
                logger.debug(
                    "[COMMANDS] %s may not run %s in #%s",
                    message.author_id,
                    outcome.key,
                    message.channel_name,
                )
                return outcome

            started = time.perf_counter()
            result = entry.execute(message, context)
            if inspect.isawaitable(result):
                result = await result
            elapsed = time.perf_counter() - started
            logger.info(
                "[COMMANDS] Command (%s) took %.3fs to execute in #%s",
                outcome.key,
                elapsed,
                message.channel_name,
            )
        except Exception:
            logger.exception("[COMMANDS] Command %s failed for %s", outcome.key or "<unresolved>", message.author_id)
            return CommandOutcome(key=outcome.key)

        outcome.ran = True
        if isinstance(result, str) and result:
            outcome.reply = result
            if reply is not None and not quiet:
                try:
                    await reply(result)
                except Exception:
                    logger.exception("[COMMANDS] Failed to deliver the reply of %s", outcome.key)
        return outcome
