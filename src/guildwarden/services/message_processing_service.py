"""
Per-message dispatch across middlewares, spam detection and commands.

For every inbound guild message the service:

1. Looks up the guild's :class:`GuildConfig`.
2. Runs the middleware chain. A halt stops command handling for this message.
3. Runs the spam detector when anti-spam filtering is enabled. This happens
   even for halted messages so every message counts toward its author's
   history.
4. When the bot is mentioned, commands are enabled and no middleware halted,
   resolves and runs the requested command.

Every step is fail-open: an error is logged and replaced by its safe default
(continue, not spam, no reply). The service returns a
:class:`DispatchResult` and leaves acting on it (deleting, banning, ...) to
the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from guildwarden.command.command_dispatcher import CommandContext, CommandDispatcher, ReplyCallback
from guildwarden.configuration.guild_settings import GuildConfig, GuildSettingsManager
from guildwarden.datatypes.message_datatypes import InboundMessage
from guildwarden.moderation.middleware_chain import run_middlewares
from guildwarden.moderation.spam_detector import SpamDetector
from guildwarden.util.logger import get_logger

logger = get_logger("message_processing_service")


@dataclass(slots=True)
class DispatchResult:
    """What the core decided about one message."""

    halt_reason: str = ""
    is_spam: bool = False
    command_key: str = ""
    command_ran: bool = False
    reply: str = ""


class MessageProcessingService:
    """Runs the per-guild decision procedures for inbound messages."""

    def __init__(
        self,
        settings_manager: GuildSettingsManager,
        spam_detector: Optional[SpamDetector] = None,
        command_dispatcher: Optional[CommandDispatcher] = None,
    ) -> None:
        self.settings_manager = settings_manager
        self.spam_detector = spam_detector or SpamDetector()
        self.command_dispatcher = command_dispatcher or CommandDispatcher()

    async def check_middlewares(self, message: InboundMessage, guild_config: GuildConfig) -> str:
        try:
            return await run_middlewares(message, guild_config.middlewares)
        except Exception:
            logger.exception("[MESSAGE PROCESSING] Middleware chain failed for guild %s", message.guild_id)
            return ""

    def check_spam(self, message: InboundMessage, guild_config: GuildConfig) -> bool:
        if not guild_config.settings.enable_anti_spam_filtering:
            return False
        try:
            return self.spam_detector.is_spam(message, guild_config.settings.spam)
        except Exception:
            logger.exception("[MESSAGE PROCESSING] Spam check failed for message from %s", message.author_id)
            return False

    async def process(
        self,
        message: InboundMessage,
        bot: Any = None,
        reply: Optional[ReplyCallback] = None,
    ) -> DispatchResult:
        """Run every decision procedure for ``message``.

        Args:
            message: The inbound message.
            bot: Client handed to commands through their :class:`CommandContext`.
            reply: Coroutine function that replies on the originating channel.

        Returns:
            DispatchResult: The halt reason, spam verdict and command outcome.
        """
        result = DispatchResult()
        guild_config = self.settings_manager.get_guild_config(message.guild_id)

        result.halt_reason = await self.check_middlewares(message, guild_config)
        result.is_spam = self.check_spam(message, guild_config)

        if result.halt_reason:
            logger.debug("[MESSAGE PROCESSING] Halted in guild %s: %s", message.guild_id, result.halt_reason)
            return result
        if not message.mentions_bot or not guild_config.settings.enable_client_commands:
            return result

        context = CommandContext(
            bot=bot,
            guild_config=guild_config,
            owner_id=self.settings_manager.owner_id,
            settings_manager=self.settings_manager,
        )
        outcome = await self.command_dispatcher.dispatch(
            message,
            guild_config.commands,
            context,
            reply=reply,
            quiet=guild_config.settings.enable_quiet_mode,
        )
        result.command_key = outcome.key
        result.command_ran = outcome.ran
        result.reply = outcome.reply
        return result
