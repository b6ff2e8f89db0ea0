"""Message listener Cog for guildwarden.

This cog hands every guild message to the message processing service and
acts on what it decides: replies are sent by the command dispatcher, spam
verdicts are enforced here.
"""

import functools

import discord
from discord.ext import commands

from guildwarden.datatypes.message_datatypes import InboundMessage
from guildwarden.moderation.spam_enforcement import SpamEnforcer
from guildwarden.services.message_processing_service import DispatchResult, MessageProcessingService
from guildwarden.util import discord_utils
from guildwarden.util.logger import get_logger

logger = get_logger("message_listener_cog")


class MessageListenerCog(commands.Cog):
    """Cog responsible for handling message creation events."""

    def __init__(self, discord_bot_instance, processing_service: MessageProcessingService, spam_enforcer: SpamEnforcer):
        """
        Initialize the message listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        processing_service:
            Service running middlewares, spam detection and commands.
        spam_enforcer:
            Applies warnings, timeouts and bans to spam authors.
        """
        self.bot = discord_bot_instance
        self.processing_service = processing_service
        self.spam_enforcer = spam_enforcer
        logger.info("Message listener cog loaded")

    def _should_process_message(self, message: discord.Message) -> bool:
        """Return False for DMs and for messages from bots or non-members."""
        if message.guild is None:
            return False
        if discord_utils.is_ignored_author(message.author):
            logger.debug(f"Ignoring message from {message.author} (bot)")
            return False
        return True

    @commands.Cog.listener(name='on_message')
    async def on_message(self, message: discord.Message) -> DispatchResult | None:
        """
        Handle new messages.

        This handler:
        1. Filters out DMs and bot authors
        2. Runs middlewares, spam detection and command dispatch
        3. Deletes spam and warns, times out or bans its author

        Parameters
        ----------
        message:
            The Discord message that was created.
        """
        if not self._should_process_message(message):
            return None

        inbound = InboundMessage.from_discord(message, self.bot.user)
        result = await self.processing_service.process(
            inbound,
            bot=self.bot,
            reply=functools.partial(discord_utils.send_reply, message),
        )

        if result.halt_reason:
            logger.info(f"Processing halted in #{inbound.channel_name}: {result.halt_reason}")

        if result.is_spam:
            settings = self.processing_service.settings_manager.get_guild_config(inbound.guild_id).settings
            try:
                await self.spam_enforcer.enforce(message, settings)
            except Exception as e:
                logger.error(f"Error enforcing spam verdict on {message.author}: {e}", exc_info=True)

        return result


def setup(discord_bot_instance, processing_service: MessageProcessingService, spam_enforcer: SpamEnforcer):
    """
    Register the MessageListenerCog with the bot.

    Parameters
    ----------
    discord_bot_instance:
        The Discord bot instance to add this cog to.
    processing_service:
        Service shared by the cog.
    spam_enforcer:
        Enforcer shared by the cog.
    """
    discord_bot_instance.add_cog(MessageListenerCog(discord_bot_instance, processing_service, spam_enforcer))
