"""Event listener Cog for guildwarden.

This cog handles bot lifecycle events: it sets the presence and initializes
the middlewares (e.g. bridges) of every guild once the bot is connected or
joins a new guild. Message events are handled by the MessageListenerCog.
"""

import discord
from discord.ext import commands

from guildwarden.configuration.guild_settings import GuildSettingsManager
from guildwarden.util.logger import get_logger

logger = get_logger("events_listener_cog")


class EventsListenerCog(commands.Cog):
    """Cog containing bot lifecycle handlers."""

    def __init__(self, discord_bot_instance, settings_manager: GuildSettingsManager):
        """Initialize the events listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        settings_manager:
            Owner of the per-guild middleware tables.
        """
        self.bot = discord_bot_instance
        self.settings_manager = settings_manager
        self._ready_once = False
        logger.info("Events listener cog loaded")

    @commands.Cog.listener(name='on_ready')
    async def on_ready(self):
        """Handle bot startup: update presence and initialize middlewares.

        ``on_ready`` fires again after reconnects; middlewares are only
        initialized the first time.
        """
        if self.bot.user:
            await self._update_presence()
            logger.info(f"Bot connected as {self.bot.user} (ID: {self.bot.user.id})")
        else:
            logger.warning("Bot partially connected, but user information not yet available.")

        if self._ready_once:
            return
        self._ready_once = True

        initialized = await self.settings_manager.initialize_middlewares(self.bot.guilds)
        logger.info(f"Initialized {initialized} middleware(s) across {len(self.bot.guilds)} guild(s)")

    @commands.Cog.listener(name='on_guild_join')
    async def on_guild_join(self, guild: discord.Guild):
        """Initialize the middlewares configured for a guild the bot just joined."""
        logger.info(f"Joined guild {guild.name} ({guild.id})")
        await self.settings_manager.initialize_guild(guild)

    async def _update_presence(self) -> None:
        """Show the bot as watching for spam."""
        await self.bot.change_presence(
            status=discord.Status.online,
            activity=discord.Activity(
                type=discord.ActivityType.watching,
                name="for spam and commands",
            ),
        )


def setup(discord_bot_instance, settings_manager: GuildSettingsManager):
    """Register the EventsListenerCog with the bot.

    Parameters
    ----------
    discord_bot_instance:
        The Discord bot instance to add this cog to.
    settings_manager:
        Guild settings manager shared by the cog.
    """
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance, settings_manager))
