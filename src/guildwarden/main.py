"""
Guildwarden Discord Bot
=======================

A multi-guild Discord bot that filters spam, runs configurable message
middlewares (such as chat bridges) and answers mention-addressed commands
according to per-guild access rules.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. GUILDWARDEN_HOME environment variable, if set.
    2. If running in a frozen/compiled context, use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("GUILDWARDEN_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()

import asyncio
import discord
from dotenv import load_dotenv

from guildwarden.configuration.app_configuration import CONFIG_PATH, AppConfig
from guildwarden.configuration.guild_settings import GuildSettingsManager
from guildwarden.moderation.spam_enforcement import SpamEnforcer
from guildwarden.services.message_processing_service import MessageProcessingService
from guildwarden.util.logger import get_logger, handle_exception


logger = get_logger("main")


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Construct the Discord intents guildwarden needs.

    Message content is required to read commands and spam; members are
    required to time out or ban spam authors.
    """
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    intents.members = True
    return intents


def load_cogs(
    discord_bot_instance: discord.Bot,
    settings_manager: GuildSettingsManager,
    processing_service: MessageProcessingService,
    spam_enforcer: SpamEnforcer,
) -> None:
    """Register all operational cogs with the provided Discord bot instance."""
    from guildwarden.bot.cogs import events_listener, message_listener

    events_listener.setup(discord_bot_instance, settings_manager)
    message_listener.setup(discord_bot_instance, processing_service, spam_enforcer)

    logger.info("All cogs loaded successfully.")


def create_bot(settings_manager: GuildSettingsManager) -> discord.Bot:
    """Instantiate the Discord bot and register all cogs."""
    bot = discord.Bot(intents=build_intents())
    processing_service = MessageProcessingService(settings_manager)
    load_cogs(bot, settings_manager, processing_service, SpamEnforcer())
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and handle lifecycle logging around the connection."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot | None, settings_manager: GuildSettingsManager) -> None:
    """Gracefully stop the Discord bot and close every middleware."""
    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing the Discord bot: %s", exc)

    try:
        await settings_manager.shutdown()
    except Exception as exc:
        logger.exception("Error during guild settings shutdown: %s", exc)

    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap the configuration and the bot, returning an exit code."""
    token = load_environment()

    try:
        config_path = BASE_DIR / CONFIG_PATH
        logger.info("Loading configuration from %s", config_path)
        settings_manager = GuildSettingsManager(AppConfig(config_path))
    except Exception as exc:
        logger.critical("Failed to load guild configuration: %s", exc)
        return 1

    try:
        bot = create_bot(settings_manager)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        return 1

    exit_code = 0
    try:
        await start_bot(bot, token)
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot, settings_manager)

    return exit_code


def main() -> int:
    """Entrypoint that orchestrates the async runtime and returns the process code."""
    os.chdir(BASE_DIR)
    sys.excepthook = handle_exception
    logger.info("Starting guildwarden…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        if code is None:
            return 1
        try:
            return int(code)
        except (ValueError, TypeError):
            logger.warning("SystemExit.code is not an int (%r); defaulting to 1", code)
            return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
