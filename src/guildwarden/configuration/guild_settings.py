"""
Per-guild configuration tables for the message dispatcher.

Responsibilities:
- Parse the ``guilds`` section of the application configuration into one
  immutable :class:`GuildConfig` per guild (settings, middlewares, commands)
- Apply ``default_settings`` and the default command table to every
  configured guild
- Skip (and log) malformed middleware and command entries instead of failing
- Initialize and close middlewares that have lifecycle hooks
- Rebuild every table on reload and swap them in at once

Guild configurations are read-only once built and can be shared freely.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional

import discord

from guildwarden.command.command_registry import CommandEntry, CommandModule, discover_commands
from guildwarden.configuration.app_configuration import AppConfig
from guildwarden.datatypes.access_datatypes import AccessList
from guildwarden.datatypes.guild_settings import (
    BOOLEAN_SETTING_FIELDS,
    INTEGER_SETTING_FIELDS,
    SPAM_SETTING_FIELDS,
    ConfigurationError,
    GuildSettings,
    SpamSettings,
    default_settings_mapping,
)
from guildwarden.middleware import build_middleware
from guildwarden.moderation.middleware_chain import MiddlewareEntry
from guildwarden.util.logger import get_logger

logger = get_logger("guild_settings_manager")


@dataclass(frozen=True, slots=True)
class GuildConfig:
    """Everything the dispatcher needs to know about one guild.

    ``middlewares`` and ``commands`` are read-only mappings that keep the
    order in which the configuration declares them.
    """

    guild_id: str
    settings: GuildSettings = field(default_factory=GuildSettings)
    middlewares: Mapping[str, MiddlewareEntry] = field(default_factory=dict)
    commands: Mapping[str, CommandEntry] = field(default_factory=dict)


# -------- Parsing helpers --------

def _coerce_bool(name: str, value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    logger.warning("[GUILD SETTINGS] %s must be true or false, got %r; using %s", name, value, default)
    return default


def _coerce_count(name: str, value: Any, default: int) -> int:
    if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value) and value >= 0:
        return int(math.floor(value))
    logger.warning("[GUILD SETTINGS] %s must be a number >= 0, got %r; using %s", name, value, default)
    return default


def parse_guild_settings(*layers: Optional[Mapping[str, Any]]) -> GuildSettings:
    """Build :class:`GuildSettings` from layered raw mappings.

    Later layers override earlier ones. Unknown keys are ignored and invalid
    values fall back to the defaults.
    """
    defaults = default_settings_mapping()
    merged: Dict[str, Any] = dict(defaults)
    for layer in layers:
        if layer is None:
            continue
        if not isinstance(layer, Mapping):
            logger.warning("[GUILD SETTINGS] Settings block is not a mapping; ignoring it")
            continue
        merged.update(layer)

    values: Dict[str, Any] = {}
    for name in BOOLEAN_SETTING_FIELDS:
        values[name] = _coerce_bool(name, merged[name], defaults[name])
    for name in INTEGER_SETTING_FIELDS:
        values[name] = _coerce_count(name, merged[name], defaults[name])
    spam = SpamSettings(**{name: _coerce_count(name, merged[name], defaults[name]) for name in SPAM_SETTING_FIELDS})
    return GuildSettings(spam=spam, **values)


def parse_channel_list(name: str, value: Any) -> frozenset:
    """Parse an ``enabled_channels`` / ``excluded_channels`` value."""
    if value is None:
        return frozenset()
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise ConfigurationError(f"{name} must be a list of channel names")
    return frozenset(str(channel).strip() for channel in value if str(channel).strip())


def parse_command_entry(key: str, raw: Any, module: CommandModule) -> CommandEntry:
    """Bind a discovered command to the access rules configured for it."""
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"command {key} must be a mapping")
    return CommandEntry(
        key=key,
        execute=module.execute,
        access=AccessList.from_tokens(raw.get("access", [])),
        enabled_channels=parse_channel_list("enabled_channels", raw.get("enabled_channels")),
        excluded_channels=parse_channel_list("excluded_channels", raw.get("excluded_channels")),
        description=module.description,
    )


def parse_middleware_entry(key: str, raw: Any) -> MiddlewareEntry:
    """Instantiate a configured middleware and wrap it in a :class:`MiddlewareEntry`."""
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"middleware {key} must be a mapping")
    options = raw.get("options") or {}
    if not isinstance(options, Mapping):
        raise ConfigurationError(f"options of middleware {key} must be a mapping")

    middleware = build_middleware(key, str(raw.get("type") or key), options)
    return MiddlewareEntry(
        key=key,
        execute=middleware.execute,
        enabled_channels=parse_channel_list("enabled_channels", raw.get("enabled_channels")),
        excluded_channels=parse_channel_list("excluded_channels", raw.get("excluded_channels")),
        middleware=middleware,
    )


class GuildSettingsManager:
    """
    Registry of per-guild configuration built from :class:`AppConfig`.

    Responsibilities:
    - Build and cache a :class:`GuildConfig` for every configured guild
    - Hand out a default configuration for guilds that have none
    - Drive middleware lifecycle hooks (initialize on ready/join, close on
      reload and shutdown)
    """

    def __init__(self, app_config: AppConfig, command_modules: Optional[Mapping[str, CommandModule]] = None):
        self.app_config = app_config
        self.command_modules: Mapping[str, CommandModule] = (
            command_modules if command_modules is not None else discover_commands()
        )
        self.guilds: Dict[str, GuildConfig] = {}
        self.default_settings = GuildSettings()
        self.load()
        logger.info("[GUILD SETTINGS MANAGER] Guild settings manager initialized")

    @property
    def owner_id(self) -> str:
        return self.app_config.owner_id

    # -------- Building --------
    def _build_commands(self, guild_id: str, *tables: Mapping[str, Any]) -> Dict[str, CommandEntry]:
        merged: Dict[str, Any] = {}
        for table in tables:
            if not isinstance(table, Mapping):
                logger.warning("[GUILD SETTINGS MANAGER] Command table for guild %s is not a mapping", guild_id)
                continue
            merged.update({str(key): value for key, value in table.items()})

        commands: Dict[str, CommandEntry] = {}
        for key, raw in merged.items():
            module = self.command_modules.get(key)
            if module is None:
                logger.warning("[GUILD SETTINGS MANAGER] Unknown command %s configured for guild %s", key, guild_id)
                continue
            try:
                commands[key] = parse_command_entry(key, raw, module)
            except ConfigurationError as exc:
                logger.error("[GUILD SETTINGS MANAGER] Skipping command %s for guild %s: %s", key, guild_id, exc)
        return commands

    def _build_middlewares(self, guild_id: str, table: Any) -> Dict[str, MiddlewareEntry]:
        if table is None:
            return {}
        if not isinstance(table, Mapping):
            logger.warning("[GUILD SETTINGS MANAGER] Middleware table for guild %s is not a mapping", guild_id)
            return {}

        middlewares: Dict[str, MiddlewareEntry] = {}
        for key, raw in table.items():
            try:
                middlewares[str(key)] = parse_middleware_entry(str(key), raw)
            except ConfigurationError as exc:
                logger.error("[GUILD SETTINGS MANAGER] Skipping middleware %s for guild %s: %s", key, guild_id, exc)
        return middlewares

    def build_guild_config(self, guild_id: str, block: Any) -> GuildConfig:
        """Build the :class:`GuildConfig` for one ``guilds.<id>`` block."""
        if block is None:
            block = {}
        if not isinstance(block, Mapping):
            logger.error("[GUILD SETTINGS MANAGER] Configuration for guild %s is not a mapping; ignoring it", guild_id)
            return GuildConfig(guild_id=guild_id, settings=self.default_settings)

        settings = parse_guild_settings(self.app_config.default_settings, block.get("settings"))
        commands = self._build_commands(guild_id, self.app_config.default_commands, block.get("commands") or {})
        middlewares = self._build_middlewares(guild_id, block.get("middlewares"))
        return GuildConfig(
            guild_id=guild_id,
            settings=settings,
            middlewares=MappingProxyType(middlewares),
            commands=MappingProxyType(commands),
        )

    def build_all(self) -> Dict[str, GuildConfig]:
        """Build configurations for every guild in the application config."""
        self.default_settings = parse_guild_settings(self.app_config.default_settings)
        return {
            guild_id: self.build_guild_config(guild_id, block)
            for guild_id, block in self.app_config.guilds.items()
        }

    def load(self) -> int:
        """Build every guild configuration and return how many were loaded."""
        self.guilds = self.build_all()
        logger.info("[GUILD SETTINGS MANAGER] Loaded configuration for %d guild(s)", len(self.guilds))
        return len(self.guilds)

    # -------- Lookup --------
    def get_guild_config(self, guild_id: Any) -> GuildConfig:
        """Return the configuration of a guild.

        Guilds without a configuration block get the default settings and no
        middlewares or commands.
        """
        key = str(guild_id)
        config = self.guilds.get(key)
        if config is None:
            return GuildConfig(guild_id=key, settings=self.default_settings)
        return config

    # -------- Middleware lifecycle --------
    async def initialize_guild(self, guild: discord.Guild) -> int:
        """Run ``initialize(guild)`` on the guild's middlewares; return how many succeeded."""
        config = self.guilds.get(str(guild.id))
        if config is None:
            return 0

        initialized = 0
        for key, entry in config.middlewares.items():
            initialize = getattr(entry.middleware, "initialize", None)
            if initialize is None:
                continue
            try:
                if await initialize(guild):
                    initialized += 1
                else:
                    logger.warning("[GUILD SETTINGS MANAGER] Middleware %s did not initialize in guild %s", key, guild.id)
            except Exception:
                logger.exception("[GUILD SETTINGS MANAGER] Initialization of middleware %s failed in guild %s", key, guild.id)
        return initialized

    async def initialize_middlewares(self, guilds: Iterable[discord.Guild]) -> int:
        """Initialize middlewares for every guild the bot is in."""
        total = 0
        for guild in guilds:
            total += await self.initialize_guild(guild)
        return total

    async def _close_middlewares(self, configs: Iterable[GuildConfig]) -> None:
        for config in configs:
            for key, entry in config.middlewares.items():
                close = getattr(entry.middleware, "close", None)
                if close is None:
                    continue
                try:
                    await close()
                except Exception:
                    logger.exception("[GUILD SETTINGS MANAGER] Closing middleware %s of guild %s failed", key, config.guild_id)

    async def reload(self, bot: Optional[discord.Bot] = None) -> int:
        """Re-read the configuration file and swap in freshly built tables.

        Middlewares of the previous tables are closed. When ``bot`` is given,
        the new middlewares are initialized for the guilds it is in.
        """
        self.app_config.reload()
        previous = list(self.guilds.values())
        count = self.load()
        await self._close_middlewares(previous)
        if bot is not None:
            await self.initialize_middlewares(getattr(bot, "guilds", []) or [])
        logger.info("[GUILD SETTINGS MANAGER] Configuration reloaded")
        return count

    async def shutdown(self) -> None:
        """Close every middleware during shutdown."""
        await self._close_middlewares(list(self.guilds.values()))
        logger.info("[GUILD SETTINGS MANAGER] Guild settings manager shutdown complete")
