"""
Command table entries and command discovery.

Command implementations live as modules in :mod:`guildwarden.command.builtin`.
Each module exposes:

- ``KEY``: the word that triggers the command
- ``execute(message, context)``: returns the reply text (or an awaitable of it)
- ``DESCRIPTION`` (optional): one line shown by ``help``
- ``DISABLED`` (optional): set to True to keep the module from registering

Which authors may run a command, and in which channels, comes from the
configuration (see :mod:`guildwarden.configuration.guild_settings`).
"""

from __future__ import annotations

import importlib
import pkgutil
from dataclasses import dataclass, field
from types import ModuleType
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional

from guildwarden.datatypes.access_datatypes import AccessList
from guildwarden.util.logger import get_logger

logger = get_logger("command_registry")

BUILTIN_PACKAGE = "guildwarden.command.builtin"


@dataclass(frozen=True, slots=True)
class CommandModule:
    """A discovered command implementation, not yet bound to any guild."""

    key: str
    execute: Callable[..., Any]
    description: str = ""


@dataclass(frozen=True, slots=True)
class CommandEntry:
    """A command as registered for one guild.

    Attributes:
        key: Trigger word of the command.
        execute: ``execute(message, context)`` returning the reply text.
        access: Who may run the command.
        enabled_channels: Channel names the command is limited to.
        excluded_channels: Channel names the command never runs in.
        description: One-line summary shown by ``help``.
    """

    key: str
    execute: Callable[..., Any]
    access: AccessList = field(default_factory=AccessList)
    enabled_channels: FrozenSet[str] = frozenset()
    excluded_channels: FrozenSet[str] = frozenset()
    description: str = ""


def find_command_key(keys: Iterable[str], text: str) -> str:
    """Return the command key contained in ``text``.

    Every key is checked and the **last** matching key in iteration order
    wins, so with keys ``["ban", "banhammer"]`` the text ``"banhammer bob"``
    resolves to ``"banhammer"``. Returns ``""`` when no key matches.
    """
    command_key = ""
    for key in keys:
        if key and key in text:
            command_key = key
    return command_key


def _load_module(module: ModuleType) -> Optional[CommandModule]:
    key = getattr(module, "KEY", None)
    execute = getattr(module, "execute", None)
    if not isinstance(key, str) or not key or not callable(execute):
        logger.warning("[COMMANDS] Module %s does not define KEY and execute; skipping", module.__name__)
        return None
    if getattr(module, "DISABLED", False):
        logger.info("[COMMANDS] Command %s is disabled; skipping", key)
        return None
    return CommandModule(key=key, execute=execute, description=str(getattr(module, "DESCRIPTION", "") or ""))


def discover_commands(package_name: str = BUILTIN_PACKAGE) -> Dict[str, CommandModule]:
    """Import every module of ``package_name`` and collect its commands.

    Modules that fail to import are logged and skipped.

    Returns:
        Dict[str, CommandModule]: Commands keyed by trigger word, in module
        name order.
    """
    package = importlib.import_module(package_name)
    commands: Dict[str, CommandModule] = {}

    for module_info in sorted(pkgutil.iter_modules(package.__path__), key=lambda info: info.name):
        if module_info.name.startswith("_"):
            continue
        module_name = f"{package_name}.{module_info.name}"
        try:
            module = importlib.import_module(module_name)
        except Exception:
            logger.exception("[COMMANDS] Failed to import command module %s", module_name)
            continue

        command = _load_module(module)
        if command is None:
            continue
        if command.key in commands:
            logger.warning("[COMMANDS] Duplicate command key %s in %s; keeping the first", command.key, module_name)
            continue
        commands[command.key] = command
        logger.debug("[COMMANDS] Registered command %s from %s", command.key, module_name)

    if not commands:
        logger.warning("[COMMANDS] There are no commands available in %s", package_name)
    return commands
