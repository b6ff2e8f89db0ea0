from __future__ import annotations
from pathlib import Path
import fcntl
import os
from typing import Any, Dict
import yaml

from guildwarden.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("config/app_config.yml")
OWNER_ID_ENV = "GUILDWARDEN_OWNER_ID"


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml`` and exposes
    the sections guildwarden reads: the owner id, the default settings and
    command table, and the per-guild blocks. Uses fcntl file locks so a file
    being rewritten by another process is never read half-way.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.error("[APP CONFIGURATION] Config %s must be a mapping at the top level.", self.config_path)
            return {}
        return data

    def _section(self, key: str) -> Dict[str, Any]:
        value = self._data.get(key)
        if value is None:
            return {}
        if not isinstance(value, dict):
            logger.warning("[APP CONFIGURATION] Section '%s' is not a mapping; ignoring it.", key)
            return {}
        return value

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns an empty dict when the file is missing or malformed.
        """
        self._data = self.load_from_disk()
        return self._data

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def owner_id(self) -> str:
        """Return the bot owner's user id, or an empty string if unset.

        The ``GUILDWARDEN_OWNER_ID`` environment variable takes precedence
        over the ``owner_id`` key.
        """
        value = os.getenv(OWNER_ID_ENV) or self._data.get("owner_id")
        return str(value).strip() if value not in (None, "") else ""

    @property
    def default_settings(self) -> Dict[str, Any]:
        """Settings applied to every guild before its own ``settings`` block."""
        return self._section("default_settings")

    @property
    def default_commands(self) -> Dict[str, Any]:
        """Command table shared by every configured guild."""
        return self._section("commands")

    @property
    def guilds(self) -> Dict[str, Any]:
        """Per-guild configuration blocks keyed by guild id (as strings)."""
        return {str(guild_id).strip(): block for guild_id, block in self._section("guilds").items()}
