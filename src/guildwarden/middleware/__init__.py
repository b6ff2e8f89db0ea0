"""
Middleware implementations for guildwarden.

A middleware type is a class taking ``(key, options)`` whose instances expose
``execute(message)`` and, optionally, ``initialize(guild)`` and ``close()``.
The ``type`` field of a middleware entry in the configuration selects the
class from :data:`MIDDLEWARE_TYPES`; it defaults to the entry's key.

- **bridge.py**: Relays a channel to another chat network through a
  matterbridge API.
"""

from typing import Any, Dict, Mapping

from guildwarden.datatypes.guild_settings import ConfigurationError
from guildwarden.middleware.bridge import BridgeMiddleware

MIDDLEWARE_TYPES: Dict[str, type] = {
    "bridge": BridgeMiddleware,
}


def build_middleware(key: str, type_name: str, options: Mapping[str, Any]) -> Any:
    """Instantiate the middleware class registered as ``type_name``.

    Raises:
        ConfigurationError: If the type is unknown or rejects its options.
    """
    middleware_class = MIDDLEWARE_TYPES.get(type_name)
    if middleware_class is None:
        raise ConfigurationError(f"unknown middleware type {type_name!r} for {key}")
    return middleware_class(key, options)
