"""
Ordered middleware execution for a guild.

A middleware is a per-guild hook that sees every message in the channels it
is enabled for. Its ``execute`` returns:

- ``""`` to let processing continue
- a non-empty string to halt processing, the string being the reason
- any non-string value to halt processing for an unspecified reason

``execute`` may also return an awaitable resolving to one of the above.
Middlewares run in the order the guild declares them and the chain stops at
the first halt. An exception inside a middleware is logged and treated as
"continue" so that one faulty middleware cannot block command handling.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, FrozenSet, Mapping, Optional

from guildwarden.datatypes.message_datatypes import InboundMessage
from guildwarden.moderation.channel_filter import is_included
from guildwarden.util.logger import get_logger

logger = get_logger("middleware_chain")


@dataclass(frozen=True, slots=True)
class MiddlewareEntry:
    """One middleware registered for a guild.

    Attributes:
        key: Name of the middleware, unique within the guild.
        execute: Callable invoked with the :class:`InboundMessage`.
        enabled_channels: Channel names the middleware is limited to.
        excluded_channels: Channel names the middleware never runs in.
        middleware: The object owning ``execute``, kept for its lifecycle
            hooks (``initialize`` / ``close``) when it has any.
    """

    key: str
    execute: Callable[[InboundMessage], Any]
    enabled_channels: FrozenSet[str] = frozenset()
    excluded_channels: FrozenSet[str] = frozenset()
    middleware: Optional[Any] = field(default=None, compare=False)


def halt_reason_from(key: str, result: Any) -> str:
    """Turn a middleware return value into a halt reason ("" means continue)."""
    if isinstance(result, str):
        return result
    return f"Middleware {key} halted the processing."


async def run_middlewares(message: InboundMessage, middlewares: Mapping[str, MiddlewareEntry]) -> str:
    """Run a guild's middlewares against a message until one halts.

    Args:
        message: The message being processed.
        middlewares: The guild's middleware table, in declaration order.

    Returns:
        str: The halt reason of the first middleware that halted, or ``""``
        when every applicable middleware let the message through.
    """
    for key, entry in middlewares.items():
        if not is_included(message.channel_name, entry.enabled_channels, entry.excluded_channels, True):
            continue

        try:
            result = entry.execute(message)
            if inspect.isawaitable(result):
                result = await result
        except Exception:
            logger.exception(
                "[MIDDLEWARE CHAIN] Middleware %s failed in guild %s; continuing",
                key,
                message.guild_id,
            )
            continue

        reason = halt_reason_from(key, result)
        if reason:
            logger.debug(
                "[MIDDLEWARE CHAIN] Middleware %s halted processing in #%s: %s",
                key,
                message.channel_name,
                reason,
            )
            return reason

    return ""
