"""
Channel inclusion policy shared by middlewares and commands.

Both kinds of entries carry an allow-list (``enabled_channels``) and a
deny-list (``excluded_channels``) of channel names.
"""

from __future__ import annotations

from typing import Collection, Optional


def is_included(
    channel_name: str,
    enabled_channels: Optional[Collection[str]],
    excluded_channels: Optional[Collection[str]],
    default_included: bool = True,
) -> bool:
    """Decide whether an entry applies to a channel.

    The deny-list always wins. A non-empty allow-list then restricts the
    entry to the listed channels. With neither list set, ``default_included``
    decides.

    Args:
        channel_name: Name of the channel the message was posted in.
        enabled_channels: Channel names the entry is limited to, if any.
        excluded_channels: Channel names the entry never runs in.
        default_included: Result when no list mentions the channel and the
            allow-list is empty.

    Returns:
        bool: True if the entry should run for this channel.
    """
    if excluded_channels and channel_name in excluded_channels:
        return False
    if enabled_channels:
        return channel_name in enabled_channels
    return default_included
