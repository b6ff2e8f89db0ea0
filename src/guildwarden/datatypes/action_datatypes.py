"""
Action types produced by spam enforcement.

``ActionType`` names what the bot should do to an author whose message was
flagged as spam.
"""

from __future__ import annotations

from enum import Enum


class ActionType(Enum):
    """Enumeration of supported moderation actions."""

    BAN = "ban"
    WARN = "warn"
    TIMEOUT = "timeout"

    def __str__(self) -> str:
        return self.value
