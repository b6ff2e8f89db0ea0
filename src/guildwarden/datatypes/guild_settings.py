"""
Per-guild settings values and their defaults.

The settings are read from the ``settings`` block of a guild in
``config/app_config.yml`` (on top of ``default_settings``). Parsing and
validation live in :mod:`guildwarden.configuration.guild_settings`; this
module only holds the shapes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


class ConfigurationError(ValueError):
    """Raised when a configuration entry cannot be turned into a usable value."""


@dataclass(frozen=True, slots=True)
class SpamSettings:
    """Thresholds for the spam detector. Every value is an integer >= 0.

    Attributes:
        max_repeat_of_message: How many earlier copies of the same body an
            author may have in their history before a message counts as spam.
            The history itself is capped at twice this value.
        max_urls_in_message: Maximum number of URL tokens in one message.
        max_identical_urls_in_message: Maximum number of times a single URL
            token may appear in one message.
    """

    max_repeat_of_message: int = 8
    max_urls_in_message: int = 3
    max_identical_urls_in_message: int = 2


@dataclass(frozen=True, slots=True)
class GuildSettings:
    """Feature flags and enforcement knobs for one guild."""

    enable_anti_spam_filtering: bool = True
    enable_quiet_mode: bool = False
    enable_client_commands: bool = True
    anti_spam_mute_instead_of_ban: bool = False
    anti_spam_warning_count_before_ban: int = 1
    anti_spam_mute_minutes: int = 10
    spam: SpamSettings = field(default_factory=SpamSettings)


BOOLEAN_SETTING_FIELDS = (
    "enable_anti_spam_filtering",
    "enable_quiet_mode",
    "enable_client_commands",
    "anti_spam_mute_instead_of_ban",
)

INTEGER_SETTING_FIELDS = (
    "anti_spam_warning_count_before_ban",
    "anti_spam_mute_minutes",
)

SPAM_SETTING_FIELDS = (
    "max_repeat_of_message",
    "max_urls_in_message",
    "max_identical_urls_in_message",
)


def default_settings_mapping() -> Dict[str, Any]:
    """Return every setting with its default value as a flat mapping."""
    defaults = GuildSettings()
    mapping: Dict[str, Any] = {name: getattr(defaults, name) for name in BOOLEAN_SETTING_FIELDS + INTEGER_SETTING_FIELDS}
    mapping.update({name: getattr(defaults.spam, name) for name in SPAM_SETTING_FIELDS})
    return mapping
