"""
Acting on spam verdicts.

When the detector flags a message, the message is deleted and the author
collects a warning in that guild. Authors get
``anti_spam_warning_count_before_ban`` warnings; the next offence times them
out (``anti_spam_mute_instead_of_ban``) or bans them. Warning counts are kept
in memory and reset once the author has been punished.
"""

from __future__ import annotations

from typing import Dict, Tuple

import discord

from guildwarden.datatypes.action_datatypes import ActionType
from guildwarden.datatypes.guild_settings import GuildSettings
from guildwarden.util import discord_utils
from guildwarden.util.logger import get_logger

logger = get_logger("spam_enforcement")

SPAM_REASON = "Spamming or flooding the channel."


def decide_spam_action(warning_count: int, settings: GuildSettings) -> ActionType:
    """Pick the action for an author's ``warning_count``-th spam offence."""
    if warning_count <= settings.anti_spam_warning_count_before_ban:
        return ActionType.WARN
    if settings.anti_spam_mute_instead_of_ban:
        return ActionType.TIMEOUT
    return ActionType.BAN


class SpamEnforcer:
    """Tracks spam offences per guild member and applies the resulting action."""

    def __init__(self) -> None:
        self.warnings: Dict[Tuple[str, str], int] = {}

    def record_offence(self, guild_id: str, author_id: str, settings: GuildSettings) -> ActionType:
        """Count one offence and return the action it calls for."""
        key = (str(guild_id), str(author_id))
        count = self.warnings.get(key, 0) + 1
        action = decide_spam_action(count, settings)
        if action is ActionType.WARN:
            self.warnings[key] = count
        else:
            self.warnings.pop(key, None)
        return action

    async def enforce(self, message: discord.Message, settings: GuildSettings) -> ActionType:
        """Delete a spam message and warn, time out, or ban its author.

        Args:
            message: The message the detector flagged.
            settings: Settings of the guild the message was posted in.

        Returns:
            ActionType: The action that was decided for the author.
        """
        await discord_utils.safe_delete_message(message)

        action = self.record_offence(str(message.guild.id), str(message.author.id), settings)
        logger.info(
            "[SPAM ENFORCEMENT] %s flagged in guild %s, action: %s",
            message.author.id,
            message.guild.id,
            action.value,
        )

        applied = await discord_utils.apply_spam_action(
            action,
            message,
            SPAM_REASON,
            timeout_minutes=settings.anti_spam_mute_minutes,
            notify=not settings.enable_quiet_mode,
        )
        if not applied:
            logger.warning("[SPAM ENFORCEMENT] Could not apply %s to %s", action.value, message.author.id)
        return action
