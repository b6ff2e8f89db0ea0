"""
discord_utils.py
================

Low-level Discord helpers for guildwarden.

Stateless functions that carry out the decisions made by the core: deleting
a spam message, posting a warning, timing out or banning an author, and
replying on the originating channel. Nothing here keeps state.
"""

import datetime
from typing import Union

import discord

from guildwarden.datatypes.action_datatypes import ActionType
from guildwarden.util.logger import get_logger

logger = get_logger("discord_utils")

# Human-friendly label for a permanent duration
PERMANENT_DURATION = "Till the end of time"

# Discord caps timeouts at 28 days
MAX_TIMEOUT_MINUTES = 28 * 24 * 60

# Emoji, label and embed color per enforcement action
PUNISHMENT_STYLES = {
    ActionType.BAN:     ("🔨", "Ban", discord.Color.red()),
    ActionType.WARN:    ("⚠️", "Warn", discord.Color.yellow()),
    ActionType.TIMEOUT: ("⏱️", "Timeout", discord.Color.blue()),
}


def is_ignored_author(author: Union[discord.User, discord.Member]) -> bool:
    """
    Check if an author should be ignored by message handlers (bots or non-members).

    Args:
        author (discord.User | discord.Member): The user or member to check.

    Returns:
        bool: True if the author is a bot or not a guild member, False otherwise.
    """
    return author.bot or not isinstance(author, discord.Member)


def format_duration(minutes: int) -> str:
    """
    Convert a timeout length in minutes to a human-readable string.

    Args:
        minutes (int): Timeout length in minutes, at least 1.

    Returns:
        str: Human-readable duration string.
    """
    if minutes < 60:
        return f"{minutes} min{'s' if minutes != 1 else ''}"
    elif minutes < 1440:
        hours = minutes // 60
        return f"{hours} hour{'s' if hours != 1 else ''}"
    else:
        days = minutes // 1440
        return f"{days} day{'s' if days != 1 else ''}"


def create_punishment_embed(
    action_type: ActionType,
    user: discord.User | discord.Member,
    reason: str,
    duration_str: str | None = None,
) -> discord.Embed:
    """
    Build the embed posted in the channel when an author is punished for spam.

    Args:
        action_type (ActionType): The action taken.
        user (discord.User | discord.Member): The affected user.
        reason (str): Reason shown to the channel.
        duration_str (str | None): Optional duration label.

    Returns:
        discord.Embed: The constructed embed object.
    """
    emoji, label, color = PUNISHMENT_STYLES[action_type]

    embed = discord.Embed(
        title=f"{emoji} {label} Issued",
        color=color,
        timestamp=datetime.datetime.now(datetime.timezone.utc),
    )
    embed.add_field(name="User", value=f"{user.mention} (`{user.id}`)", inline=True)
    embed.add_field(name="Action", value=label, inline=True)
    embed.add_field(name="Reason", value=reason, inline=False)
    if duration_str:
        embed.add_field(name="Duration", value=duration_str, inline=False)
    return embed


async def safe_delete_message(message: discord.Message) -> bool:
    """
    Attempt to delete a Discord message, suppressing recoverable errors.

    Args:
        message (discord.Message): The message to delete.

    Returns:
        bool: True if deletion succeeded, False otherwise.
    """
    try:
        await message.delete()
        return True
    except discord.NotFound:
        return False
    except discord.Forbidden:
        logger.warning(f"No permission to delete message {message.id}")
    except Exception as exc:
        logger.error(f"Error deleting message {message.id}: {exc}")
    return False


async def send_reply(message: discord.Message, text: str) -> bool:
    """Reply to ``message`` with ``text``; return False if Discord refused."""
    try:
        await message.reply(text)
        return True
    except discord.Forbidden:
        logger.warning(f"No permission to reply in channel {message.channel.id}")
    except Exception as exc:
        logger.error(f"Error replying to message {message.id}: {exc}")
    return False


async def apply_spam_action(
    action: ActionType,
    message: discord.Message,
    reason: str,
    *,
    timeout_minutes: int = 0,
    notify: bool = True,
) -> bool:
    """
    Carry out a spam enforcement decision against the author of ``message``.

    Args:
        action (ActionType): WARN, TIMEOUT or BAN.
        message (discord.Message): The offending message; its author is the target.
        reason (str): Audit-log and channel reason.
        timeout_minutes (int): Timeout length, clamped to Discord's 28 day cap.
        notify (bool): Post an embed in the channel describing the action.

    Returns:
        bool: True if the action was applied successfully, False otherwise.
    """
    guild = message.guild
    author = message.author
    channel = message.channel
    if guild is None or not isinstance(author, discord.Member):
        logger.warning("Cannot apply %s outside a guild or to a non-member (message %s)", action.value, message.id)
        return False

    duration_label = None
    match action:
        case ActionType.WARN:
            pass
        case ActionType.TIMEOUT:
            minutes = min(max(int(timeout_minutes), 1), MAX_TIMEOUT_MINUTES)
            duration_label = format_duration(minutes)
            until = discord.utils.utcnow() + datetime.timedelta(minutes=minutes)
            try:
                await author.timeout(until, reason=f"Anti-spam: {reason}")
            except Exception as exc:
                logger.error("Failed to timeout user %s: %s", author.id, exc)
                return False
        case ActionType.BAN:
            duration_label = PERMANENT_DURATION
            try:
                await guild.ban(author, reason=f"Anti-spam: {reason}")
            except Exception as exc:
                logger.error("Failed to ban user %s: %s", author.id, exc)
                return False

    if notify:
        try:
            await channel.send(embed=create_punishment_embed(action, author, reason, duration_label))
        except Exception as exc:
            logger.error("Failed to post %s notification for user %s: %s", action.value, author.id, exc)

    logger.info("Applied %s to user %s in guild %s", action.value, author.id, guild.id)
    return True
