"""Lists the commands the author may run in the current channel."""

from guildwarden.datatypes.access_datatypes import has_access
from guildwarden.moderation.channel_filter import is_included

KEY = "help"
DESCRIPTION = "List the commands you can use here."


def execute(message, context) -> str:
    lines = []
    for key, entry in context.guild_config.commands.items():
        if not is_included(message.channel_name, entry.enabled_channels, entry.excluded_channels, True):
            continue
        if not has_access(entry.access, message.author_id, context.owner_id):
            continue
        lines.append(f"`{key}` {entry.description}".rstrip())

    if not lines:
        return "There are no commands available to you here."
    return "Available commands:\n" + "\n".join(lines)
