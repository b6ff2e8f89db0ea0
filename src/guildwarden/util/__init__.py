"""
Utility helpers for guildwarden.

- **logger.py**: Shared logging setup with colored console output through
  prompt_toolkit, one rotating log file per session, and noise suppression
  for Discord and HTTP client internals.
- **discord_utils.py**: Stateless Discord helpers used when acting on
  moderation decisions (deleting messages, timeouts, bans).
"""
