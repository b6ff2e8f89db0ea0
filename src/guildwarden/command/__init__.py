"""
Bot commands for guildwarden.

- **command_registry.py**: ``CommandEntry``, command discovery over the
  ``builtin`` package, and the last-match-wins key resolution.
- **command_dispatcher.py**: Mention handling, the safe character check,
  authorization and timed execution of a command.
- **builtin/**: The commands shipped with the bot (``ping``, ``help``,
  ``reload``).
"""
