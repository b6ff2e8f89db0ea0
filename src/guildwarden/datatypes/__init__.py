"""
Plain data structures shared across guildwarden.

- **message_datatypes.py**: ``InboundMessage``, the transport-neutral view of
  a guild message that every decision procedure consumes.
- **access_datatypes.py**: ``AccessList`` and the ``has_access`` check used
  to authorize command authors.
- **guild_settings.py**: ``GuildSettings`` and ``SpamSettings`` with their
  defaults, plus ``ConfigurationError``.
- **action_datatypes.py**: ``ActionType`` for spam enforcement outcomes.
"""
