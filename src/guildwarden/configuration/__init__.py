"""
Configuration management for guildwarden.

- **app_configuration.py**: YAML configuration loader guarded by fcntl file
  locks. Exposes the owner id, default settings, the default command table
  and per-guild blocks. Falls back to an empty configuration when the file
  is missing or malformed.

- **guild_settings.py**: Turns the loaded configuration into one immutable
  ``GuildConfig`` per guild (settings, ordered middleware table, ordered
  command table), skipping malformed entries, and drives middleware
  initialization, reload and shutdown.
"""
