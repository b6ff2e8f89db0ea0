"""
guildwarden - guild-scoped message gatekeeping for Discord

guildwarden inspects every inbound guild message and decides what the bot
should do about it. Each guild is configured independently.

Core Components:

- **Middleware Chain**: Ordered, channel-scoped hooks that may halt further
  processing or relay the message to another chat network (bridge)
- **Commands**: Mention-triggered bot commands with per-command access lists
  and channel filters
- **Spam Detection**: URL heuristics plus a bounded per-author history of
  recent messages to catch repeated posts
- **Spam Enforcement**: Warn, time out, or ban repeat offenders depending on
  guild settings

Usage:
    from guildwarden.main import main
    main()
"""
