"""
py-cord integration for guildwarden.

- **cogs/message_listener.py**: Feeds guild messages to the message
  processing service and enforces spam verdicts.
- **cogs/events_listener.py**: Presence and middleware initialization on
  ready and guild join.
"""
