"""
Message moderation building blocks for guildwarden.

- **channel_filter.py**: The channel inclusion policy shared by middlewares
  and commands (deny-list wins, then allow-list, then a default).
- **middleware_chain.py**: ``MiddlewareEntry`` and ``run_middlewares``, which
  runs a guild's middlewares in order and stops at the first halt.
- **spam_detector.py**: URL heuristics plus a bounded, lock-guarded
  per-author history used to catch repeated messages.
- **spam_enforcement.py**: Turns a spam verdict into a warning, timeout, or
  ban according to guild settings.
"""
