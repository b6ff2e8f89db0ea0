"""Reloads the configuration file and rebuilds every guild's tables."""

KEY = "reload"
DESCRIPTION = "Reload the bot configuration."


async def execute(message, context) -> str:
    if context.settings_manager is None:
        return "Reloading is not available."
    count = await context.settings_manager.reload(context.bot)
    return f"Configuration reloaded ({count} guild{'s' if count != 1 else ''} configured)."
