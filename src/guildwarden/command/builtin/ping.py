"""Replies with the gateway latency."""

import math

KEY = "ping"
DESCRIPTION = "Check that the bot is alive."


def execute(message, context) -> str:
    latency = getattr(context.bot, "latency", None)
    if isinstance(latency, (int, float)) and math.isfinite(latency):
        return f"Pong! ({latency * 1000:.0f} ms)"
    return "Pong!"
