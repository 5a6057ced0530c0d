"""Upstream gateway adapters."""

from discord_monitor.infrastructure.gateway.discord_gateway import (
    DiscordGateway,
    default_intents,
)

__all__ = ["DiscordGateway", "default_intents"]
