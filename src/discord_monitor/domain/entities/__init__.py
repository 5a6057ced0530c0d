"""Domain entities."""

from discord_monitor.domain.entities.bot_status import BotStatus, BotStatusUpdate
from discord_monitor.domain.entities.channel import Channel
from discord_monitor.domain.entities.command_log import CommandLog
from discord_monitor.domain.entities.event import (
    ErrorEvent,
    Event,
    EventType,
    MessageReceivedEvent,
    ReadyEvent,
    TopologyChangedEvent,
)
from discord_monitor.domain.entities.message import Message
from discord_monitor.domain.entities.server import Server
from discord_monitor.domain.entities.user import User

__all__ = [
    "BotStatus",
    "BotStatusUpdate",
    "Channel",
    "CommandLog",
    "ErrorEvent",
    "Event",
    "EventType",
    "Message",
    "MessageReceivedEvent",
    "ReadyEvent",
    "Server",
    "TopologyChangedEvent",
    "User",
]
