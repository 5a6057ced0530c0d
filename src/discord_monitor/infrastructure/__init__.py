"""Infrastructure layer."""

from discord_monitor.infrastructure.event_queue import EventQueue
from discord_monitor.infrastructure.persistence import Database

__all__ = ["Database", "EventQueue"]
