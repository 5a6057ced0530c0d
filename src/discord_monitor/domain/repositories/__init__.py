"""Repository protocols."""

from discord_monitor.domain.repositories.repository import (
    BotStatusRepository,
    ChannelRepository,
    CommandLogRepository,
    MessagePage,
    MessageRepository,
    Repository,
    ServerRepository,
    UserRepository,
)

__all__ = [
    "BotStatusRepository",
    "ChannelRepository",
    "CommandLogRepository",
    "MessagePage",
    "MessageRepository",
    "Repository",
    "ServerRepository",
    "UserRepository",
]
