"""In-memory implementation of the Repository protocol.

All data lives in dictionaries and lists and is lost when the process
exits. Used when no database is configured, and in tests.
"""

import asyncio
import itertools
from datetime import datetime

from discord_monitor.domain.clock import Clock, as_utc, utcnow
from discord_monitor.domain.constants import (
    BOT_STATUS_ID,
    COMMAND_LOG_LIMIT,
    RETENTION_WINDOW,
)
from discord_monitor.domain.entities.bot_status import BotStatus, BotStatusUpdate
from discord_monitor.domain.entities.channel import Channel
from discord_monitor.domain.entities.command_log import CommandLog
from discord_monitor.domain.entities.message import Message
from discord_monitor.domain.entities.server import Server
from discord_monitor.domain.entities.user import User
from discord_monitor.domain.formatting import estimate_storage_usage
from discord_monitor.domain.repositories.repository import MessagePage


def _message_sort_key(message: Message) -> tuple[datetime, str]:
    return as_utc(message.created_at), message.id


def _log_sort_key(log: CommandLog) -> tuple[datetime, int]:
    return as_utc(log.executed_at), log.id or 0


class MemoryRepository:
    """In-memory implementation of Repository.

    Every mutation runs under a single asyncio lock, so the BotStatus
    counters are always updated together with the collection they mirror.
    Reads never await, so they observe either the state before or after a
    mutation, never a half-applied one.
    """

    def __init__(self, clock: Clock = utcnow) -> None:
        """Initialize the repository with empty collections.

        Args:
            clock: Source of the current time for retention cutoffs.
        """
        self._clock = clock
        self._lock = asyncio.Lock()

        self._users: dict[int, User] = {}
        self._user_ids = itertools.count(1)

        self._servers: dict[str, Server] = {}
        self._channels: dict[str, Channel] = {}
        self._messages: dict[str, Message] = {}

        self._command_logs: list[CommandLog] = []
        self._command_log_ids = itertools.count(1)

        self._status = BotStatus(id=BOT_STATUS_ID)

    async def initialize(self) -> None:
        """No resources to prepare; the status row exists from construction."""

    async def close(self) -> None:
        """No resources to release."""

    # Users

    async def get_user(self, user_id: int) -> User | None:
        return self._users.get(user_id)

    async def get_user_by_username(self, username: str) -> User | None:
        return next(
            (user for user in self._users.values() if user.username == username),
            None,
        )

    async def create_user(self, user: User) -> User:
        async with self._lock:
            existing = await self.get_user_by_username(user.username)
            if existing is not None:
                return existing

            user.id = next(self._user_ids)
            self._users[user.id] = user
            return user

    # Servers

    async def get_servers(self) -> list[Server]:
        return sorted(self._servers.values(), key=lambda server: server.name)

    async def get_server(self, server_id: str) -> Server | None:
        return self._servers.get(server_id)

    async def create_server(self, server: Server) -> Server:
        async with self._lock:
            existing = self._servers.get(server.id)
            if existing is not None:
                existing.name = server.name
                existing.icon = server.icon
                return existing

            self._servers[server.id] = server
            self._status.servers_count = len(self._servers)
            return server

    # Channels

    async def get_channels(self, server_id: str | None = None) -> list[Channel]:
        channels = self._channels.values()
        if server_id:
            channels = [c for c in channels if c.server_id == server_id]
        return sorted(channels, key=lambda channel: channel.name)

    async def get_channel(self, channel_id: str) -> Channel | None:
        return self._channels.get(channel_id)

    async def create_channel(self, channel: Channel) -> Channel:
        async with self._lock:
            existing = self._channels.get(channel.id)
            if existing is not None:
                existing.name = channel.name
                existing.type = channel.type
                return existing

            self._channels[channel.id] = channel
            self._status.channels_count = len(self._channels)
            return channel

    # Messages

    async def get_message(self, message_id: str) -> Message | None:
        return self._messages.get(message_id)

    async def create_message(self, message: Message) -> Message:
        async with self._lock:
            existing = self._messages.get(message.id)
            if existing is not None:
                return existing

            self._messages[message.id] = message
            self._refresh_message_counts()
            return message

    async def get_messages(
        self,
        server_id: str | None = None,
        channel_id: str | None = None,
        search: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> MessagePage:
        matches = list(self._messages.values())

        if server_id:
            matches = [m for m in matches if m.server_id == server_id]
        if channel_id:
            matches = [m for m in matches if m.channel_id == channel_id]
        if search:
            needle = search.lower()
            matches = [
                m
                for m in matches
                if needle in m.content.lower() or needle in m.author_username.lower()
            ]

        matches.sort(key=_message_sort_key, reverse=True)

        start = max(offset, 0)
        end = start + max(limit, 0)
        return MessagePage(messages=matches[start:end], total=len(matches))

    async def delete_old_messages(self) -> int:
        cutoff = self._clock() - RETENTION_WINDOW
        async with self._lock:
            expired = [
                message_id
                for message_id, message in self._messages.items()
                if as_utc(message.created_at) < cutoff
            ]
            for message_id in expired:
                del self._messages[message_id]

            self._refresh_message_counts()
            return len(expired)

    def _refresh_message_counts(self) -> None:
        self._status.messages_count = len(self._messages)
        self._status.storage_usage = estimate_storage_usage(len(self._messages))

    # Bot status

    async def get_bot_status(self) -> BotStatus:
        return BotStatus(**self._status.model_dump())

    async def update_bot_status(self, update: BotStatusUpdate) -> BotStatus:
        async with self._lock:
            for name, value in update.changes().items():
                setattr(self._status, name, value)
            return BotStatus(**self._status.model_dump())

    # Command logs

    async def get_command_logs(self, limit: int = 100) -> list[CommandLog]:
        logs = sorted(self._command_logs, key=_log_sort_key, reverse=True)
        return logs[: max(limit, 0)]

    async def create_command_log(self, log: CommandLog) -> CommandLog:
        async with self._lock:
            log.id = next(self._command_log_ids)
            self._command_logs.append(log)

            if len(self._command_logs) > COMMAND_LOG_LIMIT:
                self._command_logs.sort(key=_log_sort_key, reverse=True)
                del self._command_logs[COMMAND_LOG_LIMIT:]
            return log
