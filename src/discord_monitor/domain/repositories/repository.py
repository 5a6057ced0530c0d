"""Repository protocols.

Each collection has its own protocol; ``Repository`` is the full capability
set implemented by every storage backend. Lookups by ID return None when
the entity does not exist. Every mutating call that changes the size of a
collection recomputes the matching BotStatus counter before it returns.
"""

from dataclasses import dataclass, field
from typing import Protocol

from discord_monitor.domain.entities.bot_status import BotStatus, BotStatusUpdate
from discord_monitor.domain.entities.channel import Channel
from discord_monitor.domain.entities.command_log import CommandLog
from discord_monitor.domain.entities.message import Message
from discord_monitor.domain.entities.server import Server
from discord_monitor.domain.entities.user import User


@dataclass(frozen=True)
class MessagePage:
    """One page of a message query.

    Attributes:
        messages: Messages on this page, newest first.
        total: Number of messages matching the filters before pagination.
    """

    messages: list[Message] = field(default_factory=list)
    total: int = 0


class UserRepository(Protocol):
    """Repository protocol for dashboard users."""

    async def get_user(self, user_id: int) -> User | None: ...

    async def get_user_by_username(self, username: str) -> User | None: ...

    async def create_user(self, user: User) -> User:
        """Create a user.

        If the username is already taken, the existing user is returned.
        """
        ...


class ServerRepository(Protocol):
    """Repository protocol for Discord servers."""

    async def get_servers(self) -> list[Server]: ...

    async def get_server(self, server_id: str) -> Server | None: ...

    async def create_server(self, server: Server) -> Server:
        """Insert or update a server.

        An existing server keeps its joined_at; name and icon are updated.
        Inserting a new server recomputes servers_count.

        Args:
            server: The server to upsert.

        Returns:
            The stored server.
        """
        ...


class ChannelRepository(Protocol):
    """Repository protocol for Discord channels."""

    async def get_channels(self, server_id: str | None = None) -> list[Channel]:
        """Get channels, optionally restricted to one server."""
        ...

    async def get_channel(self, channel_id: str) -> Channel | None: ...

    async def create_channel(self, channel: Channel) -> Channel:
        """Insert or update a channel.

        An existing channel has its name and type updated. Inserting a new
        channel recomputes channels_count.

        Args:
            channel: The channel to upsert.

        Returns:
            The stored channel.
        """
        ...


class MessageRepository(Protocol):
    """Repository protocol for Discord messages."""

    async def get_message(self, message_id: str) -> Message | None: ...

    async def create_message(self, message: Message) -> Message:
        """Store a message idempotently.

        If a message with the same ID already exists it is returned
        unchanged; its content is never overwritten. Otherwise the message
        is inserted and messages_count and storage_usage are recomputed.

        Args:
            message: The message to store.

        Returns:
            The stored message (the original one for duplicates).
        """
        ...

    async def get_messages(
        self,
        server_id: str | None = None,
        channel_id: str | None = None,
        search: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> MessagePage:
        """Query messages.

        Filters are combined with AND. ``search`` matches case-insensitively
        as a substring of the content or the author username. Results are
        ordered by created_at descending.

        Args:
            server_id: Only messages from this server.
            channel_id: Only messages from this channel.
            search: Substring to look for.
            limit: Page size.
            offset: Number of matching messages to skip.

        Returns:
            The requested page and the total number of matches.
        """
        ...

    async def delete_old_messages(self) -> int:
        """Delete messages older than the retention window.

        Messages whose created_at is strictly before now minus 14 days are
        deleted, then messages_count and storage_usage are recomputed.

        Returns:
            Number of deleted messages.
        """
        ...


class BotStatusRepository(Protocol):
    """Repository protocol for the BotStatus singleton."""

    async def get_bot_status(self) -> BotStatus: ...

    async def update_bot_status(self, update: BotStatusUpdate) -> BotStatus:
        """Apply the explicitly set fields of ``update`` and return the result."""
        ...


class CommandLogRepository(Protocol):
    """Repository protocol for command logs."""

    async def get_command_logs(self, limit: int = 100) -> list[CommandLog]:
        """Get the most recent logs, newest first."""
        ...

    async def create_command_log(self, log: CommandLog) -> CommandLog:
        """Append a log and trim the collection to the newest 1000 entries."""
        ...


class Repository(
    UserRepository,
    ServerRepository,
    ChannelRepository,
    MessageRepository,
    BotStatusRepository,
    CommandLogRepository,
    Protocol,
):
    """Full storage contract shared by all backends."""

    async def initialize(self) -> None:
        """Prepare the backend and make sure the BotStatus row exists."""
        ...

    async def close(self) -> None:
        """Release backend resources."""
        ...
