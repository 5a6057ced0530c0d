"""Relational implementation of the Repository protocol."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import delete, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from discord_monitor.domain.clock import Clock, utcnow
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
from discord_monitor.domain.exceptions import StorageError
from discord_monitor.domain.formatting import estimate_storage_usage
from discord_monitor.domain.repositories.repository import MessagePage
from discord_monitor.infrastructure.persistence.database import Database


class SqlRepository:
    """SQLModel implementation of Repository.

    Each operation runs in its own transaction. Writes are serialized with
    an asyncio lock so that a count recomputed inside a write transaction
    always reflects that write, and SQLite never sees two concurrent writers
    from this process.
    """

    def __init__(self, database: Database, clock: Clock = utcnow) -> None:
        """Initialize the repository.

        Args:
            database: Database instance for session management.
            clock: Source of the current time for retention cutoffs.
        """
        self._database = database
        self._clock = clock
        self._write_lock = asyncio.Lock()

    @asynccontextmanager
    async def _read(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._database.get_session() as session:
                yield session
        except SQLAlchemyError as e:
            raise StorageError(f"Database read failed: {e}") from e

    @asynccontextmanager
    async def _write(self) -> AsyncIterator[AsyncSession]:
        async with self._write_lock:
            try:
                async with self._database.get_session() as session:
                    yield session
            except SQLAlchemyError as e:
                raise StorageError(f"Database write failed: {e}") from e

    async def initialize(self) -> None:
        """Create tables and the BotStatus row if missing."""
        await self._database.initialize()
        async with self._write() as session:
            if await session.get(BotStatus, BOT_STATUS_ID) is None:
                session.add(BotStatus(id=BOT_STATUS_ID))

    async def close(self) -> None:
        await self._database.close()

    # Users

    async def get_user(self, user_id: int) -> User | None:
        async with self._read() as session:
            return await session.get(User, user_id)

    async def get_user_by_username(self, username: str) -> User | None:
        async with self._read() as session:
            result = await session.execute(select(User).where(User.username == username))
            return result.scalars().first()

    async def create_user(self, user: User) -> User:
        async with self._write() as session:
            statement = select(User).where(User.username == user.username)
            existing = (await session.execute(statement)).scalars().first()
            if existing is not None:
                return existing

            session.add(user)
            await session.flush()
            return user

    # Servers

    async def get_servers(self) -> list[Server]:
        async with self._read() as session:
            result = await session.execute(select(Server).order_by(Server.name))
            return list(result.scalars().all())

    async def get_server(self, server_id: str) -> Server | None:
        async with self._read() as session:
            return await session.get(Server, server_id)

    async def create_server(self, server: Server) -> Server:
        async with self._write() as session:
            existing = await session.get(Server, server.id)
            if existing is not None:
                existing.name = server.name
                existing.icon = server.icon
                session.add(existing)
                return existing

            if not await self._insert(session, server):
                return await self._reload_server(session, server)
            await self._refresh_counts(session, servers=True)
            return server

    async def _reload_server(self, session: AsyncSession, server: Server) -> Server:
        existing = await session.get(Server, server.id)
        if existing is None:
            raise StorageError(f"Server {server.id} vanished after a key conflict")
        existing.name = server.name
        existing.icon = server.icon
        session.add(existing)
        return existing

    # Channels

    async def get_channels(self, server_id: str | None = None) -> list[Channel]:
        async with self._read() as session:
            statement = select(Channel)
            if server_id:
                statement = statement.where(Channel.server_id == server_id)
            result = await session.execute(statement.order_by(Channel.name))
            return list(result.scalars().all())

    async def get_channel(self, channel_id: str) -> Channel | None:
        async with self._read() as session:
            return await session.get(Channel, channel_id)

    async def create_channel(self, channel: Channel) -> Channel:
        async with self._write() as session:
            existing = await session.get(Channel, channel.id)
            if existing is None:
                if await self._insert(session, channel):
                    await self._refresh_counts(session, channels=True)
                    return channel
                existing = await session.get(Channel, channel.id)
                if existing is None:
                    raise StorageError(
                        f"Channel {channel.id} vanished after a key conflict"
                    )

            existing.name = channel.name
            existing.type = channel.type
            session.add(existing)
            return existing

    # Messages

    async def get_message(self, message_id: str) -> Message | None:
        async with self._read() as session:
            return await session.get(Message, message_id)

    async def create_message(self, message: Message) -> Message:
        async with self._write() as session:
            existing = await session.get(Message, message.id)
            if existing is not None:
                return existing

            if not await self._insert(session, message):
                # Inserted concurrently by another writer; keep that copy
                stored = await session.get(Message, message.id)
                if stored is None:
                    raise StorageError(f"Message {message.id} vanished after a key conflict")
                return stored

            await self._refresh_counts(session, messages=True)
            return message

    async def get_messages(
        self,
        server_id: str | None = None,
        channel_id: str | None = None,
        search: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> MessagePage:
        conditions: list[Any] = []
        if server_id:
            conditions.append(Message.server_id == server_id)
        if channel_id:
            conditions.append(Message.channel_id == channel_id)
        if search:
            pattern = search.lower()
            conditions.append(
                or_(
                    func.lower(Message.content).contains(pattern, autoescape=True),
                    func.lower(Message.author_username).contains(
                        pattern, autoescape=True
                    ),
                )
            )

        async with self._read() as session:
            count_statement = select(func.count()).select_from(Message).where(*conditions)
            total = (await session.execute(count_statement)).scalar_one()

            statement = (
                select(Message)
                .where(*conditions)
                .order_by(
                    Message.created_at.desc(),  # type: ignore[attr-defined]
                    Message.id.desc(),  # type: ignore[attr-defined]
                )
                .offset(max(offset, 0))
                .limit(max(limit, 0))
            )
            result = await session.execute(statement)
            return MessagePage(messages=list(result.scalars().all()), total=total)

    async def delete_old_messages(self) -> int:
        cutoff = self._clock() - RETENTION_WINDOW
        async with self._write() as session:
            statement = (
                delete(Message)
                .where(Message.created_at < cutoff)  # type: ignore[arg-type]
                .execution_options(synchronize_session=False)
            )
            result: Any = await session.execute(statement)
            await self._refresh_counts(session, messages=True)
            return result.rowcount or 0

    # Bot status

    async def get_bot_status(self) -> BotStatus:
        async with self._read() as session:
            status = await session.get(BotStatus, BOT_STATUS_ID)
            return status if status is not None else BotStatus(id=BOT_STATUS_ID)

    async def update_bot_status(self, update: BotStatusUpdate) -> BotStatus:
        async with self._write() as session:
            status = await self._load_status(session)
            for name, value in update.changes().items():
                setattr(status, name, value)
            session.add(status)
            return status

    # Command logs

    async def get_command_logs(self, limit: int = 100) -> list[CommandLog]:
        async with self._read() as session:
            statement = (
                select(CommandLog)
                .order_by(
                    CommandLog.executed_at.desc(),  # type: ignore[attr-defined]
                    CommandLog.id.desc(),  # type: ignore[union-attr]
                )
                .limit(max(limit, 0))
            )
            result = await session.execute(statement)
            return list(result.scalars().all())

    async def create_command_log(self, log: CommandLog) -> CommandLog:
        async with self._write() as session:
            session.add(log)
            await session.flush()

            newest = (
                select(CommandLog.id)
                .order_by(
                    CommandLog.executed_at.desc(),  # type: ignore[attr-defined]
                    CommandLog.id.desc(),  # type: ignore[union-attr]
                )
                .limit(COMMAND_LOG_LIMIT)
            )
            await session.execute(
                delete(CommandLog)
                .where(CommandLog.id.not_in(newest))  # type: ignore[union-attr]
                .execution_options(synchronize_session=False)
            )
            return log

    # Helpers

    async def _insert(self, session: AsyncSession, entity: SQLModel) -> bool:
        """Insert an entity, returning False on a primary key conflict.

        Must be the first write of the transaction: a conflict rolls the
        whole transaction back.
        """
        session.add(entity)
        try:
            await session.flush()
        except IntegrityError:
            await session.rollback()
            return False
        return True

    async def _load_status(self, session: AsyncSession) -> BotStatus:
        status = await session.get(BotStatus, BOT_STATUS_ID)
        if status is None:
            status = BotStatus(id=BOT_STATUS_ID)
            session.add(status)
        return status

    async def _count(self, session: AsyncSession, model: type[SQLModel]) -> int:
        result = await session.execute(select(func.count()).select_from(model))
        return result.scalar_one()

    async def _refresh_counts(
        self,
        session: AsyncSession,
        servers: bool = False,
        channels: bool = False,
        messages: bool = False,
    ) -> None:
        """Recompute BotStatus counters inside the current transaction."""
        status = await self._load_status(session)
        if servers:
            status.servers_count = await self._count(session, Server)
        if channels:
            status.channels_count = await self._count(session, Channel)
        if messages:
            messages_count = await self._count(session, Message)
            status.messages_count = messages_count
            status.storage_usage = estimate_storage_usage(messages_count)
        session.add(status)
