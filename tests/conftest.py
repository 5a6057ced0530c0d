"""Shared fixtures."""

from collections.abc import AsyncIterator, Callable
from datetime import datetime, timezone
from pathlib import Path

import pytest
import structlog

from discord_monitor.domain.entities.channel import Channel
from discord_monitor.domain.entities.server import Server
from discord_monitor.domain.exceptions import UpstreamConnectionError
from discord_monitor.domain.repositories.repository import Repository
from discord_monitor.infrastructure.persistence.database import Database
from discord_monitor.infrastructure.persistence.memory_repository import (
    MemoryRepository,
)
from discord_monitor.infrastructure.persistence.sql_repository import SqlRepository

FIXED_NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)


class FakeGateway:
    """In-process stand-in for the Discord gateway."""

    def __init__(
        self,
        servers: list[Server] | None = None,
        channels: dict[str, list[Channel]] | None = None,
        user_id: str | None = "999",
    ) -> None:
        self.servers = servers or []
        self.channels = channels or {}
        self.replies: list[tuple[str, str, str]] = []
        self.opened_with: list[str] = []
        self.fail_open = False
        self.ready = True
        self.close_calls = 0
        self._open = False
        self._user_id = user_id
        self._termination_listeners: list[Callable[[str], None]] = []

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def is_ready(self) -> bool:
        return self._open and self.ready

    @property
    def user_id(self) -> str | None:
        return self._user_id

    async def open(self, token: str) -> None:
        self.opened_with.append(token)
        if self.fail_open:
            raise UpstreamConnectionError("Improper token has been passed.")
        self._open = True

    async def close(self) -> None:
        self.close_calls += 1
        self._open = False

    def add_termination_listener(self, listener: Callable[[str], None]) -> None:
        self._termination_listeners.append(listener)

    def terminate(self, reason: str) -> None:
        """Drop the connection as if the upstream ended it."""
        self._open = False
        for listener in self._termination_listeners:
            listener(reason)

    def list_servers(self) -> list[Server]:
        return list(self.servers)

    async def fetch_channels(self, server_id: str) -> list[Channel]:
        return list(self.channels.get(server_id, []))

    async def reply(self, channel_id: str, message_id: str, content: str) -> None:
        self.replies.append((channel_id, message_id, content))


@pytest.fixture
def logger() -> structlog.stdlib.BoundLogger:
    return structlog.get_logger()


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture(params=["memory", "sql"])
async def repository(
    request: pytest.FixtureRequest, tmp_path: Path
) -> AsyncIterator[Repository]:
    """Both storage backends, with the clock pinned to ``FIXED_NOW``."""
    repo: Repository
    if request.param == "memory":
        repo = MemoryRepository(clock=lambda: FIXED_NOW)
    else:
        database = Database(f"sqlite+aiosqlite:///{tmp_path / 'monitor.db'}")
        repo = SqlRepository(database, clock=lambda: FIXED_NOW)

    await repo.initialize()
    yield repo
    await repo.close()


@pytest.fixture
async def memory_repository() -> MemoryRepository:
    repo = MemoryRepository(clock=lambda: FIXED_NOW)
    await repo.initialize()
    return repo
