"""Lifecycle of the single upstream gateway connection."""

import asyncio
from datetime import datetime

from structlog.stdlib import BoundLogger

from discord_monitor.application.services.retention_sweeper import RetentionSweeper
from discord_monitor.domain.clock import Clock, utcnow
from discord_monitor.domain.entities.bot_status import BotStatusUpdate
from discord_monitor.domain.exceptions import StorageError, UpstreamConnectionError
from discord_monitor.domain.formatting import format_uptime
from discord_monitor.domain.gateway import ChatGateway
from discord_monitor.domain.repositories.repository import BotStatusRepository


class ConnectionManager:
    """Owns the gateway connection, the online flag and the sweeper schedule.

    Every transition is written to BotStatus before ``start()`` or
    ``stop()`` returns, so status readers only ever see the previous or the
    new state.

    A connection that ends on its own after ``start()`` is handled like
    ``stop()``: the sweeper is disarmed and BotStatus goes offline.
    """

    def __init__(
        self,
        gateway: ChatGateway,
        repository: BotStatusRepository,
        sweeper: RetentionSweeper,
        logger: BoundLogger,
        clock: Clock = utcnow,
    ) -> None:
        """Initialize the connection manager.

        Args:
            gateway: Upstream gateway.
            repository: Repository holding BotStatus.
            sweeper: Retention sweeper armed while connected.
            logger: Logger instance.
            clock: Source of the current time.
        """
        self._gateway = gateway
        self._repository = repository
        self._sweeper = sweeper
        self._logger = logger
        self._clock = clock
        self._started_at: datetime | None = None
        self._lock = asyncio.Lock()
        self._terminations: set[asyncio.Task[None]] = set()
        gateway.add_termination_listener(self._on_terminated)

    @property
    def started_at(self) -> datetime | None:
        """Return the time the connection was opened, if connected."""
        return self._started_at

    @property
    def is_connected(self) -> bool:
        """Return True while the connection is started and open."""
        return self._started_at is not None and self._gateway.is_open

    @property
    def is_ready(self) -> bool:
        """Return True once connected and the gateway session is ready."""
        return self.is_connected and self._gateway.is_ready

    async def start(self, token: str) -> None:
        """Open the connection and arm the retention sweeper.

        Args:
            token: Bot token.

        Raises:
            UpstreamConnectionError: If the connection cannot be opened.
        """
        async with self._lock:
            if self.is_connected:
                return

            try:
                await self._gateway.open(token)
            except UpstreamConnectionError as e:
                self._started_at = None
                await self._repository.update_bot_status(
                    BotStatusUpdate(is_online=False, uptime_started=None)
                )
                self._logger.error("Failed to connect to Discord", error=str(e))
                raise

            started_at = self._clock()
            await self._repository.update_bot_status(
                BotStatusUpdate(is_online=True, uptime_started=started_at)
            )
            self._started_at = started_at
            self._sweeper.arm()
            self._logger.info("Discord bot connected")

    async def stop(self) -> None:
        """Disarm the sweeper and close the connection.

        Does nothing when not connected.
        """
        async with self._lock:
            await self._sweeper.disarm()

            if self._started_at is None and not self._gateway.is_open:
                return

            await self._gateway.close()
            self._started_at = None
            await self._repository.update_bot_status(
                BotStatusUpdate(is_online=False, uptime_started=None)
            )
            self._logger.info("Discord bot disconnected")

    def get_uptime(self) -> str:
        """Return the formatted uptime, "0m" when not connected."""
        return format_uptime(self._started_at, self._clock())

    def _on_terminated(self, reason: str) -> None:
        task = asyncio.create_task(self._handle_termination(reason))
        self._terminations.add(task)
        task.add_done_callback(self._terminations.discard)

    async def _handle_termination(self, reason: str) -> None:
        async with self._lock:
            if self._started_at is None:
                return

            await self._sweeper.disarm()
            await self._gateway.close()
            self._started_at = None
            try:
                await self._repository.update_bot_status(
                    BotStatusUpdate(is_online=False, uptime_started=None)
                )
            except StorageError as e:
                self._logger.error("Failed to persist offline status", error=str(e))
            self._logger.error("Discord connection lost", reason=reason)
