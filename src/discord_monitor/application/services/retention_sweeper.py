"""Periodic retention sweep of old messages."""

import asyncio

from structlog.stdlib import BoundLogger

from discord_monitor.domain.constants import CLEANUP_INTERVAL_SECONDS, RETENTION_DAYS
from discord_monitor.domain.repositories.repository import MessageRepository


class RetentionSweeper:
    """Deletes messages older than the retention window on a fixed period.

    Sweeps are single-flight: a sweep requested while another one is still
    running is skipped. A failed sweep is logged and the next tick runs as
    scheduled.
    """

    def __init__(
        self,
        repository: MessageRepository,
        logger: BoundLogger,
        interval: float = CLEANUP_INTERVAL_SECONDS,
    ) -> None:
        """Initialize the sweeper.

        Args:
            repository: Repository performing the deletion.
            logger: Logger instance.
            interval: Seconds between two ticks.
        """
        self._repository = repository
        self._logger = logger
        self._interval = interval
        self._guard = asyncio.Lock()
        self._ticker: asyncio.Task[None] | None = None
        self._sweeps: set[asyncio.Task[int | None]] = set()

    @property
    def is_armed(self) -> bool:
        """Return True while the ticker is scheduled."""
        return self._ticker is not None and not self._ticker.done()

    @property
    def is_running(self) -> bool:
        """Return True while a sweep is in progress."""
        return self._guard.locked()

    def arm(self) -> None:
        """Start the ticker. Does nothing if already armed."""
        if self.is_armed:
            return
        self._ticker = asyncio.create_task(self._tick())
        self._logger.info("Retention sweeper armed", interval_seconds=self._interval)

    async def disarm(self) -> None:
        """Cancel the ticker and any in-flight sweep and wait for them."""
        tasks: list[asyncio.Task[None] | asyncio.Task[int | None]] = list(self._sweeps)
        if self._ticker is not None:
            tasks.append(self._ticker)
        self._ticker = None

        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass

        if tasks:
            self._logger.info("Retention sweeper disarmed")

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            task = asyncio.create_task(self.sweep())
            self._sweeps.add(task)
            task.add_done_callback(self._sweeps.discard)

    async def sweep(self) -> int | None:
        """Run one sweep.

        Returns:
            Number of deleted messages, or None if the sweep was skipped
            because another one is running, or failed.
        """
        if self._guard.locked():
            self._logger.warning("Retention sweep already running, skipping")
            return None

        async with self._guard:
            try:
                deleted = await self._repository.delete_old_messages()
            except Exception as e:
                self._logger.error("Retention sweep failed", error=str(e), exc_info=True)
                return None

        self._logger.info(
            "Retention sweep completed",
            deleted=deleted,
            retention_days=RETENTION_DAYS,
        )
        return deleted
