"""Command entry points shared by the chat auto-reply and the HTTP API."""

from collections.abc import Callable

from structlog.stdlib import BoundLogger

from discord_monitor.application.services.command_executor import CommandExecutor
from discord_monitor.domain.constants import COMMAND_PREFIX
from discord_monitor.domain.entities.command_log import CommandLog
from discord_monitor.domain.exceptions import (
    InvalidCommandError,
    MonitorError,
    UpstreamConnectionError,
)
from discord_monitor.domain.repositories.repository import CommandLogRepository


class CommandService:
    """Runs commands and records every attempt as a CommandLog.

    Args:
        executor: Command executor.
        repository: Repository receiving the command logs.
        is_ready: Returns True while the gateway connection is usable.
        logger: Logger instance.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        repository: CommandLogRepository,
        is_ready: Callable[[], bool],
        logger: BoundLogger,
    ) -> None:
        self._executor = executor
        self._repository = repository
        self._is_ready = is_ready
        self._logger = logger

    async def execute(self, command: str) -> str:
        """Execute a manually submitted command.

        Args:
            command: Full command line.

        Returns:
            The response text.

        Raises:
            InvalidCommandError: If the command does not start with the prefix.
            UpstreamConnectionError: If the bot is not connected.
            CommandError: If the command is unknown.
            StorageError: If the repository fails.
        """
        command = command.strip()
        try:
            if not command.startswith(COMMAND_PREFIX):
                raise InvalidCommandError(f"Command must start with {COMMAND_PREFIX}")
            if not self._is_ready():
                raise UpstreamConnectionError("Discord bot is not connected")
            response = await self._executor.execute(command)
        except MonitorError as e:
            self._logger.warning("Command rejected", command=command, error=str(e))
            await self._record(command, f"Error: {e}")
            raise

        await self._record(command, response)
        return response

    async def reply(self, command: str) -> str:
        """Execute a command received in chat.

        Failures are turned into an ``Error: ...`` response instead of
        being raised, so the author always gets an answer.

        Args:
            command: Full message content.

        Returns:
            The response text to post back.
        """
        try:
            response = await self._executor.execute(command)
        except MonitorError as e:
            self._logger.warning("Command failed", command=command, error=str(e))
            response = f"Error: {e}"

        await self._record(command, response)
        return response

    async def _record(self, command: str, response: str) -> None:
        await self._repository.create_command_log(
            CommandLog(command=command, response=response)
        )
