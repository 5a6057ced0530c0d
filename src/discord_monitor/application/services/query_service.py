"""Read-side aggregation for the dashboard API."""

from typing import Any

from discord_monitor.application.services.connection_manager import ConnectionManager
from discord_monitor.domain.constants import RETENTION_DAYS
from discord_monitor.domain.formatting import (
    calculate_storage_percentage,
    format_date,
    format_date_range,
    format_storage_usage,
)
from discord_monitor.domain.repositories.repository import Repository

UNKNOWN_CHANNEL_NAME = "unknown-channel"


class QueryService:
    """Builds JSON-ready views from repository state at request time.

    Args:
        repository: Repository to read from.
        connection: Connection manager providing uptime and connection state.
    """

    def __init__(self, repository: Repository, connection: ConnectionManager) -> None:
        self._repository = repository
        self._connection = connection

    async def get_status(self) -> dict[str, Any]:
        status = await self._repository.get_bot_status()
        data = status.model_dump(mode="json")
        data["uptime"] = self._connection.get_uptime()
        data["isConnected"] = self._connection.is_connected
        return data

    async def get_servers(self) -> list[dict[str, Any]]:
        servers = await self._repository.get_servers()
        return [server.model_dump(mode="json") for server in servers]

    async def get_channels(self, server_id: str | None = None) -> list[dict[str, Any]]:
        channels = await self._repository.get_channels(server_id)
        return [channel.model_dump(mode="json") for channel in channels]

    async def get_messages(
        self,
        server_id: str | None = None,
        channel_id: str | None = None,
        search: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> dict[str, Any]:
        """Return a page of messages, each with its resolved channel name."""
        page = await self._repository.get_messages(
            server_id=server_id,
            channel_id=channel_id,
            search=search,
            limit=limit,
            offset=offset,
        )

        channel_names: dict[str, str] = {}
        if page.messages:
            channels = await self._repository.get_channels()
            channel_names = {channel.id: channel.name for channel in channels}

        messages = []
        for message in page.messages:
            data = message.model_dump(mode="json")
            data["channel_name"] = channel_names.get(
                message.channel_id, UNKNOWN_CHANNEL_NAME
            )
            messages.append(data)

        return {"messages": messages, "total": page.total}

    async def get_stats(self) -> dict[str, Any]:
        status = await self._repository.get_bot_status()
        channels = await self._repository.get_channels()
        total = (await self._repository.get_messages(limit=0)).total

        oldest_message = "N/A"
        if total > 0:
            oldest = await self._repository.get_messages(limit=1, offset=total - 1)
            if oldest.messages:
                oldest_message = format_date(oldest.messages[0].created_at)

        percentage = calculate_storage_percentage(status.storage_usage)
        return {
            "isConnected": self._connection.is_connected,
            "uptime": self._connection.get_uptime(),
            "totalMessages": total,
            "activeChannels": len(channels),
            "monitoringDays": format_date_range(RETENTION_DAYS),
            "oldestMessage": oldest_message,
            "storageUsage": format_storage_usage(status.storage_usage),
            "storagePercentage": f"{percentage}%",
        }

    async def get_logs(self, limit: int = 100) -> list[dict[str, Any]]:
        logs = await self._repository.get_command_logs(limit)
        return [log.model_dump(mode="json") for log in logs]
