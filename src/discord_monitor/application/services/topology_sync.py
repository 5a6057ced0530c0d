"""Reconcile stored servers and channels with the gateway's membership."""

from typing import Protocol

from structlog.stdlib import BoundLogger

from discord_monitor.domain.gateway import ChatGateway
from discord_monitor.domain.repositories.repository import (
    ChannelRepository,
    ServerRepository,
)


class TopologyRepository(ServerRepository, ChannelRepository, Protocol):
    """Repository capabilities needed by the topology sync."""


class TopologySync:
    """Upserts every server the bot belongs to and each of its channels.

    Servers are processed one at a time: a server is stored and its full
    channel list fetched and stored before the next server starts, so a
    channel never references a server that is not stored yet.
    """

    def __init__(
        self,
        gateway: ChatGateway,
        repository: TopologyRepository,
        logger: BoundLogger,
    ) -> None:
        self._gateway = gateway
        self._repository = repository
        self._logger = logger

    async def sync(self) -> int:
        """Run a full resync.

        Returns:
            Number of channels upserted.
        """
        servers = self._gateway.list_servers()
        self._logger.info("Syncing servers and channels", servers=len(servers))

        synced_channels = 0
        for server in servers:
            await self._repository.create_server(server)

            channels = await self._gateway.fetch_channels(server.id)
            for channel in channels:
                await self._repository.create_channel(channel)

            synced_channels += len(channels)
            self._logger.info(
                "Server synced",
                server_id=server.id,
                server_name=server.name,
                channels=len(channels),
            )

        self._logger.info("Topology sync completed", channels=synced_channels)
        return synced_channels
