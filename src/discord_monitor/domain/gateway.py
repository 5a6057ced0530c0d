"""Gateway protocol for the upstream chat connection."""

from collections.abc import Callable
from typing import Protocol

from discord_monitor.domain.entities.channel import Channel
from discord_monitor.domain.entities.server import Server


class ChatGateway(Protocol):
    """Upstream connection used by the connection manager and handlers."""

    @property
    def is_open(self) -> bool:
        """Return True while the connection is open."""
        ...

    @property
    def is_ready(self) -> bool:
        """Return True once the gateway session is ready."""
        ...

    @property
    def user_id(self) -> str | None:
        """Return the bot's own user ID once known."""
        ...

    async def open(self, token: str) -> None:
        """Authenticate and start the gateway connection.

        Raises:
            UpstreamConnectionError: If the connection cannot be opened.
        """
        ...

    async def close(self) -> None: ...

    def add_termination_listener(self, listener: Callable[[str], None]) -> None:
        """Register a callback for connections that end without ``close()``."""
        ...

    def list_servers(self) -> list[Server]:
        """Return the servers the bot is currently a member of."""
        ...

    async def fetch_channels(self, server_id: str) -> list[Channel]:
        """Fetch the current text channels of a server from upstream."""
        ...

    async def reply(self, channel_id: str, message_id: str, content: str) -> None:
        """Reply to a message in the given channel."""
        ...
