"""Discord gateway adapter built on discord.py.

Translates gateway callbacks into domain events on the EventQueue and
exposes the few upstream operations the application needs (topology
listing and replies).
"""

import asyncio
import sys
from collections.abc import Callable
from typing import Any

import aiohttp
import discord
from structlog.stdlib import BoundLogger

from discord_monitor.domain.clock import utcnow
from discord_monitor.domain.entities.channel import Channel
from discord_monitor.domain.entities.event import (
    ErrorEvent,
    Event,
    MessageReceivedEvent,
    ReadyEvent,
    TopologyChangedEvent,
)
from discord_monitor.domain.entities.server import Server
from discord_monitor.domain.exceptions import UpstreamConnectionError
from discord_monitor.infrastructure.event_queue import EventQueue

# Discord rejects messages longer than this
MAX_MESSAGE_LENGTH = 2000

# Seconds to wait for the first READY after login
READY_TIMEOUT = 30.0


def default_intents() -> discord.Intents:
    """Return the intents needed to read guild messages and topology."""
    intents = discord.Intents.default()
    intents.guilds = True
    intents.guild_messages = True
    intents.message_content = True
    intents.members = False
    return intents


class _GatewayClient(discord.Client):
    """discord.Client that forwards callbacks to its DiscordGateway."""

    def __init__(self, gateway: "DiscordGateway", **options: Any) -> None:
        super().__init__(**options)
        self._gateway = gateway

    async def on_ready(self) -> None:
        await self._gateway.handle_ready(self)

    async def on_message(self, message: discord.Message) -> None:
        await self._gateway.handle_message(message)

    async def on_guild_join(self, guild: discord.Guild) -> None:
        await self._gateway.handle_topology_change("guild_join", str(guild.id))

    async def on_guild_channel_create(self, channel: discord.abc.GuildChannel) -> None:
        if isinstance(channel, discord.abc.Messageable):
            await self._gateway.handle_topology_change(
                "channel_create", str(channel.guild.id)
            )

    async def on_error(self, event_method: str, /, *args: Any, **kwargs: Any) -> None:
        await self._gateway.handle_error(event_method, sys.exc_info()[1])


class DiscordGateway:
    """ChatGateway implementation for Discord.

    ``open()`` logs in over HTTP (so a bad token fails fast), starts the
    websocket connection as a background task and returns once the first
    READY arrives. discord.py owns reconnection from there on; if the
    connection still ends on its own, termination listeners are called.

    Args:
        event_queue: Queue receiving translated gateway events.
        logger: Structured logger.
        intents: Gateway intents. Defaults to ``default_intents()``.
        client_factory: Builds the discord.py client; replaceable in tests.
        ready_timeout: Seconds ``open()`` waits for the session to be ready.
    """

    def __init__(
        self,
        event_queue: EventQueue,
        logger: BoundLogger,
        intents: discord.Intents | None = None,
        client_factory: Callable[["DiscordGateway"], discord.Client] | None = None,
        ready_timeout: float = READY_TIMEOUT,
    ) -> None:
        self._event_queue = event_queue
        self._logger = logger
        self._intents = intents or default_intents()
        self._client_factory = client_factory or self._create_client
        self._client: discord.Client | None = None
        self._connect_task: asyncio.Task[None] | None = None
        self._ready_timeout = ready_timeout
        self._termination_listeners: list[Callable[[str], None]] = []

    def _create_client(self, gateway: "DiscordGateway") -> discord.Client:
        return _GatewayClient(gateway, intents=self._intents)

    @property
    def is_open(self) -> bool:
        return self._client is not None and not self._client.is_closed()

    @property
    def is_ready(self) -> bool:
        return self._client is not None and self._client.is_ready()

    @property
    def user_id(self) -> str | None:
        if self._client is None or self._client.user is None:
            return None
        return str(self._client.user.id)

    def add_termination_listener(self, listener: Callable[[str], None]) -> None:
        """Register a callback for connections that end without ``close()``.

        The listener receives a description of why the connection ended.
        """
        self._termination_listeners.append(listener)

    async def open(self, token: str) -> None:
        """Log in, connect and wait for the gateway session to be ready.

        Raises:
            UpstreamConnectionError: If login fails, or the connection ends
                or times out before the first READY.
        """
        if self.is_open:
            return

        client = self._client_factory(self)
        try:
            await client.login(token)
        except (discord.LoginFailure, discord.HTTPException, aiohttp.ClientError) as e:
            await client.close()
            raise UpstreamConnectionError(f"Discord login failed: {e}") from e

        connect_task = asyncio.create_task(client.connect(reconnect=True))
        ready_task = asyncio.create_task(client.wait_until_ready())
        self._client = client
        await asyncio.wait(
            {connect_task, ready_task},
            timeout=self._ready_timeout,
            return_when=asyncio.FIRST_COMPLETED,
        )

        if connect_task.done() or not ready_task.done():
            ready_task.cancel()
            await asyncio.gather(ready_task, return_exceptions=True)
            self._client = None
            reason = await self._abort_connect(client, connect_task)
            raise UpstreamConnectionError(f"Discord gateway connection failed: {reason}")

        self._connect_task = connect_task
        connect_task.add_done_callback(self._on_connect_done)

    async def _abort_connect(
        self, client: discord.Client, task: asyncio.Task[None]
    ) -> str:
        if not task.done():
            task.cancel()
        if not client.is_closed():
            await client.close()
        try:
            await task
        except asyncio.CancelledError:
            return f"no READY within {self._ready_timeout}s"
        except Exception as e:
            return str(e) or type(e).__name__
        return "connection closed before READY"

    def _on_connect_done(self, task: asyncio.Task[None]) -> None:
        # close() detaches the task first, so only unexpected endings remain
        if task.cancelled() or task is not self._connect_task:
            return
        error = task.exception()
        reason = str(error) if error is not None else "connection closed"
        self._logger.error("Gateway connection terminated", error=reason)
        for listener in self._termination_listeners:
            listener(reason)

    async def close(self) -> None:
        """Close the connection. Does nothing if it is not open."""
        client, task = self._client, self._connect_task
        self._client = None
        self._connect_task = None

        if client is not None and not client.is_closed():
            await client.close()

        if task is not None:
            if not task.done():
                task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                # Already reported by _on_connect_done
                self._logger.debug("Gateway task ended with error", error=str(e))

    def list_servers(self) -> list[Server]:
        if self._client is None:
            return []
        return [self._to_server(guild) for guild in self._client.guilds]

    async def fetch_channels(self, server_id: str) -> list[Channel]:
        """Fetch the text channels of a server.

        Falls back to the client's cached channel list when the fetch is
        rejected (e.g. missing permissions).
        """
        if self._client is None:
            return []
        guild = self._client.get_guild(int(server_id))
        if guild is None:
            return []

        try:
            channels: list[Any] = list(await guild.fetch_channels())
        except discord.HTTPException as e:
            self._logger.warning(
                "Channel fetch failed, using cached channels",
                server_id=server_id,
                error=str(e),
            )
            channels = list(guild.channels)

        return [
            Channel(
                id=str(channel.id),
                server_id=server_id,
                name=channel.name,
                type=channel.type.name,
            )
            for channel in channels
            if isinstance(channel, discord.abc.Messageable)
        ]

    async def reply(self, channel_id: str, message_id: str, content: str) -> None:
        """Reply to a message.

        Raises:
            UpstreamConnectionError: If not connected or the channel cannot
                receive messages.
        """
        if self._client is None:
            raise UpstreamConnectionError("Discord bot is not connected")

        channel: Any = self._client.get_channel(int(channel_id))
        if channel is None:
            channel = await self._client.fetch_channel(int(channel_id))
        if not isinstance(channel, discord.abc.Messageable):
            raise UpstreamConnectionError(f"Channel {channel_id} cannot receive messages")

        reference = discord.MessageReference(
            message_id=int(message_id),
            channel_id=int(channel_id),
            fail_if_not_exists=False,
        )
        await channel.send(content[:MAX_MESSAGE_LENGTH], reference=reference)

    # Gateway callbacks

    async def handle_ready(self, client: discord.Client) -> None:
        self._logger.info(
            "Logged in to Discord",
            user=str(client.user),
            guilds=len(client.guilds),
        )
        user_id = str(client.user.id) if client.user else None
        await self._publish(ReadyEvent(payload={"user_id": user_id}))

    async def handle_message(self, message: discord.Message) -> None:
        discriminator = message.author.discriminator
        payload = {
            "id": str(message.id),
            "server_id": str(message.guild.id) if message.guild else None,
            "channel_id": str(message.channel.id),
            "author_id": str(message.author.id),
            "author_username": message.author.name,
            # Migrated accounts report "0"
            "author_discriminator": discriminator if discriminator != "0" else None,
            "content": message.content,
            "created_at": message.created_at,
        }
        await self._publish(MessageReceivedEvent(payload=payload))

    async def handle_topology_change(self, reason: str, server_id: str) -> None:
        self._logger.info("Topology changed", reason=reason, server_id=server_id)
        await self._publish(
            TopologyChangedEvent(payload={"reason": reason, "server_id": server_id})
        )

    async def handle_error(self, event_method: str, error: BaseException | None) -> None:
        await self._publish(
            ErrorEvent(
                payload={
                    "event_method": event_method,
                    "error": repr(error) if error is not None else "unknown",
                }
            )
        )

    async def _publish(self, event: Event) -> None:
        await self._event_queue.enqueue(event)

    @staticmethod
    def _to_server(guild: discord.Guild) -> Server:
        me = guild.me
        joined_at = me.joined_at if me is not None and me.joined_at else utcnow()
        return Server(
            id=str(guild.id),
            name=guild.name,
            icon=guild.icon.url if guild.icon else None,
            joined_at=joined_at,
        )
