"""Event handler implementations."""

from structlog.stdlib import BoundLogger

from discord_monitor.application.handlers import EventHandler
from discord_monitor.application.services.command_service import CommandService
from discord_monitor.application.services.topology_sync import TopologySync
from discord_monitor.domain.constants import COMMAND_PREFIX
from discord_monitor.domain.entities.event import Event, EventType
from discord_monitor.domain.entities.message import Message
from discord_monitor.domain.gateway import ChatGateway
from discord_monitor.domain.repositories.repository import MessageRepository


class ReadyEventHandler:
    """Resyncs servers and channels once the gateway session is ready."""

    def __init__(self, topology: TopologySync) -> None:
        self._topology = topology

    async def handle(self, event: Event) -> None:
        await self._topology.sync()


class TopologyChangedEventHandler:
    """Resyncs servers and channels after a join or a channel creation."""

    def __init__(self, topology: TopologySync) -> None:
        self._topology = topology

    async def handle(self, event: Event) -> None:
        await self._topology.sync()


class MessageReceivedEventHandler:
    """Stores incoming server messages and answers ``!`` commands.

    The bot's own messages and direct messages are ignored. A message that
    is already stored is treated as a redelivery and is not answered again.
    """

    def __init__(
        self,
        gateway: ChatGateway,
        repository: MessageRepository,
        commands: CommandService,
        logger: BoundLogger,
    ) -> None:
        """Initialize the handler.

        Args:
            gateway: Gateway used to identify the bot and post replies.
            repository: Repository receiving the messages.
            commands: Command service answering ``!`` commands.
            logger: Logger instance.
        """
        self._gateway = gateway
        self._repository = repository
        self._commands = commands
        self._logger = logger

    async def handle(self, event: Event) -> None:
        payload = event.payload
        if payload.get("author_id") == self._gateway.user_id:
            return
        if not payload.get("server_id"):
            self._logger.debug("Ignoring direct message", message_id=payload.get("id"))
            return

        if await self._repository.get_message(payload["id"]) is not None:
            self._logger.debug("Message already stored", message_id=payload["id"])
            return

        message = Message(
            id=payload["id"],
            server_id=payload["server_id"],
            channel_id=payload["channel_id"],
            author_id=payload["author_id"],
            author_username=payload["author_username"],
            author_discriminator=payload.get("author_discriminator"),
            content=payload.get("content", ""),
            created_at=payload["created_at"],
        )
        await self._repository.create_message(message)

        if not message.content.startswith(COMMAND_PREFIX):
            return

        self._logger.info(
            "Command received",
            command=message.content,
            channel_id=message.channel_id,
            author=message.author_username,
        )
        response = await self._commands.reply(message.content)
        await self._gateway.reply(message.channel_id, message.id, response)


class ErrorEventHandler:
    """Logs errors reported by the gateway client."""

    def __init__(self, logger: BoundLogger) -> None:
        self._logger = logger

    async def handle(self, event: Event) -> None:
        self._logger.error(
            "Gateway error",
            event_id=event.id,
            event_method=event.payload.get("event_method"),
            error=event.payload.get("error"),
        )


class EventHandlerRegistry:
    """Registry for event handlers."""

    def __init__(self) -> None:
        """Initialize the registry."""
        self._handlers: dict[EventType, EventHandler] = {}

    def register(self, event_type: EventType, handler: EventHandler) -> None:
        """Register a handler for an event type.

        Args:
            event_type: The event type to handle.
            handler: The handler to register.
        """
        self._handlers[event_type] = handler

    def get_handler(self, event_type: EventType) -> EventHandler | None:
        """Get handler for an event type.

        Args:
            event_type: The event type.

        Returns:
            The handler if registered, None otherwise.
        """
        return self._handlers.get(event_type)


def build_registry(
    gateway: ChatGateway,
    repository: MessageRepository,
    topology: TopologySync,
    commands: CommandService,
    logger: BoundLogger,
) -> EventHandlerRegistry:
    """Create a registry with a handler for every gateway event type."""
    registry = EventHandlerRegistry()
    registry.register(EventType.READY, ReadyEventHandler(topology))
    registry.register(EventType.TOPOLOGY_CHANGED, TopologyChangedEventHandler(topology))
    registry.register(
        EventType.MESSAGE_RECEIVED,
        MessageReceivedEventHandler(gateway, repository, commands, logger),
    )
    registry.register(EventType.ERROR, ErrorEventHandler(logger))
    return registry
