"""Event router implementation."""

from structlog.stdlib import BoundLogger

from discord_monitor.application.handlers.event_handlers import EventHandlerRegistry
from discord_monitor.domain.entities.event import Event


class EventRouter:
    """Dispatches gateway events to the handler registered for their type."""

    def __init__(self, registry: EventHandlerRegistry, logger: BoundLogger) -> None:
        """Initialize the event router.

        Args:
            registry: Handler registry.
            logger: Logger instance.
        """
        self._registry = registry
        self._logger = logger

    async def process(self, event: Event) -> bool:
        """Process an event with its registered handler.

        Args:
            event: The event to process.

        Returns:
            True if a handler ran, False if none is registered.

        Raises:
            Exception: Whatever the handler raises.
        """
        self._logger.debug(
            "Processing event",
            event_id=event.id,
            event_type=event.type.value,
        )

        handler = self._registry.get_handler(event.type)
        if handler is None:
            self._logger.warning(
                "No handler found for event type",
                event_type=event.type.value,
            )
            return False

        try:
            await handler.handle(event)
        except Exception as e:
            self._logger.error(
                "Error processing event",
                event_id=event.id,
                event_type=event.type.value,
                error=str(e),
                exc_info=True,
            )
            raise

        self._logger.debug("Event processing completed", event_id=event.id)
        return True
