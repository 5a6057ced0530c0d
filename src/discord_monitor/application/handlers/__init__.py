"""Event handler module."""

from typing import Protocol, runtime_checkable

from discord_monitor.domain.entities.event import Event


@runtime_checkable
class EventHandler(Protocol):
    """Protocol for handlers reacting to a single gateway event type."""

    async def handle(self, event: Event) -> None:
        """Handle the event.

        Args:
            event: The event to handle.
        """
        ...
