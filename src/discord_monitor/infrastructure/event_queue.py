"""EventQueue implementation with deduplication of pending events."""

import asyncio

from discord_monitor.domain.entities.event import Event


class EventQueue:
    """In-memory single-consumer event queue.

    Supports:
    - Deduplication based on identity_key: while an event is still pending,
      a newer event with the same key replaces it, unless the event type
      keeps the first pending copy (``supersedes_pending = False``)
    - Processing state tracking
    """

    def __init__(self) -> None:
        """Initialize the event queue."""
        self._queue: asyncio.Queue[Event] = asyncio.Queue()
        self._pending: dict[str, Event] = {}
        # Use event.id as key to allow multiple events with same identity_key
        self._processing: dict[str, Event] = {}

    @property
    def pending_count(self) -> int:
        """Return the number of pending events."""
        return len(self._pending)

    @property
    def processing_count(self) -> int:
        """Return the number of events being processed."""
        return len(self._processing)

    def is_pending(self, event: Event) -> bool:
        """Return True if an event with the same identity key is pending."""
        return event.get_identity_key() in self._pending

    async def enqueue(self, event: Event) -> None:
        """Add an event to the queue.

        If an event with the same identity key is still pending, the new
        event supersedes it and the old one is skipped at dequeue time.
        Events that do not supersede are dropped instead, keeping the
        pending copy.

        Args:
            event: The event to enqueue.
        """
        key = event.get_identity_key()
        if key in self._pending and not event.supersedes_pending:
            return
        self._pending[key] = event
        await self._queue.put(event)

    async def dequeue(self) -> Event:
        """Get the next event from the queue.

        Skips stale events (those that have been superseded by newer events
        with the same identity_key).

        Returns:
            The next event to process.
        """
        while True:
            event = await self._queue.get()
            key = event.get_identity_key()

            if key in self._pending and self._pending[key].id == event.id:
                del self._pending[key]
                self._processing[event.id] = event
                return event
            # Otherwise, this is a stale event; skip it and get the next one

    def mark_done(self, event: Event) -> None:
        """Mark an event as done processing.

        Args:
            event: The event that has been processed.
        """
        self._processing.pop(event.id, None)
