"""Tests for EventQueue."""

import asyncio

import pytest

from discord_monitor.domain.entities.event import (
    ErrorEvent,
    MessageReceivedEvent,
    ReadyEvent,
    TopologyChangedEvent,
)
from discord_monitor.infrastructure.event_queue import EventQueue


async def assert_empty(queue: EventQueue) -> None:
    with pytest.raises(TimeoutError):
        async with asyncio.timeout(0.1):
            await queue.dequeue()


class TestEventQueue:
    """Tests for EventQueue class."""

    async def test_basic_enqueue_dequeue(self) -> None:
        queue = EventQueue()
        event = ReadyEvent()

        await queue.enqueue(event)
        result = await queue.dequeue()

        assert result.id == event.id

    async def test_pending_duplicate_is_superseded(self) -> None:
        queue = EventQueue()
        event1 = TopologyChangedEvent()
        event2 = TopologyChangedEvent()

        await queue.enqueue(event1)
        await queue.enqueue(event2)

        result = await queue.dequeue()
        assert result.id == event2.id
        await assert_empty(queue)

    async def test_redelivered_message_collapses(self) -> None:
        queue = EventQueue()
        await queue.enqueue(MessageReceivedEvent(payload={"id": "1", "content": "a"}))
        await queue.enqueue(MessageReceivedEvent(payload={"id": "1", "content": "a"}))
        await queue.enqueue(MessageReceivedEvent(payload={"id": "2", "content": "b"}))

        first = await queue.dequeue()
        second = await queue.dequeue()

        assert [first.payload["id"], second.payload["id"]] == ["1", "2"]
        await assert_empty(queue)

    async def test_redelivered_message_keeps_first_copy(self) -> None:
        queue = EventQueue()
        original = MessageReceivedEvent(payload={"id": "M1", "content": "original"})
        replayed = MessageReceivedEvent(payload={"id": "M1", "content": "replayed"})

        await queue.enqueue(original)
        await queue.enqueue(replayed)

        result = await queue.dequeue()
        assert result.id == original.id
        assert result.payload["content"] == "original"
        await assert_empty(queue)

    async def test_redelivery_after_dequeue_is_queued_again(self) -> None:
        queue = EventQueue()
        await queue.enqueue(MessageReceivedEvent(payload={"id": "M1"}))
        first = await queue.dequeue()

        replayed = MessageReceivedEvent(payload={"id": "M1"})
        await queue.enqueue(replayed)

        assert (await queue.dequeue()).id == replayed.id
        queue.mark_done(first)

    async def test_distinct_events_keep_order(self) -> None:
        queue = EventQueue()
        events = [ReadyEvent(), ErrorEvent(), ErrorEvent()]
        for event in events:
            await queue.enqueue(event)

        results = [await queue.dequeue() for _ in events]

        assert [e.id for e in results] == [e.id for e in events]

    async def test_event_processed_again_after_done(self) -> None:
        queue = EventQueue()
        first = ReadyEvent()
        await queue.enqueue(first)
        await queue.dequeue()
        queue.mark_done(first)

        second = ReadyEvent()
        await queue.enqueue(second)

        assert (await queue.dequeue()).id == second.id

    async def test_counts(self) -> None:
        queue = EventQueue()
        event = ReadyEvent()

        await queue.enqueue(event)
        assert queue.pending_count == 1
        assert queue.is_pending(ReadyEvent())

        await queue.dequeue()
        assert queue.pending_count == 0
        assert queue.processing_count == 1

        queue.mark_done(event)
        assert queue.processing_count == 0

    async def test_mark_done_unknown_event_is_noop(self) -> None:
        queue = EventQueue()

        queue.mark_done(ErrorEvent())

        assert queue.processing_count == 0
