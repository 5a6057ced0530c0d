"""Tests for EventRouter."""

from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog

from discord_monitor.application.handlers.event_handlers import EventHandlerRegistry
from discord_monitor.application.services.event_router import EventRouter
from discord_monitor.domain.entities.event import EventType, ReadyEvent


@pytest.fixture
def registry() -> EventHandlerRegistry:
    return EventHandlerRegistry()


@pytest.fixture
def router(registry: EventHandlerRegistry) -> EventRouter:
    return EventRouter(registry, structlog.get_logger())


class TestEventRouter:
    async def test_dispatches_to_registered_handler(
        self, router: EventRouter, registry: EventHandlerRegistry
    ) -> None:
        handler = MagicMock()
        handler.handle = AsyncMock()
        registry.register(EventType.READY, handler)
        event = ReadyEvent()

        assert await router.process(event) is True
        handler.handle.assert_awaited_once_with(event)

    async def test_unregistered_type(self, router: EventRouter) -> None:
        assert await router.process(ReadyEvent()) is False

    async def test_handler_errors_propagate(
        self, router: EventRouter, registry: EventHandlerRegistry
    ) -> None:
        handler = MagicMock()
        handler.handle = AsyncMock(side_effect=RuntimeError("boom"))
        registry.register(EventType.READY, handler)

        with pytest.raises(RuntimeError):
            await router.process(ReadyEvent())
