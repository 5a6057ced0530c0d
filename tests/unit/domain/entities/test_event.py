"""Tests for Event entities."""

from datetime import datetime, timedelta, timezone

from discord_monitor.domain.entities.event import (
    ErrorEvent,
    Event,
    EventType,
    MessageReceivedEvent,
    ReadyEvent,
    TopologyChangedEvent,
)

TIMESTAMP_TOLERANCE_SECONDS = 5


class TestEvent:
    """Tests for Event base class."""

    def test_event_id_is_ulid_format(self) -> None:
        event = Event(type=EventType.ERROR)

        assert len(event.id) == 26
        assert event.id.isalnum()

    def test_event_ids_are_unique(self) -> None:
        assert ReadyEvent().id != ReadyEvent().id

    def test_identity_key_returns_id(self) -> None:
        event = Event(type=EventType.ERROR)

        assert event.get_identity_key() == event.id

    def test_timestamps_default_to_current_time(self) -> None:
        before = datetime.now(timezone.utc)
        event = Event(type=EventType.ERROR)
        after = datetime.now(timezone.utc)

        tolerance = timedelta(seconds=TIMESTAMP_TOLERANCE_SECONDS)
        for value in (event.timestamp, event.created_at):
            assert value.tzinfo is not None
            assert before - tolerance <= value <= after + tolerance

    def test_defaults(self) -> None:
        event = Event(type=EventType.ERROR)

        assert event.source == "gateway"
        assert event.payload == {}

    def test_only_message_events_keep_first_pending_copy(self) -> None:
        assert ReadyEvent.supersedes_pending is True
        assert TopologyChangedEvent.supersedes_pending is True
        assert MessageReceivedEvent.supersedes_pending is False
        assert "supersedes_pending" not in MessageReceivedEvent().model_dump()


class TestGatewayEvents:
    def test_types(self) -> None:
        assert ReadyEvent().type == EventType.READY
        assert MessageReceivedEvent().type == EventType.MESSAGE_RECEIVED
        assert TopologyChangedEvent().type == EventType.TOPOLOGY_CHANGED
        assert ErrorEvent().type == EventType.ERROR

    def test_ready_and_topology_keys_are_fixed(self) -> None:
        assert ReadyEvent().get_identity_key() == "ready"
        assert TopologyChangedEvent(
            payload={"reason": "guild_join", "server_id": "1"}
        ).get_identity_key() == "topology"

    def test_message_key_uses_message_id(self) -> None:
        first = MessageReceivedEvent(payload={"id": "42"})
        redelivered = MessageReceivedEvent(payload={"id": "42"})

        assert first.get_identity_key() == "message:42"
        assert first.get_identity_key() == redelivered.get_identity_key()
        assert first.id != redelivered.id

    def test_error_events_never_collapse(self) -> None:
        assert ErrorEvent().get_identity_key() != ErrorEvent().get_identity_key()
