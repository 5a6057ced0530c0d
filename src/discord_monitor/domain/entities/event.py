"""Event entities for the gateway event pipeline."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Literal

import ulid
from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Event type enumeration."""

    READY = "ready"
    MESSAGE_RECEIVED = "message_received"
    TOPOLOGY_CHANGED = "topology_changed"
    ERROR = "error"


class Event(BaseModel):
    """Base class for all events."""

    # A newer pending event with the same identity key replaces the older one
    supersedes_pending: ClassVar[bool] = True

    id: str = Field(default_factory=lambda: str(ulid.new()))
    type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: str = "gateway"
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def get_identity_key(self) -> str:
        """Return the identity key for deduplication."""
        return self.id


class ReadyEvent(Event):
    """The gateway session is ready."""

    type: Literal[EventType.READY] = EventType.READY

    def get_identity_key(self) -> str:
        """Return fixed identity key for ready events."""
        return "ready"


class MessageReceivedEvent(Event):
    """A message was posted in a channel the bot can see.

    Payload keys: id, server_id (None for DMs), channel_id, author_id,
    author_username, author_discriminator, content, created_at.
    """

    type: Literal[EventType.MESSAGE_RECEIVED] = EventType.MESSAGE_RECEIVED

    # The first delivery wins; replays must not rewrite stored content
    supersedes_pending: ClassVar[bool] = False

    def get_identity_key(self) -> str:
        """Return the message ID so redelivered messages collapse."""
        return f"message:{self.payload.get('id', self.id)}"


class TopologyChangedEvent(Event):
    """A server was joined or a channel was created."""

    type: Literal[EventType.TOPOLOGY_CHANGED] = EventType.TOPOLOGY_CHANGED

    def get_identity_key(self) -> str:
        """Return fixed identity key so pending resyncs collapse."""
        return "topology"


class ErrorEvent(Event):
    """The gateway client reported an error."""

    type: Literal[EventType.ERROR] = EventType.ERROR
