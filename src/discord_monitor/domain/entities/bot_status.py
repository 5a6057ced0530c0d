"""BotStatus singleton entity and its partial update model."""

from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column
from sqlmodel import Field, SQLModel

from discord_monitor.domain.constants import BOT_STATUS_ID
from discord_monitor.domain.entities.types import UTCDateTime


class BotStatus(SQLModel, table=True):
    """Connection state and derived counters.

    A single row with id ``BOT_STATUS_ID`` exists once the repository is
    initialized. The counters always mirror the live size of their
    collections; storage_usage is an estimate in KB.
    """

    __tablename__ = "bot_status"

    id: int = Field(default=BOT_STATUS_ID, primary_key=True)
    is_online: bool = False
    uptime_started: datetime | None = Field(
        default=None,
        sa_column=Column(UTCDateTime(), nullable=True),
    )
    servers_count: int = 0
    channels_count: int = 0
    messages_count: int = 0
    storage_usage: int = 0


class BotStatusUpdate(BaseModel):
    """Partial update for BotStatus.

    Only fields explicitly set on the instance are applied, so
    ``BotStatusUpdate(uptime_started=None)`` clears the start time while
    leaving every other field untouched.
    """

    is_online: bool | None = None
    uptime_started: datetime | None = None
    servers_count: int | None = None
    channels_count: int | None = None
    messages_count: int | None = None
    storage_usage: int | None = None

    def changes(self) -> dict[str, object]:
        """Return the explicitly set fields."""
        return self.model_dump(exclude_unset=True)
