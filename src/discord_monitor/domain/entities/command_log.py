"""CommandLog entity."""

from datetime import datetime

from sqlalchemy import Column
from sqlmodel import Field, SQLModel

from discord_monitor.domain.clock import utcnow
from discord_monitor.domain.entities.types import UTCDateTime


class CommandLog(SQLModel, table=True):
    """Record of an executed command and the response it produced."""

    __tablename__ = "command_logs"

    id: int | None = Field(default=None, primary_key=True)
    command: str
    response: str
    executed_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UTCDateTime(), nullable=False, index=True),
    )
