"""Server entity (a Discord guild the bot is a member of)."""

from datetime import datetime

from sqlalchemy import Column
from sqlmodel import Field, SQLModel

from discord_monitor.domain.clock import utcnow
from discord_monitor.domain.entities.types import UTCDateTime


class Server(SQLModel, table=True):
    """Discord server.

    Attributes:
        id: Discord guild ID.
        name: Guild name. Updated on every topology sync.
        icon: Guild icon URL, if any.
        joined_at: Time the server was first recorded.
    """

    __tablename__ = "discord_servers"

    id: str = Field(primary_key=True, max_length=20)
    name: str
    icon: str | None = None
    joined_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UTCDateTime(), nullable=False),
    )
