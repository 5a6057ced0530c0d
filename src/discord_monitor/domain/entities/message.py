"""Message entity for Discord message persistence."""

from datetime import datetime

from sqlalchemy import Column, Index
from sqlmodel import Field, SQLModel

from discord_monitor.domain.entities.types import UTCDateTime


class Message(SQLModel, table=True):
    """Discord message.

    Messages are immutable once stored; they are only removed by the
    retention sweep.

    Attributes:
        id: Discord message ID (assigned upstream).
        server_id: ID of the server the message was posted in.
        channel_id: ID of the channel the message was posted in.
        author_id: Author's user ID.
        author_username: Author's username at the time of posting.
        author_discriminator: Legacy discriminator, if any.
        content: Message text.
        created_at: Time the message was posted.
    """

    __tablename__ = "discord_messages"
    __table_args__ = (
        Index("idx_messages_server_channel", "server_id", "channel_id"),
    )

    id: str = Field(primary_key=True, max_length=20)
    server_id: str = Field(index=True, max_length=20)
    channel_id: str = Field(index=True, max_length=20)
    author_id: str = Field(max_length=20)
    author_username: str
    author_discriminator: str | None = None
    content: str
    created_at: datetime = Field(
        sa_column=Column(UTCDateTime(), nullable=False, index=True),
    )
