"""Channel entity."""

from sqlmodel import Field, SQLModel


class Channel(SQLModel, table=True):
    """Discord channel belonging to exactly one server.

    Attributes:
        id: Discord channel ID.
        server_id: ID of the owning server.
        name: Channel name.
        type: Discord channel type name (e.g. "text", "news").
    """

    __tablename__ = "discord_channels"

    id: str = Field(primary_key=True, max_length=20)
    server_id: str = Field(index=True, max_length=20)
    name: str
    type: str
