"""User entity for dashboard accounts."""

from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    """Dashboard user account. The credential is stored opaque."""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True)
    password_hash: str
