"""Pydantic models for application configuration."""

from typing import Literal

from pydantic import BaseModel, Field


class DiscordConfig(BaseModel):
    """Discord gateway configuration."""

    token: str = Field(
        ...,
        min_length=1,
        description="Bot token used to log in to the Discord gateway.",
    )


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    url: str = Field(
        ...,
        description=(
            "SQLAlchemy-style async database connection URL "
            "(e.g., 'sqlite+aiosqlite:///path/to/db')."
        ),
    )


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "text"] = "json"


class AppConfig(BaseModel):
    """Application configuration.

    Without a ``discord`` section the bot stays offline and only the query
    API is served. Without a ``database`` section messages are kept in
    memory.
    """

    discord: DiscordConfig | None = None
    database: DatabaseConfig | None = None
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
