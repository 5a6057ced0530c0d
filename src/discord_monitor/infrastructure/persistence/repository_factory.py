"""Select the storage backend from configuration."""

from structlog.stdlib import BoundLogger

from discord_monitor.config.models import DatabaseConfig
from discord_monitor.domain.repositories.repository import Repository
from discord_monitor.infrastructure.persistence.database import Database
from discord_monitor.infrastructure.persistence.memory_repository import (
    MemoryRepository,
)
from discord_monitor.infrastructure.persistence.sql_repository import SqlRepository


def create_repository(
    config: DatabaseConfig | None, logger: BoundLogger | None = None
) -> Repository:
    """Create the repository for the configured backend.

    Args:
        config: Database configuration, or None for in-memory storage.
        logger: Optional logger used to report the selected backend.

    Returns:
        A SqlRepository when a database is configured, otherwise a
        MemoryRepository.
    """
    if config is None:
        if logger is not None:
            logger.info("Using in-memory storage")
        return MemoryRepository()

    if logger is not None:
        logger.info("Using database storage", url=_redact(config.url))
    return SqlRepository(Database(config.url))


def _redact(url: str) -> str:
    """Hide the password part of a connection URL."""
    scheme, sep, rest = url.partition("://")
    credentials, at, host = rest.rpartition("@")
    if not at or ":" not in credentials:
        return url
    user = credentials.split(":", 1)[0]
    return f"{scheme}{sep}{user}:***@{host}"
