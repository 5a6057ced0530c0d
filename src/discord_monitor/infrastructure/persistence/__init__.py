"""Persistence infrastructure."""

from discord_monitor.infrastructure.persistence.database import Database
from discord_monitor.infrastructure.persistence.memory_repository import (
    MemoryRepository,
)
from discord_monitor.infrastructure.persistence.repository_factory import (
    create_repository,
)
from discord_monitor.infrastructure.persistence.sql_repository import SqlRepository

__all__ = ["Database", "MemoryRepository", "SqlRepository", "create_repository"]
