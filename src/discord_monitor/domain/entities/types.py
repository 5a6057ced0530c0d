"""Custom column types shared by the entity tables."""

from datetime import datetime
from typing import Any

from sqlalchemy.types import DateTime, TypeDecorator

from discord_monitor.domain.clock import as_utc


class UTCDateTime(TypeDecorator[datetime]):
    """DateTime column that always round-trips timezone-aware UTC values.

    Values are stored as naive UTC so that SQLite and PostgreSQL compare
    them the same way, and UTC is re-attached on load.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        return as_utc(value).replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        return as_utc(value)
