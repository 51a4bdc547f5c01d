"""Database module for the tracking engine."""

from vesseltrack.database.base import Base, BigIntPK, TimestampMixin, UTCDateTime
from vesseltrack.database.connection import Database, get_async_database_url, storage_guard

__all__ = [
    "Base",
    "BigIntPK",
    "TimestampMixin",
    "UTCDateTime",
    "Database",
    "get_async_database_url",
    "storage_guard",
]
