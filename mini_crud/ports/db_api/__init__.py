"""DB-API adapter, dialect, and connection factory exports."""

from .async_database import AsyncDatabase
from .connect import connect, connect_async, load_postgres_connect
from .database import Database
from .dialects import Dialect, PostgresDialect, PostgresNumericDialect, SQLiteDialect

__all__ = [
    "AsyncDatabase",
    "Database",
    "Dialect",
    "PostgresDialect",
    "PostgresNumericDialect",
    "SQLiteDialect",
    "connect",
    "connect_async",
    "load_postgres_connect",
]
