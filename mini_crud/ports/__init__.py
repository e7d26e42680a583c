"""Public port exports for concrete adapter implementations."""

from .db_api import (
    AsyncDatabase,
    Database,
    Dialect,
    PostgresDialect,
    PostgresNumericDialect,
    SQLiteDialect,
    connect,
    connect_async,
)

__all__ = [
    "Database",
    "AsyncDatabase",
    "Dialect",
    "SQLiteDialect",
    "PostgresDialect",
    "PostgresNumericDialect",
    "connect",
    "connect_async",
]
