"""Factories that open caller-owned database handles."""

from __future__ import annotations

import importlib
import logging
import sqlite3
from typing import Any, Callable, Optional

from ...core.config import ConnectionSettings
from ...core.errors import DatabaseConnectionError
from .async_database import AsyncDatabase
from .database import Database
from .dialects import Dialect, PostgresDialect, SQLiteDialect

logger = logging.getLogger(__name__)

POSTGRES_DRIVERS = ("psycopg", "psycopg2")


def load_postgres_connect() -> Callable[..., Any]:
    """Return `connect` from the first installed PostgreSQL driver."""

    for module_name in POSTGRES_DRIVERS:
        try:
            module = importlib.import_module(module_name)
        except ImportError:
            continue
        connect = getattr(module, "connect", None)
        if connect is not None:
            return connect
    raise DatabaseConnectionError(
        "No PostgreSQL driver installed; install 'psycopg' or 'psycopg2'."
    )


def _open_sqlite(settings: ConnectionSettings) -> Any:
    try:
        if settings.autocommit:
            return sqlite3.connect(settings.path, isolation_level=None)
        return sqlite3.connect(settings.path)
    except sqlite3.Error as exc:
        raise DatabaseConnectionError(
            f"Could not open SQLite database {settings.path!r}: {exc}"
        ) from exc


def connect(
    settings: Optional[ConnectionSettings] = None,
    *,
    dialect: Optional[Dialect] = None,
) -> Database:
    """Open a connection and wrap it in a `Database`.

    Args:
        settings: Connection parameters. Read from the environment when omitted.
        dialect: Dialect override. Defaults to the one matching the driver.

    Raises:
        DatabaseConnectionError: If no driver is available or the server
            refuses the connection.
    """

    settings = settings or ConnectionSettings.from_env()
    if settings.driver == "sqlite":
        conn = _open_sqlite(settings)
        logger.debug("Opened SQLite connection to %s", settings.path)
        return Database(conn, dialect or SQLiteDialect())

    pg_connect = load_postgres_connect()
    try:
        conn = pg_connect(**settings.connect_kwargs())
        conn.autocommit = settings.autocommit
    except Exception as exc:
        raise DatabaseConnectionError(
            f"Could not connect to PostgreSQL at {settings.host}:{settings.port}: {exc}"
        ) from exc
    logger.debug(
        "Opened PostgreSQL connection to %s:%s/%s",
        settings.host,
        settings.port,
        settings.database,
    )
    return Database(conn, dialect or PostgresDialect())


async def connect_async(
    settings: Optional[ConnectionSettings] = None,
    *,
    dialect: Optional[Dialect] = None,
) -> AsyncDatabase:
    """Open a connection and wrap it in an `AsyncDatabase`.

    PostgreSQL uses `psycopg.AsyncConnection`; SQLite wraps a regular
    `sqlite3` connection.
    """

    settings = settings or ConnectionSettings.from_env()
    if settings.driver == "sqlite":
        return AsyncDatabase(_open_sqlite(settings), dialect or SQLiteDialect())

    try:
        psycopg = importlib.import_module("psycopg")
    except ImportError as exc:
        raise DatabaseConnectionError(
            "Async PostgreSQL connections require 'psycopg' (version 3)."
        ) from exc
    try:
        conn = await psycopg.AsyncConnection.connect(
            autocommit=settings.autocommit, **settings.connect_kwargs()
        )
    except Exception as exc:
        raise DatabaseConnectionError(
            f"Could not connect to PostgreSQL at {settings.host}:{settings.port}: {exc}"
        ) from exc
    logger.debug("Opened async PostgreSQL connection to %s:%s", settings.host, settings.port)
    return AsyncDatabase(conn, dialect or PostgresDialect())
