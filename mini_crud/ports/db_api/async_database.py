"""Async DB adapter implementation for the core async database port."""

from __future__ import annotations

import contextlib
import logging
from typing import Any, AsyncIterator

from ...core._async_utils import _maybe_await, _maybe_close
from ...core.errors import DatabaseConnectionError
from ...core.types import MaybeRow, QueryParams, Rows
from .database import _in_transaction, _is_autocommit, row_to_dict
from .dialects import Dialect

logger = logging.getLogger(__name__)


class AsyncDatabase:
    """Async database wrapper that normalizes execute and row mapping behavior."""

    def __init__(self, conn: Any, dialect: Dialect):
        """Create async database adapter.

        Args:
            conn: Async (or sync) DB connection object, e.g. a
                `psycopg.AsyncConnection` or a plain `sqlite3` connection.
            dialect: Concrete SQL dialect instance.
        """

        self._closed = False
        self.conn = conn
        self.dialect = dialect

    @property
    def closed(self) -> bool:
        return self._closed

    def _require_open_connection(self) -> Any:
        if self.closed or self.conn is None:
            raise DatabaseConnectionError("connection is closed")
        return self.conn

    async def begin(self) -> None:
        """Open a transaction; drivers outside autocommit open one implicitly."""

        conn = self._require_open_connection()
        if _is_autocommit(conn, self.dialect) and not _in_transaction(conn):
            await _maybe_close(await self.execute("BEGIN"))

    async def commit(self) -> None:
        conn = self._require_open_connection()
        if _is_autocommit(conn, self.dialect):
            if _in_transaction(conn) is not False:
                await _maybe_close(await self.execute("COMMIT"))
            return
        await _maybe_await(conn.commit())

    async def rollback(self) -> None:
        conn = self._require_open_connection()
        if _is_autocommit(conn, self.dialect):
            if _in_transaction(conn) is not False:
                await _maybe_close(await self.execute("ROLLBACK"))
            return
        await _maybe_await(conn.rollback())

    @contextlib.asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Provide async commit/rollback transaction scope."""

        await self.begin()
        try:
            yield
        except BaseException:
            await self.rollback()
            raise
        else:
            await self.commit()

    async def execute(self, sql: str, params: QueryParams = None) -> Any:
        """Execute SQL with optional parameters and return cursor."""

        conn = self._require_open_connection()
        cur = await _maybe_await(conn.cursor())
        try:
            if params is None:
                await _maybe_await(cur.execute(sql))
            else:
                await _maybe_await(cur.execute(sql, params))
        except BaseException:
            await _maybe_close(cur)
            raise
        return cur

    async def fetchone(self, sql: str, params: QueryParams = None) -> MaybeRow:
        """Execute query and return one normalized row mapping."""

        cur = await self.execute(sql, params)
        try:
            row = await _maybe_await(cur.fetchone())
            if row is None:
                return None
            return row_to_dict(cur, row)
        finally:
            await _maybe_close(cur)

    async def fetchall(self, sql: str, params: QueryParams = None) -> Rows:
        """Execute query and return all rows as normalized mappings."""

        cur = await self.execute(sql, params)
        try:
            if getattr(cur, "description", None) is None:
                return []
            rows = await _maybe_await(cur.fetchall())
            return [row_to_dict(cur, r) for r in rows]
        finally:
            await _maybe_close(cur)

    async def aclose(self) -> None:
        """Close the underlying connection. Calling it twice is a no-op."""

        if self.closed:
            return
        self._closed = True
        conn, self.conn = self.conn, None
        await _maybe_close(conn)
        logger.debug("Closed async %s connection", self.dialect.name)

    async def __aenter__(self) -> AsyncDatabase:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.aclose()
