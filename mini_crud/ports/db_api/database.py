"""DB-API adapter implementation for the core database port."""

from __future__ import annotations

import contextlib
import logging
from typing import Any, Iterator, Mapping

from ...core.errors import DatabaseConnectionError
from ...core.types import MaybeRow, QueryParams, RowMapping, Rows
from .dialects import Dialect

logger = logging.getLogger(__name__)


class Database:
    """Thin DB-API wrapper that normalizes execute and row mapping behavior."""

    def __init__(self, conn: Any, dialect: Dialect):
        """Create database adapter.

        Args:
            conn: DB-API connection object. The adapter owns it from now on.
            dialect: Concrete SQL dialect instance.
        """

        self._closed = False
        self.conn: Any | None = conn
        self.dialect = dialect

    @property
    def closed(self) -> bool:
        return self._closed

    def _require_open_connection(self) -> Any:
        if self.closed or self.conn is None:
            raise DatabaseConnectionError("connection is closed")
        return self.conn

    def autocommit(self) -> bool:
        """Whether the driver commits every statement on its own."""

        return _is_autocommit(self._require_open_connection(), self.dialect)

    def begin(self) -> None:
        """Open a transaction; drivers outside autocommit open one implicitly."""

        if self.autocommit() and not _in_transaction(self.conn):
            self.execute("BEGIN")

    def commit(self) -> None:
        if self.autocommit():
            if _in_transaction(self.conn) is not False:
                self.execute("COMMIT")
            return
        self.conn.commit()

    def rollback(self) -> None:
        if self.autocommit():
            if _in_transaction(self.conn) is not False:
                self.execute("ROLLBACK")
            return
        self.conn.rollback()

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        """Provide commit/rollback transaction scope."""

        self.begin()
        try:
            yield
            self.commit()
        except BaseException:
            self.rollback()
            raise

    def execute(self, sql: str, params: QueryParams = None) -> Any:
        """Execute SQL with optional parameters and return cursor."""

        conn = self._require_open_connection()
        cur = conn.cursor()
        if params is None:
            cur.execute(sql)
        else:
            cur.execute(sql, params)
        return cur

    def fetchone(self, sql: str, params: QueryParams = None) -> MaybeRow:
        """Execute query and return one normalized row mapping."""

        cur = self.execute(sql, params)
        row = cur.fetchone()
        if row is None:
            return None
        return row_to_dict(cur, row)

    def fetchall(self, sql: str, params: QueryParams = None) -> Rows:
        """Execute query and return all rows as normalized mappings."""

        cur = self.execute(sql, params)
        if getattr(cur, "description", None) is None:
            return []
        rows = cur.fetchall()
        return [row_to_dict(cur, r) for r in rows]

    def close(self) -> None:
        """Close the underlying connection. Calling it twice is a no-op."""

        if self.closed:
            return
        conn = self.conn
        self._closed = True
        self.conn = None
        if conn is None:
            return
        close = getattr(conn, "close", None)
        if callable(close):
            close()
        logger.debug("Closed %s connection", self.dialect.name)

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()


def row_to_dict(cursor: Any, row: Any) -> RowMapping:
    """Turn a driver row into a plain dict keyed by column name.

    Mapping-like rows (`sqlite3.Row`, psycopg dict rows) are copied; tuple
    rows are zipped with the names in `cursor.description`.
    """

    if isinstance(row, Mapping):
        return dict(row)
    if isinstance(row, (tuple, list)):
        description = getattr(cursor, "description", None)
        if not description:
            raise TypeError("Cursor has no description; cannot map tuple rows to dict.")
        return {column[0]: value for column, value in zip(description, row)}
    if hasattr(row, "keys"):
        return {key: row[key] for key in row.keys()}
    raise TypeError(f"Unsupported row type: {type(row)}")


def _is_autocommit(conn: Any, dialect: Dialect) -> bool:
    if getattr(dialect, "name", "").lower() == "sqlite":
        return getattr(conn, "isolation_level", "") is None
    return bool(getattr(conn, "autocommit", False))


def _in_transaction(conn: Any) -> bool | None:
    """Return the driver's transaction flag, or `None` when it has none."""

    flag = getattr(conn, "in_transaction", None)
    if flag is None:
        return None
    return bool(flag)
