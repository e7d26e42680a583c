"""Error taxonomy raised by the repository and database adapters."""

from __future__ import annotations

from typing import Any, Optional


class QueryError(Exception):
    """Base error for failed database operations.

    Attributes:
        sql: Statement that was being executed, when known.
        params: Arguments bound to that statement, kept for diagnostics.
    """

    def __init__(self, message: str, *, sql: Optional[str] = None, params: Any = None):
        super().__init__(message)
        self.sql = sql
        self.params = params

    def __str__(self) -> str:
        message = super().__str__()
        if self.sql is None:
            return message
        return f"{message} [sql={self.sql!r} params={self.params!r}]"


class DatabaseConnectionError(QueryError):
    """Raised when a connection cannot be opened or is already closed."""


class QueryExecutionError(QueryError):
    """Raised when SQL execution fails (syntax, constraint, driver errors)."""


class SchemaLookupError(QueryError):
    """Raised when column metadata for field sanitization cannot be read."""
