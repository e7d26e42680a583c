"""Concrete SQL dialect implementations for DB-API adapters."""

from __future__ import annotations

from typing import Any, Optional

from ...core.status import sql_literal


class Dialect:
    """Base dialect that defines SQL quoting and placeholder behavior."""

    name: str = "generic"
    paramstyle: str = "named"
    quote_char: str = '"'
    supports_returning: bool = False
    now_sql: str = "CURRENT_TIMESTAMP"

    def q(self, ident: str) -> str:
        """Quote SQL identifier."""

        return f"{self.quote_char}{ident}{self.quote_char}"

    def placeholder(self, key: str, position: Optional[int] = None) -> str:
        """Return parameter placeholder for current param style.

        Args:
            key: Parameter name, used by the `named` style.
            position: 1-based parameter position, used by the `numeric` style.
        """

        if self.paramstyle == "named":
            return f":{key}"
        if self.paramstyle == "qmark":
            return "?"
        if self.paramstyle == "format":
            return "%s"
        if self.paramstyle == "numeric":
            if position is None:
                raise ValueError("numeric paramstyle requires a parameter position.")
            return f"${position}"
        raise ValueError(f"Unsupported paramstyle: {self.paramstyle}")

    def returning_clause(self, column: str) -> str:
        """Return `RETURNING` clause when dialect supports it."""

        if self.supports_returning:
            return f" RETURNING {column}"
        return ""

    def columns_sql(self, table_placeholder: str, schema: str) -> str:
        """Return the column metadata query for one table.

        The query must yield `column_name` and `data_type` columns.
        """

        return (
            "SELECT * FROM information_schema.columns "
            f"WHERE table_schema = {sql_literal(schema)} "
            f"AND table_name = {table_placeholder}"
        )

    def get_lastrowid(self, cursor: Any) -> Optional[int]:
        """Extract `lastrowid` from DB-API cursor when available."""

        return getattr(cursor, "lastrowid", None)


class SQLiteDialect(Dialect):
    """SQLite dialect (`:name` parameters, supports `RETURNING`)."""

    name = "sqlite"
    paramstyle = "named"
    quote_char = '"'
    supports_returning = True
    now_sql = "CURRENT_TIMESTAMP"

    def columns_sql(self, table_placeholder: str, schema: str) -> str:
        return (
            "SELECT name AS column_name, type AS data_type "
            f"FROM pragma_table_info({table_placeholder})"
        )


class PostgresDialect(Dialect):
    """PostgreSQL dialect (`%s` positional parameters, psycopg/psycopg2)."""

    name = "postgres"
    paramstyle = "format"
    quote_char = '"'
    supports_returning = True
    now_sql = "now()"


class PostgresNumericDialect(PostgresDialect):
    """PostgreSQL dialect with `$1, $2, ...` positional parameters."""

    paramstyle = "numeric"
