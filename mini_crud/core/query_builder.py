"""SQL builders for select, insert, update, delete, and schema lookups.

This module centralizes SQL string compilation from plain field maps. It keeps
`Repository` focused on orchestration (sanitizing, executing, logging) while
making SQL generation pure and easy to test.

Table names are quoted by the dialect; column names are emitted as given.
"""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Union

from .contracts import DialectPort
from .status import RecordStatus, StatusConvention
from .types import FieldMap, QueryParams

ConflictTarget = Union[str, Sequence[str], None]
UpdateKey = Union[Mapping[str, Any], Any]


@dataclass(frozen=True)
class CompiledQuery:
    """Represents a compiled SQL statement with its bound parameters."""

    sql: str
    params: QueryParams


class _ParamBinder:
    """Collects bound values and hands out placeholders in dialect style."""

    def __init__(self, dialect: DialectPort) -> None:
        self._dialect = dialect
        self._counter = 0
        self._named = dialect.paramstyle == "named"
        self._params: QueryParams = {} if self._named else []

    def bind(self, base: str, value: Any) -> str:
        """Register `value` and return its placeholder."""

        self._counter += 1
        if self._named:
            safe = "".join(ch if ch.isalnum() or ch == "_" else "_" for ch in base)
            key = f"{safe}_{self._counter}"
            self._params[key] = value
            return self._dialect.placeholder(key, self._counter)
        self._params.append(value)
        return self._dialect.placeholder(base, self._counter)

    def compile(self, sql: str) -> CompiledQuery:
        return CompiledQuery(sql, self._params if self._params else None)


def primary_key(table: str, suffix: str = "id") -> str:
    """Return the primary key column name for `table` (`<table>id`)."""

    return f"{table}{suffix}"


def compile_select(
    dialect: DialectPort,
    table: str,
    filter: Optional[FieldMap] = None,
    *,
    status: Optional[StatusConvention] = None,
    order_by: Optional[str] = None,
) -> CompiledQuery:
    """Compile `SELECT *` with equality filters joined by `AND`.

    Args:
        dialect: SQL dialect used for quoting and placeholders.
        table: Table to select from.
        filter: Column to value equalities. `None` values compile to `IS NULL`.
        status: When set and `filter` has no status key, only active rows match.
        order_by: Raw `ORDER BY` expression, appended verbatim.

    Returns:
        Compiled statement and parameters.
    """

    filter = filter or {}
    binder = _ParamBinder(dialect)
    clauses = [_equality(binder, col, value) for col, value in filter.items()]
    if status is not None and status.column not in filter:
        clauses.append(f"{status.column} = {status.literal(RecordStatus.ACTIVE)}")

    sql = f"SELECT * FROM {dialect.q(table)}"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    if order_by:
        sql += f" ORDER BY {order_by}"
    return binder.compile(sql)


def compile_insert(
    dialect: DialectPort,
    table: str,
    data: FieldMap,
    *,
    pk: str,
    conflict: ConflictTarget = None,
    conflict_update: Sequence[str] = (),
    status: Optional[StatusConvention] = None,
) -> CompiledQuery:
    """Compile `INSERT` with optional `ON CONFLICT ... DO UPDATE` upsert.

    Args:
        dialect: SQL dialect used for quoting and placeholders.
        table: Target table.
        data: Column to value map for the new row.
        pk: Column returned by `RETURNING`.
        conflict: Conflict columns, or a raw conflict target such as
            `ON CONSTRAINT name`.
        conflict_update: Columns overwritten from `EXCLUDED` on conflict.
        status: When set and `data` has no status key, the upsert also
            reactivates the conflicting row.

    Returns:
        Compiled statement and parameters.

    Raises:
        ValueError: If `data` has no columns.
    """

    columns = list(data)
    if not columns:
        raise ValueError(f"Nothing to insert into table {table!r}.")

    binder = _ParamBinder(dialect)
    placeholders = [binder.bind(col, data[col]) for col in columns]
    sql = (
        f"INSERT INTO {dialect.q(table)} ({','.join(columns)}) "
        f"VALUES ({','.join(placeholders)})"
    )

    target = _conflict_target(conflict)
    if target:
        updates = [f"{col} = EXCLUDED.{col}" for col in conflict_update]
        if status is not None and status.column not in data:
            updates.append(f"{status.column} = {status.literal(RecordStatus.ACTIVE)}")
        if updates:
            sql += f" ON CONFLICT {target} DO UPDATE SET {', '.join(updates)}"
        else:
            sql += f" ON CONFLICT {target} DO NOTHING"

    sql += dialect.returning_clause(pk)
    return binder.compile(sql)


def compile_update(
    dialect: DialectPort,
    table: str,
    key: UpdateKey,
    data: FieldMap,
    *,
    pk: str,
    status: Optional[StatusConvention] = None,
    modified_column: Optional[str] = "modified",
) -> CompiledQuery:
    """Compile `UPDATE ... RETURNING *` for a scalar or composite key.

    The modified timestamp is always set first unless `data` sets it
    explicitly. When a status convention is configured and `data` has no
    status key, the row is marked active again.

    Raises:
        ValueError: If the composite key is empty or nothing would be set.
    """

    binder = _ParamBinder(dialect)
    assignments: List[str] = []
    if modified_column and modified_column not in data:
        assignments.append(f"{modified_column} = {dialect.now_sql}")
    for col, value in data.items():
        assignments.append(f"{col} = {binder.bind(col, value)}")
    if status is not None and status.column not in data:
        assignments.append(f"{status.column} = {binder.bind(status.column, status.active)}")
    if not assignments:
        raise ValueError(f"Nothing to update on table {table!r}.")

    if isinstance(key, MappingABC):
        if not key:
            raise ValueError("Composite update key must contain at least one column.")
        where = " AND ".join(f"{col} = {binder.bind(col, value)}" for col, value in key.items())
    else:
        where = f"{pk} = {binder.bind(pk, key)}"

    sql = (
        f"UPDATE {dialect.q(table)} SET {', '.join(assignments)} WHERE {where}"
        + dialect.returning_clause("*")
    )
    return binder.compile(sql)


def compile_delete(
    dialect: DialectPort,
    table: str,
    record_id: Any,
    *,
    id_field: str,
    status: Optional[StatusConvention] = None,
) -> CompiledQuery:
    """Compile a soft delete (status update) or a hard `DELETE`."""

    binder = _ParamBinder(dialect)
    if status is not None:
        sql = (
            f"UPDATE {dialect.q(table)} SET {status.column} = "
            f"{status.literal(RecordStatus.DELETED)} "
            f"WHERE {id_field} = {binder.bind(id_field, record_id)}"
        )
    else:
        sql = (
            f"DELETE FROM {dialect.q(table)} "
            f"WHERE {id_field} = {binder.bind(id_field, record_id)}"
        )
    return binder.compile(sql)


def compile_columns_lookup(
    dialect: DialectPort, table: str, schema: str = "public"
) -> CompiledQuery:
    """Compile the column metadata query used by field sanitization."""

    binder = _ParamBinder(dialect)
    sql = dialect.columns_sql(binder.bind("table_name", table), schema)
    return binder.compile(sql)


def _equality(binder: _ParamBinder, col: str, value: Any) -> str:
    if value is None:
        return f"{col} IS NULL"
    return f"{col} = {binder.bind(col, value)}"


def _conflict_target(conflict: ConflictTarget) -> str:
    if not conflict:
        return ""
    if isinstance(conflict, str):
        return conflict
    return f"({','.join(conflict)})"
