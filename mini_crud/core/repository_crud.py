"""Low-level CRUD/query implementations used by `Repository`."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping as MappingABC
from typing import Any, Callable, Dict, List, Optional, Sequence

from .errors import DatabaseConnectionError, QueryError, QueryExecutionError, SchemaLookupError
from .query_builder import (
    CompiledQuery,
    ConflictTarget,
    UpdateKey,
    compile_columns_lookup,
    compile_delete,
    compile_insert,
    compile_select,
    compile_update,
)
from .row_index import QueryResult, UpdateResult, build_index
from .sanitize import SanitizeResult, sanitize_fields
from .types import FieldMap, QueryParams

logger = logging.getLogger(__name__)


def log_success(repo: Any, sql: str, params: QueryParams, started: float) -> None:
    """Log one executed statement when query logging is enabled."""

    if repo.config.log_queries:
        logger.info(
            "sql=%s args=%r time=%.6f seconds",
            sql,
            params,
            time.perf_counter() - started,
        )


def wrap_failure(exc: Exception, sql: str, params: QueryParams) -> QueryError:
    """Translate a driver exception into the repository error taxonomy."""

    logger.error("Query failed: %s | sql=%s args=%r", exc, sql, params)
    if isinstance(exc, DatabaseConnectionError):
        message = exc.args[0] if exc.args else "connection error"
        return DatabaseConnectionError(str(message), sql=sql, params=params)
    if isinstance(exc, QueryError):
        return exc
    return QueryExecutionError(f"Query failed: {exc}", sql=sql, params=params)


def require_insert_fields(table: str, data: FieldMap, fields: FieldMap) -> None:
    """Reject an insert whose sanitized field map is empty."""

    if fields:
        return
    logger.error("No known columns to insert into %s: %r", table, sorted(data))
    raise QueryExecutionError(
        f"Nothing to insert into table {table!r}; no known columns in {sorted(data)!r}",
        params=dict(data),
    )


def _timed(repo: Any, sql: str, params: QueryParams, call: Callable[..., Any]) -> Any:
    started = time.perf_counter()
    try:
        result = call(sql, params)
    except Exception as exc:
        error = wrap_failure(exc, sql, params)
        if error is exc:
            raise
        raise error from exc
    log_success(repo, sql, params, started)
    return result


def fetch_rows(repo: Any, compiled: CompiledQuery) -> List[Dict[str, Any]]:
    """Run a compiled statement and return its rows as plain dicts."""

    rows = _timed(repo, compiled.sql, compiled.params, repo.db.fetchall)
    return [dict(row) for row in rows]


def execute(repo: Any, compiled: CompiledQuery) -> Any:
    """Run a compiled statement and return the driver cursor."""

    return _timed(repo, compiled.sql, compiled.params, repo.db.execute)


_TRANSACTION_VERBS = {"BEGIN": "begin", "COMMIT": "commit", "ROLLBACK": "rollback"}


def control(repo: Any, verb: str) -> None:
    """Pass a transaction verb through to the database handle."""

    method = getattr(repo.db, _TRANSACTION_VERBS[verb])
    _timed(repo, verb, None, lambda _sql, _params: method())


def query(
    repo: Any, sql: str, params: QueryParams = None, *, index: Optional[str] = None
) -> QueryResult:
    """Run raw SQL and return rows plus the optional index-by-column view."""

    return QueryResult.from_rows(fetch_rows(repo, CompiledQuery(sql, params)), index)


def sanitize(
    repo: Any, table: str, fields: FieldMap, compare_id: Any = None
) -> SanitizeResult:
    """Validate fields against the live schema when sanitization is enabled."""

    if not repo.config.sanitize_fields:
        return SanitizeResult(dict(fields))

    lookup = compile_columns_lookup(repo.d, table, repo.config.schema)
    try:
        columns = fetch_rows(repo, lookup)
    except QueryError as exc:
        raise SchemaLookupError(
            f"Failed to gather columns for table {table!r}",
            sql=lookup.sql,
            params=lookup.params,
        ) from exc
    if not columns:
        logger.warning("No column metadata found for table %r", table)

    existing = None
    if compare_id is not None:
        existing = select_one(repo, table, {repo.pk(table): compare_id})
    return sanitize_fields(columns, fields, existing)


def select(
    repo: Any,
    table: str,
    filter: Optional[FieldMap] = None,
    order_by: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Select rows matching every equality in `filter`."""

    fields = sanitize(repo, table, filter or {}).fields
    compiled = compile_select(
        repo.d, table, fields, status=repo.config.status, order_by=order_by
    )
    return fetch_rows(repo, compiled)


def select_one(repo: Any, table: str, filter: Optional[FieldMap] = None) -> Dict[str, Any]:
    """Return the first matching row, or an empty dict."""

    rows = select(repo, table, filter)
    return rows[0] if rows else {}


def select_indexed(
    repo: Any,
    table: str,
    filter: Optional[FieldMap] = None,
    *,
    index: str,
    order_by: Optional[str] = None,
) -> Dict[Any, List[Dict[str, Any]]]:
    """Select rows and group them by the value of `index`."""

    return build_index(select(repo, table, filter, order_by), index)


def insert(
    repo: Any,
    table: str,
    data: FieldMap,
    conflict: ConflictTarget = None,
    conflict_update: Sequence[str] = (),
) -> Any:
    """Insert (or upsert) one row and return its primary key value."""

    fields = sanitize(repo, table, data).fields
    require_insert_fields(table, data, fields)
    pk = repo.pk(table)
    compiled = compile_insert(
        repo.d,
        table,
        fields,
        pk=pk,
        conflict=conflict,
        conflict_update=conflict_update,
        status=repo.config.status,
    )
    if repo.d.supports_returning:
        rows = fetch_rows(repo, compiled)
        return rows[0].get(pk) if rows else None

    cursor = execute(repo, compiled)
    return repo.d.get_lastrowid(cursor)


def update(
    repo: Any,
    table: str,
    key: UpdateKey,
    data: FieldMap,
    return_status: bool = False,
) -> List[Dict[str, Any]] | UpdateResult:
    """Update rows by primary key or composite key.

    When `return_status` is requested for a scalar key and sanitization finds
    nothing would change, no statement is executed and the stored row is
    returned instead.
    """

    compare_id = None
    if return_status and not isinstance(key, MappingABC):
        compare_id = key
    result = sanitize(repo, table, data, compare_id)

    if result.matches is not None:
        logger.debug("Skipping update of %s %r: values unchanged", table, key)
        rows = [result.matches]
        return UpdateResult(rows, updated=False) if return_status else rows

    compiled = compile_update(
        repo.d,
        table,
        key,
        result.fields,
        pk=repo.pk(table),
        status=repo.config.status,
        modified_column=repo.config.modified_column,
    )
    rows = fetch_rows(repo, compiled)
    return UpdateResult(rows, updated=True) if return_status else rows


def delete(repo: Any, table: str, record_id: Any, id_field: Optional[str] = None) -> bool:
    """Soft delete through the status column, or hard delete without one."""

    compiled = compile_delete(
        repo.d,
        table,
        record_id,
        id_field=id_field or repo.pk(table),
        status=repo.config.status,
    )
    try:
        execute(repo, compiled)
    except QueryExecutionError as exc:
        raise QueryExecutionError(
            f"Failed to delete row from {table!r}",
            sql=compiled.sql,
            params=compiled.params,
        ) from exc
    return True
