"""Async CRUD/query implementations used by `AsyncRepository`."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping as MappingABC
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from ._async_utils import _maybe_close
from .errors import QueryError, QueryExecutionError, SchemaLookupError
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
from .repository_crud import log_success, require_insert_fields, wrap_failure
from .row_index import QueryResult, UpdateResult, build_index
from .sanitize import SanitizeResult, sanitize_fields
from .types import FieldMap, QueryParams

logger = logging.getLogger(__name__)

_TRANSACTION_VERBS = {"BEGIN": "begin", "COMMIT": "commit", "ROLLBACK": "rollback"}


async def _timed(
    repo: Any, sql: str, params: QueryParams, call: Callable[..., Awaitable[Any]]
) -> Any:
    started = time.perf_counter()
    try:
        result = await call(sql, params)
    except Exception as exc:
        error = wrap_failure(exc, sql, params)
        if error is exc:
            raise
        raise error from exc
    log_success(repo, sql, params, started)
    return result


async def fetch_rows(repo: Any, compiled: CompiledQuery) -> List[Dict[str, Any]]:
    rows = await _timed(repo, compiled.sql, compiled.params, repo.db.fetchall)
    return [dict(row) for row in rows]


async def execute(repo: Any, compiled: CompiledQuery) -> Any:
    return await _timed(repo, compiled.sql, compiled.params, repo.db.execute)


async def control(repo: Any, verb: str) -> None:
    method = getattr(repo.db, _TRANSACTION_VERBS[verb])
    await _timed(repo, verb, None, lambda _sql, _params: method())


async def query(
    repo: Any, sql: str, params: QueryParams = None, *, index: Optional[str] = None
) -> QueryResult:
    rows = await fetch_rows(repo, CompiledQuery(sql, params))
    return QueryResult.from_rows(rows, index)


async def sanitize(
    repo: Any, table: str, fields: FieldMap, compare_id: Any = None
) -> SanitizeResult:
    if not repo.config.sanitize_fields:
        return SanitizeResult(dict(fields))

    lookup = compile_columns_lookup(repo.d, table, repo.config.schema)
    try:
        columns = await fetch_rows(repo, lookup)
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
        existing = await select_one(repo, table, {repo.pk(table): compare_id})
    return sanitize_fields(columns, fields, existing)


async def select(
    repo: Any,
    table: str,
    filter: Optional[FieldMap] = None,
    order_by: Optional[str] = None,
) -> List[Dict[str, Any]]:
    fields = (await sanitize(repo, table, filter or {})).fields
    compiled = compile_select(
        repo.d, table, fields, status=repo.config.status, order_by=order_by
    )
    return await fetch_rows(repo, compiled)


async def select_one(
    repo: Any, table: str, filter: Optional[FieldMap] = None
) -> Dict[str, Any]:
    rows = await select(repo, table, filter)
    return rows[0] if rows else {}


async def select_indexed(
    repo: Any,
    table: str,
    filter: Optional[FieldMap] = None,
    *,
    index: str,
    order_by: Optional[str] = None,
) -> Dict[Any, List[Dict[str, Any]]]:
    return build_index(await select(repo, table, filter, order_by), index)


async def insert(
    repo: Any,
    table: str,
    data: FieldMap,
    conflict: ConflictTarget = None,
    conflict_update: Sequence[str] = (),
) -> Any:
    fields = (await sanitize(repo, table, data)).fields
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
        rows = await fetch_rows(repo, compiled)
        return rows[0].get(pk) if rows else None

    cursor = await execute(repo, compiled)
    try:
        return repo.d.get_lastrowid(cursor)
    finally:
        await _maybe_close(cursor)


async def update(
    repo: Any,
    table: str,
    key: UpdateKey,
    data: FieldMap,
    return_status: bool = False,
) -> List[Dict[str, Any]] | UpdateResult:
    compare_id = None
    if return_status and not isinstance(key, MappingABC):
        compare_id = key
    result = await sanitize(repo, table, data, compare_id)

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
    rows = await fetch_rows(repo, compiled)
    return UpdateResult(rows, updated=True) if return_status else rows


async def delete(
    repo: Any, table: str, record_id: Any, id_field: Optional[str] = None
) -> bool:
    compiled = compile_delete(
        repo.d,
        table,
        record_id,
        id_field=id_field or repo.pk(table),
        status=repo.config.status,
    )
    try:
        await _maybe_close(await execute(repo, compiled))
    except QueryExecutionError as exc:
        raise QueryExecutionError(
            f"Failed to delete row from {table!r}",
            sql=compiled.sql,
            params=compiled.params,
        ) from exc
    return True
