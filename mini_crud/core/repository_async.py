"""Async repository facade over an async database handle."""

from __future__ import annotations

import contextlib
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from .config import CrudConfig
from .contracts import AsyncDatabasePort
from .query_builder import ConflictTarget, UpdateKey, primary_key
from .repository_crud_async import (
    control,
    delete,
    insert,
    query,
    sanitize,
    select,
    select_indexed,
    select_one,
    update,
)
from .row_index import QueryResult, UpdateResult
from .sanitize import SanitizeResult
from .types import FieldMap, QueryParams


class AsyncRepository:
    """Async CRUD helper backed by an `AsyncDatabasePort` implementation."""

    def __init__(self, db: AsyncDatabasePort, config: Optional[CrudConfig] = None):
        self.db = db
        self.d = db.dialect
        self.config = config or CrudConfig()

    def pk(self, table: str) -> str:
        return primary_key(table, self.config.id_suffix)

    async def query(
        self, sql: str, params: QueryParams = None, *, index: Optional[str] = None
    ) -> QueryResult:
        return await query(self, sql, params, index=index)

    async def select(
        self,
        table: str,
        filter: Optional[FieldMap] = None,
        order_by: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        return await select(self, table, filter, order_by)

    async def select_one(
        self, table: str, filter: Optional[FieldMap] = None
    ) -> Dict[str, Any]:
        return await select_one(self, table, filter)

    async def select_indexed(
        self,
        table: str,
        filter: Optional[FieldMap] = None,
        *,
        index: str,
        order_by: Optional[str] = None,
    ) -> Dict[Any, List[Dict[str, Any]]]:
        return await select_indexed(self, table, filter, index=index, order_by=order_by)

    async def insert(
        self,
        table: str,
        data: FieldMap,
        conflict: ConflictTarget = None,
        conflict_update: Sequence[str] = (),
    ) -> Any:
        return await insert(self, table, data, conflict, conflict_update)

    async def update(
        self,
        table: str,
        key: UpdateKey,
        data: FieldMap,
        return_status: bool = False,
    ) -> List[Dict[str, Any]] | UpdateResult:
        return await update(self, table, key, data, return_status)

    async def delete(
        self, table: str, record_id: Any, id_field: Optional[str] = None
    ) -> bool:
        return await delete(self, table, record_id, id_field)

    async def sanitize_fields(
        self, table: str, fields: FieldMap, compare_id: Any = None
    ) -> SanitizeResult:
        return await sanitize(self, table, fields, compare_id)

    async def begin(self) -> None:
        await control(self, "BEGIN")

    async def commit(self) -> None:
        await control(self, "COMMIT")

    async def abort(self) -> None:
        await control(self, "ROLLBACK")

    @contextlib.asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncRepository]:
        """Run operations in one commit/rollback transaction block."""

        await self.begin()
        try:
            yield self
        except BaseException:
            await self.abort()
            raise
        await self.commit()

    async def aclose(self) -> None:
        await self.db.aclose()

    async def __aenter__(self) -> AsyncRepository:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.aclose()
