"""Repository facade over a DB-API database handle."""

from __future__ import annotations

import contextlib
from typing import Any, Dict, Iterator, List, Optional, Sequence

from .config import CrudConfig
from .contracts import DatabasePort
from .query_builder import ConflictTarget, UpdateKey, primary_key
from .repository_crud import (
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


class Repository:
    """Table-agnostic CRUD helper backed by a `DatabasePort` implementation.

    The repository wraps one database handle; it never owns more than that
    and keeps no per-call state. Concurrent callers sharing a handle race at
    the database exactly as issued.
    """

    def __init__(self, db: DatabasePort, config: Optional[CrudConfig] = None):
        """Create repository.

        Args:
            db: Database adapter implementing `DatabasePort`.
            config: Status, sanitization and logging behaviour.
        """

        self.db = db
        self.d = db.dialect
        self.config = config or CrudConfig()

    def pk(self, table: str) -> str:
        """Primary key column of `table`."""

        return primary_key(table, self.config.id_suffix)

    def query(
        self, sql: str, params: QueryParams = None, *, index: Optional[str] = None
    ) -> QueryResult:
        """Run raw SQL; rows are grouped by `index` when given."""

        return query(self, sql, params, index=index)

    def select(
        self,
        table: str,
        filter: Optional[FieldMap] = None,
        order_by: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Select rows matching every equality in `filter`.

        Only active rows are returned when a status convention is configured
        and `filter` does not set the status column itself.
        """

        return select(self, table, filter, order_by)

    def select_one(self, table: str, filter: Optional[FieldMap] = None) -> Dict[str, Any]:
        """Return the first matching row, or `{}` when nothing matches."""

        return select_one(self, table, filter)

    def select_indexed(
        self,
        table: str,
        filter: Optional[FieldMap] = None,
        *,
        index: str,
        order_by: Optional[str] = None,
    ) -> Dict[Any, List[Dict[str, Any]]]:
        """Select rows grouped by the value of the `index` column."""

        return select_indexed(self, table, filter, index=index, order_by=order_by)

    def insert(
        self,
        table: str,
        data: FieldMap,
        conflict: ConflictTarget = None,
        conflict_update: Sequence[str] = (),
    ) -> Any:
        """Insert a row and return its `<table>id` value.

        Args:
            table: Target table.
            data: Column to value map.
            conflict: Conflict columns (or raw target) turning the insert into
                an upsert.
            conflict_update: Columns overwritten when the upsert hits a
                conflict.
        """

        return insert(self, table, data, conflict, conflict_update)

    def update(
        self,
        table: str,
        key: UpdateKey,
        data: FieldMap,
        return_status: bool = False,
    ) -> List[Dict[str, Any]] | UpdateResult:
        """Update rows by `<table>id` value or by a composite key mapping.

        Returns:
            Updated rows, or an `UpdateResult` when `return_status` is set.
        """

        return update(self, table, key, data, return_status)

    def delete(self, table: str, record_id: Any, id_field: Optional[str] = None) -> bool:
        """Delete a row (soft delete when a status convention is configured)."""

        return delete(self, table, record_id, id_field)

    def sanitize_fields(
        self, table: str, fields: FieldMap, compare_id: Any = None
    ) -> SanitizeResult:
        return sanitize(self, table, fields, compare_id)

    def begin(self) -> None:
        control(self, "BEGIN")

    def commit(self) -> None:
        control(self, "COMMIT")

    def abort(self) -> None:
        control(self, "ROLLBACK")

    @contextlib.contextmanager
    def transaction(self) -> Iterator[Repository]:
        """Run operations in one commit/rollback transaction block."""

        self.begin()
        try:
            yield self
        except BaseException:
            self.abort()
            raise
        self.commit()

    def close(self) -> None:
        self.db.close()

    def __enter__(self) -> Repository:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()
