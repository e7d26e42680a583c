"""Core port contracts used by adapters and repository."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager, AbstractContextManager
from typing import Any, List, Optional, Protocol

from .types import MaybeRow, QueryParams, RowMapping


class DialectPort(Protocol):
    """Dialect behavior required by query compilation and CRUD operations."""

    name: str
    paramstyle: str
    supports_returning: bool
    now_sql: str

    def q(self, ident: str) -> str: ...

    def placeholder(self, key: str, position: Optional[int] = None) -> str: ...

    def returning_clause(self, column: str) -> str: ...

    def columns_sql(self, table_placeholder: str, schema: str) -> str: ...

    def get_lastrowid(self, cursor: Any) -> Optional[int]: ...


class DatabasePort(Protocol):
    """Database adapter behavior required by the core repository."""

    dialect: DialectPort

    def transaction(self) -> AbstractContextManager[None]: ...

    def begin(self) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def execute(self, sql: str, params: QueryParams = None) -> Any: ...

    def fetchone(self, sql: str, params: QueryParams = None) -> MaybeRow: ...

    def fetchall(self, sql: str, params: QueryParams = None) -> List[RowMapping]: ...

    def close(self) -> None: ...


class AsyncDatabasePort(Protocol):
    """Async database adapter behavior required by the async repository."""

    dialect: DialectPort

    def transaction(self) -> AbstractAsyncContextManager[None]: ...

    async def begin(self) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...

    async def execute(self, sql: str, params: QueryParams = None) -> Any: ...

    async def fetchone(self, sql: str, params: QueryParams = None) -> MaybeRow: ...

    async def fetchall(self, sql: str, params: QueryParams = None) -> List[RowMapping]: ...

    async def aclose(self) -> None: ...
