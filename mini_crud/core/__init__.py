"""Public core API for query building, sanitization, and repository operations."""

from .config import ConnectionSettings, CrudConfig
from .errors import (
    DatabaseConnectionError,
    QueryError,
    QueryExecutionError,
    SchemaLookupError,
)
from .query_builder import (
    CompiledQuery,
    compile_columns_lookup,
    compile_delete,
    compile_insert,
    compile_select,
    compile_update,
    primary_key,
)
from .repository import Repository
from .repository_async import AsyncRepository
from .row_index import QueryResult, UpdateResult, build_index
from .sanitize import SanitizeResult, coerce_value, sanitize_fields
from .status import RecordStatus, StatusConvention

__all__ = [
    "AsyncRepository",
    "CompiledQuery",
    "ConnectionSettings",
    "CrudConfig",
    "DatabaseConnectionError",
    "QueryError",
    "QueryExecutionError",
    "QueryResult",
    "RecordStatus",
    "Repository",
    "SanitizeResult",
    "SchemaLookupError",
    "StatusConvention",
    "UpdateResult",
    "build_index",
    "coerce_value",
    "compile_columns_lookup",
    "compile_delete",
    "compile_insert",
    "compile_select",
    "compile_update",
    "primary_key",
    "sanitize_fields",
]
