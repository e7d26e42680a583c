"""SQL convenience layer: CRUD statements from plain field maps over DB-API drivers."""

from .core import (
    AsyncRepository,
    CompiledQuery,
    ConnectionSettings,
    CrudConfig,
    DatabaseConnectionError,
    QueryError,
    QueryExecutionError,
    QueryResult,
    RecordStatus,
    Repository,
    SanitizeResult,
    SchemaLookupError,
    StatusConvention,
    UpdateResult,
    build_index,
    coerce_value,
    compile_columns_lookup,
    compile_delete,
    compile_insert,
    compile_select,
    compile_update,
    primary_key,
    sanitize_fields,
)
from .ports import (
    AsyncDatabase,
    Database,
    Dialect,
    PostgresDialect,
    PostgresNumericDialect,
    SQLiteDialect,
    connect,
    connect_async,
)

__all__ = [
    "AsyncDatabase",
    "AsyncRepository",
    "CompiledQuery",
    "ConnectionSettings",
    "CrudConfig",
    "Database",
    "DatabaseConnectionError",
    "Dialect",
    "PostgresDialect",
    "PostgresNumericDialect",
    "QueryError",
    "QueryExecutionError",
    "QueryResult",
    "RecordStatus",
    "Repository",
    "SQLiteDialect",
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
    "connect",
    "connect_async",
    "primary_key",
    "sanitize_fields",
]
