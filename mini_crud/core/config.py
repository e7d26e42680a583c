"""Behaviour switches and connection settings.

Both objects can be built directly or read from the environment. An optional
`.env` file is read with `python-dotenv`; real environment variables take
precedence over values from the file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from dotenv import dotenv_values

from .status import DEFAULT_STATUS_COLUMN, DEFAULT_STATUS_VALUES, RecordStatus, StatusConvention

ENV_PREFIX = "MINI_CRUD_"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _load_env(env_file: Optional[str]) -> dict[str, Optional[str]]:
    values: dict[str, Optional[str]] = {}
    if env_file is not None:
        values.update(dotenv_values(env_file))
    values.update(os.environ)
    return values


def _flag(env: Mapping[str, Optional[str]], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _status_value(raw: Optional[str], default: Any) -> Any:
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return raw


@dataclass(frozen=True)
class CrudConfig:
    """Repository behaviour.

    Attributes:
        status: Soft-delete convention, or `None` to use hard deletes and no
            implicit status filter.
        sanitize_fields: Validate and coerce fields against the live schema
            before writes and filters.
        log_queries: Log every statement with its arguments and elapsed time.
        modified_column: Column stamped on every UPDATE, or `None`.
        id_suffix: Suffix appended to a table name to get its primary key.
        schema: Schema searched by the column metadata lookup.
    """

    status: Optional[StatusConvention] = None
    sanitize_fields: bool = False
    log_queries: bool = False
    modified_column: Optional[str] = "modified"
    id_suffix: str = "id"
    schema: str = "public"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> CrudConfig:
        env = _load_env(env_file)
        status: Optional[StatusConvention] = None
        column = env.get(f"{ENV_PREFIX}STATUS_COLUMN")
        if column is None:
            column = DEFAULT_STATUS_COLUMN if _flag(env, f"{ENV_PREFIX}STATUS", False) else ""
        if column:
            status = StatusConvention(
                column=column,
                values={
                    item: _status_value(
                        env.get(f"{ENV_PREFIX}STATUS_{item.name}"),
                        DEFAULT_STATUS_VALUES[item],
                    )
                    for item in RecordStatus
                },
            )
        modified = env.get(f"{ENV_PREFIX}MODIFIED_COLUMN", "modified")
        return cls(
            status=status,
            sanitize_fields=_flag(env, f"{ENV_PREFIX}SANITIZE_FIELDS", False),
            log_queries=_flag(env, f"{ENV_PREFIX}LOG_QUERIES", False),
            modified_column=modified or None,
            id_suffix=env.get(f"{ENV_PREFIX}ID_SUFFIX") or "id",
            schema=env.get(f"{ENV_PREFIX}SCHEMA") or "public",
        )


@dataclass(frozen=True)
class ConnectionSettings:
    """Parameters used by `connect()` to open a database handle."""

    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    password: Optional[str] = None
    database: str = "postgres"
    driver: str = "postgres"
    path: str = ":memory:"
    autocommit: bool = True

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> ConnectionSettings:
        """Read `MINI_CRUD_*` variables, falling back to libpq `PG*` ones."""

        env = _load_env(env_file)

        def pick(name: str, pg_name: str, default: Optional[str]) -> Optional[str]:
            value = env.get(f"{ENV_PREFIX}{name}")
            if value is None or value == "":
                value = env.get(pg_name)
            if value is None or value == "":
                return default
            return value

        port = pick("PORT", "PGPORT", "5432")
        return cls(
            host=pick("HOST", "PGHOST", "localhost") or "localhost",
            port=int(port or 5432),
            user=pick("USER", "PGUSER", "postgres") or "postgres",
            password=pick("PASSWORD", "PGPASSWORD", None),
            database=pick("DATABASE", "PGDATABASE", "postgres") or "postgres",
            driver=(env.get(f"{ENV_PREFIX}DRIVER") or "postgres").lower(),
            path=env.get(f"{ENV_PREFIX}SQLITE_PATH") or ":memory:",
            autocommit=_flag(env, f"{ENV_PREFIX}AUTOCOMMIT", True),
        )

    def connect_kwargs(self) -> dict[str, Any]:
        """Keyword arguments accepted by `psycopg.connect`/`psycopg2.connect`."""

        params: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "dbname": self.database,
        }
        if self.password is not None:
            params["password"] = self.password
        return params
