"""Basic CRUD example for mini_crud Repository over SQLite."""

from __future__ import annotations

import logging
import sqlite3
import sys
from pathlib import Path

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "mini_crud").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from mini_crud import (
    CrudConfig,
    Database,
    QueryExecutionError,
    Repository,
    SQLiteDialect,
    StatusConvention,
)

CUSTOMERS_DDL = (
    'CREATE TABLE "customers" ('
    "customersid INTEGER PRIMARY KEY, "
    "email TEXT UNIQUE, "
    "name character varying, "
    "tier TEXT, "
    "modified TEXT, "
    "datastateid INTEGER NOT NULL DEFAULT 1)"
)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(name)s %(message)s")

    # 1) Wrap a DB-API connection and turn on soft deletes, sanitization and query logs.
    db = Database(sqlite3.connect(":memory:", isolation_level=None), SQLiteDialect())
    config = CrudConfig(status=StatusConvention(), sanitize_fields=True, log_queries=True)

    with Repository(db, config) as repo:
        db.execute(CUSTOMERS_DDL)

        # 2) Insert rows; unknown keys are dropped, `name` is stored as text.
        alice = repo.insert("customers", {"email": "alice@example.com", "name": "Alice", "tier": "gold"})
        bob = repo.insert("customers", {"email": "bob@example.com", "name": 7, "nickname": "ignored"})
        print("Inserted ids:", alice, bob)

        # 3) Upsert on the unique email column.
        again = repo.insert(
            "customers",
            {"email": "alice@example.com", "tier": "platinum"},
            conflict=["email"],
            conflict_update=["tier"],
        )
        print("Upsert returned the same id:", again == alice)

        # 4) Update with compare-and-skip.
        skipped = repo.update("customers", bob, {"name": "7"}, return_status=True)
        written = repo.update("customers", bob, {"name": "Bob"}, return_status=True)
        print("Unchanged update written?", skipped.updated, "| changed update written?", written.updated)

        # 5) Select, single row and grouped by a column.
        print("All active:", repo.select("customers", order_by="customersid"))
        print("By email:", repo.select_one("customers", {"email": "bob@example.com"}))
        print("By tier:", repo.select_indexed("customers", index="tier"))

        # 6) Soft delete hides the row from later selects.
        repo.delete("customers", alice)
        print("After delete:", repo.select("customers"))

        # 7) A write with no known columns is refused.
        try:
            repo.insert("customers", {"emial": "typo@example.com"})
        except QueryExecutionError as exc:
            print("Rejected insert:", exc)


if __name__ == "__main__":
    main()
