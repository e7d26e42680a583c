from __future__ import annotations

import dataclasses
import os
import unittest

from mini_crud import (
    ConnectionSettings,
    CrudConfig,
    DatabaseConnectionError,
    PostgresDialect,
    Repository,
    StatusConvention,
    UpdateResult,
    connect,
)
from mini_crud.ports.db_api.connect import load_postgres_connect


def _has_postgres_driver() -> bool:
    try:
        load_postgres_connect()
    except DatabaseConnectionError:
        return False
    return True


HAS_POSTGRES_DRIVER = _has_postgres_driver()

PG_ORDERS_DDL = (
    'CREATE TABLE "pgorders" ('
    "pgordersid SERIAL PRIMARY KEY, "
    "sku TEXT UNIQUE, "
    "qty INTEGER, "
    "name CHARACTER VARYING, "
    "meta JSONB, "
    "modified TIMESTAMPTZ, "
    "datastateid INTEGER NOT NULL DEFAULT 1)"
)


@unittest.skipUnless(HAS_POSTGRES_DRIVER, "psycopg/psycopg2 is not installed")
class RepositoryPostgresTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        settings = ConnectionSettings.from_env()
        if settings.password is None:
            settings = dataclasses.replace(
                settings, password=os.getenv("POSTGRES_PASSWORD", "password")
            )
        try:
            cls.db = connect(settings, dialect=PostgresDialect())
        except DatabaseConnectionError as exc:
            raise unittest.SkipTest(
                f"PostgreSQL is not reachable at {settings.host}:{settings.port}: {exc}"
            ) from exc

    @classmethod
    def tearDownClass(cls) -> None:
        db = getattr(cls, "db", None)
        if db is not None:
            db.close()

    def setUp(self) -> None:
        self.db.execute('DROP TABLE IF EXISTS "pgorders"')
        self.db.execute(PG_ORDERS_DDL)
        self.repo = Repository(
            self.db, CrudConfig(status=StatusConvention(), sanitize_fields=True)
        )

    def tearDown(self) -> None:
        self.db.execute('DROP TABLE IF EXISTS "pgorders"')

    def test_insert_select_update_soft_delete(self) -> None:
        new_id = self.repo.insert(
            "pgorders", {"sku": "a", "qty": 1, "name": 5, "meta": {"tags": ["x"]}, "bogus": 1}
        )

        row = self.repo.select_one("pgorders", {"pgordersid": new_id})
        self.assertEqual(row["name"], "5")
        self.assertEqual(row["meta"], {"tags": ["x"]})

        rows = self.repo.update("pgorders", new_id, {"qty": 4})
        self.assertEqual(rows[0]["qty"], 4)
        self.assertIsNotNone(rows[0]["modified"])

        self.assertTrue(self.repo.delete("pgorders", new_id))
        self.assertEqual(self.repo.select("pgorders"), [])
        stored = self.db.fetchone('SELECT datastateid FROM "pgorders"')
        self.assertEqual(stored, {"datastateid": 2})

    def test_upsert_reactivates_row(self) -> None:
        first = self.repo.insert("pgorders", {"sku": "a", "qty": 1})
        self.repo.delete("pgorders", first)

        again = self.repo.insert(
            "pgorders", {"sku": "a", "qty": 9}, conflict=["sku"], conflict_update=["qty"]
        )

        self.assertEqual(first, again)
        self.assertEqual(self.repo.select_one("pgorders", {"sku": "a"})["qty"], 9)

    def test_update_skips_unchanged_values(self) -> None:
        new_id = self.repo.insert("pgorders", {"sku": "a", "name": "Alice"})

        skipped = self.repo.update("pgorders", new_id, {"name": "Alice"}, return_status=True)
        written = self.repo.update("pgorders", new_id, {"name": "Bob"}, return_status=True)

        self.assertIsInstance(skipped, UpdateResult)
        self.assertFalse(skipped.updated)
        self.assertIsNone(skipped.results[0]["modified"])
        self.assertTrue(written.updated)
        self.assertIsNotNone(written.results[0]["modified"])

    def test_indexed_select_and_transaction_rollback(self) -> None:
        with self.repo.transaction():
            self.repo.insert("pgorders", {"sku": "a", "name": "x"})
            self.repo.insert("pgorders", {"sku": "b", "name": "x"})
        with self.assertRaises(RuntimeError):
            with self.repo.transaction():
                self.repo.insert("pgorders", {"sku": "c", "name": "y"})
                raise RuntimeError("boom")

        grouped = self.repo.select_indexed("pgorders", index="name", order_by="sku")

        self.assertEqual(list(grouped), ["x"])
        self.assertEqual([row["sku"] for row in grouped["x"]], ["a", "b"])


if __name__ == "__main__":
    unittest.main()
