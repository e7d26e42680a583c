from __future__ import annotations

import os
import tempfile
import unittest
from unittest import mock

from mini_crud.core.config import ConnectionSettings, CrudConfig
from mini_crud.core.status import RecordStatus


class CrudConfigFromEnvTests(unittest.TestCase):
    def test_defaults_without_environment(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=True):
            config = CrudConfig.from_env()

        self.assertEqual(config, CrudConfig())
        self.assertIsNone(config.status)
        self.assertEqual(config.modified_column, "modified")

    def test_status_flag_enables_default_convention(self) -> None:
        env = {"MINI_CRUD_STATUS": "yes", "MINI_CRUD_SANITIZE_FIELDS": "1"}
        with mock.patch.dict(os.environ, env, clear=True):
            config = CrudConfig.from_env()

        self.assertEqual(config.status.column, "datastateid")
        self.assertEqual(config.status.deleted, 2)
        self.assertTrue(config.sanitize_fields)
        self.assertFalse(config.log_queries)

    def test_custom_status_column_and_values(self) -> None:
        env = {
            "MINI_CRUD_STATUS_COLUMN": "state",
            "MINI_CRUD_STATUS_ACTIVE": "live",
            "MINI_CRUD_STATUS_DELETED": "9",
            "MINI_CRUD_MODIFIED_COLUMN": "",
            "MINI_CRUD_ID_SUFFIX": "_id",
            "MINI_CRUD_SCHEMA": "sales",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            config = CrudConfig.from_env()

        self.assertEqual(config.status.column, "state")
        self.assertEqual(config.status.value(RecordStatus.ACTIVE), "live")
        self.assertEqual(config.status.deleted, 9)
        self.assertEqual(config.status.archived, 3)
        self.assertIsNone(config.modified_column)
        self.assertEqual((config.id_suffix, config.schema), ("_id", "sales"))

    def test_env_file_is_read_and_environment_wins(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            env_file = os.path.join(tmp, ".env")
            with open(env_file, "w", encoding="utf-8") as handle:
                handle.write("MINI_CRUD_LOG_QUERIES=true\nMINI_CRUD_SCHEMA=from_file\n")

            with mock.patch.dict(os.environ, {"MINI_CRUD_SCHEMA": "from_env"}, clear=True):
                config = CrudConfig.from_env(env_file)

        self.assertTrue(config.log_queries)
        self.assertEqual(config.schema, "from_env")


class ConnectionSettingsFromEnvTests(unittest.TestCase):
    def test_prefixed_variables_win_over_libpq_ones(self) -> None:
        env = {
            "MINI_CRUD_HOST": "db.internal",
            "PGHOST": "ignored",
            "PGPORT": "6543",
            "PGUSER": "app",
            "PGPASSWORD": "secret",
            "PGDATABASE": "shop",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = ConnectionSettings.from_env()

        self.assertEqual(settings.host, "db.internal")
        self.assertEqual(settings.port, 6543)
        self.assertEqual(
            settings.connect_kwargs(),
            {
                "host": "db.internal",
                "port": 6543,
                "user": "app",
                "dbname": "shop",
                "password": "secret",
            },
        )

    def test_sqlite_driver_settings(self) -> None:
        env = {
            "MINI_CRUD_DRIVER": "SQLite",
            "MINI_CRUD_SQLITE_PATH": "/tmp/crud.db",
            "MINI_CRUD_AUTOCOMMIT": "off",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = ConnectionSettings.from_env()

        self.assertEqual(settings.driver, "sqlite")
        self.assertEqual(settings.path, "/tmp/crud.db")
        self.assertFalse(settings.autocommit)

    def test_password_is_omitted_when_unset(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=True):
            settings = ConnectionSettings.from_env()

        self.assertNotIn("password", settings.connect_kwargs())
        self.assertEqual(settings.port, 5432)
        self.assertTrue(settings.autocommit)


if __name__ == "__main__":
    unittest.main()
