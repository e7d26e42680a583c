from __future__ import annotations

import unittest

from mini_crud.core.query_builder import (
    compile_columns_lookup,
    compile_delete,
    compile_insert,
    compile_select,
    compile_update,
    primary_key,
)
from mini_crud.core.status import RecordStatus, StatusConvention
from mini_crud.ports.db_api.dialects import (
    Dialect,
    PostgresDialect,
    PostgresNumericDialect,
    SQLiteDialect,
)

STATUS = StatusConvention(
    column="datastateid",
    values={RecordStatus.ACTIVE: 1, RecordStatus.DELETED: 2, RecordStatus.ARCHIVED: 3},
)


class _QmarkDialect(Dialect):
    paramstyle = "qmark"
    supports_returning = True


class SelectCompilationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.d = PostgresNumericDialect()

    def test_select_without_filter_or_status(self) -> None:
        compiled = compile_select(self.d, "orders")
        self.assertEqual(compiled.sql, 'SELECT * FROM "orders"')
        self.assertIsNone(compiled.params)

    def test_select_filters_are_anded_with_numbered_placeholders(self) -> None:
        compiled = compile_select(self.d, "orders", {"qty": 5, "name": "pen"})
        self.assertEqual(
            compiled.sql, 'SELECT * FROM "orders" WHERE qty = $1 AND name = $2'
        )
        self.assertEqual(compiled.params, [5, "pen"])

    def test_select_appends_active_status_when_not_filtered(self) -> None:
        compiled = compile_select(self.d, "orders", {"qty": 5}, status=STATUS)
        self.assertEqual(
            compiled.sql,
            'SELECT * FROM "orders" WHERE qty = $1 AND datastateid = 1',
        )
        self.assertEqual(compiled.params, [5])

    def test_select_without_filter_still_filters_active_rows(self) -> None:
        compiled = compile_select(self.d, "orders", status=STATUS)
        self.assertEqual(compiled.sql, 'SELECT * FROM "orders" WHERE datastateid = 1')

    def test_explicit_status_filter_replaces_implicit_one(self) -> None:
        compiled = compile_select(self.d, "orders", {"datastateid": 2}, status=STATUS)
        self.assertEqual(compiled.sql, 'SELECT * FROM "orders" WHERE datastateid = $1')
        self.assertEqual(compiled.params, [2])

    def test_status_omitted_when_convention_disabled(self) -> None:
        compiled = compile_select(self.d, "orders", {"qty": 5}, status=None)
        self.assertNotIn("datastateid", compiled.sql)

    def test_order_by_is_appended_verbatim(self) -> None:
        compiled = compile_select(self.d, "orders", {"qty": 5}, order_by="created DESC, qty")
        self.assertEqual(
            compiled.sql,
            'SELECT * FROM "orders" WHERE qty = $1 ORDER BY created DESC, qty',
        )

    def test_none_filter_value_compiles_to_is_null(self) -> None:
        compiled = compile_select(self.d, "orders", {"note": None, "qty": 1})
        self.assertEqual(
            compiled.sql, 'SELECT * FROM "orders" WHERE note IS NULL AND qty = $1'
        )
        self.assertEqual(compiled.params, [1])

    def test_string_status_values_are_quoted(self) -> None:
        status = StatusConvention(column="state", values={RecordStatus.ACTIVE: "it's on"})
        compiled = compile_select(self.d, "orders", status=status)
        self.assertEqual(compiled.sql, "SELECT * FROM \"orders\" WHERE state = 'it''s on'")

    def test_named_and_format_paramstyles(self) -> None:
        named = compile_select(SQLiteDialect(), "orders", {"qty": 5, "unit price": 2})
        self.assertEqual(
            named.sql,
            'SELECT * FROM "orders" WHERE qty = :qty_1 AND unit price = :unit_price_2',
        )
        self.assertEqual(named.params, {"qty_1": 5, "unit_price_2": 2})

        fmt = compile_select(PostgresDialect(), "orders", {"qty": 5})
        self.assertEqual(fmt.sql, 'SELECT * FROM "orders" WHERE qty = %s')
        self.assertEqual(fmt.params, [5])

        qmark = compile_select(_QmarkDialect(), "orders", {"qty": 5})
        self.assertEqual(qmark.sql, 'SELECT * FROM "orders" WHERE qty = ?')


class InsertCompilationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.d = PostgresNumericDialect()

    def test_plain_insert_has_no_conflict_clause(self) -> None:
        compiled = compile_insert(self.d, "orders", {"a": 1, "b": "x"}, pk="ordersid")
        self.assertEqual(
            compiled.sql,
            'INSERT INTO "orders" (a,b) VALUES ($1,$2) RETURNING ordersid',
        )
        self.assertEqual(compiled.params, [1, "x"])
        self.assertNotIn("ON CONFLICT", compiled.sql)

    def test_plain_insert_ignores_status_convention(self) -> None:
        compiled = compile_insert(
            self.d, "orders", {"a": 1}, pk="ordersid", status=STATUS
        )
        self.assertNotIn("ON CONFLICT", compiled.sql)
        self.assertNotIn("datastateid", compiled.sql)

    def test_upsert_updates_only_named_columns(self) -> None:
        compiled = compile_insert(
            self.d,
            "orders",
            {"sku": "A-1", "qty": 3, "name": "pen"},
            pk="ordersid",
            conflict=["sku"],
            conflict_update=["qty"],
        )
        self.assertEqual(
            compiled.sql,
            'INSERT INTO "orders" (sku,qty,name) VALUES ($1,$2,$3) '
            "ON CONFLICT (sku) DO UPDATE SET qty = EXCLUDED.qty RETURNING ordersid",
        )

    def test_upsert_reasserts_active_status(self) -> None:
        compiled = compile_insert(
            self.d,
            "orders",
            {"sku": "A-1", "qty": 3},
            pk="ordersid",
            conflict=["sku", "region"],
            conflict_update=["qty"],
            status=STATUS,
        )
        self.assertTrue(
            compiled.sql.endswith(
                "ON CONFLICT (sku,region) DO UPDATE SET qty = EXCLUDED.qty, "
                "datastateid = 1 RETURNING ordersid"
            )
        )

    def test_upsert_keeps_explicit_status(self) -> None:
        compiled = compile_insert(
            self.d,
            "orders",
            {"sku": "A-1", "datastateid": 3},
            pk="ordersid",
            conflict=["sku"],
            conflict_update=["datastateid"],
            status=STATUS,
        )
        self.assertIn(
            "DO UPDATE SET datastateid = EXCLUDED.datastateid RETURNING", compiled.sql
        )
        self.assertNotIn("datastateid = 1", compiled.sql)

    def test_raw_conflict_target_and_do_nothing(self) -> None:
        compiled = compile_insert(
            self.d,
            "orders",
            {"sku": "A-1"},
            pk="ordersid",
            conflict="ON CONSTRAINT orders_sku_key",
        )
        self.assertEqual(
            compiled.sql,
            'INSERT INTO "orders" (sku) VALUES ($1) '
            "ON CONFLICT ON CONSTRAINT orders_sku_key DO NOTHING RETURNING ordersid",
        )

    def test_empty_conflict_list_is_plain_insert(self) -> None:
        compiled = compile_insert(
            self.d, "orders", {"sku": "A-1"}, pk="ordersid", conflict=[]
        )
        self.assertNotIn("ON CONFLICT", compiled.sql)

    def test_insert_without_columns_raises(self) -> None:
        with self.assertRaises(ValueError):
            compile_insert(self.d, "orders", {}, pk="ordersid")

    def test_returning_is_omitted_without_dialect_support(self) -> None:
        compiled = compile_insert(Dialect(), "orders", {"a": 1}, pk="ordersid")
        self.assertEqual(compiled.sql, 'INSERT INTO "orders" (a) VALUES (:a_1)')


class UpdateCompilationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.d = PostgresNumericDialect()

    def test_scalar_key_update(self) -> None:
        compiled = compile_update(self.d, "orders", 7, {"qty": 4}, pk="ordersid")
        self.assertEqual(
            compiled.sql,
            'UPDATE "orders" SET modified = now(), qty = $1 '
            "WHERE ordersid = $2 RETURNING *",
        )
        self.assertEqual(compiled.params, [4, 7])

    def test_composite_key_is_anded(self) -> None:
        compiled = compile_update(
            self.d,
            "order_lines",
            {"orderid": 7, "line": 2},
            {"qty": 4},
            pk="order_linesid",
        )
        self.assertEqual(
            compiled.sql,
            'UPDATE "order_lines" SET modified = now(), qty = $1 '
            "WHERE orderid = $2 AND line = $3 RETURNING *",
        )
        self.assertEqual(compiled.params, [4, 7, 2])

    def test_status_is_reasserted_as_bound_parameter(self) -> None:
        compiled = compile_update(
            self.d, "orders", 7, {"qty": 4}, pk="ordersid", status=STATUS
        )
        self.assertEqual(
            compiled.sql,
            'UPDATE "orders" SET modified = now(), qty = $1, datastateid = $2 '
            "WHERE ordersid = $3 RETURNING *",
        )
        self.assertEqual(compiled.params, [4, 1, 7])

    def test_explicit_status_and_modified_are_not_duplicated(self) -> None:
        compiled = compile_update(
            self.d,
            "orders",
            7,
            {"datastateid": 3, "modified": "2024-01-01"},
            pk="ordersid",
            status=STATUS,
        )
        self.assertEqual(compiled.sql.count("datastateid"), 1)
        self.assertNotIn("now()", compiled.sql)

    def test_modified_stamp_can_be_disabled_and_follows_dialect(self) -> None:
        compiled = compile_update(
            self.d, "orders", 7, {"qty": 4}, pk="ordersid", modified_column=None
        )
        self.assertEqual(
            compiled.sql, 'UPDATE "orders" SET qty = $1 WHERE ordersid = $2 RETURNING *'
        )
        sqlite = compile_update(SQLiteDialect(), "orders", 7, {"qty": 4}, pk="ordersid")
        self.assertIn("modified = CURRENT_TIMESTAMP", sqlite.sql)
        self.assertEqual(sqlite.params, {"qty_1": 4, "ordersid_2": 7})

    def test_invalid_updates_raise(self) -> None:
        with self.assertRaises(ValueError):
            compile_update(self.d, "orders", {}, {"qty": 1}, pk="ordersid")
        with self.assertRaises(ValueError):
            compile_update(
                self.d, "orders", 1, {}, pk="ordersid", modified_column=None
            )


class DeleteAndLookupCompilationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.d = PostgresNumericDialect()

    def test_soft_delete_is_an_update(self) -> None:
        compiled = compile_delete(
            self.d, "orders", 9, id_field="ordersid", status=STATUS
        )
        self.assertEqual(
            compiled.sql, 'UPDATE "orders" SET datastateid = 2 WHERE ordersid = $1'
        )
        self.assertEqual(compiled.params, [9])
        self.assertFalse(compiled.sql.startswith("DELETE"))

    def test_hard_delete_without_status(self) -> None:
        compiled = compile_delete(self.d, "orders", 9, id_field="sku")
        self.assertEqual(compiled.sql, 'DELETE FROM "orders" WHERE sku = $1')

    def test_columns_lookup_postgres(self) -> None:
        compiled = compile_columns_lookup(self.d, "orders")
        self.assertEqual(
            compiled.sql,
            "SELECT * FROM information_schema.columns "
            "WHERE table_schema = 'public' AND table_name = $1",
        )
        self.assertEqual(compiled.params, ["orders"])

    def test_columns_lookup_sqlite(self) -> None:
        compiled = compile_columns_lookup(SQLiteDialect(), "orders")
        self.assertEqual(
            compiled.sql,
            "SELECT name AS column_name, type AS data_type "
            "FROM pragma_table_info(:table_name_1)",
        )
        self.assertEqual(compiled.params, {"table_name_1": "orders"})

    def test_primary_key_naming(self) -> None:
        self.assertEqual(primary_key("orders"), "ordersid")
        self.assertEqual(primary_key("orders", "_id"), "orders_id")


if __name__ == "__main__":
    unittest.main()
