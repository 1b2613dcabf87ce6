from __future__ import annotations

import unittest

from rowbound import LogicalType, SchemaCatalog, TableSchema
from rowbound.db import DatabaseServerError, duckdb
from rowbound.errors import SchemaIntrospectionFailure, UnknownColumn, UnknownTable
from tests import regression_suite


class LogicalTypeTests(unittest.TestCase):
    def test_native_type_names(self) -> None:
        expected = {
            "varchar(45)": LogicalType.String,
            "VARCHAR": LogicalType.String,
            "int(11)": LogicalType.Int,
            "bigint(20) unsigned": LogicalType.Int,
            "tinyint(1)": LogicalType.Int,
            "date": LogicalType.Date,
            "datetime": LogicalType.Date,
            "bit(1)": LogicalType.Bit,
            "enum('red','green')": LogicalType.Enum,
            "double": LogicalType.Double,
            "longblob": LogicalType.Blob,
            "float": LogicalType.Float,
            "text": LogicalType.Null,
            "json": LogicalType.Null,
        }
        for type_name, logical_type in expected.items():
            with self.subTest("Native type", type_name=type_name):
                self.assertEqual(LogicalType.from_native(type_name), logical_type)

    def test_first_matching_rule_wins(self) -> None:
        self.assertEqual(LogicalType.from_native("point"), LogicalType.Int)


class TableSchemaTests(unittest.TestCase):
    def test_column_order_is_preserved(self) -> None:
        schema = TableSchema.from_native("t", [("b", "int"), ("a", "varchar(10)"), ("c", "bit(1)")])
        self.assertEqual(list(schema.columns), ["b", "a", "c"])
        self.assertEqual(schema.type_of("a"), LogicalType.String)

    def test_duplicate_columns(self) -> None:
        with self.assertRaises(ValueError):
            TableSchema("t", [("a", LogicalType.Int), ("a", LogicalType.String)])

    def test_unknown_column(self) -> None:
        with self.assertRaises(UnknownColumn) as ctx:
            regression_suite.UsersSchema.type_of("email")
        self.assertEqual(ctx.exception.table, "users")
        self.assertEqual(ctx.exception.column, "email")


class SchemaCatalogTests(unittest.TestCase):
    def test_lookups(self) -> None:
        catalog = regression_suite.users_catalog()
        self.assertTrue(catalog.has_table("users"))
        self.assertIn("users", catalog)
        self.assertFalse(catalog.has_table("orders"))
        self.assertEqual(list(catalog.columns_of("users")), ["id", "name", "active"])
        self.assertEqual(catalog.resolve_type("users", "active"), LogicalType.Bit)

    def test_unknown_table(self) -> None:
        catalog = regression_suite.users_catalog()
        with self.assertRaises(UnknownTable):
            catalog.resolve_type("orders", "id")
        with self.assertRaises(UnknownTable):
            catalog.columns_of("orders")

    def test_empty_catalog(self) -> None:
        catalog = SchemaCatalog.empty()
        self.assertTrue(catalog.is_empty())
        self.assertEqual(len(catalog), 0)
        self.assertEqual(catalog.tables(), [])

    def test_duplicate_tables(self) -> None:
        with self.assertRaises(ValueError):
            SchemaCatalog([regression_suite.UsersSchema, regression_suite.UsersSchema])

    def test_json_export(self) -> None:
        exported = regression_suite.users_catalog().__json__()
        self.assertEqual(exported[0]["name"], "users")
        self.assertEqual([col["name"] for col in exported[0]["columns"]], ["id", "name", "active"])


class CatalogLoadTests(unittest.TestCase):
    def setUp(self) -> None:
        self.driver = regression_suite.users_database()

    def tearDown(self) -> None:
        self.driver.close()

    def test_load_from_database(self) -> None:
        catalog = SchemaCatalog.load(self.driver)
        self.assertEqual(catalog.tables(), ["files", "users"])
        self.assertEqual(catalog.table("users"), regression_suite.UsersSchema)
        self.assertEqual(list(catalog.columns_of("files")), ["id", "payload", "label", "created", "score"])
        self.assertEqual(catalog.resolve_type("files", "payload"), LogicalType.Blob)
        self.assertEqual(catalog.resolve_type("files", "created"), LogicalType.Date)
        self.assertEqual(catalog.resolve_type("files", "score"), LogicalType.Double)

    def test_failed_introspection(self) -> None:
        class BrokenDriver(duckdb.DuckDBDriver):
            def describe_columns(self, table: str):
                raise DatabaseServerError("connection lost")

        driver = BrokenDriver()
        driver.cursor().execute("CREATE TABLE t (a INTEGER)")
        with self.assertRaises(SchemaIntrospectionFailure) as ctx:
            SchemaCatalog.load(driver)
        self.assertIsInstance(ctx.exception.cause, DatabaseServerError)
        driver.close()


if __name__ == "__main__":
    unittest.main()
