from __future__ import annotations

import os
import tempfile
import textwrap
import unittest

import rowbound
from rowbound import LogicalType, TableSchema, statements
from rowbound.coercion import coerce
from rowbound.db import DatabaseUserError, ResultCursor, duckdb, mysql, postgres
from tests import regression_suite

mysql_config_file = ".mysql_connection.config"

StockSchema = TableSchema("stock", [("in%stock", LogicalType.Int), ("name", LogicalType.String)])


class MysqlConfigTests(unittest.TestCase):
    def _write_config(self, contents: str) -> str:
        fd, path = tempfile.mkstemp(suffix=".config")
        with os.fdopen(fd, "w") as config_file:
            config_file.write(textwrap.dedent(contents))
        self.addCleanup(os.remove, path)
        return path

    def test_full_config(self) -> None:
        path = self._write_config("""
            [MYSQL]
            User = rowbound
            Database = inventory
            Password = secret
            Host = db.example.com
            Port = 3307
            UseUnicode = yes
            Charset = utf8
            Autocommit = false
            SqlMode = ANSI,STRICT_TRANS_TABLES
            """)
        args = mysql._parse_mysql_connection(path)
        self.assertEqual(args, mysql.MysqlConnectionArguments(
            user="rowbound", database="inventory", password="secret", host="db.example.com", port=3307,
            use_unicode=True, charset="utf8", autocommit=False, sql_mode="ANSI,STRICT_TRANS_TABLES"))

    def test_defaults(self) -> None:
        path = self._write_config("""
            [MYSQL]
            User = rowbound
            Database = inventory
            """)
        args = mysql._parse_mysql_connection(path)
        self.assertEqual(args.host, "127.0.0.1")
        self.assertEqual(args.port, 3306)
        self.assertTrue(args.autocommit)
        self.assertEqual(args.sql_mode, "ANSI")

    def test_malformed_config(self) -> None:
        missing_section = self._write_config("""
            [POSTGRES]
            User = rowbound
            """)
        with self.assertRaises(ValueError):
            mysql._parse_mysql_connection(missing_section)

        no_section_header = self._write_config("""
            User = rowbound
            Database = inventory
            """)
        with self.assertRaises(ValueError):
            mysql._parse_mysql_connection(no_section_header)

        missing_database = self._write_config("""
            [MYSQL]
            User = rowbound
            """)
        with self.assertRaises(ValueError):
            mysql._parse_mysql_connection(missing_database)

    def test_missing_config_file(self) -> None:
        with self.assertRaises(ValueError):
            mysql.connect(config_file="this-file-does-not-exist.config")


class PostgresConfigTests(unittest.TestCase):
    def test_missing_config_file(self) -> None:
        with self.assertRaises(ValueError):
            postgres.connect(config_file="this-file-does-not-exist")

    def test_type_aliases(self) -> None:
        expected = {
            "character varying": LogicalType.String,
            "integer": LogicalType.Int,
            "double precision": LogicalType.Double,
            "real": LogicalType.Float,
            "bytea": LogicalType.Blob,
            "USER-DEFINED": LogicalType.Enum,
            "bit": LogicalType.Bit,
            "date": LogicalType.Date,
        }
        for type_name, logical_type in expected.items():
            with self.subTest("Postgres type", type_name=type_name):
                native = postgres._PostgresTypeAliases.get(type_name, type_name)
                self.assertEqual(LogicalType.from_native(native), logical_type)


class PostgresParameterTests(unittest.TestCase):
    def test_bit_values_are_sent_untyped(self) -> None:
        dumper = postgres._UntypedIntDumper(int)
        self.assertEqual(dumper.oid, 0)
        self.assertEqual(dumper.dump(coerce(LogicalType.Bit, "true")), b"1")
        self.assertEqual(dumper.dump(coerce(LogicalType.Bit, "no")), b"0")

    def test_percent_in_quoted_identifiers(self) -> None:
        catalog = regression_suite.users_catalog(StockSchema)
        statement = statements.update(catalog, "stock", {"in%stock": "3"}, {"name": "A%"})
        self.assertEqual(statement.text, 'UPDATE stock SET "in%stock" = %s WHERE name LIKE %s')
        self.assertEqual(postgres._escape_percent(statement.text),
                         'UPDATE stock SET "in%%stock" = %s WHERE name LIKE %s')

    def test_statements_without_quoted_identifiers(self) -> None:
        statement = statements.select(regression_suite.users_catalog(), "users", "*", {"id": "1"})
        self.assertEqual(postgres._escape_percent(statement.text), statement.text)
        self.assertEqual(postgres._escape_percent('SELECT "say ""100%""" FROM t WHERE a = %s'),
                         'SELECT "say ""100%%""" FROM t WHERE a = %s')


class DuckDBDriverTests(unittest.TestCase):
    def setUp(self) -> None:
        self.driver = duckdb.connect()
        self.driver.cursor().execute("CREATE TABLE t (a INTEGER, b VARCHAR)")

    def tearDown(self) -> None:
        self.driver.close()

    def test_introspection(self) -> None:
        self.assertEqual(self.driver.list_tables(), ["t"])
        self.assertEqual(self.driver.describe_columns("t"), [("a", "INTEGER"), ("b", "VARCHAR")])

    def test_execute_and_query(self) -> None:
        self.assertEqual(self.driver.execute("INSERT INTO t VALUES (?, ?), (?, ?)", [1, "x", 2, None]), 2)
        cursor = self.driver.query("SELECT a, b FROM t ORDER BY a")
        self.assertIsInstance(cursor, ResultCursor)
        self.assertEqual(cursor.columns, ("a", "b"))
        records = list(cursor)
        self.assertEqual(records[0].native("a"), 1)
        self.assertEqual(records[0].text("b"), "x")
        self.assertTrue(records[1].is_null("b"))
        self.assertEqual(records[1].text("b"), "")

    def test_user_errors(self) -> None:
        with self.assertRaises(DatabaseUserError) as ctx:
            self.driver.query("SELECT c FROM t")
        self.assertIn("SELECT c FROM t", str(ctx.exception))

    def test_close_is_idempotent(self) -> None:
        self.driver.close()
        self.driver.close()
        self.assertTrue(self.driver.closed)


@regression_suite.skip_if_no_db(mysql_config_file)
class MysqlScenarioTests(regression_suite.ResultTestCase):
    def setUp(self) -> None:
        driver = mysql.connect(config_file=mysql_config_file)
        cursor = driver.cursor()
        cursor.execute("DROP TABLE IF EXISTS users")
        cursor.execute("CREATE TABLE users (id INT PRIMARY KEY, name VARCHAR(45), active BIT(1))")
        self.manager = rowbound.DataManager(driver)

    def tearDown(self) -> None:
        self.manager.driver.cursor().execute("DROP TABLE IF EXISTS users")
        self.manager.close()

    def test_catalog(self) -> None:
        self.assertEqual(self.manager.type_of("users", "active"), LogicalType.Bit)
        self.assertEqual(self.manager.type_of("users", "name"), LogicalType.String)

    def test_users_scenario(self) -> None:
        self.manager.insert("users", [("id", "1"), ("name", "Ann"), ("active", "yes")]).unwrap()
        self.assertRowsEqual(self.manager.search("users", [("id", "1")], "*").unwrap(),
                             [{"id": "1", "name": "Ann", "active": "0"}])

        self.manager.update("users", [("name", "")], [("id", "1")]).unwrap()
        self.assertRowsEqual(self.manager.search("users", [("id", "1")]).unwrap(),
                             [{"id": "1", "name": "", "active": "0"}])

        self.manager.delete("users", [], confirm_unconditional=True).unwrap()
        self.assertEqual(self.manager.search("users").unwrap(), [])


if __name__ == "__main__":
    unittest.main()
