from __future__ import annotations

import abc
import unittest
from collections.abc import Iterable, Mapping, Sequence

from rowbound import LogicalType, SchemaCatalog, Statement, TableSchema
from rowbound.db import DriverError, duckdb, mysql


UsersSchema = TableSchema("users", [("id", LogicalType.Int), ("name", LogicalType.String), ("active", LogicalType.Bit)])
"""The schema that most tests are built around: ``users(id INT, name VARCHAR, active BIT)``."""


def users_catalog(*extra_tables: TableSchema) -> SchemaCatalog:
    return SchemaCatalog([UsersSchema, *extra_tables])


class BitColumnDriver(duckdb.DuckDBDriver):
    """In-memory DuckDB database that reports some of its integer columns as *BIT(1)* columns.

    DuckDB does not have a single-bit column type that behaves like the one of MySQL. Storing the bits in integer
    columns and patching the type names during schema introspection is close enough for our purposes.
    """

    def __init__(self, bit_columns: Iterable[str] = ("active",)) -> None:
        super().__init__()
        self.bit_columns = set(bit_columns)

    def describe_columns(self, table: str) -> Sequence[tuple[str, str]]:
        return [(column, "BIT(1)" if column in self.bit_columns else type_name)
                for column, type_name in super().describe_columns(table)]


def users_database(rows: Iterable[tuple] = ()) -> BitColumnDriver:
    """Creates an in-memory database with the *users* table (and a *files* table for binary payloads)."""
    driver = BitColumnDriver()
    cursor = driver.cursor()
    cursor.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name VARCHAR, active INTEGER)")
    cursor.execute("CREATE TABLE files (id INTEGER, payload BLOB, label VARCHAR, created DATE, score DOUBLE)")
    for row in rows:
        cursor.execute("INSERT INTO users VALUES (?, ?, ?)", list(row))
    return driver


def _normalize_statement(statement: object) -> str:
    return " ".join(str(statement).split()).removesuffix(";").strip()


def _stringify_rows(rows: Sequence[Mapping]) -> str:
    if len(rows) > 5:
        return f"result ({len(rows)} rows total) :: first 5 = {list(rows[:5])}"
    return f"result ({len(rows)} rows) :: contents = {list(rows)}"


class StatementTestCase(unittest.TestCase, abc.ABC):
    """Abstract test case that provides assertions on the text and parameters of generated statements."""

    def assertStatementsEqual(self, actual: Statement, expected_text: str, expected_parameters: Sequence = (),
                              message: str = "") -> None:
        """Assertion that fails if the statement differs from the expected text or parameters.

        Whitespace is normalized and a trailing semicolon is ignored. Everything else (including upper/lowercase and
        quotes) has to match exactly. Parameters have to match in value and order.
        """
        self.assertEqual(_normalize_statement(actual.text), _normalize_statement(expected_text), message)
        self.assertEqual(tuple(actual.parameters), tuple(expected_parameters), message)


class ResultTestCase(unittest.TestCase, abc.ABC):
    """Abstract test case that provides assertions on the decoded rows of actually executed searches."""

    def assertRowsEqual(self, actual: Sequence[Mapping], expected: Sequence[Mapping], *, ordered: bool = False) -> None:
        """Assertion that fails if the two row lists differ.

        Ordering can be accounted for by the `ordered` argument. By default, rows are compared as unordered multisets.
        """
        if len(actual) != len(expected):
            raise AssertionError(f"Results have different length: {_stringify_rows(actual)} and "
                                 f"{_stringify_rows(expected)}")

        actual_rows = [sorted(row.items()) for row in actual]
        expected_rows = [sorted(row.items()) for row in expected]
        if not ordered:
            actual_rows.sort()
            expected_rows.sort()
        if actual_rows != expected_rows:
            raise AssertionError(f"Results differ: {_stringify_rows(actual)} vs. {_stringify_rows(expected)}")


def skip_if_no_db(config_file: str):
    """Decorator to conditionally skip a test if a database connection cannot be established.

    Parameters
    ----------
    config_file : str
        The config file that describes the connection to the MySQL server. Must be compatible with mysql.connect()
    """
    try:
        driver = mysql.connect(config_file=config_file)
        driver.close()
        return lambda f: f
    except (DriverError, ValueError):
        return unittest.skip(f"Cannot connect to database with config file '{config_file}'")
