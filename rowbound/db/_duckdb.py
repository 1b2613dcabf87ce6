# We name this file _duckdb instead of duckdb to avoid conflicts with the official duckdb package. Do not change this!
# The module is available in the __init__ of the db package under the duckdb name.
"""Contains the DuckDB implementation of the driver interface.

DuckDB is an embedded database system, i.e. it runs within the current process and does not require a server. This makes
it a convenient target for local work and for the test-suite: ``connect()`` without arguments provides a fresh in-memory
database.
"""

from __future__ import annotations

import textwrap
from collections.abc import Sequence
from pathlib import Path
from typing import Optional

from ._driver import (
    BoundParameters,
    Cursor,
    DatabaseServerError,
    DatabaseUserError,
    Driver,
    ResultCursor,
    error_message,
)


class DuckDBDriver(Driver):
    """Driver for DuckDB databases, either in-memory or stored in a database file.

    Parameters
    ----------
    database : str | Path, optional
        Path to the database file. Defaults to *:memory:*, which creates a private in-memory database.
    system_name : str, optional
        Description of the specific database, by default *DuckDB*
    read_only : bool, optional
        Whether the database file should be opened in read-only mode. Not supported for in-memory databases.
    """

    def __init__(self, database: str | Path = ":memory:", *, system_name: str = "DuckDB",
                 read_only: bool = False) -> None:
        import duckdb

        super().__init__(system_name, placeholder="?")
        self._database = str(database)
        try:
            self._cur = duckdb.connect(self._database, read_only=read_only)
        except duckdb.Error as e:
            raise DatabaseServerError(f"Could not open DuckDB database '{self._database}': {e}", e)

    def list_tables(self) -> Sequence[str]:
        query_template = textwrap.dedent("""
            SELECT table_name
            FROM information_schema.tables
            WHERE table_catalog = current_database()
                AND table_schema = current_schema()
                AND table_type = 'BASE TABLE'
            ORDER BY table_name
            """)
        result_set = self.query(query_template).rows()
        return [row[0] for row in result_set]

    def describe_columns(self, table: str) -> Sequence[tuple[str, str]]:
        query_template = textwrap.dedent("""
            SELECT column_name, data_type
            FROM information_schema.columns
            WHERE table_name = ?
                AND table_catalog = current_database()
                AND table_schema = current_schema()
            ORDER BY ordinal_position
            """)
        result_set = self.query(query_template, [table]).rows()
        return [(row[0], row[1]) for row in result_set]

    def execute(self, statement: str, parameters: Optional[BoundParameters] = None) -> int:
        self._run(statement, parameters)

        # DuckDB reports the number of affected rows as a single-row result set with a Count column
        result = self._cur.fetchone() if self._cur.description else None
        return int(result[0]) if result else -1

    def query(self, statement: str, parameters: Optional[BoundParameters] = None) -> ResultCursor:
        self._run(statement, parameters)
        return ResultCursor.from_cursor(self._cur)

    def database_name(self) -> str:
        self._cur.execute("SELECT current_database();")
        return self._cur.fetchone()[0]

    def cursor(self) -> Cursor:
        return self._cur

    def _close_connection(self) -> None:
        self._cur.close()

    def _run(self, statement: str, parameters: Optional[BoundParameters]) -> None:
        import duckdb

        try:
            if parameters:
                self._cur.execute(statement, list(parameters))
            else:
                self._cur.execute(statement)
        except (duckdb.OperationalError, duckdb.InternalError) as e:
            raise DatabaseServerError(error_message(statement, e), e)
        except duckdb.Error as e:
            raise DatabaseUserError(error_message(statement, e), e)

    def __str__(self) -> str:
        return f"{self.system_name} driver ({self._database})"


def connect(database: str | Path = ":memory:", *, read_only: bool = False,
            system_name: str = "DuckDB") -> DuckDBDriver:
    """Convenience function to open a DuckDB database.

    Parameters
    ----------
    database : str | Path, optional
        Path to the database file. Defaults to a new in-memory database.
    read_only : bool, optional
        Whether the database file should be opened in read-only mode.
    system_name : str, optional
        Description of the specific database, by default *DuckDB*

    Returns
    -------
    DuckDBDriver
        The driver, connected to the database

    Raises
    ------
    DatabaseServerError
        If the database cannot be opened
    """
    return DuckDBDriver(database, system_name=system_name, read_only=read_only)
