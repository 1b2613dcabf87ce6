"""Contains the Postgres implementation of the driver interface.

The statements that RowBOUND generates only use standard SQL features and can therefore be executed on Postgres just as
well. Still, the driver has to perform a couple of adaptions:

- Postgres reports type names in their SQL standard spelling (e.g. *character varying* or *double precision*). The
  driver translates these names into the spelling that the schema catalog expects (e.g. *VARCHAR* or *DOUBLE*), such
  that the logical types are derived correctly.
- *BIT* values are bound as the integers 1 and 0. Integer parameters are therefore sent without a type, which lets the
  server cast them to the type of the column they are compared with or assigned to.
- psycopg interprets every *%* in a parameterized statement. The driver escapes *%* characters in quoted identifiers
  before the statement is executed.
"""

from __future__ import annotations

import os
import re
import textwrap
import warnings
from collections.abc import Sequence
from pathlib import Path
from typing import Optional

import psycopg
import psycopg.adapt
import psycopg.rows

from ._driver import (
    BoundParameters,
    Cursor,
    DatabaseServerError,
    DatabaseUserError,
    Driver,
    ResultCursor,
    error_message,
)

_PostgresTypeAliases = {
    "character varying": "VARCHAR",
    "character": "CHAR",
    "text": "TEXT",
    "smallint": "SMALLINT",
    "integer": "INTEGER",
    "bigint": "BIGINT",
    "double precision": "DOUBLE",
    "real": "FLOAT",
    "bytea": "BLOB",
    "bit": "BIT",
    "bit varying": "VARBIT",
    "date": "DATE",
    "USER-DEFINED": "ENUM",
}
"""Translates the Postgres type names of the information_schema into the vocabulary of the schema catalog.

User-defined types are almost always enums in practice, so we treat them as such.
"""


class _UntypedIntDumper(psycopg.adapt.Dumper):
    """Sends integers as untyped literals, such that the server infers their type from the context.

    The coercion engine binds *BIT* values as the integers 1 and 0. Postgres only casts integers to *bit* explicitly, so a
    typed *int2* parameter would be rejected for comparisons and assignments to *bit* columns.
    """

    oid = 0

    def dump(self, obj: int) -> bytes:
        return str(int(obj)).encode()


_QuotedIdentifierPattern = re.compile(r'"(?:[^"]|"")*"')


def _escape_percent(statement: str) -> str:
    """Doubles all *%* characters in quoted identifiers, since psycopg reads them as parameter markers otherwise.

    Identifiers that contain a *%* are always quoted and values are never part of the statement text. Therefore, all
    other *%* characters belong to the placeholders.
    """
    return _QuotedIdentifierPattern.sub(lambda match: match.group(0).replace("%", "%%"), statement)


class PostgresDriver(Driver):
    """Driver for PostgreSQL servers, based on psycopg.

    Parameters
    ----------
    connect_string : str
        Connection string for `psycopg` to establish a connection to the Postgres server
    system_name : str, optional
        Description of the specific Postgres server, by default *Postgres*
    application_name : str, optional
        Identifier for the Postgres server. This will be the name that is shown in the server logs and process lists.
    client_encoding : str, optional
        The client encoding to use for the connection, by default *UTF8*
    timeout : Optional[int], optional
        Connect timeout in seconds. By default, libpq waits indefinitely.

    Raises
    ------
    DatabaseServerError
        If no connection can be established
    """

    def __init__(self, connect_string: str, system_name: str = "Postgres", *, application_name: str = "RowBOUND",
                 client_encoding: str = "UTF8", timeout: Optional[int] = None) -> None:
        super().__init__(system_name, placeholder="%s")
        self.connect_string = connect_string

        connect_args = {}
        if timeout is not None and timeout > 0:
            connect_args["connect_timeout"] = timeout
        try:
            self._connection: psycopg.Connection = psycopg.connect(
                connect_string,
                application_name=application_name or "RowBOUND",
                client_encoding=client_encoding,
                row_factory=psycopg.rows.tuple_row,
                autocommit=True,
                **connect_args,
            )
        except psycopg.Error as e:
            raise DatabaseServerError(f"Could not connect to Postgres: {e}", e)
        self._connection.adapters.register_dumper(int, _UntypedIntDumper)
        self._cursor: psycopg.Cursor = self._connection.cursor()

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
            WHERE table_name = %s
                AND table_catalog = current_database()
                AND table_schema = current_schema()
            ORDER BY ordinal_position
            """)
        result_set = self.query(query_template, (table,)).rows()
        return [(row[0], _PostgresTypeAliases.get(row[1], row[1])) for row in result_set]

    def execute(self, statement: str, parameters: Optional[BoundParameters] = None) -> int:
        self._run(statement, parameters)
        return self._cursor.rowcount

    def query(self, statement: str, parameters: Optional[BoundParameters] = None) -> ResultCursor:
        self._run(statement, parameters)
        return ResultCursor.from_cursor(self._cursor)

    def database_name(self) -> str:
        self._cursor.execute("SELECT CURRENT_DATABASE();")
        return self._cursor.fetchone()[0]

    def cursor(self) -> Cursor:
        return self._cursor

    def _close_connection(self) -> None:
        self._cursor.close()
        self._connection.close()

    def _run(self, statement: str, parameters: Optional[BoundParameters]) -> None:
        try:
            if parameters:
                self._cursor.execute(_escape_percent(statement), list(parameters))
            else:
                self._cursor.execute(statement)
        except (psycopg.InternalError, psycopg.OperationalError) as e:
            raise DatabaseServerError(error_message(statement, e), e)
        except psycopg.Error as e:
            raise DatabaseUserError(error_message(statement, e), e)


def _read_connect_string(config_file: str | Path) -> str:
    config_file = Path(config_file)
    if not config_file.is_file():
        wdir = os.getcwd()
        raise ValueError(
            f"Failed to obtain a database connection. Tried to read the config file '{config_file}' from "
            f"your current working directory, but the file was not found. Your working directory is {wdir}. "
            "Please either supply the connect string directly to the connect() method, or ensure that the "
            "config file exists."
        )
    with open(config_file, "r") as f:
        return f.readline().strip()


def connect(*, connect_string: str = "", config_file: str | Path = "", application_name: str = "RowBOUND",
            encoding: str = "UTF8", timeout: Optional[int] = None, system_name: str = "Postgres") -> PostgresDriver:
    """Convenience function to connect to a Postgres instance.

    This function obtains the connect string by trying the following methods in order:

    1. if the connect-string is supplied directly via the `connect_string` parameter, this is used
    2. the connect string is read from the `config_file` if this parameter is supplied. If the file does not exist, an
       error is raised.
    3. the connect string is read from the default connection file *.psycopg_connection* in the current working directory
    4. the connection parameters are read from the standard Postgres environment variables (e.g. *PGDATABASE*, *PGHOST*,
       ...). This method is triggered via the presence of the *PGDATABASE* environment variable. A warning is emitted if
       this method is used, due to its implicit nature.

    If none of these methods worked, an error is raised.

    Parameters
    ----------
    connect_string : str, optional
        A Psycopg-compatible connect string for the database. Supplying this parameter overwrites any other connection
        information
    config_file : str | Path, optional
        A file containing a Psycopg-compatible connect string for the database.
    application_name : str, optional
        Identifier for the Postgres server. This will be the name that is shown in the server logs and process lists.
    encoding : str, optional
        The client enconding of the connection. Defaults to *UTF8*.
    timeout : Optional[int], optional
        Connect timeout in seconds.
    system_name : str, optional
        Description of the specific Postgres server, by default *Postgres*

    Returns
    -------
    PostgresDriver
        The driver, connected to the server

    Raises
    ------
    ValueError
        If no connect string can be obtained
    DatabaseServerError
        If the server cannot be reached

    References
    ----------

    .. Psyopg v3: https://www.psycopg.org/psycopg3/
    .. Postgres environment variables: https://www.postgresql.org/docs/current/libpq-envars.html
    """
    if connect_string:
        connect_string = connect_string.strip()
    elif config_file:
        connect_string = _read_connect_string(config_file)
    elif Path(".psycopg_connection").is_file():
        connect_string = _read_connect_string(".psycopg_connection")
    elif os.getenv("PGDATABASE"):
        warnings.warn("Using environment variables to construct connection string.")
        env_vars = {
            "PGDATABASE": "dbname",
            "PGHOST": "host",
            "PGPORT": "port",
            "PGUSER": "user",
            "PGPASSWORD": "password",
            "PGPASSFILE": "passfile",
        }
        components: list[str] = []
        for var, key in env_vars.items():
            val = os.getenv(var)
            if not val:
                continue
            components.append(f"{key} = '{val}'")
        connect_string = " ".join(components)
    else:
        raise ValueError(
            "Failed to obtain a database connection. Please either supply the connect string directly to the "
            "connect() method, or put a configuration file in your working directory. See the documentation of "
            "the connect() method for more details."
        )

    return PostgresDriver(connect_string, system_name=system_name, application_name=application_name,
                          client_encoding=encoding, timeout=timeout)
