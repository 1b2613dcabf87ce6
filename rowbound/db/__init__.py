"""The `db` package contains the boundary between RowBOUND and the actual database systems.

The central entrypoint is the abstract `Driver` class. A driver owns a single connection and provides the few pieces of
functionality that the data access layer needs: listing tables, describing the columns of a table, and executing
statements with positional parameters. Everything else (building statements, binding values, decoding results) happens
in the upper layers and is independent of the specific database system.

Each supported system lives in its own module, which also provides a ``connect()`` function that reads the connection
settings from the usual places (function arguments, config files, environment variables):

- `mysql` connects to MySQL servers. MySQL is the target system of RowBOUND.
- `postgres` connects to PostgreSQL servers.
- `duckdb` opens embedded DuckDB databases (in-memory by default), which is mostly used for local work and testing.
"""

from __future__ import annotations

from . import _duckdb as duckdb
from . import mysql, postgres
from ._driver import (
    BoundParameters,
    Cursor,
    DatabaseServerError,
    DatabaseUserError,
    Driver,
    DriverError,
    ResultCursor,
    ResultRecord,
    ResultSet,
)

__all__ = [
    "mysql",
    "postgres",
    "duckdb",
    "BoundParameters",
    "Cursor",
    "Driver",
    "DriverError",
    "DatabaseServerError",
    "DatabaseUserError",
    "ResultCursor",
    "ResultRecord",
    "ResultSet",
]
