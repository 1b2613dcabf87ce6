"""This module provides the boundary between RowBOUND and the actual database drivers.

More specifically, this includes

- the `Driver` interface that all supported database systems implement. A driver owns exactly one connection and is
  responsible for executing statement text with bound parameters, as well as for listing tables and columns.
- the `ResultCursor`, which provides name-based access to the cells of a result set
- the errors that drivers raise in place of their native exceptions (`DatabaseServerError` and `DatabaseUserError`)

Drivers are not thread-safe. Each driver executes one statement at a time on its single connection and callers that
share a driver between threads have to serialize their accesses themselves.
"""

from __future__ import annotations

import abc
from collections.abc import Iterator, Sequence
from typing import Any, Optional, Protocol

from .. import util
from ..decoding import decode_text

ResultRow = tuple
"""Simple type alias to denote a single tuple from a result set."""

ResultSet = Sequence[ResultRow]
"""Simple type alias to denote the result relation of a query."""

BoundParameters = Sequence[Any]
"""Positional parameters of a statement. Their order matches the order of the placeholders in the statement text."""


class Cursor(Protocol):
    """Interface for database cursors that adhere to the Python Database API specification.

    This is not a complete representation and only focuses on the parts of the specification that are important for
    RowBOUND. All cursors of the supported drivers are compatible with this interface by default (since they are DB API
    2.0 cursor objects).

    See PEP 249 for details (https://peps.python.org/pep-0249/)
    """

    description: Optional[Sequence[Sequence[Any]]]
    rowcount: int

    @abc.abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def execute(self, operation: str, parameters: Optional[dict | Sequence] = None) -> Optional[Cursor]:
        raise NotImplementedError

    @abc.abstractmethod
    def fetchone(self) -> Optional[ResultRow]:
        raise NotImplementedError

    @abc.abstractmethod
    def fetchall(self) -> Optional[ResultSet]:
        raise NotImplementedError


class ResultRecord:
    """Name-based access to the cells of a single result row.

    Parameters
    ----------
    positions : dict[str, int]
        Maps each column name of the result set to its position in the row. Shared by all records of a cursor.
    row : ResultRow
        The raw row as returned by the driver
    """

    def __init__(self, positions: dict[str, int], row: ResultRow) -> None:
        self._positions = positions
        self._row = row

    def native(self, column: str) -> Any:
        """Provides the cell value exactly as it was converted by the driver, e.g. an *int* or a *datetime.date*.

        Raises
        ------
        KeyError
            If the column is not part of the result set
        """
        return self._row[self._positions[column]]

    def is_null(self, column: str) -> bool:
        return self.native(column) is None

    def text(self, column: str) -> str:
        """Provides the cell value as a string. *NULL* values become the empty string."""
        return decode_text(self.native(column))

    def __contains__(self, column: object) -> bool:
        return column in self._positions

    def __len__(self) -> int:
        return len(self._row)

    def __repr__(self) -> str:
        return str(self)

    def __str__(self) -> str:
        cells = ", ".join(f"{col}={self._row[pos]!r}" for col, pos in self._positions.items())
        return f"ResultRecord({cells})"


class ResultCursor:
    """The fully-fetched result set of a query along with its column names.

    Parameters
    ----------
    columns : Sequence[str]
        The names of the result columns, in the order of the cells in each row
    rows : ResultSet
        The raw result rows
    """

    def __init__(self, columns: Sequence[str], rows: ResultSet) -> None:
        self.columns: tuple[str, ...] = tuple(columns)
        self._positions = {col: pos for pos, col in enumerate(self.columns)}
        self._rows = list(rows)

    @staticmethod
    def from_cursor(cursor: Cursor) -> ResultCursor:
        """Fetches all rows of a DB API cursor that has just executed a query."""
        description = cursor.description or []
        columns = [col[0] for col in description]
        rows = cursor.fetchall() if description else []
        return ResultCursor(columns, rows or [])

    def rows(self) -> ResultSet:
        return list(self._rows)

    def __iter__(self) -> Iterator[ResultRecord]:
        return (ResultRecord(self._positions, row) for row in self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self) -> str:
        return str(self)

    def __str__(self) -> str:
        return f"ResultCursor({', '.join(self.columns)}; {len(self._rows)} rows)"


class Driver(abc.ABC):
    """A `Driver` is RowBOUND's logical abstraction of a connection to a physical database management system.

    Each driver provides the minimal functionality that the data access layer requires:

    - listing the tables of the current database and the columns (and their native types) of each table
    - executing data-modifying statements with positional parameters
    - executing queries with positional parameters and handing out their result sets

    Drivers translate the native exceptions of their client library into `DatabaseServerError` (problems on the server
    side, such as lost connections) and `DatabaseUserError` (problems with the statement, such as constraint
    violations). The data manager relies on this contract to distinguish driver failures from programming errors.

    Drivers are context managers. Leaving the context closes the connection.

    Parameters
    ----------
    system_name : str
        The name of the database system, mostly used to distinguish different drivers in a convenient manner.
    placeholder : str, optional
        The positional placeholder that is used for prepared statements. Some systems use `?`, while others use *%s*
        (the default).
    """

    def __init__(self, system_name: str, *, placeholder: str = "%s") -> None:
        self.system_name = system_name
        self.placeholder = placeholder
        self._closed = False

    @abc.abstractmethod
    def list_tables(self) -> Sequence[str]:
        """Fetches the names of all user-defined tables in the current database.

        Returns
        -------
        Sequence[str]
            The table names, in the order in which the database system reports them
        """
        raise NotImplementedError

    @abc.abstractmethod
    def describe_columns(self, table: str) -> Sequence[tuple[str, str]]:
        """Fetches all columns of the given table along with their native type names.

        Parameters
        ----------
        table : str
            A table of the current database

        Returns
        -------
        Sequence[tuple[str, str]]
            Pairs of *(column name, native type name)*, ordered according to the column position in the table.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def execute(self, statement: str, parameters: Optional[BoundParameters] = None) -> int:
        """Executes a data-modifying statement.

        Parameters
        ----------
        statement : str
            The statement text. Parameters are referenced through `placeholder` markers.
        parameters : Optional[BoundParameters], optional
            The parameter values, in the same order as the placeholders

        Returns
        -------
        int
            The number of affected rows, or -1 if the driver cannot determine it.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def query(self, statement: str, parameters: Optional[BoundParameters] = None) -> ResultCursor:
        """Executes a query and fetches its entire result set.

        Parameters
        ----------
        statement : str
            The query text. Parameters are referenced through `placeholder` markers.
        parameters : Optional[BoundParameters], optional
            The parameter values, in the same order as the placeholders

        Returns
        -------
        ResultCursor
            The result set
        """
        raise NotImplementedError

    @abc.abstractmethod
    def database_name(self) -> str:
        """Provides the name of the (logical) database that this driver is connected to."""
        raise NotImplementedError

    @abc.abstractmethod
    def cursor(self) -> Cursor:
        """Provides a cursor to execute arbitrary statements, e.g. to create tables.

        The cursor is owned by the driver and should not be closed by the caller.
        """
        raise NotImplementedError

    def close(self) -> None:
        """Closes the connection. Calling this method multiple times is safe."""
        if self._closed:
            return
        self._closed = True
        self._close_connection()

    @property
    def closed(self) -> bool:
        return self._closed

    @abc.abstractmethod
    def _close_connection(self) -> None:
        raise NotImplementedError

    def describe(self) -> util.jsondict:
        return {"system_name": self.system_name, "database": self.database_name(), "placeholder": self.placeholder}

    def __enter__(self) -> Driver:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        return str(self)

    def __str__(self) -> str:
        return f"{self.system_name} driver"


def error_message(statement: str, error: BaseException) -> str:
    """Generates the diagnostic message that drivers attach to their errors."""
    return "\n".join(
        [
            f"At {util.timestamp()}",
            "For statement:",
            statement,
            "Message:",
            str(error),
        ]
    )


class DriverError(RuntimeError):
    """Common base class of all errors raised by database drivers.

    Parameters
    ----------
    message : str, optional
        A textual description of the error. Can be left empty by default.
    context : Optional[object], optional
        Additional context information for when the error occurred, e.g. the native exception. Mainly intended for
        debugging purposes.
    """

    def __init__(self, message: str = "", context: Optional[object] = None) -> None:
        super().__init__(message)
        self.ctx = context


class DatabaseServerError(DriverError):
    """Indicates an error caused by the database server occured while executing a database operation.

    The error was **not** due to a mistake in the statement (such as an SQL syntax error or a constraint violation), but
    an infrastructure issue instead (such as a lost connection or an unreachable server).
    """

    def __init__(self, message: str = "", context: Optional[object] = None) -> None:
        super().__init__(message, context)


class DatabaseUserError(DriverError):
    """Indicates that a database operation failed due to an error on the user's end.

    The error could be due to an SQL syntax error, a value that cannot be converted to the column type, a constraint
    violation, etc.
    """

    def __init__(self, message: str = "", context: Optional[object] = None) -> None:
        super().__init__(message, context)
