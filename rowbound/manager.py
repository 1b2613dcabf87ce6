"""The data manager is the public entrypoint of RowBOUND.

A `DataManager` owns a single database connection (represented by a `Driver`) along with the schema catalog that was
loaded when the connection was established. All of its operations follow the same procedure: the input is validated
against the catalog, the statement is built, executed by the driver and (for searches) the result rows are decoded.

Operations never raise across the public boundary. Instead, each operation returns an `Outcome` and failures are also
appended to the manager's `ErrorLog`. This includes failures that occur while the manager is created: if the connection
cannot be established or the schema cannot be loaded, the manager is still created, but it is not healthy and all
subsequent operations fail. Use `DataManager.is_healthy` to check for this situation.

Data managers are not thread-safe. Each manager executes one statement at a time on its connection and callers that
share a manager between threads have to serialize their accesses themselves. Since statement construction itself is
free of shared state, it is perfectly fine to use independent managers from different threads.
"""

from __future__ import annotations

import functools
import warnings
from collections.abc import Callable, Iterable
from typing import Optional, TypeVar

from . import db, statements, util
from ._core import LogicalType, OperationKind, WhereMode
from .catalog import SchemaCatalog, TableSchema
from .db import Driver, DriverError, ResultCursor
from .decoding import CellDecodeError, decode_bytes
from .errors import (
    ConnectFailure,
    DataAccessError,
    ErrorLog,
    ErrorRecord,
    FailureTypes,
    Outcome,
    SchemaIntrospectionFailure,
)
from .predicates import PredicateInput, conditions
from .statements import Assignment, BinaryAssignment, Statement

T = TypeVar("T")

ResultRow = dict[str, str]
"""A decoded result row of a regular search, mapping column names to the text form of each cell."""

ByteRow = dict[str, bytes]
"""A decoded result row of a byte search. Cells that cannot be encoded are missing from the row."""

Connector = Callable[[], Driver]
"""A function that establishes a new connection, e.g. ``db.duckdb.connect``."""


class DataManager:
    """Executes schema-checked inserts, updates, deletes and searches on a single database connection.

    Parameters
    ----------
    driver : Driver | Connector
        Either an already established connection, or a function that establishes the connection. Using a connector
        ensures that connection failures are recorded in the error log just like any other failure.
    debug : bool, optional
        Whether each statement should be logged (along with its parameters) to stderr. Off by default.
    guard_unconditional_delete : bool, optional
        Whether deletes without any predicate require an explicit confirmation. Off by default, i.e. deleting with an
        empty predicate removes all rows of the table.

    Notes
    -----
    The manager closes the connection when it is used as a context manager. Otherwise, `close` has to be called
    explicitly.

    Examples
    --------
    >>> with DataManager(db.duckdb.connect) as manager:
    ...     manager.insert("users", {"id": "1", "name": "Ann", "active": "true"})
    ...     rows = manager.search("users", {"id": "1"}).unwrap()
    """

    def __init__(self, driver: Driver | Connector, *, debug: bool = False,
                 guard_unconditional_delete: bool = False) -> None:
        self.debug = debug
        self.guard_unconditional_delete = guard_unconditional_delete
        self._log = util.make_logger(debug, prefix=util.timestamp)
        self._errors = ErrorLog()
        self._driver: Optional[Driver] = None
        self._catalog = SchemaCatalog.empty()
        self._construction_failed = False

        try:
            self._driver = driver if isinstance(driver, Driver) else driver()
        except (DriverError, ValueError, OSError) as e:
            self._fail_construction(ConnectFailure(f"Could not connect to the database: {e}", cause=e))
            return

        try:
            self._catalog = SchemaCatalog.load(self._driver)
        except SchemaIntrospectionFailure as e:
            self._fail_construction(e)
            return

        self._log(f"Connected to {self._driver}, loaded {len(self._catalog)} tables")

    def _fail_construction(self, error: DataAccessError) -> None:
        self._construction_failed = True
        self._errors.record(OperationKind.Connect, error)
        self._log("Construction failed:", error)

    @property
    def catalog(self) -> SchemaCatalog:
        """Get the schema of the connected database. This is an empty catalog if the schema could not be loaded."""
        return self._catalog

    @property
    def driver(self) -> Optional[Driver]:
        """Get the connection of this manager. This is *None* if the connection could not be established."""
        return self._driver

    def is_healthy(self) -> bool:
        """Checks, whether the manager is ready to execute operations.

        This requires an open connection and a loaded schema catalog. A manager that encountered a failure during its
        construction never becomes healthy, even if the error log has been cleared in the meantime.
        """
        return self._driver is not None and not self._driver.closed and not self._construction_failed

    # Writes

    def insert(self, table: str, values: Assignment) -> Outcome[int]:
        """Inserts a single row into a table.

        Parameters
        ----------
        table : str
            The table to insert into
        values : Assignment
            The column values of the new row, either as a mapping or as *(column, value)* pairs. Columns that are not
            assigned receive their default value.

        Returns
        -------
        Outcome[int]
            The number of inserted rows if the insert succeeded. The failure is an `InsertFailure` if there is nothing
            to insert or the database rejected the statement, or an `UnknownTable` / `UnknownColumn`.
        """
        return self.insert_mixed(table, values, None)

    def insert_mixed(self, table: str, values: Optional[Assignment],
                     binary: Optional[BinaryAssignment]) -> Outcome[int]:
        """Inserts a single row with text-valued as well as byte-valued columns.

        See `insert` for details. Byte values are written as they are, independent of the column type.
        """
        return self._perform(OperationKind.Insert, lambda: self._write(
            OperationKind.Insert, self._build(OperationKind.Insert, statements.insert, table, values, binary)))

    def update(self, table: str, values: Assignment, where: PredicateInput) -> Outcome[int]:
        """Updates all rows that match an *AND*-joined predicate.

        Assigning the empty string to a column sets it to *NULL*.

        Parameters
        ----------
        table : str
            The table to update
        values : Assignment
            The new column values
        where : PredicateInput
            The conditions that the updated rows have to satisfy. An empty predicate updates all rows.

        Returns
        -------
        Outcome[int]
            The number of updated rows if the update succeeded.
        """
        return self.update_mixed(table, values, None, where)

    def update_mixed(self, table: str, values: Optional[Assignment], binary: Optional[BinaryAssignment],
                     where: PredicateInput) -> Outcome[int]:
        """Updates rows with text-valued as well as byte-valued columns. See `update` for details."""
        return self._perform(OperationKind.Update, lambda: self._write(
            OperationKind.Update, self._build(OperationKind.Update, statements.update, table, values, where, binary)))

    def delete(self, table: str, where: PredicateInput = None, *, confirm_unconditional: bool = False) -> Outcome[int]:
        """Deletes all rows that match an *AND*-joined predicate.

        Parameters
        ----------
        table : str
            The table to delete from
        where : PredicateInput, optional
            The conditions that the deleted rows have to satisfy. **An empty predicate deletes all rows of the table.**
        confirm_unconditional : bool, optional
            Acknowledges that an empty predicate is intended. This is required if the manager guards unconditional
            deletes and silences the corresponding warning otherwise.

        Returns
        -------
        Outcome[int]
            The number of deleted rows if the delete succeeded.
        """
        def _delete() -> int:
            statement = self._build(OperationKind.Delete, statements.delete, table, where)
            if conditions(where) or confirm_unconditional:
                return self._write(OperationKind.Delete, statement)
            if self.guard_unconditional_delete:
                raise FailureTypes[OperationKind.Delete](
                    f"Refusing to delete all rows of table '{table}' without confirmation")
            warnings.warn(f"Deleting all rows of table '{table}'")
            return self._write(OperationKind.Delete, statement)

        return self._perform(OperationKind.Delete, _delete)

    def delete_where_greater_than(self, table: str, where: PredicateInput) -> Outcome[int]:
        """Deletes all rows whose columns are strictly greater than the given values.

        In contrast to the other operations, the values are compared without considering the column types (they are
        always bound as they are and compared using *>*). Whether the comparison is numeric or lexicographic is up to
        the database system.
        """
        return self._perform(OperationKind.Delete, lambda: self._write(
            OperationKind.Delete, self._build(OperationKind.Delete, statements.delete_greater_than, table, where)))

    # Searches

    def search(self, table: str, where: PredicateInput = None,
               columns: str | Iterable[str] = "*") -> Outcome[list[ResultRow]]:
        """Searches for all rows that satisfy all conditions of the predicate.

        Conditions on *VARCHAR* columns are pattern matches (*LIKE*), all other conditions are equality comparisons.

        Parameters
        ----------
        table : str
            The table to search
        where : PredicateInput, optional
            The search conditions. An empty predicate produces all rows.
        columns : str | Iterable[str], optional
            The columns of the result rows. Defaults to ``"*"``, which produces all columns.

        Returns
        -------
        Outcome[list[ResultRow]]
            The matching rows. *NULL* cells are represented by empty strings.
        """
        return self._search(table, where, columns, WhereMode.AllAnd)

    def search_any(self, table: str, where: PredicateInput = None,
                   columns: str | Iterable[str] = "*") -> Outcome[list[ResultRow]]:
        """Searches for all rows that satisfy at least one condition of the predicate. See `search` for details."""
        return self._search(table, where, columns, WhereMode.AllOr)

    def search_mixed(self, table: str, where: PredicateInput = None,
                     columns: str | Iterable[str] = "*") -> Outcome[list[ResultRow]]:
        """Searches using a predicate with individual combinators.

        The combinator of each condition determines how it is linked to its predecessor. See `search` for details.
        """
        return self._search(table, where, columns, WhereMode.Mixed)

    def search_sorted(self, table: str, where: PredicateInput = None, *, sort_column: Optional[str] = None,
                      ascending: bool = True, limit: Optional[int] = None) -> Outcome[list[ResultRow]]:
        """Searches for all columns of the matching rows, optionally sorted and limited.

        Parameters
        ----------
        table : str
            The table to search
        where : PredicateInput, optional
            The search conditions, joined by *AND*
        sort_column : Optional[str], optional
            The column to sort the result by. An unknown column is ignored (with a warning).
        ascending : bool, optional
            The sort direction, ascending by default.
        limit : Optional[int], optional
            The maximum number of result rows. By default, all rows are returned.

        Returns
        -------
        Outcome[list[ResultRow]]
            The matching rows
        """
        def _search() -> list[ResultRow]:
            statement = self._build(OperationKind.Select, statements.select_sorted, table, where,
                                    sort_column=sort_column, ascending=ascending, limit=limit)
            return _text_rows(self._query(statement))

        return self._perform(OperationKind.Select, _search)

    def search_bytes(self, table: str, where: PredicateInput = None, columns: str | Iterable[str] = "*", *,
                     mode: WhereMode = WhereMode.AllAnd) -> Outcome[list[ByteRow]]:
        """Searches like `search`, but provides each cell in the byte encoding of its logical type.

        See the `decoding` module for the encodings. Cells that do not fit the encoding of their column are left out of
        their row, but the remaining cells of the row are still provided.
        """
        def _search() -> list[ByteRow]:
            statement = self._build(OperationKind.Select, statements.select, table, columns, where, mode)
            return self._byte_rows(self._catalog.table(table), self._query(statement))

        return self._perform(OperationKind.Select, _search)

    def _search(self, table: str, where: PredicateInput, columns: str | Iterable[str],
                mode: WhereMode) -> Outcome[list[ResultRow]]:
        def _run() -> list[ResultRow]:
            statement = self._build(OperationKind.Select, statements.select, table, columns, where, mode)
            return _text_rows(self._query(statement))

        return self._perform(OperationKind.Select, _run)

    # Schema inspection

    def has_table(self, table: str) -> bool:
        return self._catalog.has_table(table)

    def columns_of(self, table: str) -> list[str]:
        """Provides the columns of a table in their natural order.

        Raises
        ------
        UnknownTable
            If the table does not exist
        """
        return list(self._catalog.columns_of(table))

    def type_of(self, table: str, column: str) -> LogicalType:
        """Provides the logical type of a column.

        Raises
        ------
        UnknownTable
            If the table does not exist
        UnknownColumn
            If the column does not exist
        """
        return self._catalog.resolve_type(table, column)

    # Error inspection

    def all_errors(self) -> list[ErrorRecord]:
        """Provides all failures that were recorded since the manager was created or the log was last cleared."""
        return self._errors.records()

    def clear_errors(self) -> None:
        self._errors.clear()

    def error_messages(self) -> str:
        """Provides all recorded failures as text, one *Operation: message* line per failure."""
        return self._errors.messages()

    def describe(self) -> util.jsondict:
        """Provides a JSON-serializable summary of the manager: the connection, the schema and the recorded errors."""
        connection = self._driver.describe() if self.is_healthy() else None
        return {
            "healthy": self.is_healthy(),
            "connection": connection,
            "schema": self._catalog.__json__(),
            "errors": self._errors.__json__(),
        }

    def close(self) -> None:
        """Closes the connection. Calling this method multiple times is safe."""
        if self._driver is not None:
            self._driver.close()

    def __enter__(self) -> DataManager:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        return str(self)

    def __str__(self) -> str:
        state = "healthy" if self.is_healthy() else "unhealthy"
        return f"DataManager({self._driver or 'not connected'}, {state})"

    # Internals

    def _perform(self, operation: OperationKind, action: Callable[[], T]) -> Outcome[T]:
        try:
            value = action()
        except DataAccessError as e:
            self._errors.record(operation, e)
            self._log(f"{operation} failed:", e)
            return Outcome.failure(e)
        return Outcome.success(value)

    def _connection(self, operation: OperationKind) -> Driver:
        if self._driver is None:
            raise FailureTypes[operation]("Not connected to a database")
        if self._driver.closed:
            raise FailureTypes[operation]("The connection has already been closed")
        return self._driver

    def _build(self, operation: OperationKind, builder: Callable[..., Statement], *args, **kwargs) -> Statement:
        driver = self._connection(operation)
        try:
            return builder(self._catalog, *args, placeholder=driver.placeholder, **kwargs)
        except ValueError as e:
            raise FailureTypes[operation](str(e), cause=e) from e

    def _write(self, operation: OperationKind, statement: Statement) -> int:
        driver = self._connection(operation)
        self._log(f"{operation}:", statement.text, list(statement.parameters))
        try:
            return driver.execute(statement.text, statement.parameters)
        except DriverError as e:
            raise FailureTypes[operation](f"Could not execute '{statement}': {e.ctx or e}", cause=e) from e

    def _query(self, statement: Statement) -> ResultCursor:
        driver = self._connection(OperationKind.Select)
        self._log("Select:", statement.text, list(statement.parameters))
        try:
            return driver.query(statement.text, statement.parameters)
        except DriverError as e:
            raise FailureTypes[OperationKind.Select](f"Could not execute '{statement}': {e.ctx or e}", cause=e) from e

    def _byte_rows(self, schema: TableSchema, cursor: ResultCursor) -> list[ByteRow]:
        rows: list[ByteRow] = []
        for record in cursor:
            row: ByteRow = {}
            for column in cursor.columns:
                try:
                    row[column] = decode_bytes(schema.type_of(column), record.native(column))
                except CellDecodeError as e:
                    self._log("Skipping cell:", e)
            rows.append(row)
        return rows


def _text_rows(cursor: ResultCursor) -> list[ResultRow]:
    return [{column: record.text(column) for column in cursor.columns} for record in cursor]


_Connectors: dict[str, Callable[..., Driver]] = {
    "mysql": db.mysql.connect,
    "postgres": db.postgres.connect,
    "duckdb": db.duckdb.connect,
}


def connect(system: str = "mysql", *, debug: bool = False, guard_unconditional_delete: bool = False,
            **connect_args) -> DataManager:
    """Creates a data manager for one of the supported database systems.

    Parameters
    ----------
    system : str, optional
        The database system, either *mysql* (the default), *postgres* or *duckdb*. Case-insensitive.
    debug : bool, optional
        Whether the manager should log its statements
    guard_unconditional_delete : bool, optional
        Whether deletes without predicate require an explicit confirmation
    **connect_args
        Passed to the ``connect()`` function of the corresponding module in the `db` package, e.g. *config_file*.

    Returns
    -------
    DataManager
        The manager. Connection failures are recorded in its error log rather than raised.

    Raises
    ------
    ValueError
        If the database system is not supported
    """
    connector = _Connectors.get(system.lower())
    if connector is None:
        raise ValueError(f"Unsupported database system: '{system}'. Use one of {', '.join(_Connectors)}")
    return DataManager(functools.partial(connector, **connect_args), debug=debug,
                       guard_unconditional_delete=guard_unconditional_delete)
