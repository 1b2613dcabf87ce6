"""Errors, error records and operation outcomes of the data access layer.

All errors that can occur while working with the `DataManager` derive from `DataAccessError`. They fall into three groups:

- construction-time failures (`ConnectFailure` and `SchemaIntrospectionFailure`), which occur while the manager connects
  to the database and loads the schema catalog
- lookup failures (`UnknownTable` and `UnknownColumn`), which indicate that the caller referenced parts of the schema that
  do not exist
- execution failures (`InsertFailure`, `UpdateFailure`, `DeleteFailure` and `SelectFailure`), which wrap the error that
  was raised by the database driver

The `DataManager` never raises these errors across its public boundary. Instead, each operation returns an `Outcome` and
appends the error to its `ErrorLog`. The lower layers (catalog and builders) raise the errors directly.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from ._core import OperationKind
from .util import jsondict

T = TypeVar("T")


class DataAccessError(RuntimeError):
    """Base class of all errors raised by RowBOUND.

    Parameters
    ----------
    message : str
        A textual description of the error
    operation : Optional[OperationKind], optional
        The kind of operation that failed. Lookup errors are raised independently of any operation and leave this empty.
    cause : Optional[BaseException], optional
        The underlying error, typically one of the driver errors.
    """

    def __init__(self, message: str, *, operation: Optional[OperationKind] = None,
                 cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.cause = cause


class ConnectFailure(DataAccessError):
    """Indicates that no connection to the database could be established."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message, operation=OperationKind.Connect, cause=cause)


class SchemaIntrospectionFailure(DataAccessError):
    """Indicates that the tables or columns of the connected database could not be retrieved."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message, operation=OperationKind.Connect, cause=cause)


class UnknownTable(DataAccessError):
    """Indicates that a table is not contained in the schema catalog.

    Parameters
    ----------
    table : str
        The name of the missing table
    """

    def __init__(self, table: str) -> None:
        super().__init__(f"Table '{table}' does not exist")
        self.table = table


class UnknownColumn(DataAccessError):
    """Indicates that a column does not exist in a table of the schema catalog.

    Parameters
    ----------
    table : str
        The table that was searched
    column : str
        The name of the missing column
    """

    def __init__(self, table: str, column: str) -> None:
        super().__init__(f"Column '{column}' does not exist in table '{table}'")
        self.table = table
        self.column = column


class InsertFailure(DataAccessError):
    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message, operation=OperationKind.Insert, cause=cause)


class UpdateFailure(DataAccessError):
    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message, operation=OperationKind.Update, cause=cause)


class DeleteFailure(DataAccessError):
    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message, operation=OperationKind.Delete, cause=cause)


class SelectFailure(DataAccessError):
    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message, operation=OperationKind.Select, cause=cause)


FailureTypes: dict[OperationKind, type[DataAccessError]] = {
    OperationKind.Connect: ConnectFailure,
    OperationKind.Insert: InsertFailure,
    OperationKind.Update: UpdateFailure,
    OperationKind.Delete: DeleteFailure,
    OperationKind.Select: SelectFailure,
}
"""The execution failure that is used for each kind of operation."""


@dataclass(frozen=True)
class ErrorRecord:
    """A single entry of the error log: the failed operation along with its error."""

    operation: OperationKind
    error: DataAccessError

    def message(self) -> str:
        """Provides the log line for this record, e.g. *Insert: Column 'foo' does not exist in table 'bar'*."""
        return f"{self.operation}: {self.error}"

    def __json__(self) -> jsondict:
        return {"operation": self.operation.value, "error": type(self.error).__name__, "message": str(self.error)}

    def __str__(self) -> str:
        return self.message()


class ErrorLog:
    """Append-only sequence of failures that occurred during the lifetime of a `DataManager`.

    The log is only cleared upon explicit request via `clear`.
    """

    def __init__(self) -> None:
        self._records: list[ErrorRecord] = []

    def record(self, operation: OperationKind, error: DataAccessError) -> ErrorRecord:
        entry = ErrorRecord(operation, error)
        self._records.append(entry)
        return entry

    def records(self) -> list[ErrorRecord]:
        """Provides a copy of all records in the order in which they were added."""
        return list(self._records)

    def messages(self) -> str:
        """Provides all records as a single string, one record per line."""
        return "".join(entry.message() + "\n" for entry in self._records)

    def clear(self) -> None:
        self._records.clear()

    def __json__(self) -> list[jsondict]:
        return [entry.__json__() for entry in self._records]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ErrorRecord]:
        return iter(list(self._records))

    def __bool__(self) -> bool:
        return bool(self._records)

    def __repr__(self) -> str:
        return str(self)

    def __str__(self) -> str:
        return f"ErrorLog ({len(self._records)} records)"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """The result of a public `DataManager` operation.

    An outcome either contains the result value of the operation (the number of affected rows for writes, the decoded rows
    for reads), or the error that caused the operation to fail. Outcomes evaluate to *False* if the operation failed, so
    the "success flag" of an operation can be checked with a plain ``if``.

    Use `unwrap` to switch back to exception-based error handling.
    """

    value: Optional[T] = None
    error: Optional[DataAccessError] = None

    @staticmethod
    def success(value: T) -> Outcome[T]:
        return Outcome(value=value)

    @staticmethod
    def failure(error: DataAccessError) -> Outcome[T]:
        return Outcome(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Provides the result value, raising the error if the operation failed.

        Raises
        ------
        DataAccessError
            The error of the operation if it failed
        """
        if self.error is not None:
            raise self.error
        return self.value

    def __bool__(self) -> bool:
        return self.ok
