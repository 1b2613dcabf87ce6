"""RowBOUND - A schema-aware data access layer for relational database systems.

RowBOUND sits between application code and a relational database. When it connects, it introspects the schema of the
database once and remembers the columns of each table along with their (coarse) logical types. Afterwards, application
code can insert, update, delete and search rows using plain structured input: column-value pairs for the data and
sequences of conditions for the predicates. RowBOUND validates all input against the schema, builds the statements and
binds every value as a parameter, such that values never end up in the statement text.

The logical type of a column determines how values are handled:

- *VARCHAR* columns are searched using pattern matches (*LIKE*), all other columns are compared for equality
- *BIT* columns accept "stringly-typed" booleans, i.e. *true* (in any capitalization) and *1* are stored as 1, everything
  else as 0
- updates clear a cell if its new value is the empty string

On a high level, the project is structured as follows:

- the `manager` module contains the `DataManager`, which is the public entrypoint. It also provides the `connect` function
  to quickly create a manager for one of the supported database systems.
- the `catalog`, `coercion`, `predicates`, `statements` and `decoding` modules implement the individual steps of each
  operation, i.e. schema lookup, value coercion, predicate construction, statement construction and result decoding
- the `errors` module contains the error types along with the `Outcome` of each operation and the `ErrorLog`
- the `db` package contains the drivers for the supported database systems (MySQL, Postgres and DuckDB) and handles
  their connection settings
- the `util` package contains helpers that are not specific to RowBOUND, e.g. for logging and JSON export

Most of the functionality is available directly from the main package, so generally you just need to
``import rowbound``::

    with rowbound.connect("mysql", config_file=".mysql_connection.config") as manager:
        manager.insert("users", {"id": "1", "name": "Ann", "active": "true"})
        result = manager.search("users", {"name": "A%"})
        if not result:
            print(manager.error_messages())
"""
from . import (
  catalog,
  coercion,
  db,
  decoding,
  errors,
  predicates,
  statements,
  util
)
from ._core import Combinator, LogicalType, OperationKind, WhereMode, quote
from .catalog import SchemaCatalog, TableSchema
from .errors import (
  DataAccessError,
  ConnectFailure, SchemaIntrospectionFailure,
  UnknownTable, UnknownColumn,
  InsertFailure, UpdateFailure, DeleteFailure, SelectFailure,
  ErrorLog, ErrorRecord, Outcome
)
from .manager import DataManager, ResultRow, ByteRow, connect
from .predicates import Condition
from .statements import Statement

__version__ = "0.3.0"

__all__ = [
  "catalog", "coercion", "db", "decoding", "errors", "predicates", "statements", "util",
  "Combinator", "LogicalType", "OperationKind", "WhereMode", "quote",
  "SchemaCatalog", "TableSchema",
  "DataAccessError",
  "ConnectFailure", "SchemaIntrospectionFailure",
  "UnknownTable", "UnknownColumn",
  "InsertFailure", "UpdateFailure", "DeleteFailure", "SelectFailure",
  "ErrorLog", "ErrorRecord", "Outcome",
  "DataManager", "ResultRow", "ByteRow", "connect",
  "Condition",
  "Statement"
]
