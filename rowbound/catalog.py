"""The schema catalog is the in-memory snapshot of the table and column metadata of the connected database.

The catalog is loaded exactly once, when the `DataManager` connects to the database. Afterwards, it is never modified:
each table is described by an immutable `TableSchema` which stores the column names in their natural order along with the
logical type of each column.

All lookups into the catalog are checked. Referencing a table or column that does not exist raises `UnknownTable` or
`UnknownColumn`, respectively.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from types import MappingProxyType

from . import util
from ._core import LogicalType
from .db import Driver, DriverError
from .errors import SchemaIntrospectionFailure, UnknownColumn, UnknownTable


class TableSchema:
    """Describes the columns of a single table.

    Parameters
    ----------
    name : str
        The table name
    columns : Iterable[tuple[str, LogicalType]]
        The columns of the table along with their logical types, in the order in which they appear in the table.

    Raises
    ------
    ValueError
        If a column name appears multiple times
    """

    def __init__(self, name: str, columns: Iterable[tuple[str, LogicalType]]) -> None:
        self._name = name
        types: dict[str, LogicalType] = {}
        for column, logical_type in columns:
            if column in types:
                raise ValueError(f"Duplicate column '{column}' in table '{name}'")
            types[column] = logical_type
        self._columns = tuple(types.keys())
        self._types = MappingProxyType(types)

    @staticmethod
    def from_native(name: str, columns: Iterable[tuple[str, str]]) -> TableSchema:
        """Creates the schema of a table based on the native type names that the database reports for its columns."""
        return TableSchema(name, [(column, LogicalType.from_native(type_name)) for column, type_name in columns])

    @property
    def name(self) -> str:
        return self._name

    @property
    def columns(self) -> Sequence[str]:
        """Get the column names in their natural order."""
        return self._columns

    @property
    def types(self) -> Mapping[str, LogicalType]:
        """Get the read-only mapping from column name to logical type."""
        return self._types

    def has_column(self, column: str) -> bool:
        return column in self._types

    def type_of(self, column: str) -> LogicalType:
        """Provides the logical type of a column.

        Raises
        ------
        UnknownColumn
            If the table does not contain the column
        """
        try:
            return self._types[column]
        except KeyError:
            raise UnknownColumn(self._name, column) from None

    def __json__(self) -> util.jsondict:
        return {"name": self._name, "columns": [{"name": col, "type": self._types[col]} for col in self._columns]}

    def __len__(self) -> int:
        return len(self._columns)

    def __contains__(self, column: object) -> bool:
        return column in self._types

    def __eq__(self, other: object) -> bool:
        return (isinstance(other, type(self))
                and self._name == other._name
                and list(self._types.items()) == list(other._types.items()))

    def __hash__(self) -> int:
        return hash((self._name, self._columns))

    def __repr__(self) -> str:
        return str(self)

    def __str__(self) -> str:
        columns = ", ".join(f"{col} {self._types[col]}" for col in self._columns)
        return f"{self._name}({columns})"


class SchemaCatalog:
    """The catalog provides access to the schemas of all tables of a database.

    Tables are stored in the order in which they were supplied (for a loaded catalog, this is the order in which the
    database reported them). Lookups by name are constant-time.

    Parameters
    ----------
    tables : Iterable[TableSchema], optional
        The tables of the catalog. Omitting the tables creates an empty catalog.

    Raises
    ------
    ValueError
        If multiple tables share the same name
    """

    @staticmethod
    def load(driver: Driver) -> SchemaCatalog:
        """Introspects the database that the driver is connected to.

        Parameters
        ----------
        driver : Driver
            The connection to read the schema from

        Returns
        -------
        SchemaCatalog
            The catalog, containing all tables of the current database

        Raises
        ------
        SchemaIntrospectionFailure
            If the tables or the columns of any table cannot be retrieved. No partial catalog is created in this case.
        """
        try:
            table_names = list(driver.list_tables())
        except DriverError as e:
            raise SchemaIntrospectionFailure(f"Could not list the tables of {driver}: {e}", cause=e) from e

        tables: list[TableSchema] = []
        for table in table_names:
            try:
                columns = driver.describe_columns(table)
            except DriverError as e:
                raise SchemaIntrospectionFailure(f"Could not describe table '{table}': {e}", cause=e) from e
            tables.append(TableSchema.from_native(table, columns))

        return SchemaCatalog(tables)

    @staticmethod
    def empty() -> SchemaCatalog:
        return SchemaCatalog()

    def __init__(self, tables: Iterable[TableSchema] = ()) -> None:
        self._tables: dict[str, TableSchema] = {}
        for table in tables:
            if table.name in self._tables:
                raise ValueError(f"Duplicate table '{table.name}'")
            self._tables[table.name] = table

    def tables(self) -> Sequence[str]:
        """Provides the names of all tables in catalog order."""
        return list(self._tables.keys())

    def has_table(self, table: str) -> bool:
        return table in self._tables

    def table(self, table: str) -> TableSchema:
        """Provides the schema of a table.

        Raises
        ------
        UnknownTable
            If the catalog does not contain the table
        """
        try:
            return self._tables[table]
        except KeyError:
            raise UnknownTable(table) from None

    def columns_of(self, table: str) -> Sequence[str]:
        """Provides the column names of a table in their natural order.

        Raises
        ------
        UnknownTable
            If the catalog does not contain the table
        """
        return self.table(table).columns

    def resolve_type(self, table: str, column: str) -> LogicalType:
        """Provides the logical type of a column.

        Raises
        ------
        UnknownTable
            If the catalog does not contain the table
        UnknownColumn
            If the table does not contain the column
        """
        return self.table(table).type_of(column)

    def is_empty(self) -> bool:
        return not self._tables

    def __json__(self) -> list[util.jsondict]:
        return [table.__json__() for table in self._tables.values()]

    def __len__(self) -> int:
        return len(self._tables)

    def __contains__(self, table: object) -> bool:
        return table in self._tables

    def __iter__(self) -> Iterator[TableSchema]:
        return iter(self._tables.values())

    def __repr__(self) -> str:
        return str(self)

    def __str__(self) -> str:
        return f"SchemaCatalog({', '.join(self._tables)})"
