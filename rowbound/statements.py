"""The statement builder assembles the complete text and the ordered parameters of the statements that RowBOUND executes.

Each builder is a pure function of the schema catalog and the caller's structured input. Builders validate every
referenced table and column against the catalog before emitting any text, so statements that reference unknown parts of
the schema are never sent to the database. All identifiers are quoted as necessary and all values are bound as
parameters.

The parameters of a `Statement` are ordered exactly like the placeholders in its text. For updates this means that the
parameters of the *SET* clause come first, followed by the parameters of the *WHERE* clause.
"""

from __future__ import annotations

import warnings
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Optional

from ._core import WhereMode, quote
from .catalog import SchemaCatalog, TableSchema
from .coercion import BoundValue, bind_bytes, coerce, coerce_assignment
from .predicates import Clause, PredicateInput, greater_than_clause, where_clause

Assignment = Mapping[str, str] | Sequence[tuple[str, str]]
"""The column values of a row that should be written, either as a mapping or as ordered pairs."""

BinaryAssignment = Mapping[str, bytes] | Sequence[tuple[str, bytes]]
"""Like `Assignment`, but for binary payloads."""

AllColumns = "*"


@dataclass(frozen=True)
class Statement:
    """The text of a statement along with the values of its placeholders."""

    text: str
    parameters: tuple[BoundValue, ...] = ()

    def __str__(self) -> str:
        return self.text


def _pairs(assignment: Optional[Assignment | BinaryAssignment]) -> list[tuple[str, object]]:
    if not assignment:
        return []
    if isinstance(assignment, Mapping):
        return list(assignment.items())
    if not isinstance(assignment, Sequence) or isinstance(assignment, (str, bytes)):
        raise ValueError(f"Assignments must be a mapping or a sequence of (column, value) pairs, not {assignment!r}")

    pairs: list[tuple[str, object]] = []
    for entry in assignment:
        if not isinstance(entry, (tuple, list)) or len(entry) != 2:
            raise ValueError(f"Assignment entries must be (column, value) pairs, not {entry!r}")
        pairs.append((entry[0], entry[1]))
    return pairs


def _assignment_columns(schema: TableSchema, values: Optional[Assignment],
                        binary: Optional[BinaryAssignment]) -> tuple[list[tuple[str, str]], list[tuple[str, bytes]]]:
    text_part = _pairs(values)
    binary_part = _pairs(binary)
    for column, _ in text_part + binary_part:
        schema.type_of(column)
    return text_part, binary_part


def _join(*fragments: str | Clause) -> str:
    return " ".join(str(fragment) for fragment in fragments if fragment)


def insert(catalog: SchemaCatalog, table: str, values: Optional[Assignment],
           binary: Optional[BinaryAssignment] = None, *, placeholder: str = "%s") -> Statement:
    """Builds an *INSERT* statement for a single row.

    Parameters
    ----------
    catalog : SchemaCatalog
        The catalog to validate the columns against
    table : str
        The table to insert into
    values : Optional[Assignment]
        The text-valued columns of the new row. Values are coerced according to the column types.
    binary : Optional[BinaryAssignment], optional
        The byte-valued columns of the new row. They are appended after the text-valued columns and bound as-is.
    placeholder : str, optional
        The positional parameter marker of the target driver.

    Returns
    -------
    Statement
        The statement

    Raises
    ------
    UnknownTable
        If the table does not exist
    UnknownColumn
        If any of the assigned columns does not exist
    ValueError
        If neither text-valued nor byte-valued columns are assigned
    """
    schema = catalog.table(table)
    text_part, binary_part = _assignment_columns(schema, values, binary)
    if not text_part and not binary_part:
        raise ValueError(f"No values given for the new row of table '{table}'")

    columns = [column for column, _ in text_part] + [column for column, _ in binary_part]
    parameters = [coerce(schema.type_of(column), value) for column, value in text_part]
    parameters.extend(bind_bytes(value) for _, value in binary_part)

    column_list = ", ".join(quote(column) for column in columns)
    placeholders = ", ".join(placeholder for _ in columns)
    return Statement(f"INSERT INTO {quote(table)} ({column_list}) VALUES ({placeholders})", tuple(parameters))


def update(catalog: SchemaCatalog, table: str, values: Optional[Assignment], where: PredicateInput,
           binary: Optional[BinaryAssignment] = None, *, placeholder: str = "%s") -> Statement:
    """Builds an *UPDATE* statement.

    The *SET* clause contains the text-valued columns followed by the byte-valued columns. An empty string clears the
    corresponding cell (i.e. sets it to *NULL*), while empty byte strings are written as they are. The predicate is
    always joined by *AND*.

    Raises
    ------
    UnknownTable
        If the table does not exist
    UnknownColumn
        If any of the assigned columns or any predicate column does not exist
    ValueError
        If no columns are assigned
    """
    schema = catalog.table(table)
    text_part, binary_part = _assignment_columns(schema, values, binary)
    if not text_part and not binary_part:
        raise ValueError(f"No values given to update table '{table}'")

    assignments: list[str] = []
    parameters: list[BoundValue] = []
    for column, value in text_part:
        assignments.append(f"{quote(column)} = {placeholder}")
        parameters.append(coerce_assignment(schema.type_of(column), value))
    for column, value in binary_part:
        assignments.append(f"{quote(column)} = {placeholder}")
        parameters.append(bind_bytes(value))

    clause = where_clause(catalog, table, where, WhereMode.AllAnd, placeholder=placeholder)
    text = _join(f"UPDATE {quote(table)} SET", ", ".join(assignments), clause)
    return Statement(text, tuple(parameters) + clause.parameters)


def delete(catalog: SchemaCatalog, table: str, where: PredicateInput, *, placeholder: str = "%s") -> Statement:
    """Builds a *DELETE* statement with an *AND*-joined predicate.

    Notice that an empty predicate produces an unconditional statement which removes all rows of the table.

    Raises
    ------
    UnknownTable
        If the table does not exist
    UnknownColumn
        If any predicate column does not exist
    """
    clause = where_clause(catalog, table, where, WhereMode.AllAnd, placeholder=placeholder)
    return Statement(_join(f"DELETE FROM {quote(table)}", clause), clause.parameters)


def delete_greater_than(catalog: SchemaCatalog, table: str, where: PredicateInput, *,
                        placeholder: str = "%s") -> Statement:
    """Builds a *DELETE* statement that removes all rows whose columns exceed the given values.

    See `predicates.greater_than_clause` for the comparison semantics.
    """
    clause = greater_than_clause(catalog, table, where, placeholder=placeholder)
    return Statement(_join(f"DELETE FROM {quote(table)}", clause), clause.parameters)


def projection(catalog: SchemaCatalog, table: str, columns: str | Iterable[str]) -> list[str]:
    """Determines the columns that a query should produce.

    The column list ``"*"`` (either as a plain string or as the only element of a list) denotes all columns of the table
    in catalog order. Otherwise, all columns are validated and kept in the order in which they were given.

    Raises
    ------
    UnknownTable
        If the table does not exist
    UnknownColumn
        If any of the columns does not exist
    ValueError
        If no columns are requested
    """
    schema = catalog.table(table)
    requested = [columns] if isinstance(columns, str) else list(columns)
    if requested == [AllColumns]:
        return list(schema.columns)
    if not requested:
        raise ValueError(f"No columns requested from table '{table}'")
    for column in requested:
        schema.type_of(column)
    return requested


def select(catalog: SchemaCatalog, table: str, columns: str | Iterable[str], where: PredicateInput,
           mode: WhereMode = WhereMode.AllAnd, *, placeholder: str = "%s") -> Statement:
    """Builds a *SELECT* statement with an explicit column list.

    Parameters
    ----------
    catalog : SchemaCatalog
        The catalog to validate the columns against
    table : str
        The table to query
    columns : str | Iterable[str]
        The output columns. See `projection` for details.
    where : PredicateInput
        The search predicate. May be empty to select all rows.
    mode : WhereMode, optional
        How the predicate conditions are joined. Defaults to `WhereMode.AllAnd`.
    placeholder : str, optional
        The positional parameter marker of the target driver.

    Returns
    -------
    Statement
        The statement

    Raises
    ------
    UnknownTable
        If the table does not exist
    UnknownColumn
        If any output column or predicate column does not exist
    """
    output = projection(catalog, table, columns)
    clause = where_clause(catalog, table, where, mode, placeholder=placeholder)
    column_list = ", ".join(quote(column) for column in output)
    return Statement(_join(f"SELECT {column_list} FROM {quote(table)}", clause), clause.parameters)


def select_sorted(catalog: SchemaCatalog, table: str, where: PredicateInput, *, sort_column: Optional[str] = None,
                  ascending: bool = True, limit: Optional[int] = None, placeholder: str = "%s") -> Statement:
    """Builds a *SELECT* statement for all columns with optional sorting and a limit on the number of rows.

    The predicate is always joined by *AND*. A missing or unknown sort column is dropped from the statement (the latter
    with a warning), but the remaining statement is still built.

    Raises
    ------
    UnknownTable
        If the table does not exist
    UnknownColumn
        If any predicate column does not exist
    ValueError
        If the limit is negative or not an integer
    """
    schema = catalog.table(table)
    if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit < 0):
        raise ValueError(f"Limit must be a non-negative integer, not {limit!r}")

    clause = where_clause(catalog, table, where, WhereMode.AllAnd, placeholder=placeholder)
    column_list = ", ".join(quote(column) for column in schema.columns)
    fragments: list[str | Clause] = [f"SELECT {column_list} FROM {quote(table)}", clause]

    if sort_column and schema.has_column(sort_column):
        fragments.append(f"ORDER BY {quote(sort_column)} {'ASC' if ascending else 'DESC'}")
    elif sort_column:
        warnings.warn(f"Ignoring unknown sort column '{sort_column}' of table '{table}'")

    if limit is not None:
        fragments.append(f"LIMIT {limit}")

    return Statement(_join(*fragments), clause.parameters)
