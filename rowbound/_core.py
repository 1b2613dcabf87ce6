from __future__ import annotations

import re
from enum import Enum


class LogicalType(Enum):
    """The logical type is RowBOUND's coarse classification of a database-native column type.

    Logical types decide how caller-supplied values are coerced before they are bound to a statement (see the `coercion`
    module) and which comparison operator is used for a column in a *WHERE* clause (see the `predicates` module).

    Use `from_native` to derive the logical type from the type name that is reported by the database system.
    """

    Null = "NULL"
    Int = "INT"
    String = "STRING"
    Date = "DATE"
    Bit = "BIT"
    Enum = "ENUM"
    Double = "DOUBLE"
    Blob = "BLOB"
    Float = "FLOAT"

    @staticmethod
    def from_native(type_name: str) -> LogicalType:
        """Classifies a native type name, such as *varchar(45)*, *bigint(20) unsigned* or *bit(1)*.

        Classification is based on case-insensitive substring matches which are tested in a fixed order. The first
        matching rule wins, which produces some surprising classes: *POINT* is an *INT* column and *DATETIME* is a
        *DATE* column. Type names that do not match any rule (e.g. *TEXT* or *CHAR*) are classified as
        `LogicalType.Null`.

        Parameters
        ----------
        type_name : str
            The type name exactly as it was reported by the database system

        Returns
        -------
        LogicalType
            The logical type
        """
        normalized = type_name.upper()
        for marker, logical_type in _NativeTypeMarkers:
            if marker in normalized:
                return logical_type
        return LogicalType.Null

    def __json__(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


_NativeTypeMarkers: tuple[tuple[str, LogicalType], ...] = (
    ("VARCHAR", LogicalType.String),
    ("INT", LogicalType.Int),
    ("DATE", LogicalType.Date),
    ("BIT", LogicalType.Bit),
    ("ENUM", LogicalType.Enum),
    ("DOUBLE", LogicalType.Double),
    ("BLOB", LogicalType.Blob),
    ("FLOAT", LogicalType.Float),
)
"""Substring rules to derive logical types. Order matters, the first match wins."""


class Combinator(Enum):
    """The connective that links a condition of a predicate to its predecessor."""

    And = "AND"
    Or = "OR"

    @staticmethod
    def of(value: Combinator | str | bool) -> Combinator:
        """Normalizes the different ways to spell a combinator.

        Booleans are interpreted as "*True* means AND, *False* means OR". Strings are matched case-insensitively.
        """
        if isinstance(value, Combinator):
            return value
        if isinstance(value, bool):
            return Combinator.And if value else Combinator.Or
        if isinstance(value, str) and value.strip().upper() in {"AND", "OR"}:
            return Combinator(value.strip().upper())
        raise ValueError(f"Unknown combinator: '{value}'")

    def __str__(self) -> str:
        return self.value


class WhereMode(Enum):
    """Determines how the conditions of a predicate are joined together.

    In `AllAnd` and `AllOr` mode, the combinators of the individual conditions are ignored and a fixed connective is used
    instead. `Mixed` mode honors the combinator of each condition.
    """

    AllAnd = "AND"
    AllOr = "OR"
    Mixed = "MIXED"


class OperationKind(Enum):
    """The kind of operation during which an error occurred."""

    Connect = "Connect"
    Insert = "Insert"
    Update = "Update"
    Delete = "Delete"
    Select = "Select"

    def __json__(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


_IdentifierPattern = re.compile(r"^[a-z_][a-z0-9_\$]*$")
"""Regular expression to check for identifiers that can be used without quotes.

We only permit identifiers with lower case characters. This forces all identifiers which contain at least one upper case
character to be quoted.
"""

SqlKeywords = frozenset(
    {
        "ADD", "ALL", "ALTER", "AND", "AS", "ASC", "BETWEEN", "BINARY", "BY", "CASE", "CHECK", "COLLATE", "COLUMN",
        "CONDITION", "CONSTRAINT", "CREATE", "CROSS", "CURRENT_DATE", "CURRENT_TIME", "CURRENT_TIMESTAMP",
        "CURRENT_USER", "DATABASE", "DEFAULT", "DELETE", "DESC", "DESCRIBE", "DISTINCT", "DIV", "DROP", "ELSE", "END",
        "EXISTS", "EXPLAIN", "FALSE", "FETCH", "FOR", "FOREIGN", "FROM", "FULL", "GRANT", "GROUP", "HAVING", "IN",
        "INDEX", "INNER", "INSERT", "INTERVAL", "INTO", "IS", "JOIN", "KEY", "KEYS", "LEFT", "LIKE", "LIMIT", "LOCK",
        "MATCH", "MOD", "NATURAL", "NOT", "NULL", "OFFSET", "ON", "OR", "ORDER", "OUTER", "PRIMARY", "RANGE", "READ",
        "REFERENCES", "REPLACE", "RIGHT", "ROW", "ROWS", "SELECT", "SET", "SHOW", "TABLE", "THEN", "TO", "TRUE",
        "UNION", "UNIQUE", "UPDATE", "USAGE", "USER", "USING", "VALUES", "WHEN", "WHERE", "WITH",
    }
)
"""An (probably incomplete) list of reserved SQL keywords that must be quoted before being used as identifiers."""


def quote(identifier: str) -> str:
    """Quotes an identifier if necessary.

    Valid identifiers can be used as-is, e.g. *title* or *movie_id*. Invalid identifiers will be wrapped in double quotes,
    such as *"movie title"* or *"order"*. Double quotes require MySQL connections to run in *ANSI* sql_mode, which is the
    default of the MySQL driver.

    Parameters
    ----------
    identifier : str
        The identifier to quote. Note that empty strings are treated as valid identifiers.

    Returns
    -------
    str
        The identifier, potentially wrapped in quotes.
    """
    if not identifier:
        return ""
    valid_identifier = (
        _IdentifierPattern.fullmatch(identifier)
        and identifier.upper() not in SqlKeywords
    )
    if valid_identifier:
        return identifier
    escaped = identifier.replace('"', '""')
    return f'"{escaped}"'
