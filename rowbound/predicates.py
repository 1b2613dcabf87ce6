"""The predicate builder turns structured search conditions into the text and parameters of a *WHERE* clause.

A predicate is an ordered sequence of conditions. Each condition compares a column with a value and carries a combinator
(*AND* or *OR*) that describes the connective which links the condition to its predecessor. The combinator of the first
condition is never used.

Predicates can be supplied in several forms:

- a mapping from column to value, e.g. ``{"id": "1", "name": "Ann"}``
- a sequence of *(column, value)* pairs, e.g. ``[("id", "1"), ("name", "Ann")]``
- a sequence of *(column, value, combinator)* triples or `Condition` objects. The combinator can be a `Combinator`, the
  strings *AND*/*OR* or a boolean (*True* means AND).

Whether the combinators are actually honored depends on the `WhereMode`: `WhereMode.AllAnd` and `WhereMode.AllOr` join
all conditions with a fixed connective, only `WhereMode.Mixed` uses the individual combinators.

The comparison operator depends on the logical type of the column: *VARCHAR* columns are compared using *LIKE* such that
the value may contain wildcards, all other columns are compared for equality. Values are coerced according to the rules
of the `coercion` module and are bound as parameters, never pasted into the clause text.

All functions in this module are pure: each clause carries its own parameters. Parameters appear in the same order as their
placeholders in the text, such that clauses can be concatenated safely.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import NamedTuple, Optional

from ._core import Combinator, LogicalType, WhereMode, quote
from .catalog import SchemaCatalog
from .coercion import BoundValue, coerce


class Condition(NamedTuple):
    """A single comparison of a predicate."""

    column: str
    value: str
    combinator: Combinator = Combinator.And


PredicateInput = Optional[Mapping[str, str] | Sequence[tuple | Condition]]
"""All forms in which predicates can be supplied. *None* and empty inputs denote the absence of a predicate."""


def conditions(where: PredicateInput) -> list[Condition]:
    """Normalizes the different input forms of a predicate into a list of conditions.

    Raises
    ------
    ValueError
        If an entry is neither a pair nor a triple (e.g. a bare string), or if it contains an unknown combinator
    """
    if not where:
        return []
    if isinstance(where, Mapping):
        return [Condition(column, value) for column, value in where.items()]
    if not isinstance(where, Sequence) or isinstance(where, str):
        raise ValueError(f"Predicates must be a mapping or a sequence of conditions, not {where!r}")

    normalized: list[Condition] = []
    for entry in where:
        if isinstance(entry, Condition):
            normalized.append(entry)
        elif not isinstance(entry, (tuple, list)):
            raise ValueError(f"Predicate entries must be tuples, not {type(entry).__name__}: {entry!r}")
        elif len(entry) == 2:
            column, value = entry
            normalized.append(Condition(column, value))
        elif len(entry) == 3:
            column, value, combinator = entry
            normalized.append(Condition(column, value, Combinator.of(combinator)))
        else:
            raise ValueError(f"Predicate entries must be (column, value) or (column, value, combinator), not {entry}")
    return normalized


@dataclass(frozen=True)
class Clause:
    """A fragment of statement text along with the parameters that its placeholders refer to.

    The empty clause (no text and no parameters) denotes the absence of the clause, e.g. an unconditional *WHERE*.
    """

    text: str = ""
    parameters: tuple[BoundValue, ...] = ()

    def is_empty(self) -> bool:
        return not self.text

    def __bool__(self) -> bool:
        return not self.is_empty()

    def __str__(self) -> str:
        return self.text


EmptyClause = Clause()


def comparison_operator(logical_type: LogicalType) -> str:
    """Provides the operator that is used to compare a column of the given type with a value."""
    return "LIKE" if logical_type == LogicalType.String else "="


def _joiner(mode: WhereMode, successor: Condition) -> str:
    match mode:
        case WhereMode.AllAnd:
            return Combinator.And.value
        case WhereMode.AllOr:
            return Combinator.Or.value
        case WhereMode.Mixed:
            return successor.combinator.value
        case _:
            raise ValueError(f"Unknown where mode: {mode}")


def where_clause(catalog: SchemaCatalog, table: str, where: PredicateInput, mode: WhereMode = WhereMode.AllAnd, *,
                 placeholder: str = "%s") -> Clause:
    """Builds the *WHERE* clause for a predicate.

    In `WhereMode.Mixed`, the connective between the conditions at positions *i* and *i + 1* is taken from the combinator
    of condition *i + 1*.

    Parameters
    ----------
    catalog : SchemaCatalog
        The catalog to determine the column types
    table : str
        The table that the predicate refers to
    where : PredicateInput
        The predicate. May be *None* or empty.
    mode : WhereMode, optional
        How the conditions should be joined. Defaults to `WhereMode.AllAnd`.
    placeholder : str, optional
        The positional parameter marker of the target driver.

    Returns
    -------
    Clause
        The clause, including the *WHERE* keyword. Empty predicates produce the `EmptyClause`.

    Raises
    ------
    UnknownTable
        If the table does not exist
    UnknownColumn
        If any of the conditions references a column that does not exist
    """
    schema = catalog.table(table)
    predicate = conditions(where)
    if not predicate:
        return EmptyClause

    parts: list[str] = []
    parameters: list[BoundValue] = []
    for i, condition in enumerate(predicate):
        logical_type = schema.type_of(condition.column)
        if i > 0:
            parts.append(_joiner(mode, condition))
        parts.append(f"{quote(condition.column)} {comparison_operator(logical_type)} {placeholder}")
        parameters.append(coerce(logical_type, condition.value))

    return Clause("WHERE " + " ".join(parts), tuple(parameters))


def greater_than_clause(catalog: SchemaCatalog, table: str, where: PredicateInput, *,
                        placeholder: str = "%s") -> Clause:
    """Builds a *WHERE* clause that requires each column to be greater than its value.

    All conditions are joined by *AND*. In contrast to `where_clause`, column types are ignored entirely: the operator is
    always *>* and values are bound without any coercion. Columns still have to exist, though.

    Raises
    ------
    UnknownTable
        If the table does not exist
    UnknownColumn
        If any of the conditions references a column that does not exist
    """
    schema = catalog.table(table)
    predicate = conditions(where)
    if not predicate:
        return EmptyClause

    parts: list[str] = []
    for condition in predicate:
        schema.type_of(condition.column)
        parts.append(f"{quote(condition.column)} > {placeholder}")
    return Clause("WHERE " + " AND ".join(parts), tuple(condition.value for condition in predicate))
