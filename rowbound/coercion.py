"""The coercion engine decides which value is actually bound to a statement parameter.

Callers provide all values as plain strings (or byte strings for binary payloads). Most of them are handed to the
database unchanged: the server converts them to the native column type itself. The only exception are *BIT* columns,
which follow a "stringly-typed boolean" convention: *true* (in any capitalization) and *1* bind as the integer 1, every
other string binds as 0. Notice that this is deliberately lossy, e.g. *yes* or *false* both become 0.

Values in the *SET* clause of an update follow one additional rule: the empty string clears the cell, i.e. it binds as
*NULL*.

Since values are never pasted into the statement text, the coercion engine is also the reason why RowBOUND is not
susceptible to SQL injection through values.
"""

from __future__ import annotations

from typing import Optional

from ._core import LogicalType

BoundValue = Optional[int | str | bytes]
"""The values that can be bound to a statement parameter. *None* binds as NULL."""

_TrueLiterals = {"TRUE", "1"}


def coerce_bit(raw: str) -> int:
    """Converts a string into the bit value 1 or 0.

    >>> coerce_bit("True"), coerce_bit("1"), coerce_bit("yes")
    (1, 1, 0)
    """
    raw = raw if isinstance(raw, str) else str(raw)
    return 1 if raw.upper() in _TrueLiterals else 0


def coerce(logical_type: LogicalType, raw: str) -> BoundValue:
    """Converts a caller-supplied value for a column of the given type into a bound value.

    Parameters
    ----------
    logical_type : LogicalType
        The type of the column that the value belongs to
    raw : str
        The value

    Returns
    -------
    BoundValue
        The integer 1 or 0 for *BIT* columns and the unchanged value for all other columns.
    """
    if logical_type == LogicalType.Bit:
        return coerce_bit(raw)
    return raw


def coerce_assignment(logical_type: LogicalType, raw: str) -> BoundValue:
    """Converts a value of a *SET* clause into a bound value.

    This works just like `coerce`, except for the empty string which becomes *NULL* for all column types.
    """
    if raw == "":
        return None
    return coerce(logical_type, raw)


def bind_bytes(raw: bytes | bytearray | memoryview) -> bytes:
    """Binary payloads are bound as-is, no matter the column type. Even empty payloads are not turned into NULL.

    Raises
    ------
    ValueError
        If the payload is not a byte string. Text has to be encoded by the caller.
    """
    if not isinstance(raw, (bytes, bytearray, memoryview)):
        raise ValueError(f"Binary values must be byte strings, not {type(raw).__name__}")
    return bytes(raw)
