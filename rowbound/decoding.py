"""Result decoding maps the cells that a driver returns back into the representations of the public API.

There are two representations:

- the text form (`decode_text`), which is used by all regular searches. Each cell becomes a string and *NULL* becomes the
  empty string. Callers therefore cannot distinguish *NULL* from an empty string in this form.
- the byte form (`decode_bytes`), which is used by byte searches. Each cell is encoded according to the logical type of
  its column:

  ========================= =======================================================================
  Logical type              Encoding
  ========================= =======================================================================
  BLOB                      the raw bytes
  VARCHAR / ENUM / DATE     the text as UTF-16 little-endian code units, *NULL* becomes ``b""``
  DOUBLE                    8 byte IEEE 754, little-endian
  FLOAT                     4 byte IEEE 754, little-endian
  INT                       4 byte signed integer, little-endian
  BIT                       a single byte, 1 or 0
  ========================= =======================================================================

  Cells that do not fit the encoding of their column (e.g. *NULL* in a numeric column, integers beyond 32 bits or columns
  of unknown type) raise a `CellDecodeError`. The manager skips such cells instead of failing the entire row.
"""

from __future__ import annotations

import datetime
import struct
from typing import Any

from ._core import LogicalType

TextEncoding = "utf-16-le"
"""The encoding of textual cells in the byte form."""


class CellDecodeError(ValueError):
    """Indicates that a cell cannot be represented in the byte encoding of its logical type."""

    def __init__(self, logical_type: LogicalType, value: Any) -> None:
        super().__init__(f"Cannot encode {value!r} as {logical_type}")
        self.logical_type = logical_type
        self.value = value


def decode_text(value: Any) -> str:
    """Converts a native cell value into its text form.

    Booleans become *1* or *0* (which is how *BIT* columns read back), dates and timestamps use their ISO format and
    byte strings are interpreted as UTF-8.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, datetime.datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, datetime.date):
        return value.isoformat()
    return str(value)


def _bit_value(value: Any) -> bool:
    if isinstance(value, (bytes, bytearray)) and len(value) == 1:
        # MySQL returns BIT(1) columns as a single byte
        value = value[0]
    if isinstance(value, bool) or value in (0, 1):
        return bool(value)
    raise TypeError(f"Not a bit: {value!r}")


def _encode(logical_type: LogicalType, value: Any) -> bytes:
    match logical_type:
        case LogicalType.Blob:
            if not isinstance(value, (bytes, bytearray, memoryview)):
                raise TypeError(f"Not a byte string: {value!r}")
            return bytes(value)
        case LogicalType.String | LogicalType.Enum | LogicalType.Date:
            if value is None:
                return b""
            return decode_text(value).encode(TextEncoding)
        case LogicalType.Double:
            if not isinstance(value, float):
                raise TypeError(f"Not a float: {value!r}")
            return struct.pack("<d", value)
        case LogicalType.Float:
            if not isinstance(value, float):
                raise TypeError(f"Not a float: {value!r}")
            return struct.pack("<f", value)
        case LogicalType.Int:
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"Not an integer: {value!r}")
            return struct.pack("<i", value)
        case LogicalType.Bit:
            return struct.pack("<?", _bit_value(value))
        case _:
            raise TypeError(f"No byte encoding for type {logical_type}")


def decode_bytes(logical_type: LogicalType, value: Any) -> bytes:
    """Converts a native cell value into the byte form of its logical type.

    Parameters
    ----------
    logical_type : LogicalType
        The type of the column that the cell belongs to
    value : Any
        The cell value, as returned by the driver

    Returns
    -------
    bytes
        The encoded cell

    Raises
    ------
    CellDecodeError
        If the value does not match the logical type
    """
    try:
        return _encode(logical_type, value)
    except (TypeError, struct.error, UnicodeError) as e:
        raise CellDecodeError(logical_type, value) from e
