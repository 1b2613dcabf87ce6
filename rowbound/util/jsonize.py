"""Contains utilities to export RowBOUND objects (e.g. the schema catalog or the error log) as JSON.

Classes opt into the export by providing a `__json__` method. This method does not take any (required) parameters and
returns a JSON-izeable representation of the current instance, e.g. a `dict` or a `list`.
"""

from __future__ import annotations

import enum
import json
from collections.abc import Mapping
from typing import Any

jsondict = dict
"""Type alias for a JSON-izeable dictionary."""


class JsonizeEncoder(json.JSONEncoder):
    """Encoder that understands the `__json__` protocol as well as enums, byte strings and read-only mappings.

    Byte strings are exported as hex strings since they are mostly BLOB cell values.
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, enum.Enum):
            return obj.value
        elif isinstance(obj, (set, frozenset)):
            return list(obj)
        elif isinstance(obj, (bytes, bytearray, memoryview)):
            return bytes(obj).hex()
        elif isinstance(obj, Mapping):
            return dict(obj)
        elif "__json__" in dir(obj):
            return obj.__json__()
        return json.JSONEncoder.default(self, obj)


def to_json(obj: Any, *args, **kwargs) -> str | None:
    """Utility to transform any object to a JSON object, while making use of the `JsonizeEncoder`.

    All arguments other than the object itself are passed to the default Python `json.dumps` function.
    """
    if obj is None:
        return None
    kwargs.pop("cls", None)
    return json.dumps(obj, *args, cls=JsonizeEncoder, **kwargs)
