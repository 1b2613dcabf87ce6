"""Contains various utilities that did not fit any other category, mostly helpers for parsing config files."""
from __future__ import annotations

import re

_CamelCasePattern = re.compile(r'(?<!^)(?=[A-Z])')


def camel_case2snake_case(camel_case: str) -> str:
    # adapted from https://stackoverflow.com/a/1176023
    return _CamelCasePattern.sub("_", camel_case).lower()


_TruthyValues = {"1", "true", "yes", "on"}
_FalsyValues = {"0", "false", "no", "off"}


def parse_bool(value: str | bool) -> bool:
    """Interprets a config-file value such as *True*, *yes* or *0* as a boolean.

    Raises
    ------
    ValueError
        If the value is neither a known truthy nor a known falsy string.
    """
    if isinstance(value, bool):
        return value
    normalized = value.strip().lower()
    if normalized in _TruthyValues:
        return True
    if normalized in _FalsyValues:
        return False
    raise ValueError(f"Cannot interpret '{value}' as a boolean")
