"""Tool parameter extraction.

Arguments arrive as an untyped JSON object. Numbers may be encoded as floats
(``42.0``), so integer parameters accept integral floats.
"""

from __future__ import annotations

from typing import Any

from .errors import ParameterError


def _missing(name: str) -> ParameterError:
    return ParameterError(f"missing required parameter: {name}")


def _coerce_int(name: str, value: Any) -> int:
    # bool is an int subclass; JSON true/false is never a valid number here.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParameterError(f"parameter {name} is not of type number")
    if isinstance(value, float):
        if not value.is_integer():
            raise ParameterError(f"parameter {name} must be an integer")
        return int(value)
    return value


def required_str(arguments: dict[str, Any], name: str) -> str:
    """Return a non-empty string parameter."""
    if name not in arguments:
        raise _missing(name)
    value = arguments[name]
    if not isinstance(value, str):
        raise ParameterError(f"parameter {name} is not of type string")
    if not value:
        raise _missing(name)
    return value


def required_int(arguments: dict[str, Any], name: str) -> int:
    """Return a non-zero integer parameter."""
    value = arguments.get(name)
    if value is None:
        raise _missing(name)
    number = _coerce_int(name, value)
    if number == 0:
        raise _missing(name)
    return number


def optional_int(arguments: dict[str, Any], name: str) -> int | None:
    """Return an integer parameter, or None when it was not supplied.

    An explicit ``0`` is returned as ``0``; absence is the only "not provided" signal.
    """
    value = arguments.get(name)
    if value is None:
        return None
    return _coerce_int(name, value)
