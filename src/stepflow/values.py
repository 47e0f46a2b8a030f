"""
Runtime value helpers.

Flow variables, arguments and metadata only ever hold a small closed set of
values: ``str``, ``int``, ``float``, ``bool``, ``None`` (nil) and
:class:`ErrorValue`. Everything the parser produces is one of these, and handler
outputs are coerced into the same set before they reach the variable table.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Union

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")


@dataclass(frozen=True)
class ErrorValue:
    """An error reported by a step, stored in a variable (e.g. ``err``)."""

    message: str

    def __str__(self) -> str:
        return self.message


FlowValue = Union[str, int, float, bool, None, ErrorValue]


def is_quoted(text: str) -> bool:
    return len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'", "`"}


def unquote(text: str) -> str:
    text = text.strip()
    if is_quoted(text):
        return text[1:-1]
    return text


def parse_literal(text: str) -> FlowValue:
    """
    Turn a literal token into a value.

    Quoted text is a string, ``true``/``false`` are booleans, ``nil`` is None,
    integers and floats are numbers; anything else is kept as raw text.
    """

    raw = text.strip()
    if is_quoted(raw):
        return raw[1:-1]
    if raw == "true":
        return True
    if raw == "false":
        return False
    if raw == "nil":
        return None
    if _INT_RE.match(raw):
        return int(raw)
    if _FLOAT_RE.match(raw):
        return float(raw)
    return raw


def is_literal_token(text: str) -> bool:
    raw = text.strip()
    return is_quoted(raw) or raw in {"true", "false", "nil"} or bool(_FLOAT_RE.match(raw))


def type_name(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, ErrorValue):
        return "error"
    if value is None:
        return "nil"
    return "string"


def coerce_value(value: Any) -> FlowValue:
    """
    Reduce a handler output to a flow value.

    Exceptions become :class:`ErrorValue`, dates use their ISO form, maps and
    sequences are stored as JSON text and anything else falls back to ``str``.
    """

    if value is None or isinstance(value, (str, bool, int, float, ErrorValue)):
        return value
    if isinstance(value, BaseException):
        return ErrorValue(str(value) or type(value).__name__)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(to_jsonable(value), default=str)
    return str(value)


def format_value(value: Any) -> str:
    """String form used for ``{{placeholder}}`` substitution."""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_jsonable(value: Any) -> Any:
    if isinstance(value, ErrorValue):
        return {"__error__": value.message}
    if isinstance(value, BaseException):
        return {"__error__": str(value)}
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def from_jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        if set(value.keys()) == {"__error__"}:
            return ErrorValue(str(value["__error__"]))
        return {k: from_jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_jsonable(v) for v in value]
    return value
