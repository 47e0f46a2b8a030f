"""
Condition evaluation for ``if`` statements.

Only four forms are understood: ``x != nil``, ``x == true``, ``x == false``
and ``x != true``. Anything else evaluates to false.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional, Tuple

from ..models import VariableInfo

_CONDITION_RE = re.compile(
    r"^\(?\s*(?P<name>[^\W\d][\w]*)\s*(?P<op>==|!=)\s*(?P<rhs>nil|true|false)\s*\)?$"
)
_SUPPORTED = {("!=", "nil"), ("==", "true"), ("==", "false"), ("!=", "true")}


def parse_condition(condition: str) -> Optional[Tuple[str, str, str]]:
    match = _CONDITION_RE.match(condition.strip())
    if not match:
        return None
    op, rhs = match.group("op"), match.group("rhs")
    if (op, rhs) not in _SUPPORTED:
        return None
    return match.group("name"), op, rhs


def is_supported_condition(condition: str) -> bool:
    return parse_condition(condition) is not None


def _is_true(value: Any) -> bool:
    return value is True or (isinstance(value, str) and value.lower() == "true")


def _is_false(value: Any) -> bool:
    return value is False or (isinstance(value, str) and value.lower() == "false")


def evaluate_condition(condition: str, variables: Mapping[str, VariableInfo]) -> bool:
    parsed = parse_condition(condition)
    if parsed is None:
        return False
    name, op, rhs = parsed
    info = variables.get(name)
    value = info.value if info is not None else None
    if rhs == "nil":
        return value is not None
    if op == "==" and rhs == "true":
        return _is_true(value)
    if op == "==" and rhs == "false":
        return _is_false(value)
    return not _is_true(value)
