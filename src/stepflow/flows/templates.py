"""``name := "text {{other}}"`` assignments."""

from __future__ import annotations

import re
from typing import Mapping, Optional, Tuple

from ..lexer import find_top_level
from ..models import VariableInfo
from ..values import format_value, unquote

_PLACEHOLDER_RE = re.compile(r"\{\{([^}]+)\}\}")


def parse_var_assignment(content: str) -> Optional[Tuple[str, str]]:
    index = find_top_level(content, ":=")
    if index == -1:
        return None
    name = content[:index].strip()
    if not name:
        return None
    return name, unquote(content[index + 2 :].strip().rstrip(";").strip())


def render_template(text: str, variables: Mapping[str, VariableInfo]) -> str:
    """Replace each ``{{name}}`` once; unknown names are left as written."""

    def _replace(match: "re.Match[str]") -> str:
        info = variables.get(match.group(1).strip())
        if info is None:
            return match.group(0)
        return format_value(info.value)

    return _PLACEHOLDER_RE.sub(_replace, text)
