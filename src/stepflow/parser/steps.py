"""Step declarations: ``alias = fq.function(params) -> (outputs) {metadata};``."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from ..lexer import find_closing, find_top_level, split_top_level
from ..models import ParamInfo, StepDefinition
from ..values import unquote
from .literals import parse_metadata

__all__ = ["looks_like_step_declaration", "parse_step_declaration", "parse_parameters"]

log = logging.getLogger(__name__)

_HEAD_RE = re.compile(r"^(?P<alias>[^\W\d][\w]*)\s*=\s*(?P<rest>.+)$")
_FUNCTION_RE = re.compile(r"^[^\W\d][\w.]*$")
_STATIC_RE = re.compile(r"^(?P<function>[^\W\d][\w.]*)\s*\[(?P<case>[^\]]+)\]$")
_LEGACY_METADATA_RE = re.compile(r"\s(\{[^{}]*:[^{}]*\})\s*$")


def looks_like_step_declaration(text: str) -> bool:
    if ":=" in text.split("->", 1)[0]:
        return False
    return "->" in text and bool(_HEAD_RE.match(text))


def parse_step_declaration(text: str, line_number: int = 0, desc: str = "") -> Optional[StepDefinition]:
    """
    Parse one declaration line; returns None for anything malformed.
    """

    head = _HEAD_RE.match(text.strip())
    if not head:
        return None
    rest = head.group("rest").strip()
    arrow = find_top_level(rest, "->")
    if arrow == -1:
        log.debug("Step declaration without '->' on line %s: %s", line_number, text)
        return None

    parsed_input = _parse_input_part(rest[:arrow].strip())
    if parsed_input is None:
        log.debug("Unrecognised step input part on line %s: %s", line_number, text)
        return None
    function, input_params, is_static, case_id = parsed_input

    parsed_output = _parse_output_part(rest[arrow + 2 :].strip())
    if parsed_output is None:
        log.debug("Unrecognised step output part on line %s: %s", line_number, text)
        return None
    output_params, metadata = parsed_output

    return StepDefinition(
        name=head.group("alias"),
        function=function,
        input_params=input_params,
        output_params=output_params,
        is_static=is_static,
        case_id=case_id,
        metadata=metadata,
        desc=desc,
        line_number=line_number,
    )


def _parse_input_part(part: str) -> Optional[Tuple[str, List[ParamInfo], bool, str]]:
    static = _STATIC_RE.match(part)
    if static:
        return static.group("function"), [], True, static.group("case").strip()

    paren = part.find("(")
    if paren == -1:
        return None
    function = part[:paren].strip()
    if not _FUNCTION_RE.match(function):
        return None
    close = find_closing(part, paren)
    if close == -1 or part[close + 1 :].strip():
        return None
    return function, parse_parameters(part[paren + 1 : close]), False, ""


def _parse_output_part(part: str) -> Optional[Tuple[List[ParamInfo], dict]]:
    part = part.strip().rstrip(";").strip()
    metadata: dict = {}
    if part.startswith("("):
        close = find_closing(part, 0)
        if close == -1:
            return None
        tail = part[close + 1 :].strip().rstrip(";").strip()
        if tail:
            if not (tail.startswith("{") and tail.endswith("}")):
                return None
            metadata = parse_metadata(tail)
        return parse_parameters(part[1:close]), metadata

    legacy_meta = _LEGACY_METADATA_RE.search(part)
    if legacy_meta:
        metadata = parse_metadata(legacy_meta.group(1))
        part = part[: legacy_meta.start()].strip()
    return parse_parameters(part), metadata


def parse_parameters(text: str) -> List[ParamInfo]:
    """
    Parse a parameter list, keeping the declared order.

    Accepts ``name: type "desc"``, ``name: type`` and the legacy ``type name``.
    """

    params: List[ParamInfo] = []
    for raw in split_top_level(text, ","):
        param = _parse_parameter(raw)
        if param is None:
            log.debug("Skipping malformed parameter definition: %s", raw)
            continue
        params.append(param)
    return params


def _parse_parameter(raw: str) -> Optional[ParamInfo]:
    raw = raw.strip()
    if not raw:
        return None
    colon = find_top_level(raw, ":")
    if colon > 0:
        name = raw[:colon].strip()
        type_part, desc = _split_description(raw[colon + 1 :])
        if not name:
            return None
        return ParamInfo(name=name, type=type_part, desc=desc)

    body, desc = _split_description(raw)
    fields = body.split()
    if not fields:
        return None
    if len(fields) == 1:
        return ParamInfo(name=fields[0], type="", desc=desc)
    name = " ".join(fields[1:])
    return ParamInfo(name=name, type=fields[0], desc=desc or name)


def _split_description(text: str) -> Tuple[str, str]:
    quote = find_top_level(text, '"')
    if quote == -1:
        return text.strip(), ""
    return text[:quote].strip(), unquote(text[quote:].strip())
