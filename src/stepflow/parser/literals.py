"""Literal maps: the ``input`` block and ``{key: value}`` metadata."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from ..errors import ParseError
from ..lexer import SourceLine, find_closing, split_top_level, strip_comment
from ..values import parse_literal, unquote

__all__ = ["is_input_declaration", "parse_input_block", "parse_map_content", "parse_metadata"]

log = logging.getLogger(__name__)

_INPUT_PREFIXES = ("var input", "input :=", "input =", "input:=")


def is_input_declaration(text: str) -> bool:
    return text.startswith(_INPUT_PREFIXES)


def _map_body_start(text: str) -> int:
    """
    Index of the ``{`` that opens the map literal.

    Skips empty brace pairs that belong to the type, as in
    ``map[string]interface{}{ ... }``.
    """

    i = text.find("{")
    while i != -1:
        j = i + 1
        while j < len(text) and text[j] in " \t":
            j += 1
        if j < len(text) and text[j] == "}":
            i = text.find("{", j + 1)
            continue
        return i
    return -1


def parse_input_block(lines: List[SourceLine], start: int) -> Tuple[Dict[str, Any], int]:
    """
    Parse the input map declared on ``lines[start]``.

    Returns the map and the index of the last line consumed. An unterminated
    map is a structural failure.
    """

    first = lines[start]
    joined_lines: List[str] = []
    for index in range(start, len(lines)):
        joined_lines.append(strip_comment(lines[index].text))
        joined = "\n".join(joined_lines)
        open_index = _map_body_start(joined)
        if open_index == -1:
            if joined.rstrip().rstrip(";").rstrip().endswith("{}"):
                return {}, index
            continue
        close_index = find_closing(joined, open_index)
        if close_index != -1:
            return parse_map_content(joined[open_index + 1 : close_index]), index
    if _map_body_start("\n".join(joined_lines)) == -1:
        raise ParseError("Input declaration has no map literal", line=first.number)
    raise ParseError("Input map is missing its closing '}'", line=first.number)


def parse_map_content(content: str) -> Dict[str, Any]:
    """Parse ``"key": value`` entries separated by commas or newlines."""
    result: Dict[str, Any] = {}
    entries: List[str] = []
    for chunk in content.split("\n"):
        entries.extend(split_top_level(chunk, ","))
    for entry in entries:
        pair = _split_pair(entry)
        if pair is None:
            log.debug("Skipping malformed map entry: %s", entry)
            continue
        key, value = pair
        result[key] = parse_literal(value)
    return result


def parse_metadata(text: str) -> Dict[str, Any]:
    """Parse ``{retry:3, timeout:5000, priority:"high"}`` into typed values."""
    body = text.strip()
    if body.startswith("{") and body.endswith("}"):
        body = body[1:-1]
    metadata: Dict[str, Any] = {}
    for entry in split_top_level(body, ","):
        pair = _split_pair(entry)
        if pair is None:
            log.debug("Skipping malformed metadata entry: %s", entry)
            continue
        key, value = pair
        metadata[key] = parse_literal(value)
    return metadata


def _split_pair(entry: str) -> Optional[Tuple[str, str]]:
    entry = entry.strip().rstrip(",").strip()
    if not entry:
        return None
    colon = _find_key_colon(entry)
    if colon <= 0:
        return None
    key = unquote(entry[:colon].strip())
    value = entry[colon + 1 :].strip()
    if not key or not value:
        return None
    return key, value


def _find_key_colon(entry: str) -> int:
    stripped = entry.lstrip()
    offset = len(entry) - len(stripped)
    if stripped[:1] in {'"', "'"}:
        end = stripped.find(stripped[0], 1)
        if end == -1:
            return -1
        return entry.find(":", offset + end + 1)
    return entry.find(":")
