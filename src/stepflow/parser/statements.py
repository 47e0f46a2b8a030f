"""Statements inside the ``main`` body."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from ..lexer import (
    SourceLine,
    description_above,
    find_block_end,
    find_closing,
    find_top_level,
    split_top_level,
    strip_comment,
)
from ..models import (
    Argument,
    CallStatement,
    IfStatement,
    ReturnStatement,
    Statement,
    VarStatement,
)
from ..options import ExecutionOptions
from ..values import is_literal_token
from .literals import parse_metadata

__all__ = ["StatementParser", "parse_arguments"]

log = logging.getLogger(__name__)

_CALL_RE = re.compile(r"^(?P<function>[^\W\d][\w.]*)\s*\(")
_PRINT_RE = re.compile(r"^(?:[^\W\d][\w]*\.)?(?:Print|Printf|Println)\s*\(")
_VAR_NAME_RE = re.compile(r"^[^\W\d][\w]*$")
_ELSE_RE = re.compile(r"^\}\s*else\b")


class StatementParser:
    def __init__(self, lines: List[SourceLine]) -> None:
        self.lines = lines

    def parse_block(self, start: int, end: int) -> List[Statement]:
        """Parse ``lines[start:end]`` into statements, recursing into if blocks."""
        statements: List[Statement] = []
        i = start
        while i < end:
            line = self.lines[i]
            code = strip_comment(line.text).strip()
            if not code or code in {"{", "}"} or line.is_comment:
                i += 1
                continue
            if code.startswith("if ") or code.startswith("if("):
                stmt, i = self._parse_if(i, end)
                statements.append(stmt)
                continue
            stmt = self.parse_line(code, line.number)
            if stmt is not None:
                stmt.desc = description_above(self.lines, i)
                statements.append(stmt)
            i += 1
        return statements

    def _parse_if(self, start: int, end: int) -> Tuple[IfStatement, int]:
        line = self.lines[start]
        code = strip_comment(line.text).strip()
        stmt = IfStatement(line_number=line.number, content=code, desc=description_above(self.lines, start))
        open_index = find_top_level(code, "{")
        if open_index == -1:
            stmt.condition = code[2:].strip()
            log.debug("if statement without a block on line %s", line.number)
            return stmt, start + 1
        stmt.condition = code[2:open_index].strip()

        block_end = find_block_end(self.lines, start)
        if block_end == -1 or block_end >= end:
            block_end = end - 1 if end > start else start
        if block_end == start:
            close = find_closing(code, open_index)
            body = code[open_index + 1 : close if close != -1 else len(code)].strip()
            if body:
                child = self.parse_line(body, line.number)
                if child is not None:
                    stmt.children.append(child)
            return stmt, start + 1

        children_end = self._else_index(start + 1, block_end)
        if children_end != block_end:
            log.warning("else branches are not supported; ignoring lines %s-%s",
                        self.lines[children_end].number, self.lines[block_end].number)
        stmt.children = self.parse_block(start + 1, children_end)
        return stmt, block_end + 1

    def _else_index(self, start: int, end: int) -> int:
        depth = 1
        for index in range(start, end):
            code = strip_comment(self.lines[index].text).strip()
            if depth == 1 and _ELSE_RE.match(code):
                return index
            depth += code.count("{") - code.count("}")
        return end

    def parse_line(self, code: str, line_number: int) -> Optional[Statement]:
        """Classify a single line; returns None for noise."""
        code = code.strip().rstrip(";").strip()
        if not code:
            return None
        if code == "return" or code.startswith("return "):
            return ReturnStatement(line_number=line_number, content=code)
        if _PRINT_RE.match(code):
            return None

        lhs, op, rhs = _split_assignment(code)
        call = _parse_call(rhs)
        if call is not None:
            function, args, metadata = call
            return CallStatement(
                line_number=line_number,
                content=code,
                function=function,
                args=args,
                returns=[name.strip() for name in lhs.split(",") if name.strip()] if lhs else [],
                metadata=metadata,
                options=ExecutionOptions.from_metadata(metadata),
            )
        if op == ":=" and _VAR_NAME_RE.match(lhs):
            return VarStatement(line_number=line_number, content=code)
        log.debug("Skipping unrecognised statement on line %s: %s", line_number, code)
        return None


def _split_assignment(code: str) -> Tuple[str, str, str]:
    index = find_top_level(code, ":=")
    if index != -1:
        return code[:index].strip(), ":=", code[index + 2 :].strip()
    index = find_top_level(code, "=")
    if index > 0 and code[index - 1] not in "!<>=" and code[index + 1 : index + 2] != "=":
        return code[:index].strip(), "=", code[index + 1 :].strip()
    return "", "", code


def _parse_call(text: str) -> Optional[Tuple[str, List[Argument], dict]]:
    match = _CALL_RE.match(text)
    if not match:
        return None
    open_index = match.end() - 1
    close = find_closing(text, open_index)
    if close == -1:
        return None
    tail = text[close + 1 :].strip()
    metadata: dict = {}
    if tail:
        if not (tail.startswith("{") and tail.endswith("}")):
            return None
        metadata = parse_metadata(tail)
    return match.group("function"), parse_arguments(text[open_index + 1 : close]), metadata


def parse_arguments(text: str) -> List[Argument]:
    args: List[Argument] = []
    for raw in split_top_level(text, ","):
        if raw.startswith("input[") and raw.endswith("]"):
            args.append(Argument(value=raw, is_input=True))
        elif is_literal_token(raw):
            args.append(Argument(value=raw, is_literal=True))
        else:
            args.append(Argument(value=raw))
    return args
