"""
Line-oriented lexer for stepflow source text.

The flow grammar is line based, so the lexer does not emit a token stream.
It splits the source into numbered lines and offers quote- and bracket-aware
scanning helpers that the parsers share.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

QUOTES = {'"', "'", "`"}
OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {v: k for k, v in OPENERS.items()}
DESC_PREFIX = "//desc:"


@dataclass
class SourceLine:
    number: int
    raw: str

    @property
    def text(self) -> str:
        return self.raw.strip()

    @property
    def is_blank(self) -> bool:
        return not self.text

    @property
    def is_comment(self) -> bool:
        return self.text.startswith("//")

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"SourceLine({self.number}: {self.text!r})"


class Lexer:
    """
    Splits source into :class:`SourceLine` objects (1-based line numbers).
    """

    def __init__(self, source: str, filename: str = "<string>") -> None:
        self.source = source
        self.filename = filename

    def lines(self) -> List[SourceLine]:
        return [SourceLine(number, raw) for number, raw in enumerate(self.source.splitlines(), start=1)]


def strip_comment(text: str) -> str:
    """Drop a trailing ``// comment`` that is not inside a string."""
    quote: Optional[str] = None
    i = 0
    while i < len(text):
        char = text[i]
        if quote:
            if char == "\\":
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in QUOTES:
            quote = char
        elif text.startswith("//", i):
            return text[:i].rstrip()
        i += 1
    return text


def _count_braces(text: str) -> Tuple[int, int]:
    """Count ``{`` and ``}`` outside strings and comments."""
    opens = closes = 0
    quote: Optional[str] = None
    code = strip_comment(text)
    i = 0
    while i < len(code):
        char = code[i]
        if quote:
            if char == "\\":
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in QUOTES:
            quote = char
        elif char == "{":
            opens += 1
        elif char == "}":
            closes += 1
        i += 1
    return opens, closes


def find_block_end(lines: List[SourceLine], start: int) -> int:
    """
    Index of the line that closes the block opened on ``lines[start]``.

    Returns -1 when the block is never closed.
    """

    depth = 0
    opened = False
    for index in range(start, len(lines)):
        opens, closes = _count_braces(lines[index].text)
        opened = opened or opens > 0
        depth += opens - closes
        if opened and depth <= 0:
            return index
    return -1


def find_closing(text: str, open_index: int) -> int:
    """Index of the bracket matching ``text[open_index]``, or -1."""
    stack: List[str] = []
    quote: Optional[str] = None
    i = open_index
    while i < len(text):
        char = text[i]
        if quote:
            if char == "\\":
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in QUOTES:
            quote = char
        elif char in OPENERS:
            stack.append(OPENERS[char])
        elif char in CLOSERS:
            if not stack or stack[-1] != char:
                return -1
            stack.pop()
            if not stack:
                return i
        i += 1
    return -1


def split_top_level(text: str, sep: str = ",") -> List[str]:
    """Split on ``sep`` outside quotes and brackets; empty parts are dropped."""
    parts: List[str] = []
    current: List[str] = []
    depth = 0
    quote: Optional[str] = None
    i = 0
    while i < len(text):
        char = text[i]
        if quote:
            current.append(char)
            if char == "\\" and i + 1 < len(text):
                current.append(text[i + 1])
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in QUOTES:
            quote = char
            current.append(char)
        elif char in OPENERS:
            depth += 1
            current.append(char)
        elif char in CLOSERS:
            depth -= 1
            current.append(char)
        elif char == sep and depth == 0:
            part = "".join(current).strip()
            if part:
                parts.append(part)
            current = []
        else:
            current.append(char)
        i += 1
    part = "".join(current).strip()
    if part:
        parts.append(part)
    return parts


def find_top_level(text: str, needle: str, start: int = 0) -> int:
    """First index of ``needle`` outside quotes and brackets, or -1."""
    depth = 0
    quote: Optional[str] = None
    i = start
    while i < len(text):
        char = text[i]
        if quote:
            if char == "\\":
                i += 2
                continue
            if char == quote:
                quote = None
        elif depth == 0 and text.startswith(needle, i):
            return i
        elif char in QUOTES:
            quote = char
        elif char in OPENERS:
            depth += 1
        elif char in CLOSERS:
            depth -= 1
        i += 1
    return -1


def description_above(lines: List[SourceLine], index: int) -> str:
    """The ``//desc:`` text from the comment lines directly above ``lines[index]``."""
    for j in range(index - 1, -1, -1):
        text = lines[j].text
        if not text:
            continue
        if text.startswith(DESC_PREFIX):
            return text[len(DESC_PREFIX) :].strip()
        if not text.startswith("//"):
            break
    return ""
