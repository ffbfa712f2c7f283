"""Brace-literal text for meshes: ``{{1,2},{3,4}}``."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Final

import numpy as np

from .errors import MeshParseError, MeshShapeError
from .scalars import ScalarKind, parse_boolean
from .vectors import Complex

_LITERAL_CACHE_MAX: Final[int] = max(1, int(os.environ.get("MESHCRAWL_LITERAL_CACHE_MAX", "256")))
_LITERAL_MAX_DEPTH: Final[int] = max(1, int(os.environ.get("MESHCRAWL_LITERAL_MAX_DEPTH", "32")))

_SINGLE_TOKENS: Final[dict[str, str]] = {
    "{": "LBRACE",
    "}": "RBRACE",
    ",": "SEP",
}
_BARE_STOP: Final[frozenset[str]] = frozenset('{},"')
_BOOLEAN_WORDS: Final[frozenset[str]] = frozenset(
    {"true", "false", "t", "f", "yes", "no", "y", "n", "on", "off", "enabled", "disabled"}
)
_INTEGER_RE = re.compile(r"^[+-]?[0-9]+$")
_DECIMAL_RE = re.compile(
    r"""
    ^
    [+-]?
    (?:
        (?P<int>[0-9]+)(?:\.(?P<frac>[0-9]*))?
      |
        \.(?P<frac_only>[0-9]+)
    )
    (?:[eE][+-]?[0-9]+)?
    $
    """,
    re.VERBOSE,
)
_SPECIAL_DOUBLE_RE = re.compile(r"^[+-]?(?:inf|infinity|nan)$", re.IGNORECASE)
_COMPLEX_RE = re.compile(
    r"""
    ^
    (?:[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)?
    [+-]?
    (?:(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)?
    [iIjJ]
    $
    """,
    re.VERBOSE,
)
_FLOAT32_MAX: Final[float] = float(np.finfo(np.float32).max)
_FLOAT32_TINY: Final[float] = float(np.finfo(np.float32).tiny)
_FLOAT32_DIGITS: Final[int] = 7


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    pos: int
    end: int


@dataclass(frozen=True)
class LiteralItem:
    """One leaf of a literal, with its source span."""

    text: str
    start: int
    end: int
    quoted: bool = False


def _scan_string(source: str, start: int) -> tuple[str, int]:
    assert source[start] == '"'
    i = start + 1
    out: list[str] = []
    while i < len(source):
        ch = source[i]
        if ch == '"':
            if i + 1 < len(source) and source[i + 1] == '"':
                out.append('"')
                i += 2
                continue
            return "".join(out), i + 1
        if ch == "\\":
            if i + 1 >= len(source):
                break
            esc = source[i + 1]
            out.append({"n": "\n", "t": "\t", "r": "\r"}.get(esc, esc))
            i += 2
            continue
        out.append(ch)
        i += 1
    raise MeshParseError("Unterminated string element", start, len(source), expected=('"',))


def _scan_bare(source: str, start: int) -> tuple[str, int]:
    i = start
    while i < len(source) and source[i] not in _BARE_STOP:
        i += 1
    return source[start:i].rstrip(), i


@lru_cache(maxsize=_LITERAL_CACHE_MAX)
def _tokenize_cached(source: str) -> tuple[Token, ...]:
    tokens: list[Token] = []
    i = 0
    while i < len(source):
        ch = source[i]

        if ch.isspace():
            i += 1
            continue

        if ch in _SINGLE_TOKENS:
            tokens.append(Token(_SINGLE_TOKENS[ch], ch, i, i + 1))
            i += 1
            continue

        if ch == '"':
            value, end = _scan_string(source, i)
            tokens.append(Token("STRING", value, i, end))
            i = end
            continue

        text, end = _scan_bare(source, i)
        tokens.append(Token("ITEM", text, i, i + len(text)))
        i = end

    tokens.append(Token("EOF", "", len(source), len(source)))
    return tuple(tokens)


def tokenize(source: str) -> list[Token]:
    return list(_tokenize_cached(source))


class _Parser:
    def __init__(self, source: str) -> None:
        self.tokens = tokenize(source)
        self.i = 0

    def peek(self) -> Token:
        return self.tokens[self.i]

    def take(self) -> Token:
        tok = self.tokens[self.i]
        self.i += 1
        return tok

    def expect(self, kind: str, *, what: str) -> Token:
        tok = self.peek()
        if tok.kind != kind:
            raise MeshParseError(
                f"Expected {what}",
                tok.pos,
                tok.end,
                expected=(what,),
                found=tok.text or tok.kind,
            )
        return self.take()

    def parse(self) -> list:
        node = self.parse_list(depth=1)
        self.expect("EOF", what="end of input")
        return node

    def parse_list(self, *, depth: int) -> list:
        open_tok = self.expect("LBRACE", what="{")
        if depth > _LITERAL_MAX_DEPTH:
            raise MeshParseError(
                f"Literal nesting exceeds {_LITERAL_MAX_DEPTH} levels",
                open_tok.pos,
                open_tok.end,
            )
        items: list = []
        if self.peek().kind == "RBRACE":
            self.take()
            return items
        while True:
            items.append(self.parse_element(depth=depth))
            tok = self.peek()
            if tok.kind == "SEP":
                self.take()
                continue
            if tok.kind == "RBRACE":
                self.take()
                return items
            raise MeshParseError(
                "Unbalanced braces or missing separator",
                tok.pos,
                tok.end,
                expected=(",", "}"),
                found=tok.text or tok.kind,
            )

    def parse_element(self, *, depth: int):
        tok = self.peek()
        if tok.kind == "LBRACE":
            return self.parse_list(depth=depth + 1)
        if tok.kind == "ITEM":
            self.take()
            return LiteralItem(tok.text, tok.pos, tok.end)
        if tok.kind == "STRING":
            self.take()
            return LiteralItem(tok.text, tok.pos, tok.end, quoted=True)
        raise MeshParseError(
            "Empty element",
            tok.pos,
            tok.end,
            expected=("element",),
            found=tok.text or tok.kind,
        )


def _shape_of(node: list, where: str) -> tuple[int, ...]:
    if not node:
        return (0,)
    nested = [isinstance(item, list) for item in node]
    if not any(nested):
        return (len(node),)
    if not all(nested):
        raise MeshShapeError(f"{where} mixes elements and sub-arrays")
    first = _shape_of(node[0], f"{where}[0]")
    for idx in range(1, len(node)):
        shape = _shape_of(node[idx], f"{where}[{idx}]")
        if shape != first:
            raise MeshShapeError(f"{where}[{idx}] has shape {shape}, expected {first}")
    return (len(node),) + first


def _flatten(node: list, out: list[LiteralItem]) -> None:
    for item in node:
        if isinstance(item, list):
            _flatten(item, out)
        else:
            out.append(item)


def parse_literal(source: str) -> tuple[list[LiteralItem], tuple[int, ...]]:
    """Leaves of a literal in row-major order, and the literal's shape."""
    tree = _Parser(source).parse()
    shape = _shape_of(tree, "literal")
    items: list[LiteralItem] = []
    _flatten(tree, items)
    return items, shape


def _accepts_integer(item: LiteralItem, bits: int) -> bool:
    if item.quoted or not _INTEGER_RE.match(item.text):
        return False
    value = int(item.text)
    return -(1 << (bits - 1)) <= value < (1 << (bits - 1))


def _significant_digits(match: re.Match) -> int:
    digits = (match.group("int") or "") + (match.group("frac") or match.group("frac_only") or "")
    return len(digits.strip("0")) or 1


def _accepts_float(item: LiteralItem) -> bool:
    if item.quoted:
        return False
    if _SPECIAL_DOUBLE_RE.match(item.text):
        return True
    match = _DECIMAL_RE.match(item.text)
    if match is None:
        return False
    value = float(item.text)
    if value != 0.0 and not _FLOAT32_TINY <= abs(value) <= _FLOAT32_MAX:
        return False
    return _significant_digits(match) <= _FLOAT32_DIGITS


def _is_double_text(text: str) -> bool:
    return _DECIMAL_RE.match(text) is not None or _SPECIAL_DOUBLE_RE.match(text) is not None


def _accepts_double(item: LiteralItem) -> bool:
    return not item.quoted and _is_double_text(item.text)


def _accepts_complex(item: LiteralItem) -> bool:
    if item.quoted:
        return False
    cleaned = item.text.replace(" ", "")
    if not (_is_double_text(cleaned) or _COMPLEX_RE.match(cleaned)):
        return False
    try:
        Complex.parse(cleaned)
    except ValueError:
        return False
    return True


class LiteralType(str, Enum):
    BOOLEAN = "boolean"
    BYTE = "byte"
    SHORT = "short"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    COMPLEX = "complex"
    STRING = "string"

    def accepts(self, item: LiteralItem) -> bool:
        if self is LiteralType.BOOLEAN:
            return not item.quoted and item.text.casefold() in _BOOLEAN_WORDS
        if self is LiteralType.BYTE:
            return _accepts_integer(item, 8)
        if self is LiteralType.SHORT:
            return _accepts_integer(item, 16)
        if self is LiteralType.INT:
            return _accepts_integer(item, 32)
        if self is LiteralType.LONG:
            return _accepts_integer(item, 64)
        if self is LiteralType.FLOAT:
            return _accepts_float(item)
        if self is LiteralType.DOUBLE:
            return _accepts_double(item)
        if self is LiteralType.COMPLEX:
            return _accepts_complex(item)
        return True

    @property
    def element_type(self) -> object:
        if self is LiteralType.COMPLEX:
            return Complex
        if self is LiteralType.STRING:
            return str
        return ScalarKind(self.value)


def infer_literal_type(items: list[LiteralItem]) -> LiteralType:
    """Lowest type in ``LiteralType`` order that every item parses as."""
    if not items:
        return LiteralType.DOUBLE
    for ltype in LiteralType:
        if all(ltype.accepts(item) for item in items):
            return ltype
    return LiteralType.STRING


def _needs_quotes(text: str) -> bool:
    if not text or text != text.strip():
        return True
    if any(ch in _BARE_STOP or ch == "\\" for ch in text):
        return True
    item = LiteralItem(text, 0, len(text))
    return any(ltype.accepts(item) for ltype in LiteralType if ltype is not LiteralType.STRING)


def _format_leaf(value: object) -> str:
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    if isinstance(value, np.floating):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    if value is None:
        return '""'
    text = value if isinstance(value, str) else str(value)
    if isinstance(value, str) and _needs_quotes(text):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n").replace("\t", "\\t")
        return f'"{escaped}"'
    return text


def format_literal(values: list) -> str:
    """Inverse of parsing: nested lists to ``{...}`` text."""
    parts = [format_literal(item) if isinstance(item, list) else _format_leaf(item) for item in values]
    return "{" + ",".join(parts) + "}"
