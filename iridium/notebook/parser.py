"""Statement boundaries and single-cell validation using esprima.

esprima parses plain ES2017. The Observable additions a notebook may use
(`viewof`/`mutable` prefixes, top-level `await`/`yield`, `name = { ... }`
block bodies) are blanked out with spaces before parsing, so every offset
esprima reports still indexes the original text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import esprima
from esprima.error_handler import Error as EsprimaError

from iridium.core import Result

PARSE_OPTIONS = {"range": True, "tolerant": True}

# Named block cell head at column 0, optionally behind the pin marker: `x = {`
_BLOCK_HEAD = re.compile(
    r"^(/\*PIN\*/[ \t]*)?((?:(?:viewof|mutable)\s+)?[A-Za-z_$][\w$]*\s*=)(?![=>])(?=\s*\{)",
    re.MULTILINE,
)
# Same, at any indentation. Only blanked when parsing fails past it.
_INDENTED_HEAD = re.compile(
    r"^([ \t]*(?:/\*PIN\*/[ \t]*)?)([A-Za-z_$][\w$]*\s*=)(?![=>])(?=\s*\{)",
    re.MULTILINE,
)
_KEYWORD = re.compile(r"\b(viewof|mutable)\s+(?=[A-Za-z_$])|\b(await|yield)(?:\s*\*|(?=[\s(]))")

# Top-level statement kinds a notebook cell may consist of
CELL_STATEMENTS = frozenset(
    {"ExpressionStatement", "BlockStatement", "ImportDeclaration", "FunctionDeclaration", "ClassDeclaration"}
)


@dataclass(frozen=True)
class Keyword:
    """A blanked Observable keyword. For viewof/mutable, `end` is where the name starts."""

    kind: str
    start: int
    end: int


@dataclass
class Prepared:
    text: str
    keywords: list[Keyword] = field(default_factory=list)


def _blank(text: str) -> str:
    return re.sub(r"[^\n]", " ", text)


def prepare(source: str, *, heads: bool = True) -> Prepared:
    """Return an esprima-parseable copy of `source` with identical offsets."""
    text = source
    if heads:
        text = _BLOCK_HEAD.sub(lambda m: (m.group(1) or "") + _blank(m.group(2)), text)

    keywords: list[Keyword] = []

    def _record(m: re.Match[str]) -> str:
        keywords.append(Keyword(kind=m.group(1) or m.group(2), start=m.start(), end=m.end()))
        return _blank(m.group(0))

    text = _KEYWORD.sub(_record, text)
    return Prepared(text=text, keywords=keywords)


def _head_before(text: str, index: int) -> re.Match[str] | None:
    found = None
    for m in _INDENTED_HEAD.finditer(text):
        if m.end() > index:
            break
        found = m
    return found


def parse_program(source: str) -> tuple[Prepared, Any]:
    """Prepare and parse a notebook or a cell as a module.

    Column-0 block heads are blanked up front. While parsing fails, the
    closest `name = {` before the error is blanked too and parsing retried.
    Raises esprima's Error (the first one seen) when nothing helps.
    """
    prepared = prepare(source)
    first_error: EsprimaError | None = None
    while True:
        try:
            return prepared, esprima.parseModule(prepared.text, PARSE_OPTIONS)
        except EsprimaError as e:
            first_error = first_error or e
            index = getattr(e, "index", None)
            head = _head_before(prepared.text, len(prepared.text) if index is None else index)
            if head is None:
                raise first_error from None
            text = prepared.text
            prepared.text = text[: head.start(2)] + _blank(head.group(2)) + text[head.end(2) :]


def statement_ends(text: str, statements: list[Any]) -> list[int]:
    """Exclusive end offsets of top-level statements.

    A bare `;` belongs to the statement before it unless that statement is
    already terminated and the `;` sits on a later line, in which case it is
    an empty statement of its own.
    """
    ends: list[int] = []
    for stmt in statements:
        start, end = stmt.range
        if stmt.type == "EmptyStatement" and ends:
            previous = ends[-1]
            if text[previous - 1] != ";" or "\n" not in text[previous:start]:
                ends[-1] = end
                continue
        ends.append(end)
    return ends


def unsupported_statement(stmt: Any) -> str | None:
    """Why `stmt` cannot be a notebook cell, or None when it can."""
    if stmt.type not in CELL_STATEMENTS:
        return f"Unsupported top-level statement: {stmt.type}"
    if stmt.type == "ImportDeclaration" and any(s.type != "ImportSpecifier" for s in stmt.specifiers):
        return "Only named imports are supported in notebooks"
    return None


def segment_boundaries(source: str) -> Result[list[int]]:
    """Statement end offsets for a whole notebook source."""
    result: Result[list[int]] = Result()
    try:
        prepared, program = parse_program(source)
    except EsprimaError as e:
        result.error("SYNTAX_ERROR", f"Notebook parse error: {e}")
        return result
    result.data = statement_ends(prepared.text, program.body)
    return result


def validate_cell(source: str) -> Result[str]:
    """Validate that `source` is empty or exactly one cell statement.

    Accepts what the compiler accepts: an expression (named or not), a
    block, a named import, a function or a class declaration. Returns Result
    with the unchanged source on success.
    """
    result: Result[str] = Result()
    try:
        prepared, program = parse_program(source)
    except EsprimaError as e:
        result.error("CELL_SYNTAX_ERROR", f"Cell parse error: {e}")
        return result

    count = len(statement_ends(prepared.text, program.body))
    if count > 1:
        result.error("CELL_SYNTAX_ERROR", f"Expected 1 statement, got {count}")
        return result

    for stmt in program.body:
        problem = None if stmt.type == "EmptyStatement" else unsupported_statement(stmt)
        if problem:
            result.error("CELL_SYNTAX_ERROR", problem)
            return result

    result.data = source
    return result
