"""Compile a notebook source into an Observable runtime ES module.

Output shape (one `main.variable(...)` line per cell):

    import define1 from "@user/other";

    export default function define(runtime, observer) {
      const main = runtime.module();
      const child1 = runtime.module(define1);
      main.import("chart", child1);
      main.variable(observer("x")).define("x", ["y"], function(y){return(
    y + 1
    )});
      return main;
    }

Import specifiers go through `resolve_import_path` unchanged by default.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import esprima
from esprima.error_handler import Error as EsprimaError

from iridium.compiler.references import analyze
from iridium.core import Result
from iridium.notebook.parser import PARSE_OPTIONS, Prepared, parse_program, prepare, unsupported_statement
from iridium.notebook.segmenter import original_spans

logger = logging.getLogger("iridium.compiler")

_HEAD = re.compile(r"(?:(viewof|mutable)\s+)?([A-Za-z_$][\w$]*)\s*=(?![=>])\s*")
_NAMED_DECLARATIONS = frozenset({"FunctionDeclaration", "ClassDeclaration"})


@dataclass
class ImportDefinition:
    source: str
    specifiers: list[tuple[str, str]] = field(default_factory=list)


@dataclass
class CellDefinition:
    name: str | None
    kind: str
    body: str
    block: bool
    inputs: list[str] = field(default_factory=list)
    params: list[str] = field(default_factory=list)
    is_async: bool = False
    generator: bool = False

    def function(self) -> str:
        keyword = ("async " if self.is_async else "") + ("function*" if self.generator else "function")
        signature = f"{keyword}({','.join(self.params)})"
        if self.block:
            return f"{signature}\n{self.body}"
        return f"{signature}{{return(\n{self.body}\n)}}"


def _identity(path: str) -> str:
    return path


def _skip_trivia(text: str) -> int:
    """Offset of the first character that is not whitespace or a comment."""
    i = 0
    n = len(text)
    while i < n:
        if text[i].isspace():
            i += 1
        elif text.startswith("//", i):
            newline = text.find("\n", i)
            i = n if newline == -1 else newline + 1
        elif text.startswith("/*", i):
            close = text.find("*/", i + 2)
            i = n if close == -1 else close + 2
        else:
            break
    return i


def _cell_text(span: str) -> str:
    text = span[_skip_trivia(span) :].rstrip()
    return text.removesuffix(";").rstrip()


def _define(name: str | None, kind: str, body: str, *, block: bool) -> CellDefinition:
    """Analyse a cell body and build its definition.

    The body is parsed inside a wrapper function so that `return` is legal
    in blocks and expressions cannot be mistaken for declarations.
    """
    prepared = prepare(body, heads=False)
    prefix, suffix = ("(function()", ")") if block else ("(function(){return(\n", "\n)})")
    program = esprima.parseScript(prefix + prepared.text + suffix, PARSE_OPTIONS)
    if len(program.body) != 1 or program.body[0].type != "ExpressionStatement":
        raise ValueError("Cell body is not a single expression or block")
    wrapper = program.body[0].expression
    if wrapper.type != "FunctionExpression":
        raise ValueError("Cell body is not a single expression or block")

    shift = len(prefix)
    analysis = analyze(wrapper.body)
    cell = CellDefinition(name=name, kind=kind, body=body, block=block)

    named_views = {k.end: k for k in prepared.keywords if k.kind in ("viewof", "mutable")}
    aliases: dict[str, str] = {}
    rewrites: list[tuple[int, int, str]] = []
    for ref in analysis.references:
        keyword = named_views.get(ref.start - shift)
        if keyword is None:
            if ref.name not in cell.inputs:
                cell.inputs.append(ref.name)
                cell.params.append(ref.name)
            continue
        input_name = f"{keyword.kind} {ref.name}"
        if input_name not in aliases:
            aliases[input_name] = f"${len(aliases)}"
            cell.inputs.append(input_name)
            cell.params.append(aliases[input_name])
        replacement = aliases[input_name] + (".value" if keyword.kind == "mutable" else "")
        rewrites.append((keyword.start, ref.end - shift, replacement))

    for start, end, replacement in reversed(rewrites):
        cell.body = cell.body[:start] + replacement + cell.body[end:]

    for keyword in prepared.keywords:
        if keyword.kind in ("await", "yield") and not analysis.opaque(keyword.start + shift):
            if keyword.kind == "await":
                cell.is_async = True
            else:
                cell.generator = True
    return cell


def _import_definition(stmt: Any, prepared: Prepared) -> ImportDefinition:
    views = {k.end for k in prepared.keywords if k.kind == "viewof"}
    definition = ImportDefinition(source=stmt.source.value)
    for specifier in stmt.specifiers:
        imported, local = specifier.imported.name, specifier.local.name
        if specifier.imported.range[0] in views:
            definition.specifiers.append((f"viewof {imported}", f"viewof {local}"))
        definition.specifiers.append((imported, local))
    return definition


def parse_cell(span: str) -> CellDefinition | ImportDefinition | None:
    """Classify and analyse one cell span. Returns None for an empty cell.

    Raises esprima's Error or ValueError when the cell cannot be compiled.
    """
    text = _cell_text(span)
    if not text:
        return None

    head = _HEAD.match(text)
    if head:
        body = text[head.end() :]
        return _define(head.group(2), head.group(1) or "", body, block=body.startswith("{"))

    prepared, program = parse_program(text)
    statements = [s for s in program.body if s.type != "EmptyStatement"]
    if len(statements) != 1:
        raise ValueError(f"Expected 1 statement, got {len(statements)}")
    stmt = statements[0]
    problem = unsupported_statement(stmt)
    if problem:
        raise ValueError(problem)
    if stmt.type == "ImportDeclaration":
        return _import_definition(stmt, prepared)
    if stmt.type in _NAMED_DECLARATIONS:
        return _define(stmt.id.name, "", text, block=False)
    if stmt.type == "BlockStatement":
        return _define(None, "", text, block=True)
    return _define(None, "", text, block=False)


def _define_call(name: str | None, inputs: list[str], function: str) -> str:
    args: list[str] = []
    if name is not None:
        args.append(json.dumps(name))
    if inputs:
        args.append(json.dumps(inputs))
    args.append(function)
    return f"define({', '.join(args)})"


def _emit_cell(cell: CellDefinition) -> list[str]:
    function = cell.function()
    if cell.name is None:
        return [f"  main.variable(observer()).{_define_call(None, cell.inputs, function)};"]

    name = json.dumps(cell.name)
    if cell.kind == "viewof":
        view = f"viewof {cell.name}"
        return [
            f"  main.variable(observer({json.dumps(view)})).{_define_call(view, cell.inputs, function)};",
            f"  main.variable(observer({name})).define({name}, "
            f'["Generators", {json.dumps(view)}], (G, _) => G.input(_));',
        ]
    if cell.kind == "mutable":
        initial = f"initial {cell.name}"
        mutable = json.dumps(f"mutable {cell.name}")
        return [
            f"  main.{_define_call(initial, cell.inputs, function)};",
            f"  main.variable(observer({mutable})).define({mutable}, "
            f'["Mutable", {json.dumps(initial)}], (M, _) => new M(_));',
            f"  main.variable(observer({name})).define({name}, [{mutable}], _ => _.generator);",
        ]
    return [f"  main.variable(observer({name})).{_define_call(cell.name, cell.inputs, function)};"]


def _emit_import(index: int, definition: ImportDefinition) -> list[str]:
    child = f"child{index}"
    lines = [f"  const {child} = runtime.module(define{index});"]
    for imported, local in definition.specifiers:
        if imported == local:
            lines.append(f"  main.import({json.dumps(imported)}, {child});")
        else:
            lines.append(f"  main.import({json.dumps(imported)}, {json.dumps(local)}, {child});")
    return lines


def compile_module(source: str, resolve_import_path: Callable[[str], str] = _identity) -> Result[str]:
    """Compile a notebook source. Returns the module code or COMPILE_ERROR diagnostics."""
    result: Result[str] = Result()

    spans = original_spans(source)
    if not spans.ok or spans.data is None:
        for diag in spans.diagnostics:
            result.error("COMPILE_ERROR", diag.message)
        return result

    imports: list[str] = []
    lines: list[str] = []
    for index, span in enumerate(spans.data):
        try:
            definition = parse_cell(span)
        except (EsprimaError, ValueError) as e:
            result.error("COMPILE_ERROR", f"Cell {index}: {e}")
            continue
        if definition is None:
            continue
        if isinstance(definition, ImportDefinition):
            number = len(imports) + 1
            imports.append(f"import define{number} from {json.dumps(resolve_import_path(definition.source))};")
            lines.extend(_emit_import(number, definition))
        else:
            lines.extend(_emit_cell(definition))

    if result.has_errors:
        logger.warning("Compilation failed: %s", result.summary())
        return result

    parts: list[str] = []
    if imports:
        parts.extend(imports)
        parts.append("")
    parts.append("export default function define(runtime, observer) {")
    parts.append("  const main = runtime.module();")
    parts.extend(lines)
    parts.append("  return main;")
    parts.append("}")
    result.data = "\n".join(parts) + "\n"
    return result
