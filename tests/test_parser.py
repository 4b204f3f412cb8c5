"""Tests for statement boundaries and single-cell validation."""

from __future__ import annotations

from iridium.notebook.parser import Keyword, prepare, segment_boundaries, validate_cell


def test_boundaries_with_semicolons() -> None:
    r = segment_boundaries("x = 1;\ny = 2;")
    assert r.ok
    assert r.data == [6, 13]


def test_boundaries_without_semicolons() -> None:
    r = segment_boundaries("a = 1\nb = 2")
    assert r.ok
    assert r.data == [5, 11]


def test_boundaries_strictly_increasing() -> None:
    r = segment_boundaries("a = 1;\n\nb = a;\n/*PIN*/\nc = b * 2;\n{\n  return c;\n};")
    assert r.ok
    assert r.data is not None
    assert len(r.data) == 4
    assert r.data == sorted(set(r.data))


def test_reject_syntax_error() -> None:
    r = segment_boundaries("x = (")
    assert not r.ok
    assert r.data is None
    assert r.codes == ["SYNTAX_ERROR"]


def test_named_block_is_one_statement() -> None:
    source = "total = {\n  let s = 0;\n  return s;\n};"
    r = segment_boundaries(source)
    assert r.ok
    assert r.data == [len(source)]


def test_named_block_without_semicolon() -> None:
    r = segment_boundaries("a = {\n  return 1\n}\nb = 2;")
    assert r.ok
    assert r.data is not None
    assert len(r.data) == 2


def test_observable_keywords_parse() -> None:
    source = "viewof n = 1;\nmutable m = 2;\ndata = await fetch(u);\nticks = {\n  yield 1;\n}"
    r = segment_boundaries(source)
    assert r.ok
    assert r.data is not None
    assert len(r.data) == 4


def test_import_cell() -> None:
    r = segment_boundaries('import {a} from "@x/y";\nb = a;')
    assert r.ok
    assert r.data is not None
    assert len(r.data) == 2


def test_empty_statement_on_own_line_is_separate() -> None:
    r = segment_boundaries("x = 1;\n;")
    assert r.ok
    assert r.data == [6, 8]


def test_empty_statement_on_same_line_merges() -> None:
    r = segment_boundaries("x = 1;;")
    assert r.ok
    assert r.data == [7]


def test_prepare_preserves_offsets() -> None:
    source = "viewof x = 1;\nv = await g();\ny = {\n  return 2;\n}"
    prepared = prepare(source)
    assert len(prepared.text) == len(source)
    assert prepared.text.count("\n") == source.count("\n")
    assert "viewof" not in prepared.text
    assert "await" not in prepared.text


def test_prepare_records_keywords() -> None:
    prepared = prepare("viewof x = 1", heads=False)
    assert prepared.text == "       x = 1"
    assert prepared.keywords == [Keyword(kind="viewof", start=0, end=7)]


def test_prepare_leaves_indented_assignment() -> None:
    prepared = prepare("{\n  a = {b: 1, c: 2};\n}")
    assert "a = {b: 1, c: 2}" in prepared.text


def test_validate_single_statement() -> None:
    r = validate_cell("x = 1")
    assert r.ok
    assert r.data == "x = 1"


def test_validate_rejects_garbage() -> None:
    r = validate_cell("{{{invalid")
    assert not r.ok
    assert r.codes == ["CELL_SYNTAX_ERROR"]


def test_validate_rejects_two_statements() -> None:
    r = validate_cell("x = 1; y = 2")
    assert not r.ok
    assert any("Expected 1 statement" in d.message for d in r.diagnostics)


def test_validate_empty_cell() -> None:
    assert validate_cell("").ok


def test_validate_block_cell() -> None:
    assert validate_cell("x = {\n  return 1;\n}").ok


def test_indented_object_assignment_in_block_parses() -> None:
    r = segment_boundaries("{\n  a = {b: 1, c: 2};\n  return a;\n}")
    assert r.ok
    assert r.data is not None
    assert len(r.data) == 1


def test_indented_named_block_cell_is_valid() -> None:
    assert validate_cell("  c = {\n  return 1;\n}").ok


def test_named_block_after_pin_marker_on_same_line() -> None:
    r = segment_boundaries("a = 1\n/*PIN*/ c = {\n  return a;\n}\n")
    assert r.ok
    assert r.data is not None
    assert len(r.data) == 2


def test_reported_error_is_the_first_one() -> None:
    r = segment_boundaries("a = {\n  return 1;\n}\nb = (")
    assert not r.ok
    assert "Notebook parse error" in r.diagnostics[0].message


def test_validate_rejects_statements_that_are_not_cells() -> None:
    for source in (
        "if (a) { b }",
        "for (;;) {}",
        "const x = 1",
        "let y = 2",
        "return 1",
        "throw new Error('x')",
        "debugger",
        "label: 1",
        'import chart from "@d3/bar-chart"',
        "export default 1",
    ):
        r = validate_cell(source)
        assert not r.ok, source
        assert r.codes == ["CELL_SYNTAX_ERROR"], source


def test_validate_accepts_every_cell_kind() -> None:
    for source in (
        "x = 1",
        "md`# Title`",
        "{\n  return 1;\n}",
        "viewof n = slider()",
        "mutable m = 0",
        'import {chart, viewof n as k} from "@d3/bar-chart"',
        "function f(a) { return a; }",
        "class Point {}",
        "data = await fetch(url)",
    ):
        assert validate_cell(source).ok, source


def test_segmentation_keeps_statements_that_are_not_cells() -> None:
    r = segment_boundaries("a = 1;\nconst x = 2;")
    assert r.ok
    assert r.data == [6, 19]
