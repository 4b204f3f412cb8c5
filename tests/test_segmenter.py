"""Tests for notebook source -> cells."""

from __future__ import annotations

from conftest import SAMPLE_NOTEBOOK

from iridium.notebook.cell import Cell, cell_from_span, is_pinned, strip_span
from iridium.notebook.segmenter import original_spans, to_cells


def test_ids_are_positional() -> None:
    r = to_cells(SAMPLE_NOTEBOOK)
    assert r.ok
    assert r.data is not None
    assert [c.id for c in r.data] == list(range(len(r.data)))


def test_sample_cells() -> None:
    r = to_cells(SAMPLE_NOTEBOOK)
    assert r.data is not None
    assert [c.pin for c in r.data] == [True, False, False, True, False]
    assert [c.source_code for c in r.data[:4]] == [
        "md`# Hello`",
        "x = 1",
        "y = x + 1",
        "viewof size = html`<input type=range>`",
    ]
    assert r.data[4].source_code.startswith("total = {\n")
    assert r.data[4].source_code.endswith("return sum;\n}")


def test_spans_reconstruct_source() -> None:
    r = original_spans(SAMPLE_NOTEBOOK)
    assert r.ok
    assert r.data is not None
    assert "".join(r.data) == SAMPLE_NOTEBOOK


def test_trailing_text_is_dropped() -> None:
    r = original_spans("x = 1;\n// trailing note\n\n")
    assert r.data == ["x = 1;"]


def test_pinned_span_with_leading_newline() -> None:
    cell = cell_from_span(3, "\n/*PIN*/x=1;")
    assert cell == Cell(id=3, source_code="x=1", pin=True)


def test_unpinned_span() -> None:
    cell = cell_from_span(0, "y=2;")
    assert cell.pin is False
    assert cell.source_code == "y=2"


def test_pin_after_several_newlines() -> None:
    assert is_pinned("\n\n/*PIN*/\n\nx = 1;")
    assert strip_span("\n\n/*PIN*/\n\nx = 1;") == "x = 1"


def test_only_one_trailing_semicolon_stripped() -> None:
    assert strip_span("\nx = 1;;") == "x = 1;"


def test_marker_not_at_start_is_kept() -> None:
    cell = cell_from_span(0, "\nx = 1 /*PIN*/;")
    assert cell.pin is False
    assert cell.source_code == "x = 1 /*PIN*/"


def test_to_cells_single_pinned_statement() -> None:
    r = to_cells("\n/*PIN*/x=1;")
    assert r.data == [Cell(id=0, source_code="x=1", pin=True)]


def test_to_cells_reports_syntax_error() -> None:
    r = to_cells("x = 1;\ny = (")
    assert not r.ok
    assert r.data is None
    assert r.codes == ["SYNTAX_ERROR"]


def test_empty_source_has_no_cells() -> None:
    r = to_cells("")
    assert r.ok
    assert r.data == []


def test_cell_json_uses_source_code_alias() -> None:
    cell = Cell.model_validate({"id": 2, "sourceCode": "a = 1", "pin": True})
    assert cell.source_code == "a = 1"
    assert cell.model_dump(by_alias=True) == {"id": 2, "sourceCode": "a = 1", "pin": True}
