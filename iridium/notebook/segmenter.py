"""Notebook source -> ordered cells."""

from __future__ import annotations

from iridium.core import Result
from iridium.notebook.cell import Cell, cell_from_span
from iridium.notebook.parser import segment_boundaries


def original_spans(source: str) -> Result[list[str]]:
    """Split `source` into contiguous statement spans.

    Span i runs from the end of statement i-1 (or 0) to the end of statement
    i, so leading whitespace and comments belong to the statement after them.
    Text after the last statement is dropped.
    """
    bounds = segment_boundaries(source)
    result: Result[list[str]] = Result(diagnostics=list(bounds.diagnostics))
    if not bounds.ok or bounds.data is None:
        return result
    ends = bounds.data
    result.data = [source[ends[i - 1] if i else 0 : end] for i, end in enumerate(ends)]
    return result


def to_cells(source: str) -> Result[list[Cell]]:
    spans = original_spans(source)
    result: Result[list[Cell]] = Result(diagnostics=list(spans.diagnostics))
    if spans.data is not None:
        result.data = [cell_from_span(i, span) for i, span in enumerate(spans.data)]
    return result
