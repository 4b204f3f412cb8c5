"""Cell model and the span -> cell transform.

A cell is one top-level statement of a notebook source. Its id is the
positional index at segmentation time, not a durable identity.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

PIN_MARKER = "/*PIN*/"


class Cell(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int = 0
    source_code: str = Field(default="", alias="sourceCode")
    pin: bool = False


def is_pinned(span: str) -> bool:
    """True iff the span starts with the pin marker after leading newlines."""
    return span.lstrip("\n").startswith(PIN_MARKER)


def strip_span(span: str) -> str:
    """Remove newlines, the pin marker, newlines again and one trailing `;`."""
    text = span.lstrip("\n")
    text = text.removeprefix(PIN_MARKER)
    text = text.lstrip("\n")
    return text.removesuffix(";")


def cell_from_span(index: int, span: str) -> Cell:
    return Cell(id=index, source_code=strip_span(span), pin=is_pinned(span))
