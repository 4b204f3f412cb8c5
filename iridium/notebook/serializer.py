"""Ordered cells -> notebook source.

Every cell is validated on its own. A cell that does not parse is replaced
by an empty placeholder block so that the rest of the notebook can still be
saved.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from iridium.notebook.cell import PIN_MARKER, Cell
from iridium.notebook.parser import validate_cell

logger = logging.getLogger("iridium.notebook")

PLACEHOLDER = "{\n  /* Syntax error, unable to save*/\n}"


def serialize_cell(cell: Cell) -> str:
    marker = PIN_MARKER if cell.pin else ""
    check = validate_cell(cell.source_code)
    if check.ok:
        return f"{marker}\n{cell.source_code};"
    logger.warning("Replacing cell %d with a placeholder: %s", cell.id, check.summary())
    return f"{marker}\n{PLACEHOLDER};"


def to_source(cells: Iterable[Cell]) -> str:
    return "\n".join(serialize_cell(cell) for cell in cells)
