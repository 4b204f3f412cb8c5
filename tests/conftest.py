"""Shared test fixtures for iridium tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from iridium.config import IridiumConfig
from iridium.notebook.pipeline import NotebookPipeline, create_pipeline

SAMPLE_NOTEBOOK = (
    "/*PIN*/\nmd`# Hello`;\n"
    "\nx = 1;\n"
    "\ny = x + 1;\n"
    "/*PIN*/\nviewof size = html`<input type=range>`;\n"
    "\ntotal = {\n  let sum = 0;\n  for (let i = 0; i < size; i++) sum += y;\n  return sum;\n};"
)


def make_config(tmp_path: Path, **overrides: object) -> IridiumConfig:
    return IridiumConfig(
        notebooks=str(tmp_path / "notebooks"),
        compiled=str(tmp_path / "compiled"),
        **overrides,
    )


@pytest.fixture
def pipeline(tmp_path: Path) -> NotebookPipeline:
    return create_pipeline(make_config(tmp_path))
