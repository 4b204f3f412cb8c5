"""Notebook storage: `<notebooks>/<id>.ojs` sources and `<compiled>/<id>.js` modules."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from iridium.core import Result

logger = logging.getLogger("iridium.notebook")

SOURCE_SUFFIX = ".ojs"
COMPILED_SUFFIX = ".js"
DEFAULT_NOTEBOOK = "index"


def notebook_id(raw: str | None) -> str:
    """Turn a URL path or request value into a filesystem-safe identifier.

    Drops one leading '/', everything from the next '/' on, and replaces every
    non-alphanumeric character with '-'. Empty input maps to 'index'.
    """
    path = (raw or "").removeprefix("/").split("/", 1)[0]
    return re.sub(r"[^a-zA-Z0-9]", "-", path) or DEFAULT_NOTEBOOK


class NotebookStorage:
    """Reads and writes notebook sources and their compiled modules."""

    def __init__(self, notebooks_dir: Path, compiled_dir: Path | None = None) -> None:
        self._notebooks_dir = notebooks_dir
        self._compiled_dir = compiled_dir if compiled_dir is not None else notebooks_dir
        self._notebooks_dir.mkdir(parents=True, exist_ok=True)
        self._compiled_dir.mkdir(parents=True, exist_ok=True)

    @property
    def notebooks_dir(self) -> Path:
        return self._notebooks_dir

    @property
    def compiled_dir(self) -> Path:
        return self._compiled_dir

    def source_path(self, notebook: str) -> Path:
        return self._notebooks_dir / f"{notebook}{SOURCE_SUFFIX}"

    def compiled_path(self, notebook: str) -> Path:
        return self._compiled_dir / f"{notebook}{COMPILED_SUFFIX}"

    def list_notebooks(self) -> list[str]:
        return sorted(p.stem for p in self._notebooks_dir.glob(f"*{SOURCE_SUFFIX}") if p.is_file())

    def read(self, notebook: str) -> Result[str]:
        """Load a notebook source from disk by ID."""
        result: Result[str] = Result()
        path = self.source_path(notebook)
        if not path.exists():
            result.error("NOT_FOUND", f"Notebook {notebook} not found")
            return result
        try:
            result.data = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            result.error("LOAD_ERROR", f"Failed to load notebook {notebook}: {e}")
        return result

    def write(self, notebook: str, source: str) -> None:
        self._atomic_write(self.source_path(notebook), source)
        logger.info("Wrote notebook %s (%d chars)", notebook, len(source))

    def write_compiled(self, notebook: str, module: str) -> None:
        self._atomic_write(self.compiled_path(notebook), module)
        logger.info("Wrote compiled module %s", notebook)

    @staticmethod
    def _atomic_write(path: Path, text: str) -> None:
        """Atomic write: write to .tmp, then rename."""
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(text, encoding="utf-8")
        tmp_path.replace(path)
