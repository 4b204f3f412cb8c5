"""Open, save and batch-compile notebooks.

`open` never fails: a missing or unparseable notebook is shown as a single
"not found" cell. `save` writes the source first and the compiled module
second; it reports failure when either write or the compilation fails.
"""

from __future__ import annotations

import logging
import threading
import weakref
from collections.abc import Callable

from iridium.compiler.module import compile_module
from iridium.config import IridiumConfig, compiled_dir, notebooks_dir
from iridium.core import Result
from iridium.notebook.cell import Cell
from iridium.notebook.segmenter import to_cells
from iridium.notebook.serializer import to_source
from iridium.notebook.store import NotebookStorage, notebook_id

logger = logging.getLogger("iridium.notebook")

NOT_FOUND_SOURCE = "html`<h1> 404 - Not Found!`"

Compiler = Callable[[str], Result[str]]


class NotebookPipeline:
    def __init__(self, storage: NotebookStorage, compiler: Compiler = compile_module) -> None:
        self._storage = storage
        self._compiler = compiler
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    @property
    def storage(self) -> NotebookStorage:
        return self._storage

    def _lock(self, notebook: str) -> threading.Lock:
        """Lock for one notebook, dropped once nobody holds a reference to it."""
        with self._locks_guard:
            return self._locks.setdefault(notebook, threading.Lock())

    def open(self, identifier: str | None) -> list[Cell]:
        notebook = notebook_id(identifier)
        loaded = self._storage.read(notebook)
        if loaded.ok and loaded.data is not None:
            cells = to_cells(loaded.data)
            if cells.ok and cells.data is not None:
                return cells.data
            logger.warning("Notebook %s does not parse: %s", notebook, cells.summary())
        else:
            logger.info("Notebook %s unavailable: %s", notebook, loaded.summary())

        fallback = to_cells(NOT_FOUND_SOURCE)
        if not fallback.ok or fallback.data is None:
            raise RuntimeError(f"Fallback notebook does not parse: {fallback.summary()}")
        return fallback.data

    def save(self, identifier: str | None, cells: list[Cell]) -> Result[None]:
        result: Result[None] = Result()
        notebook = notebook_id(identifier)
        source = to_source(cells)
        with self._lock(notebook):
            try:
                self._storage.write(notebook, source)
            except OSError as e:
                result.error("STORAGE_ERROR", f"Failed to write notebook {notebook}: {e}")
                return result
            self._write_compiled(notebook, source, result)
        if result.ok:
            logger.info("Saved notebook %s (%d cells)", notebook, len(cells))
        else:
            logger.warning("Saving notebook %s failed: %s", notebook, result.summary())
        return result

    def compile_all(self) -> dict[str, Result[None]]:
        """Compile every stored notebook; one failure never stops the rest."""
        report: dict[str, Result[None]] = {}
        for notebook in self._storage.list_notebooks():
            logger.info("Compiling %s", notebook)
            result: Result[None] = Result()
            with self._lock(notebook):
                loaded = self._storage.read(notebook)
                if loaded.ok and loaded.data is not None:
                    self._write_compiled(notebook, loaded.data, result)
                else:
                    result.extend(loaded)
            if not result.ok:
                logger.error("Error compiling %s: %s", notebook, result.summary())
            report[notebook] = result
        return report

    def _write_compiled(self, notebook: str, source: str, result: Result[None]) -> None:
        compiled = self._compiler(source)
        result.extend(compiled)
        if not compiled.ok or compiled.data is None:
            return
        try:
            self._storage.write_compiled(notebook, compiled.data)
        except OSError as e:
            result.error("STORAGE_ERROR", f"Failed to write compiled module {notebook}: {e}")


def create_pipeline(config: IridiumConfig) -> NotebookPipeline:
    storage = NotebookStorage(notebooks_dir(config), compiled_dir(config))
    return NotebookPipeline(storage)
