"""FastAPI server for Iridium."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path, PurePosixPath
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import Scope

from iridium.config import IridiumConfig, compiled_dir, editor_dirs, load_config
from iridium.notebook.cell import Cell
from iridium.notebook.pipeline import NotebookPipeline, create_pipeline
from iridium.notebook.store import notebook_id
from iridium.viewer import render_viewer

logger = logging.getLogger("iridium.server")

EDITOR_MAX_AGE = 365 * 24 * 60 * 60

app = FastAPI(title="Iridium", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Loaded on first request
_config: IridiumConfig | None = None
_pipeline: NotebookPipeline | None = None


def get_config() -> IridiumConfig:
    global _config  # noqa: PLW0603
    if _config is None:
        _config = load_config()
    return _config


def get_pipeline() -> NotebookPipeline:
    """Get the module-level pipeline built from the loaded config."""
    global _pipeline  # noqa: PLW0603
    if _pipeline is None:
        _pipeline = create_pipeline(get_config())
    return _pipeline


def reset_pipeline() -> None:
    """Drop the cached config and pipeline (for testing)."""
    global _config, _pipeline  # noqa: PLW0603
    _config = None
    _pipeline = None


class ReadRequest(BaseModel):
    path: str | None = None


class SaveRequest(BaseModel):
    path: str | None = None
    content: list[Cell] = Field(default_factory=list)


@app.post("/list")
async def list_notebooks() -> list[str]:
    return get_pipeline().storage.list_notebooks()


@app.post("/read")
async def read_notebook(request: ReadRequest) -> list[dict[str, Any]]:
    logger.info("POST /read path=%r", request.path)
    cells = await asyncio.to_thread(get_pipeline().open, request.path)
    return [cell.model_dump(by_alias=True) for cell in cells]


@app.post("/save")
async def save_notebook(request: SaveRequest) -> Any:
    logger.info("POST /save path=%r cells=%d", request.path, len(request.content))
    result = await asyncio.to_thread(get_pipeline().save, request.path, request.content)
    if result.ok:
        return {"ok": True}
    return JSONResponse(
        status_code=500,
        content={"error": result.summary(), "diagnostics": [d.model_dump() for d in result.diagnostics]},
    )


def _static_roots(config: IridiumConfig) -> list[tuple[StaticFiles, int]]:
    """File roots searched in order, with their cache max-age."""
    roots = [(compiled_dir(config), 0)]
    if config.static:
        roots.append((Path(config.static), 0))
    if config.local_editor:
        editor = next((d for d in editor_dirs(config) if d.is_dir()), None)
        if editor is not None:
            roots.append((editor, EDITOR_MAX_AGE))
    return [(StaticFiles(directory=root, check_dir=False), max_age) for root, max_age in roots]


async def _static_file(files: StaticFiles, path: str, scope: Scope) -> Response | None:
    """Response for `path` under one root, or None. Dotfiles are never served."""
    if any(part.startswith(".") for part in PurePosixPath(path).parts):
        return None
    try:
        return await files.get_response(path, scope)
    except StarletteHTTPException:
        return None


@app.get("/{path:path}")
async def serve(path: str, request: Request) -> Response:
    """Serve a compiled module or static file, else the notebook viewer page."""
    config = get_config()
    if path:
        for files, max_age in _static_roots(config):
            response = await _static_file(files, path, request.scope)
            if response is not None:
                response.headers["Cache-Control"] = f"max-age={max_age}"
                return response
    return HTMLResponse(render_viewer(notebook_id(path), config))
