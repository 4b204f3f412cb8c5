"""Configuration management for Iridium (`.iridiumrc`)."""

import os
from pathlib import Path

from pydantic import BaseModel

CONFIG_FILE_NAME = ".iridiumrc"
CDN_EDITOR_BASE = "https://unpkg.com/@wishyoulization/iridium-monaco/dist"


class IridiumConfig(BaseModel):
    head: str = ""
    port: int = 8080
    notebooks: str = "./"
    compiled: str = "./"
    static: str | None = None
    local_editor: bool = False
    editor_dir: str = "node_modules/@wishyoulization/iridium-monaco/dist"


def _candidate_paths() -> list[Path]:
    paths: list[Path] = []
    env_path = os.environ.get("IRIDIUM_CONFIG")
    if env_path:
        paths.append(Path(env_path))
    paths.append(Path.cwd() / CONFIG_FILE_NAME)
    paths.append(Path.home() / CONFIG_FILE_NAME)
    return paths


def find_config() -> Path | None:
    """Return the first existing rc file, or None."""
    for path in _candidate_paths():
        if path.is_file():
            return path
    return None


def load_config(path: Path | None = None) -> IridiumConfig:
    """Load config from the rc file, returning defaults if missing."""
    if path is None:
        path = find_config()
    if path is None or not path.exists():
        return IridiumConfig()
    text = path.read_text()
    if not text.strip():
        return IridiumConfig()
    return IridiumConfig.model_validate_json(text)


def notebooks_dir(config: IridiumConfig) -> Path:
    """Return the directory holding `.ojs` notebook sources."""
    return Path(config.notebooks)


def compiled_dir(config: IridiumConfig) -> Path:
    """Return the directory holding compiled `.js` modules."""
    return Path(config.compiled)


def editor_base(config: IridiumConfig) -> str:
    """URL prefix the viewer page loads the editor bundle from."""
    return "." if config.local_editor else CDN_EDITOR_BASE


def editor_dirs(config: IridiumConfig) -> list[Path]:
    """Local editor bundle locations, relative to cwd then to the package."""
    return [Path(config.editor_dir), Path(__file__).parent.parent / config.editor_dir]
