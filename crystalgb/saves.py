"""Locating, listing and naming save files in the per-user save directory."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

_EXTENSION = ".sav"


@dataclass(frozen=True)
class SaveFile:
    """A save file on disk and the name shown to the player."""

    path: Path
    name: str


def get_save_dir() -> Path:
    """Return the platform-specific directory that holds save files."""
    if sys.platform == "darwin":
        return Path(os.environ["HOME"]) / "Library" / "Application Support" / "Rustic Crystal" / "saves"
    if sys.platform.startswith("win"):
        return Path(os.environ["APPDATA"]) / "Rustic Crystal" / "saves"
    return Path(os.environ["HOME"]) / ".Rustic Crystal" / "saves"


def create_save_dir() -> None:
    """Create the save directory and any missing parents."""
    get_save_dir().mkdir(parents=True, exist_ok=True)


def get_save_path(name: str) -> Path:
    """Return the path of the save file called ``name``."""
    return (get_save_dir() / name).with_suffix(_EXTENSION)


def save_is_free(name: str) -> bool:
    """Whether no save file called ``name`` exists yet."""
    return not get_save_path(name).exists()


def _modified(path: Path) -> float:
    try:
        return path.stat().st_mtime
    except OSError:
        return 0.0


def list_save_files() -> list[SaveFile]:
    """List save files, most recently modified first."""
    try:
        entries = list(get_save_dir().iterdir())
    except FileNotFoundError:
        return []

    files = [
        SaveFile(path=path, name=path.stem)
        for path in entries
        if path.suffix == _EXTENSION and path.is_file()
    ]
    files.sort(key=lambda save: _modified(save.path), reverse=True)
    return files