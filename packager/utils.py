from __future__ import annotations

import json
import os
import shutil
from pathlib import Path
from typing import Mapping


def ensure_directory(path: str | Path) -> Path:
    """Create a directory (and missing parents) and return its Path object."""

    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def remove_path(path: str | Path) -> None:
    """Remove a file, symlink or directory tree; missing paths are ignored."""

    path = Path(path)
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def move_path(source: str | Path, destination: str | Path) -> Path:
    destination = Path(destination)
    ensure_directory(destination.parent)
    shutil.move(os.fspath(source), os.fspath(destination))
    return destination


def dump_json(path: str | Path, payload: Mapping[str, object], *, indent: int = 2) -> None:
    """Write structured JSON to disk with a trailing newline for readability."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=indent, sort_keys=True) + "\n")
