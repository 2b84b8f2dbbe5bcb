"""File and folder utility functions for invoice processing."""

import base64
import json
import os
import tempfile
from pathlib import Path
from typing import Any


def read_base64(file_path: Path) -> str:
    """Read a file and return its content base64-encoded."""
    with open(file_path, "rb") as f:
        return base64.b64encode(f.read()).decode("ascii")


def write_json_atomic(path: Path, data: Any, indent: int = 2) -> None:
    """
    Write JSON so readers only ever see the complete file.

    The payload goes to a temporary file in the target directory which is
    then renamed over ``path``.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent, ensure_ascii=False)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise


def unique_path(path: Path) -> Path:
    """Return ``path`` or the first free ``<stem>_<n><suffix>`` sibling."""
    if not path.exists():
        return path
    counter = 1
    while True:
        candidate = path.with_name(f"{path.stem}_{counter}{path.suffix}")
        if not candidate.exists():
            return candidate
        counter += 1
