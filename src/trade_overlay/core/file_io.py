"""Locked JSONL file helpers.

Appends take an exclusive ``fcntl`` lock and ``fsync`` before releasing it,
so two chart windows sharing one store file never interleave lines.
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
from pathlib import Path
from typing import Any, Iterator

logger = logging.getLogger(__name__)


def safe_append_line(path: Path, line: str) -> None:
    """Append a single line to *path* under an exclusive lock."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a") as f:
        fcntl.flock(f.fileno(), fcntl.LOCK_EX)
        try:
            f.write(line + "\n")
            f.flush()
            os.fsync(f.fileno())
        finally:
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)


def iter_json_lines(path: Path) -> Iterator[dict[str, Any]]:
    """Yield each JSON object in a JSONL file, skipping corrupt lines."""
    if not path.exists():
        return
    with open(path) as f:
        for lineno, raw in enumerate(f, start=1):
            raw = raw.strip()
            if not raw:
                continue
            try:
                obj = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Skipping corrupt line %d in %s", lineno, path)
                continue
            if isinstance(obj, dict):
                yield obj
