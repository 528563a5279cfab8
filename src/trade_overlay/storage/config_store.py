"""Configuration store: button positions and option flags.

Two implementations:
- ``InMemoryConfigStore``: for tests and the demo session.
- ``JsonFileConfigStore``: JSONL append log, last write per key wins.

Both satisfy ``trade_overlay.core.interfaces.IConfigStore``.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any

from trade_overlay.core.file_io import iter_json_lines, safe_append_line

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# In-Memory Implementation
# ---------------------------------------------------------------------------


class InMemoryConfigStore:
    """Dict-backed store."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        # Copies so callers cannot mutate stored lists in place
        return copy.deepcopy(self._values.get(key, default))

    def set(self, key: str, value: Any) -> None:
        self._values[key] = copy.deepcopy(value)

    def keys(self) -> list[str]:
        return sorted(self._values)

    def clear(self) -> None:
        self._values.clear()


# ---------------------------------------------------------------------------
# JSONL Implementation
# ---------------------------------------------------------------------------


class JsonFileConfigStore(InMemoryConfigStore):
    """JSONL-backed store.

    Every ``set`` appends ``{"key": ..., "value": ...}``; loading replays
    the file so the last value per key wins.  Values must be
    JSON-serializable.
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self._path = Path(path)
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def set(self, key: str, value: Any) -> None:
        line = json.dumps({"key": key, "value": value})
        safe_append_line(self._path, line)
        super().set(key, value)

    def _load(self) -> None:
        count = 0
        for record in iter_json_lines(self._path):
            if "key" not in record:
                continue
            super().set(str(record["key"]), record.get("value"))
            count += 1
        if count:
            logger.debug("Loaded %d config records from %s", count, self._path)
