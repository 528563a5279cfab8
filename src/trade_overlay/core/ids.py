"""Canonical ID factories for the overlay.

All modules import from here instead of defining local _uuid() copies.

ID Categories
-------------
1. Tool IDs: UUID v4 strings, one per tool instance.
2. Signal IDs: ``ORDER_`` + 12 hex characters of a UUID v4.
3. Element IDs: ``<tool_id[:8]>:<element>``, stable across refreshes so the
   surface can correlate drawables with the tool that owns them.
"""

from __future__ import annotations

import uuid

SIGNAL_ID_PREFIX = "ORDER_"


def new_id() -> str:
    """Generate a new UUID v4 string.  Use for all tool IDs."""
    return str(uuid.uuid4())


def new_signal_id() -> str:
    """Generate a prefixed signal id, e.g. ``ORDER_3f2a9c0b11de``."""
    return SIGNAL_ID_PREFIX + uuid.uuid4().hex[:12]


def element_id(tool_id: str, element: str) -> str:
    """Build the drawable id for one element of a tool."""
    return f"{tool_id[:8]}:{element}"
