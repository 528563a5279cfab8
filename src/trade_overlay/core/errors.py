"""Custom exception hierarchy for the overlay tool."""


class OverlayError(Exception):
    """Base exception for all overlay errors."""


# --- Configuration ---
class ConfigError(OverlayError):
    """Invalid or missing configuration."""


# --- Levels ---
class LevelValidationError(OverlayError):
    """A level assignment or flip would violate the ordering invariant."""

    def __init__(self, reason: str, levels: object | None = None):
        self.reason = reason
        self.levels = levels
        super().__init__(reason)


# --- Rendering surface ---
class SurfaceError(OverlayError):
    """Rendering surface call failed (e.g., coordinate out of range)."""


# --- Signal ---
class SignalConstructionError(OverlayError, ValueError):
    """Invalid combination of Signal fields."""


# --- Tool lifecycle ---
class ToolRemovedError(OverlayError):
    """Operation attempted on a tool that has been removed."""
