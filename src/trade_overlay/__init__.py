"""Interactive trade-level overlay for charting applications."""

__version__ = "0.1.0"
