"""Core domain models used across the overlay tool.

These are the canonical value types for the system.  Prices are always
``Decimal`` in instrument-native units; screen positions are pixel floats.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from pydantic import BaseModel, field_validator

from .enums import Direction, LevelKind, OptionName


# ---------------------------------------------------------------------------
# Price levels
# ---------------------------------------------------------------------------

class LevelSet(BaseModel):
    """Entry, stop-loss and take-profit prices plus trade direction.

    Construction only rejects malformed prices.  Directional ordering is
    checked by ``geometry.validate_ordering`` so that candidate sets can be
    built and tested before they are accepted by the model.
    """

    entry: Decimal
    stop_loss: Decimal
    take_profit: Decimal
    is_buy: bool = True

    model_config = {"frozen": True}

    @field_validator("entry", "stop_loss", "take_profit")
    @classmethod
    def price_must_be_finite_positive(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError(f"Price must be finite, got {v}")
        if v <= 0:
            raise ValueError(f"Price must be positive, got {v}")
        return v

    @property
    def direction(self) -> Direction:
        return Direction.from_is_buy(self.is_buy)

    @property
    def risk_distance(self) -> Decimal:
        """|entry - stop_loss|"""
        return abs(self.entry - self.stop_loss)

    @property
    def reward_distance(self) -> Decimal:
        """|take_profit - entry|"""
        return abs(self.take_profit - self.entry)

    @property
    def low(self) -> Decimal:
        return min(self.entry, self.stop_loss, self.take_profit)

    @property
    def high(self) -> Decimal:
        return max(self.entry, self.stop_loss, self.take_profit)

    def price_of(self, level: LevelKind) -> Decimal:
        """Return the price of a single level."""
        if level == LevelKind.ENTRY:
            return self.entry
        if level == LevelKind.STOP_LOSS:
            return self.stop_loss
        return self.take_profit

    def with_level(self, level: LevelKind, price: Decimal) -> LevelSet:
        """Return a copy with one level replaced (validated)."""
        fields = {
            "entry": self.entry,
            "stop_loss": self.stop_loss,
            "take_profit": self.take_profit,
            "is_buy": self.is_buy,
        }
        fields[level.value] = price
        return LevelSet(**fields)


# ---------------------------------------------------------------------------
# User preferences
# ---------------------------------------------------------------------------

class ToolOptions(BaseModel):
    """Label-visibility and button-linking preferences for one tool."""

    hide_labels_when_unfocused: bool = False
    hide_labels_while_editing: bool = True
    link_buttons: bool = False  # Buttons joined by a handle, dragged together

    def get(self, name: OptionName) -> bool:
        return bool(getattr(self, name.value))

    def set(self, name: OptionName, value: bool) -> None:
        setattr(self, name.value, value)


# ---------------------------------------------------------------------------
# Screen geometry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def distance_to(self, other: Point) -> float:
        return ((self.x - other.x) ** 2 + (self.y - other.y) ** 2) ** 0.5


@dataclass(frozen=True)
class Rect:
    """Axis-aligned pixel rectangle.  ``top`` is the smaller y value."""

    left: float
    top: float
    right: float
    bottom: float

    @classmethod
    def around(cls, x0: float, y0: float, x1: float, y1: float) -> Rect:
        """Build a rect from two corners in any order."""
        return cls(min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1))

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def contains(self, point: Point) -> bool:
        return (
            self.left <= point.x <= self.right
            and self.top <= point.y <= self.bottom
        )

    def inflate(self, dx: float, dy: float) -> Rect:
        return Rect(self.left - dx, self.top - dy, self.right + dx, self.bottom + dy)

    def translate(self, dx: float, dy: float) -> Rect:
        return Rect(self.left + dx, self.top + dy, self.right + dx, self.bottom + dy)


@dataclass(frozen=True)
class VisibleBounds:
    """Visible price range and pixel size reported by the chart surface."""

    min_price: Decimal
    max_price: Decimal
    pixel_width: float
    pixel_height: float


@dataclass(frozen=True)
class DrawStyle:
    """Style hints passed through to the rendering surface."""

    color: str = "#9e9e9e"
    width: float = 1.0
    dashed: bool = False
    fill: str | None = None
    opacity: float = 1.0
    font_size: int = 11
