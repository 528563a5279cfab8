"""Protocol interfaces for the overlay's external collaborators.

All module boundaries are defined here as Protocol classes.  The chart
surface, the configuration store and the signal consumer can be swapped
(real chart / recording surface / test doubles) without changing callers.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Hashable, Protocol, runtime_checkable

from .events import Signal
from .models import DrawStyle, LevelSet, VisibleBounds

# Callback types
SignalConsumer = Callable[[Signal], None]
LevelListener = Callable[[LevelSet], None]
PriceSource = Callable[[], Decimal]


# ---------------------------------------------------------------------------
# Rendering surface
# ---------------------------------------------------------------------------

@runtime_checkable
class IRenderingSurface(Protocol):
    """Chart surface that paints primitives and maps price to pixels.

    Draw calls return an opaque handle that is later passed to ``remove``.
    Failures are raised as exceptions; the view treats them as boundary
    errors and skips the failed primitive.
    """

    def draw_line(
        self,
        element_id: str,
        coords: tuple[float, float, float, float],
        style: DrawStyle,
    ) -> Hashable: ...

    def draw_rectangle(
        self,
        element_id: str,
        coords: tuple[float, float, float, float],
        style: DrawStyle,
    ) -> Hashable: ...

    def draw_text(
        self,
        element_id: str,
        coords: tuple[float, float],
        style: DrawStyle,
        text: str = "",
    ) -> Hashable: ...

    def remove(self, handle: Hashable) -> None: ...

    def get_visible_bounds(self) -> VisibleBounds: ...

    def price_to_pixel(self, price: Decimal) -> float: ...

    def pixel_to_price(self, y: float) -> Decimal: ...


# ---------------------------------------------------------------------------
# Configuration store
# ---------------------------------------------------------------------------

@runtime_checkable
class IConfigStore(Protocol):
    """Durable key/value store for button positions and option flags."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...
