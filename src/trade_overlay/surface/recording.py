"""In-memory rendering surface for tests and the demo session.

No external dependencies.  Keeps every live drawable so callers can
inspect what the view produced, maps price to pixels linearly over the
visible range, and can be told to fail specific draws.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from decimal import Decimal

from trade_overlay.core.errors import SurfaceError
from trade_overlay.core.models import DrawStyle, VisibleBounds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Drawable:
    """One primitive currently on the surface."""

    handle: int
    kind: str  # "line", "rectangle", "text"
    element_id: str
    coords: tuple[float, ...]
    style: DrawStyle
    text: str = ""

    @property
    def element(self) -> str:
        """Element name without the tool prefix."""
        return self.element_id.split(":", 1)[-1]


class RecordingSurface:
    """Chart surface that records drawables instead of painting them."""

    def __init__(
        self,
        min_price: Decimal = Decimal("1.09000"),
        max_price: Decimal = Decimal("1.11000"),
        pixel_width: float = 1000.0,
        pixel_height: float = 500.0,
    ) -> None:
        self._bounds = VisibleBounds(min_price, max_price, pixel_width, pixel_height)
        self._drawables: dict[int, Drawable] = {}
        self._handles = itertools.count(1)
        self.fail_elements: set[str] = set()  # Element names whose draws raise
        self.fail_bounds = False
        self.draw_calls = 0
        self.remove_calls = 0

    # ------------------------------------------------------------------
    # IRenderingSurface
    # ------------------------------------------------------------------

    def draw_line(
        self, element_id: str, coords: tuple[float, float, float, float], style: DrawStyle,
    ) -> int:
        return self._add("line", element_id, coords, style)

    def draw_rectangle(
        self, element_id: str, coords: tuple[float, float, float, float], style: DrawStyle,
    ) -> int:
        return self._add("rectangle", element_id, coords, style)

    def draw_text(
        self, element_id: str, coords: tuple[float, float], style: DrawStyle, text: str = "",
    ) -> int:
        return self._add("text", element_id, coords, style, text)

    def remove(self, handle: int) -> None:
        self.remove_calls += 1
        if self._drawables.pop(handle, None) is None:
            raise SurfaceError(f"Unknown drawable handle {handle!r}")

    def get_visible_bounds(self) -> VisibleBounds:
        if self.fail_bounds:
            raise SurfaceError("Visible bounds unavailable")
        return self._bounds

    def price_to_pixel(self, price: Decimal) -> float:
        b = self._bounds
        span = b.max_price - b.min_price
        return float((b.max_price - price) / span * Decimal(str(b.pixel_height)))

    def pixel_to_price(self, y: float) -> Decimal:
        b = self._bounds
        span = b.max_price - b.min_price
        return b.max_price - Decimal(str(y)) / Decimal(str(b.pixel_height)) * span

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def resize(
        self,
        min_price: Decimal,
        max_price: Decimal,
        pixel_width: float | None = None,
        pixel_height: float | None = None,
    ) -> None:
        """Change the visible range, as a chart zoom or scroll would."""
        b = self._bounds
        self._bounds = VisibleBounds(
            min_price,
            max_price,
            pixel_width if pixel_width is not None else b.pixel_width,
            pixel_height if pixel_height is not None else b.pixel_height,
        )

    @property
    def drawables(self) -> list[Drawable]:
        return list(self._drawables.values())

    def find(self, element: str) -> list[Drawable]:
        """Live drawables for an element name (e.g. ``"entry_line"``)."""
        return [d for d in self._drawables.values() if d.element == element]

    def texts(self) -> list[str]:
        return [d.text for d in self._drawables.values() if d.kind == "text"]

    def line_y(self, element: str) -> float:
        """Pixel y of a drawn horizontal line."""
        lines = [d for d in self.find(element) if d.kind == "line"]
        if not lines:
            raise KeyError(element)
        return lines[0].coords[1]

    def _add(
        self,
        kind: str,
        element_id: str,
        coords: tuple[float, ...],
        style: DrawStyle,
        text: str = "",
    ) -> int:
        self.draw_calls += 1
        element = element_id.split(":", 1)[-1]
        if element in self.fail_elements:
            raise SurfaceError(f"Cannot draw {element_id}: coordinate out of range")
        handle = next(self._handles)
        self._drawables[handle] = Drawable(handle, kind, element_id, tuple(coords), style, text)
        return handle
