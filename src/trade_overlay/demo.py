"""Scripted overlay session against the RecordingSurface.

Drives one tool through the same pointer events a user would produce:
show it, drag the stop-loss further away, flip direction from the entry
menu, then confirm.  Used by ``trade-overlay demo`` and the CLI tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable

from .core.config import Settings
from .core.enums import Direction, Element
from .core.events import PointerEvent, Signal
from .core.models import LevelSet, Point, Rect
from .storage.config_store import InMemoryConfigStore, JsonFileConfigStore
from .surface.recording import RecordingSurface
from .tool.registry import ToolRegistry

logger = logging.getLogger(__name__)

# Extra stop distance added by the scripted drag
DRAG_STOP_PIPS = Decimal("10")


@dataclass
class DemoResult:
    signals: list[Signal] = field(default_factory=list)
    level_updates: list[LevelSet] = field(default_factory=list)
    final_levels: LevelSet | None = None


class _Pointer:
    """Issues pointer events with a monotonically advancing clock."""

    def __init__(self, registry: ToolRegistry, tool_id: str) -> None:
        self._registry = registry
        self._tool_id = tool_id
        self._now = 1_000

    def _send(self, event: PointerEvent) -> None:
        self._registry.dispatch(self._tool_id, event)

    def click(self, at: Point, gap_ms: int = 600) -> None:
        self._now += gap_ms
        self._send(PointerEvent.press(at.x, at.y, self._now))
        self._now += 40
        self._send(PointerEvent.release(at.x, at.y, self._now))

    def double_press(self, at: Point) -> None:
        self.click(at)
        self._now += 120
        self._send(PointerEvent.press(at.x, at.y, self._now))
        self._now += 40
        self._send(PointerEvent.release(at.x, at.y, self._now))

    def drag(self, start: Point, end: Point, steps: int = 4) -> None:
        self._now += 600
        self._send(PointerEvent.press(start.x, start.y, self._now))
        for i in range(1, steps + 1):
            self._now += 16
            y = start.y + (end.y - start.y) * i / steps
            x = start.x + (end.x - start.x) * i / steps
            self._send(PointerEvent.move(x, y, self._now))
        self._now += 16
        self._send(PointerEvent.release(end.x, end.y, self._now))


def _center(elements: dict[Element, Rect], element: Element) -> Point:
    rect = elements[element]
    return Point((rect.left + rect.right) / 2, (rect.top + rect.bottom) / 2)


def run_demo(
    settings: Settings,
    price: Decimal = Decimal("1.10000"),
    direction: Direction | None = None,
    store_path: str | None = None,
    echo: Callable[[str], None] | None = None,
) -> DemoResult:
    """Run the scripted session and return what the consumer received."""
    say = echo or (lambda _msg: None)
    result = DemoResult()

    span = Decimal("0.02")  # Visible price range around the market price
    surface = RecordingSurface(price - span / 2, price + span / 2)
    store = JsonFileConfigStore(store_path) if store_path else InMemoryConfigStore()
    registry = ToolRegistry(
        settings, store, price_source=lambda: price, consumer=result.signals.append,
    )
    tool_id = registry.create(surface, direction)
    controller = registry.get(tool_id)
    assert controller is not None
    controller.set_level_listener(result.level_updates.append)
    pointer = _Pointer(registry, tool_id)

    def hits() -> dict[Element, Rect]:
        return controller.view.hit_map.elements

    pointer.click(_center(hits(), Element.PRIMARY_BUTTON))
    say(f"shown: {controller.levels}")

    levels = controller.levels
    if levels is None:
        say("tool did not show; check the price source")
        registry.close_all()
        return result

    pip_size = settings.instrument.pip_size
    farther = -1 if levels.is_buy else 1
    target_price = levels.stop_loss + farther * DRAG_STOP_PIPS * pip_size
    start = _center(hits(), Element.STOP_LOSS_LINE)
    end = Point(start.x, surface.price_to_pixel(target_price))
    pointer.drag(start, end)
    say(f"stop-loss dragged: {controller.levels}")

    pointer.double_press(_center(hits(), Element.ENTRY_LINE))
    say(f"menu: {controller.state.value}")
    if Element.MENU_FLIP in hits():
        pointer.click(_center(hits(), Element.MENU_FLIP))
        say(f"flipped: {controller.levels}")
    pointer.click(Point(1.0, surface.get_visible_bounds().pixel_height - 1.0))
    say(f"menu closed: {controller.state.value}")

    pointer.click(_center(hits(), Element.CONFIRM_BUTTON))
    result.final_levels = controller.levels
    registry.close_all()
    logger.info("Demo finished with %d signal(s)", len(result.signals))
    return result
