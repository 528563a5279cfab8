"""Shared fixtures for the trade-overlay test suite.

The default chart shows 1.09000-1.11000 over 500 pixels, so one pip
(0.0001) is 2.5 pixels.  A buy tool shown at 1.10000 with default
offsets draws entry at y=250, stop-loss at y=275 and take-profit at
y=200, between x=550 and x=920.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable

import pytest
import structlog

from trade_overlay.core.config import Settings
from trade_overlay.core.enums import Direction
from trade_overlay.core.events import PointerEvent, Signal
from trade_overlay.core.ids import new_id
from trade_overlay.core.models import LevelSet
from trade_overlay.storage.config_store import InMemoryConfigStore
from trade_overlay.surface.recording import RecordingSurface
from trade_overlay.tool.controller import ToolController
from trade_overlay.tool.router import Intention

MARKET_PRICE = Decimal("1.10000")
TOOL_X = 700.0
ENTRY_Y = 250.0
STOP_Y = 275.0
TARGET_Y = 200.0


# ---------------------------------------------------------------------------
# Levels
# ---------------------------------------------------------------------------

@pytest.fixture
def buy_levels() -> LevelSet:
    """EURUSD buy at 1.10000, 10 pip stop, 20 pip target."""
    return LevelSet(
        entry=Decimal("1.10000"),
        stop_loss=Decimal("1.09900"),
        take_profit=Decimal("1.10200"),
        is_buy=True,
    )


@pytest.fixture
def sell_levels() -> LevelSet:
    return LevelSet(
        entry=Decimal("1.10000"),
        stop_loss=Decimal("1.10100"),
        take_profit=Decimal("1.09800"),
        is_buy=False,
    )


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def store() -> InMemoryConfigStore:
    return InMemoryConfigStore()


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def signals() -> list[Signal]:
    """Signals received by the consumer, in order."""
    return []


# ---------------------------------------------------------------------------
# Controllers
# ---------------------------------------------------------------------------

@pytest.fixture
def make_controller(
    settings: Settings,
    store: InMemoryConfigStore,
    surface: RecordingSurface,
    signals: list[Signal],
) -> Callable[..., ToolController]:
    """Factory for created (HIDDEN) controllers wired to the shared fixtures."""

    def _make(
        direction: Direction | None = None,
        price: Decimal = MARKET_PRICE,
        with_consumer: bool = True,
    ) -> ToolController:
        controller = ToolController(
            new_id(),
            surface,
            settings,
            store,
            price_source=lambda: price,
            consumer=signals.append if with_consumer else None,
        )
        controller.create(direction)
        return controller

    return _make


@pytest.fixture
def visible_controller(make_controller) -> ToolController:
    """A buy tool shown at 1.10000 (SL 1.09900, TP 1.10200)."""
    controller = make_controller()
    controller.press_primary()
    return controller


# ---------------------------------------------------------------------------
# Pointer scripting
# ---------------------------------------------------------------------------

class PointerScript:
    """Feeds pointer events to a controller with an advancing clock."""

    def __init__(self, controller: ToolController) -> None:
        self.controller = controller
        self.now = 10_000

    def send(self, event: PointerEvent) -> Intention:
        return self.controller.handle_event(event)

    def press(self, x: float, y: float, after_ms: int = 600) -> Intention:
        self.now += after_ms
        return self.send(PointerEvent.press(x, y, self.now))

    def move(self, x: float, y: float) -> Intention:
        self.now += 16
        return self.send(PointerEvent.move(x, y, self.now))

    def release(self, x: float, y: float) -> Intention:
        self.now += 16
        return self.send(PointerEvent.release(x, y, self.now))

    def escape(self) -> Intention:
        self.now += 16
        return self.send(PointerEvent.escape(self.now))

    def click(self, x: float, y: float, after_ms: int = 600) -> Intention:
        self.press(x, y, after_ms)
        return self.release(x, y)

    def double_press(self, x: float, y: float) -> Intention:
        self.click(x, y)
        return self.press(x, y, after_ms=100)

    def drag(self, x0: float, y0: float, x1: float, y1: float) -> Intention:
        """Press, move halfway, move to the end, release."""
        self.press(x0, y0)
        self.move((x0 + x1) / 2, (y0 + y1) / 2)
        self.move(x1, y1)
        return self.release(x1, y1)


@pytest.fixture
def pointer(visible_controller: ToolController) -> PointerScript:
    return PointerScript(visible_controller)


@pytest.fixture
def make_pointer() -> Callable[[ToolController], PointerScript]:
    return PointerScript


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

@pytest.fixture
def restore_logging():
    """Undo ``setup_logging`` so later tests keep pytest's capture handlers."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
    root.setLevel(level)
