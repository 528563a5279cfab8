"""Tool registry: instance id -> ToolController.

One registry per chart session.  Creation and removal normally happen on
the chart's dispatch thread; the map is still guarded by a lock so an
integration that creates or removes tools from another thread stays safe.
"""

from __future__ import annotations

import logging
import threading

from trade_overlay.core.config import Settings
from trade_overlay.core.enums import Direction
from trade_overlay.core.events import PointerEvent
from trade_overlay.core.ids import new_id
from trade_overlay.core.interfaces import (
    IConfigStore,
    IRenderingSurface,
    PriceSource,
    SignalConsumer,
)
from trade_overlay.storage.config_store import InMemoryConfigStore

from .controller import ToolController
from .router import Intention

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Creates, tracks and removes tool controllers.

    Usage::

        registry = ToolRegistry(settings, store, price_source=feed.last_price)
        tool_id = registry.create(surface)
        registry.dispatch(tool_id, PointerEvent.press(x, y, ts))
        # ... chart session ends ...
        registry.close_all()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        config_store: IConfigStore | None = None,
        *,
        price_source: PriceSource,
        consumer: SignalConsumer | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._store = config_store if config_store is not None else InMemoryConfigStore()
        self._price_source = price_source
        self._consumer = consumer
        self._controllers: dict[str, ToolController] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Create / lookup / remove
    # ------------------------------------------------------------------

    def create(
        self,
        surface: IRenderingSurface,
        direction: Direction | None = None,
    ) -> str:
        """Create a tool on *surface* and return its id."""
        tool_id = new_id()
        controller = ToolController(
            tool_id,
            surface,
            self._settings,
            self._store,
            self._price_source,
            consumer=self._consumer,
        )
        controller.create(direction)
        with self._lock:
            self._controllers[tool_id] = controller
        logger.info("Registered tool %s (%d active)", tool_id[:8], len(self))
        return tool_id

    def get(self, tool_id: str) -> ToolController | None:
        """Look up a controller by id."""
        with self._lock:
            return self._controllers.get(tool_id)

    def remove(self, tool_id: str) -> bool:
        """Remove a tool and release its drawables.  False if unknown."""
        with self._lock:
            controller = self._controllers.pop(tool_id, None)
        if controller is None:
            logger.debug("Remove of unknown tool %s ignored", tool_id[:8])
            return False
        controller.remove()
        return True

    def close_all(self) -> int:
        """Remove every tool (chart session ended).  Returns the count."""
        with self._lock:
            controllers = list(self._controllers.values())
            self._controllers.clear()
        for controller in controllers:
            try:
                controller.remove()
            except Exception:
                logger.exception("Failed to remove tool %s", controller.tool_id[:8])
        logger.info("Closed %d tools", len(controllers))
        return len(controllers)

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def dispatch(self, tool_id: str, event: PointerEvent) -> Intention | None:
        """Forward a pointer event to one tool.  None if the id is unknown."""
        controller = self.get(tool_id)
        if controller is None:
            return None
        return controller.handle_event(event)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def ids(self) -> list[str]:
        with self._lock:
            return list(self._controllers)

    def __len__(self) -> int:
        with self._lock:
            return len(self._controllers)

    def __contains__(self, tool_id: object) -> bool:
        with self._lock:
            return tool_id in self._controllers
