"""ToolController: owns one tool instance and applies intentions to it.

The controller is the only place where the router, the state machine, the
level model and the view meet.  Side effects of any operation are limited
to model mutation, one view refresh and, only on confirm/close, one call
to the registered signal consumer.

Errors:
    * ``LevelValidationError`` from a public call is raised to the caller
      with the model unchanged; inside pointer handling it becomes the
      on-screen message.
    * Anything unexpected from a collaborator (price source, surface,
      consumer) is logged with its traceback and the instance is rolled
      back to its pre-call snapshot.  Nothing here terminates the host.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Callable, TypeVar

from trade_overlay.core.config import Settings
from trade_overlay.core.enums import (
    Direction,
    Element,
    IntentionKind,
    LevelKind,
    Operation,
    OperationType,
    OptionName,
    ToolState,
    Trigger,
)
from trade_overlay.core.errors import LevelValidationError, OverlayError, ToolRemovedError
from trade_overlay.core.events import PointerEvent, Signal
from trade_overlay.core.interfaces import (
    IConfigStore,
    IRenderingSurface,
    LevelListener,
    PriceSource,
    SignalConsumer,
)
from trade_overlay.core.models import LevelSet, Point, ToolOptions

from . import geometry
from .instance import ButtonLayout, ToolInstance
from .level_model import LevelModel
from .router import NO_INTENTION, EventRouter, Intention
from .state_machine import ToolStateMachine
from .view import ToolView

logger = logging.getLogger(__name__)

T = TypeVar("T")

PRIMARY_BUTTON_KEY = "buttons.primary"
CONFIRM_BUTTON_KEY = "buttons.confirm"


def option_key(name: OptionName) -> str:
    return f"options.{name.value}"


class ToolController:
    """Orchestrates one tool instance on one chart.

    Args:
        tool_id: Unique id assigned by the registry.
        surface: Chart rendering surface.
        settings: Overlay settings (defaults, gestures, layout).
        config_store: Store for button positions and option flags.
        price_source: Returns the current market price.
        consumer: Optional signal consumer (see ``set_consumer``).
    """

    def __init__(
        self,
        tool_id: str,
        surface: IRenderingSurface,
        settings: Settings,
        config_store: IConfigStore,
        price_source: PriceSource,
        consumer: SignalConsumer | None = None,
    ) -> None:
        self.tool_id = tool_id
        self._surface = surface
        self._settings = settings
        self._store = config_store
        self._price_source = price_source
        self._consumer = consumer
        self._level_listener: LevelListener | None = None

        self.view = ToolView(
            tool_id,
            surface,
            settings.layout,
            settings.instrument,
            line_hit_px=settings.gestures.line_hit_px,
        )
        self.router = EventRouter(settings.gestures, surface.pixel_to_price)
        self.instance: ToolInstance | None = None

        self._direction = settings.defaults.direction
        self._drag_origin: LevelSet | None = None  # Levels when a drag began
        self._moving = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create(self, initial_direction: Direction | None = None) -> ToolInstance:
        """Build the instance in HIDDEN state and draw its buttons."""
        if self.instance is not None:
            raise ValueError(f"Tool {self.tool_id} already created")
        if initial_direction is not None:
            self._direction = initial_direction

        self.instance = ToolInstance(
            tool_id=self.tool_id,
            model=LevelModel(options=self._load_options()),
            machine=ToolStateMachine(self.tool_id),
            buttons=self._load_buttons(),
        )
        logger.info(
            "Tool %s created (direction=%s)", self.tool_id[:8], self._direction.value,
        )
        self.refresh()
        return self.instance

    def remove(self) -> None:
        """Release every drawable.  Further calls on this tool are rejected."""
        instance = self.instance
        if instance is None or instance.removed:
            return
        self.view.release()
        self.router.reset()
        instance.removed = True
        logger.info("Tool %s removed", self.tool_id[:8])

    @property
    def is_removed(self) -> bool:
        return self.instance is not None and self.instance.removed

    @property
    def state(self) -> ToolState:
        return self._require_instance().state

    @property
    def levels(self) -> LevelSet | None:
        return self._require_instance().levels

    @property
    def options(self) -> ToolOptions:
        return self._require_instance().options

    @property
    def last_message(self) -> str:
        return self._require_instance().message

    def refresh(self) -> None:
        """Redraw the tool from its current instance."""
        instance = self._require_instance()
        self.view.refresh(instance)

    def on_chart_resized(self) -> None:
        """Re-render against the chart's new visible range."""
        self.refresh()

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def set_consumer(self, callback: SignalConsumer | None) -> None:
        self._consumer = callback

    def set_level_listener(self, callback: LevelListener | None) -> None:
        """Callback invoked with the new levels when a drag completes."""
        self._level_listener = callback

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def press_primary(self) -> ToolState:
        """Show or hide the tool, as if the primary button were clicked."""
        self._guarded("press_primary", self._toggle_visibility)
        self.refresh()
        return self.state

    def adjust_levels(self, stop_loss: Decimal, take_profit: Decimal) -> LevelSet:
        """Set stop-loss and take-profit, clamped to the valid side of entry.

        Raises:
            LevelValidationError: If a level still violates ordering after
                clamping (it was pushed onto the entry price).
        """
        instance = self._require_instance()
        current = instance.model.require_levels()
        sl = geometry.clamp_drag_target(current, LevelKind.STOP_LOSS, Decimal(str(stop_loss)))
        tp = geometry.clamp_drag_target(current, LevelKind.TAKE_PROFIT, Decimal(str(take_profit)))
        levels = instance.model.set_levels(sl, tp)
        instance.message = ""
        self.refresh()
        return levels

    def set_option(self, name: OptionName, value: bool) -> None:
        """Change one option, persist it and redraw.

        A store failure is logged and leaves the option unchanged.
        """
        self._guarded("set_option", lambda: self._apply_option(name, value))
        self.refresh()

    def confirm(self) -> Signal | None:
        """Build an OPEN signal from the current levels and hand it off.

        Legal only in VISIBLE or EDITING; elsewhere this is a no-op that
        returns None.  The consumer is invoked exactly once.  No price
        monitoring is started here.
        """
        instance = self._require_instance()
        if not instance.machine.can_fire(Trigger.CONFIRM_PRESSED):
            logger.debug(
                "Tool %s: confirm ignored in state %s", self.tool_id[:8], instance.state.value,
            )
            return None

        levels = instance.model.require_levels()
        signal = Signal.open_for(
            operation_type=OperationType.BUY if levels.is_buy else OperationType.SELL,
            stop_pips=geometry.pips_between(
                levels.entry, levels.stop_loss, self._settings.instrument.pip_size,
            ),
            instrument=self._settings.instrument.symbol,
        )
        instance.machine.fire(Trigger.CONFIRM_PRESSED)
        return signal if self._emit(signal) else None

    def close(self) -> Signal | None:
        """Emit a CLOSE signal for the tool's instrument."""
        self._require_instance()
        signal = Signal.close_for(self._settings.instrument.symbol)
        return signal if self._emit(signal) else None

    # ------------------------------------------------------------------
    # Pointer input
    # ------------------------------------------------------------------

    def handle_event(self, event: PointerEvent) -> Intention:
        """Route one pointer event and apply the resulting intention."""
        instance = self.instance
        if instance is None or instance.removed:
            return NO_INTENTION

        snapshot = instance.snapshot()
        drag_origin, moving = self._drag_origin, self._moving
        try:
            intention = self.router.route(event, self.view.hit_map)
            instance.hover_inside = self.router.hover_inside
            needs_refresh = self._dispatch(intention)
        except OverlayError as exc:
            instance.restore(snapshot)
            self._drag_origin, self._moving = drag_origin, moving
            instance.message = str(exc)
            logger.info("Tool %s: %s", self.tool_id[:8], exc)
            self.refresh()
            return NO_INTENTION
        except Exception:
            logger.exception(
                "Tool %s: error handling %s event, rolled back",
                self.tool_id[:8], event.type.value,
            )
            instance.restore(snapshot)
            self._cancel_gesture(drag_origin, moving)
            self.router.reset()
            return NO_INTENTION

        if needs_refresh:
            self.refresh()
        return intention

    def _dispatch(self, intention: Intention) -> bool:
        """Apply *intention*.  Returns True if the view must be refreshed."""
        instance = self._require_instance()
        machine = instance.machine
        kind = intention.kind

        if kind == IntentionKind.TOGGLE_VISIBILITY:
            self._toggle_visibility()
            return True

        if kind == IntentionKind.CONFIRM:
            self.confirm()
            return False

        if kind == IntentionKind.BEGIN_ADJUST:
            origin = instance.levels
            if machine.fire(Trigger.LEVEL_DRAG_BEGAN) is None:
                return False
            self._drag_origin = origin
            self._drag_level(intention)
            return True

        if kind == IntentionKind.ADJUST_LEVEL:
            if not machine.permits(Operation.ADJUST_LEVEL):
                return False
            self._drag_level(intention)
            return True

        if kind == IntentionKind.END_ADJUST:
            if instance.state != ToolState.EDITING:
                return False
            self._drag_level(intention)
            machine.fire(Trigger.DRAG_ENDED)
            self._drag_origin = None
            self._notify_levels()
            return True

        if kind == IntentionKind.CANCEL_ADJUST:
            if machine.fire(Trigger.DRAG_CANCELLED) is None:
                return False
            instance.model.restore(self._drag_origin)
            self._drag_origin = None
            return True

        if kind == IntentionKind.BEGIN_MOVE:
            if not machine.permits(Operation.MOVE_TOOL):
                return False
            self._drag_origin = instance.levels
            self._moving = True
            self._move_tool(intention)
            return True

        if kind in (IntentionKind.MOVE_TOOL, IntentionKind.END_MOVE):
            if not self._moving:
                return False
            self._move_tool(intention)
            if kind == IntentionKind.END_MOVE:
                self._moving = False
                self._drag_origin = None
                self._notify_levels()
            return True

        if kind == IntentionKind.CANCEL_MOVE:
            if not self._moving:
                return False
            instance.model.restore(self._drag_origin)
            self._moving = False
            self._drag_origin = None
            return True

        if kind == IntentionKind.OPEN_MENU:
            if machine.fire(Trigger.ENTRY_DOUBLE_PRESSED) is None:
                return False
            instance.popup_anchor = intention.point
            return True

        if kind == IntentionKind.OPEN_CONFIG:
            return machine.fire(Trigger.GEAR_PRESSED) is not None

        if kind == IntentionKind.TOGGLE_DIRECTION:
            if not machine.permits(Operation.FLIP_DIRECTION):
                return False
            levels = instance.model.flip_direction()
            self._direction = levels.direction
            return True

        if kind == IntentionKind.TOGGLE_OPTION:
            if intention.option is None or not machine.permits(Operation.SET_OPTION):
                return False
            self._apply_option(intention.option, not instance.options.get(intention.option))
            return True

        if kind == IntentionKind.CLOSE_POPUP:
            if machine.fire(Trigger.OUTSIDE_PRESSED) is None:
                return False
            instance.popup_anchor = None
            return True

        if kind in (
            IntentionKind.MOVE_BUTTON,
            IntentionKind.END_BUTTON_MOVE,
            IntentionKind.CANCEL_BUTTON_MOVE,
        ):
            if intention.element is None or not machine.permits(Operation.MOVE_BUTTON):
                return False
            self._move_buttons(intention.element, intention.dx, intention.dy)
            if kind == IntentionKind.END_BUTTON_MOVE:
                self._save_buttons()
            return True

        if kind == IntentionKind.HOVER_CHANGED:
            return instance.options.hide_labels_when_unfocused

        return False

    # ------------------------------------------------------------------
    # Intention handlers
    # ------------------------------------------------------------------

    def _toggle_visibility(self) -> None:
        instance = self._require_instance()
        if instance.state == ToolState.HIDDEN:
            defaults = self._settings.defaults
            entry = self._round_price(Decimal(self._price_source()))
            instance.model.reset(
                entry,
                self._direction.is_buy,
                defaults.stop_pips,
                defaults.take_profit_pips,
                self._settings.instrument.pip_size,
            )
            instance.machine.fire(Trigger.PRIMARY_PRESSED)
            instance.message = ""
            logger.info(
                "Tool %s shown at entry=%s (%s)",
                self.tool_id[:8], entry, self._direction.value,
            )
        elif instance.machine.fire(Trigger.PRIMARY_PRESSED) is not None:
            instance.model.clear()
            instance.popup_anchor = None
            instance.message = ""
            self.router.reset()
            logger.info("Tool %s hidden", self.tool_id[:8])

    def _drag_level(self, intention: Intention) -> None:
        """Move the dragged SL/TP line; it sticks at its last valid price."""
        if intention.level is None or intention.price is None:
            return
        instance = self._require_instance()
        levels = instance.model.require_levels()
        bounds = self._surface.get_visible_bounds()
        target = geometry.clamp_to_chart_bounds(
            self._round_price(intention.price), bounds.min_price, bounds.max_price,
        )
        target = geometry.clamp_drag_target(levels, intention.level, target)
        if target == levels.entry:
            return
        if intention.level == LevelKind.STOP_LOSS:
            instance.model.set_levels(target, levels.take_profit)
        elif intention.level == LevelKind.TAKE_PROFIT:
            instance.model.set_levels(levels.stop_loss, target)
        instance.message = ""

    def _move_tool(self, intention: Intention) -> None:
        """Reposition the whole set with entry at the pointer price."""
        if intention.price is None:
            return
        instance = self._require_instance()
        levels = instance.model.require_levels()
        bounds = self._surface.get_visible_bounds()
        entry = geometry.clamp_shift_to_bounds(
            levels, self._round_price(intention.price), bounds.min_price, bounds.max_price,
        )
        entry = self._round_price(entry)
        if entry != levels.entry:
            instance.model.set_entry(entry)
        instance.message = ""

    def _cancel_gesture(self, drag_origin: LevelSet | None, moving: bool) -> None:
        """Abandon a level drag or tool move cut short by a failure."""
        instance = self._require_instance()
        if drag_origin is not None and (moving or instance.state == ToolState.EDITING):
            instance.model.restore(drag_origin)
        if instance.state == ToolState.EDITING:
            instance.machine.fire(Trigger.DRAG_CANCELLED)
        self._drag_origin = None
        self._moving = False

    def _move_buttons(self, element: Element, dx: float, dy: float) -> None:
        instance = self._require_instance()
        linked = instance.options.link_buttons or element == Element.LINK_HANDLE
        instance.buttons = instance.buttons.moved(
            dx,
            dy,
            primary=linked or element == Element.PRIMARY_BUTTON,
            confirm=linked or element == Element.CONFIRM_BUTTON,
        )

    def _apply_option(self, name: OptionName, value: bool) -> None:
        instance = self._require_instance()
        self._store.set(option_key(name), value)
        instance.options.set(name, value)
        logger.debug("Tool %s: option %s=%s", self.tool_id[:8], name.value, value)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def _emit(self, signal: Signal) -> bool:
        if self._consumer is None:
            logger.warning(
                "Tool %s: no signal consumer registered, dropping %s",
                self.tool_id[:8], signal.unique_id,
            )
            return False
        try:
            self._consumer(signal)
        except Exception:
            logger.exception(
                "Tool %s: signal consumer failed for %s", self.tool_id[:8], signal.unique_id,
            )
            return False
        logger.info("Tool %s: emitted %s", self.tool_id[:8], signal)
        return True

    def _notify_levels(self) -> None:
        levels = self._require_instance().levels
        if self._level_listener is None or levels is None:
            return
        try:
            self._level_listener(levels)
        except Exception:
            logger.exception("Tool %s: level listener failed", self.tool_id[:8])

    # ------------------------------------------------------------------
    # Config store
    # ------------------------------------------------------------------

    def _load_options(self) -> ToolOptions:
        defaults = self._settings.defaults
        fallback = {
            OptionName.HIDE_LABELS_WHEN_UNFOCUSED: defaults.hide_labels_when_unfocused,
            OptionName.HIDE_LABELS_WHILE_EDITING: defaults.hide_labels_while_editing,
            OptionName.LINK_BUTTONS: defaults.link_buttons,
        }
        return ToolOptions(**{
            name.value: bool(self._store.get(option_key(name), value))
            for name, value in fallback.items()
        })

    def _load_buttons(self) -> ButtonLayout:
        layout = self._settings.layout
        return ButtonLayout(
            primary=self._stored_point(
                PRIMARY_BUTTON_KEY, Point(layout.primary_button_x, layout.primary_button_y),
            ),
            confirm=self._stored_point(
                CONFIRM_BUTTON_KEY, Point(layout.confirm_button_x, layout.confirm_button_y),
            ),
        )

    def _stored_point(self, key: str, default: Point) -> Point:
        value = self._store.get(key, [default.x, default.y])
        try:
            x, y = value
            return Point(float(x), float(y))
        except (TypeError, ValueError):
            logger.warning(
                "Tool %s: ignoring stored %s=%r, using default", self.tool_id[:8], key, value,
            )
            return default

    def _save_buttons(self) -> None:
        buttons = self._require_instance().buttons
        self._store.set(PRIMARY_BUTTON_KEY, [buttons.primary.x, buttons.primary.y])
        self._store.set(CONFIRM_BUTTON_KEY, [buttons.confirm.x, buttons.confirm.y])

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_instance(self) -> ToolInstance:
        if self.instance is None:
            raise ToolRemovedError(f"Tool {self.tool_id} has not been created")
        if self.instance.removed:
            raise ToolRemovedError(f"Tool {self.tool_id} has been removed")
        return self.instance

    def _round_price(self, price: Decimal) -> Decimal:
        quantum = Decimal(1).scaleb(-self._settings.instrument.price_precision)
        return price.quantize(quantum)

    def _guarded(self, operation: str, fn: Callable[[], T]) -> T | None:
        """Run *fn*; roll back on failure.

        Domain errors are re-raised to the caller, anything else is logged
        and swallowed so the host keeps running.
        """
        instance = self._require_instance()
        snapshot = instance.snapshot()
        try:
            return fn()
        except OverlayError:
            instance.restore(snapshot)
            raise
        except Exception:
            logger.exception("Tool %s: %s failed, rolled back", self.tool_id[:8], operation)
            instance.restore(snapshot)
            return None

    def to_debug_dict(self) -> dict[str, Any]:
        instance = self._require_instance()
        levels = instance.levels
        return {
            "tool_id": self.tool_id,
            "state": instance.state.value,
            "levels": levels.model_dump(mode="json") if levels else None,
            "options": instance.options.model_dump(),
            "hover_inside": instance.hover_inside,
            "transitions": instance.machine.transition_count,
        }
