"""EventRouter: raw pointer events in, one typed Intention out.

For each event the router (a) finds the targeted element from the view's
last-known bounds and (b) classifies the gesture, then maps the pair onto
a single ``Intention``.  It never touches the model or the state machine;
the controller decides what an intention means in the current state.

Gesture rules:

* A press followed by travel beyond ``drag_slop_px`` starts a drag.
* A press+release without a drag is a click (resolved on release).
* A second press on the entry line within ``double_press_ms`` and
  ``double_press_px`` of the first is a double-press; it opens the menu
  and the pointer travel that follows it is not a drag.
* Only SL/TP lines adjust a single level, only the entry line moves the
  whole tool.  Drags that start on the tool body are ignored.
* Escape during a drag cancels it; a dragged button goes back to where
  the press started.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable

from trade_overlay.core.config import GestureConfig
from trade_overlay.core.enums import (
    Element,
    Gesture,
    IntentionKind,
    LevelKind,
    OptionName,
    PointerEventType,
)
from trade_overlay.core.events import PointerEvent
from trade_overlay.core.models import Point

from .view import HitMap

logger = logging.getLogger(__name__)

# Hit-test priority, topmost first
HIT_ORDER: tuple[Element, ...] = (
    Element.MENU_FLIP,
    Element.MENU_GEAR,
    Element.OPTION_HIDE_UNFOCUSED,
    Element.OPTION_HIDE_EDITING,
    Element.OPTION_LINK_BUTTONS,
    Element.POPUP,
    Element.PRIMARY_BUTTON,
    Element.CONFIRM_BUTTON,
    Element.LINK_HANDLE,
    Element.STOP_LOSS_LINE,
    Element.TAKE_PROFIT_LINE,
    Element.ENTRY_LINE,
    Element.TOOL_BODY,
)

POPUP_ELEMENTS: frozenset[Element] = frozenset(HIT_ORDER[:6])

_CLICK_INTENTIONS: dict[Element, IntentionKind] = {
    Element.PRIMARY_BUTTON: IntentionKind.TOGGLE_VISIBILITY,
    Element.CONFIRM_BUTTON: IntentionKind.CONFIRM,
    Element.MENU_GEAR: IntentionKind.OPEN_CONFIG,
    Element.MENU_FLIP: IntentionKind.TOGGLE_DIRECTION,
    Element.OPTION_HIDE_UNFOCUSED: IntentionKind.TOGGLE_OPTION,
    Element.OPTION_HIDE_EDITING: IntentionKind.TOGGLE_OPTION,
    Element.OPTION_LINK_BUTTONS: IntentionKind.TOGGLE_OPTION,
}

_OPTION_ELEMENTS: dict[Element, OptionName] = {
    Element.OPTION_HIDE_UNFOCUSED: OptionName.HIDE_LABELS_WHEN_UNFOCUSED,
    Element.OPTION_HIDE_EDITING: OptionName.HIDE_LABELS_WHILE_EDITING,
    Element.OPTION_LINK_BUTTONS: OptionName.LINK_BUTTONS,
}


@dataclass(frozen=True)
class Intention:
    """A single request from the router to the controller."""

    kind: IntentionKind
    gesture: Gesture = Gesture.NONE
    element: Element | None = None
    level: LevelKind | None = None
    price: Decimal | None = None
    point: Point | None = None
    dx: float = 0.0
    dy: float = 0.0
    option: OptionName | None = None
    hover_inside: bool | None = None


NO_INTENTION = Intention(IntentionKind.NONE)


class EventRouter:
    """Classifies pointer gestures for one tool instance.

    Args:
        gestures: Thresholds for double-press, drag slop and hit bands.
        pixel_to_price: Maps a pixel y coordinate to a chart price.
    """

    def __init__(
        self,
        gestures: GestureConfig,
        pixel_to_price: Callable[[float], Decimal],
    ) -> None:
        self._gestures = gestures
        self._pixel_to_price = pixel_to_price
        self.hover_inside = False
        self._last_press: tuple[int, Point, Element | None] | None = None
        self.reset()

    def reset(self) -> None:
        """Forget any in-flight press or drag."""
        self._pressed = False
        self._press_point: Point | None = None
        self._pressed_element: Element | None = None
        self._press_is_double = False
        self._dragging = False
        self._drag_point: Point | None = None

    @property
    def dragging(self) -> bool:
        return self._dragging

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def route(self, event: PointerEvent, hit_map: HitMap) -> Intention:
        """Classify *event* against *hit_map* and return one intention."""
        point = Point(event.x, event.y)
        if event.type == PointerEventType.PRESS:
            return self._on_press(event.timestamp_ms, point, hit_map)
        if event.type == PointerEventType.MOVE:
            return self._on_move(point, hit_map)
        if event.type == PointerEventType.RELEASE:
            return self._on_release(point, hit_map)
        return self._on_escape()

    def element_at(self, point: Point, hit_map: HitMap) -> Element | None:
        """Topmost element under *point*, or None."""
        for element in HIT_ORDER:
            if hit_map.hit(element, point):
                return element
        return None

    # ------------------------------------------------------------------
    # Gestures
    # ------------------------------------------------------------------

    def _is_double_press(self, timestamp_ms: int, point: Point, element: Element | None) -> bool:
        if self._last_press is None:
            return False
        last_ms, last_point, last_element = self._last_press
        return (
            element == last_element
            and 0 <= timestamp_ms - last_ms <= self._gestures.double_press_ms
            and point.distance_to(last_point) <= self._gestures.double_press_px
        )

    def _on_press(self, timestamp_ms: int, point: Point, hit_map: HitMap) -> Intention:
        element = self.element_at(point, hit_map)
        double = self._is_double_press(timestamp_ms, point, element)
        # A double-press consumes the pair; a third press starts over
        self._last_press = None if double else (timestamp_ms, point, element)

        self.reset()
        self._pressed = True
        self._press_point = point
        self._pressed_element = element
        self._press_is_double = double and element == Element.ENTRY_LINE

        if hit_map.popup_open and element not in POPUP_ELEMENTS:
            self._pressed_element = None
            return Intention(IntentionKind.CLOSE_POPUP, Gesture.PRESS, element, point=point)
        if self._press_is_double:
            return Intention(
                IntentionKind.OPEN_MENU, Gesture.DOUBLE_PRESS, element,
                level=LevelKind.ENTRY, point=point,
            )
        return NO_INTENTION

    def _on_move(self, point: Point, hit_map: HitMap) -> Intention:
        inside = hit_map.tool_bounds is not None and hit_map.tool_bounds.contains(point)
        hover_changed = inside != self.hover_inside
        self.hover_inside = inside

        if self._dragging:
            return self._drag_intention(Gesture.DRAG_MOVE, point)

        if (
            self._pressed
            and not self._press_is_double
            and self._press_point is not None
            and point.distance_to(self._press_point) > self._gestures.drag_slop_px
        ):
            self._dragging = True
            self._drag_point = self._press_point
            return self._drag_intention(Gesture.DRAG_BEGIN, point)

        if hover_changed:
            return Intention(
                IntentionKind.HOVER_CHANGED, Gesture.HOVER, point=point, hover_inside=inside,
            )
        return NO_INTENTION

    def _on_release(self, point: Point, hit_map: HitMap) -> Intention:
        try:
            if self._dragging:
                return self._drag_intention(Gesture.DRAG_END, point)
            element = self._pressed_element
            if (
                self._pressed
                and element is not None
                and not self._press_is_double
                and self.element_at(point, hit_map) == element
            ):
                kind = _CLICK_INTENTIONS.get(element)
                if kind is not None:
                    return Intention(
                        kind, Gesture.CLICK, element, point=point,
                        option=_OPTION_ELEMENTS.get(element),
                    )
            return NO_INTENTION
        finally:
            self.reset()

    def _on_escape(self) -> Intention:
        if not self._dragging:
            return NO_INTENTION
        intention = self._drag_intention(Gesture.DRAG_CANCEL, self._drag_point)
        self.reset()
        return intention

    # ------------------------------------------------------------------
    # Drag mapping
    # ------------------------------------------------------------------

    def _drag_intention(self, gesture: Gesture, point: Point | None) -> Intention:
        element = self._pressed_element
        if element is None or point is None:
            return NO_INTENTION

        if element.is_button:
            previous = self._drag_point or point
            self._drag_point = point
            if gesture == Gesture.DRAG_CANCEL:
                # Undo the whole drag: back to where the press started
                origin = self._press_point or point
                return Intention(
                    IntentionKind.CANCEL_BUTTON_MOVE, gesture, element, point=origin,
                    dx=origin.x - point.x, dy=origin.y - point.y,
                )
            kind = (
                IntentionKind.END_BUTTON_MOVE if gesture == Gesture.DRAG_END
                else IntentionKind.MOVE_BUTTON
            )
            return Intention(
                kind, gesture, element, point=point,
                dx=point.x - previous.x, dy=point.y - previous.y,
            )

        level = element.level
        if level is None:
            # Tool body, popup body: not draggable
            return NO_INTENTION

        if gesture == Gesture.DRAG_CANCEL:
            kind = (
                IntentionKind.CANCEL_MOVE if level == LevelKind.ENTRY
                else IntentionKind.CANCEL_ADJUST
            )
            return Intention(kind, gesture, element, level=level)

        if level == LevelKind.ENTRY:
            kinds = {
                Gesture.DRAG_BEGIN: IntentionKind.BEGIN_MOVE,
                Gesture.DRAG_MOVE: IntentionKind.MOVE_TOOL,
                Gesture.DRAG_END: IntentionKind.END_MOVE,
            }
        else:
            kinds = {
                Gesture.DRAG_BEGIN: IntentionKind.BEGIN_ADJUST,
                Gesture.DRAG_MOVE: IntentionKind.ADJUST_LEVEL,
                Gesture.DRAG_END: IntentionKind.END_ADJUST,
            }
        self._drag_point = point
        return Intention(
            kinds[gesture], gesture, element, level=level,
            price=self._pixel_to_price(point.y), point=point,
        )
