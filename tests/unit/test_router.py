"""Tests for EventRouter gesture classification."""

from __future__ import annotations

from decimal import Decimal

import pytest

from trade_overlay.core.config import GestureConfig
from trade_overlay.core.enums import Element, Gesture, IntentionKind, LevelKind, OptionName
from trade_overlay.core.events import PointerEvent
from trade_overlay.core.models import Point, Rect
from trade_overlay.tool.router import EventRouter
from trade_overlay.tool.view import HitMap


def _price(y: float) -> Decimal:
    return Decimal("1.11") - Decimal(str(y)) / Decimal("500") * Decimal("0.02")


@pytest.fixture
def hit_map() -> HitMap:
    body = Rect(550, 200, 920, 275)
    return HitMap(
        elements={
            Element.PRIMARY_BUTTON: Rect(12, 12, 76, 34),
            Element.CONFIRM_BUTTON: Rect(84, 12, 148, 34),
            Element.TOOL_BODY: body,
            Element.ENTRY_LINE: Rect(550, 246, 920, 254),
            Element.STOP_LOSS_LINE: Rect(550, 271, 920, 279),
            Element.TAKE_PROFIT_LINE: Rect(550, 196, 920, 204),
        },
        tool_bounds=body,
    )


@pytest.fixture
def popup_map(hit_map: HitMap) -> HitMap:
    elements = dict(hit_map.elements)
    elements[Element.POPUP] = Rect(700, 250, 840, 290)
    elements[Element.MENU_FLIP] = Rect(700, 250, 840, 270)
    elements[Element.MENU_GEAR] = Rect(700, 270, 840, 290)
    return HitMap(elements=elements, tool_bounds=hit_map.tool_bounds)


@pytest.fixture
def router() -> EventRouter:
    return EventRouter(GestureConfig(), _price)


class TestHitTesting:
    def test_line_beats_body(self, router, hit_map):
        assert router.element_at(Point(700, 250), hit_map) == Element.ENTRY_LINE

    def test_body_between_lines(self, router, hit_map):
        assert router.element_at(Point(700, 230), hit_map) == Element.TOOL_BODY

    def test_popup_items_on_top(self, router, popup_map):
        assert router.element_at(Point(720, 252), popup_map) == Element.MENU_FLIP

    def test_nothing(self, router, hit_map):
        assert router.element_at(Point(5, 480), hit_map) is None


class TestClicks:
    def test_primary_click(self, router, hit_map):
        assert router.route(PointerEvent.press(20, 20, 0), hit_map).kind == IntentionKind.NONE
        intention = router.route(PointerEvent.release(21, 20, 50), hit_map)
        assert intention.kind == IntentionKind.TOGGLE_VISIBILITY
        assert intention.gesture == Gesture.CLICK

    def test_confirm_click(self, router, hit_map):
        router.route(PointerEvent.press(100, 20, 0), hit_map)
        assert router.route(PointerEvent.release(100, 20, 30), hit_map).kind == IntentionKind.CONFIRM

    def test_release_elsewhere_is_not_click(self, router, hit_map):
        router.route(PointerEvent.press(20, 20, 0), hit_map)
        assert router.route(PointerEvent.release(100, 20, 30), hit_map).kind == IntentionKind.NONE

    def test_release_without_press(self, router, hit_map):
        assert router.route(PointerEvent.release(20, 20, 0), hit_map).kind == IntentionKind.NONE

    def test_option_click_carries_option(self, router, hit_map):
        elements = dict(hit_map.elements)
        elements[Element.POPUP] = Rect(0, 100, 140, 160)
        elements[Element.OPTION_LINK_BUTTONS] = Rect(0, 140, 140, 160)
        config_map = HitMap(elements=elements, tool_bounds=hit_map.tool_bounds)
        router.route(PointerEvent.press(10, 150, 0), config_map)
        intention = router.route(PointerEvent.release(10, 150, 20), config_map)
        assert intention.kind == IntentionKind.TOGGLE_OPTION
        assert intention.option == OptionName.LINK_BUTTONS


class TestDoublePress:
    def test_entry_double_press_opens_menu(self, router, hit_map):
        router.route(PointerEvent.press(700, 250, 0), hit_map)
        router.route(PointerEvent.release(700, 250, 40), hit_map)
        intention = router.route(PointerEvent.press(701, 251, 150), hit_map)
        assert intention.kind == IntentionKind.OPEN_MENU
        assert intention.gesture == Gesture.DOUBLE_PRESS
        assert intention.point == Point(701, 251)

    def test_too_slow_is_not_double(self, router, hit_map):
        router.route(PointerEvent.press(700, 250, 0), hit_map)
        router.route(PointerEvent.release(700, 250, 40), hit_map)
        assert router.route(PointerEvent.press(700, 250, 900), hit_map).kind == IntentionKind.NONE

    def test_too_far_is_not_double(self, router, hit_map):
        router.route(PointerEvent.press(600, 250, 0), hit_map)
        router.route(PointerEvent.release(600, 250, 40), hit_map)
        assert router.route(PointerEvent.press(620, 250, 100), hit_map).kind == IntentionKind.NONE

    def test_double_press_on_stop_line_is_ignored(self, router, hit_map):
        router.route(PointerEvent.press(700, 275, 0), hit_map)
        router.route(PointerEvent.release(700, 275, 40), hit_map)
        assert router.route(PointerEvent.press(700, 275, 100), hit_map).kind == IntentionKind.NONE

    def test_travel_after_double_press_is_not_drag(self, router, hit_map):
        router.route(PointerEvent.press(700, 250, 0), hit_map)
        router.route(PointerEvent.release(700, 250, 40), hit_map)
        router.route(PointerEvent.press(700, 250, 100), hit_map)
        router.route(PointerEvent.move(700, 240, 120), hit_map)
        assert router.dragging is False
        assert router.route(PointerEvent.release(700, 240, 140), hit_map).kind == IntentionKind.NONE

    def test_third_press_starts_over(self, router, hit_map):
        for t in (0, 100):
            router.route(PointerEvent.press(700, 250, t), hit_map)
            router.route(PointerEvent.release(700, 250, t + 20), hit_map)
        assert router.route(PointerEvent.press(700, 250, 200), hit_map).kind == IntentionKind.NONE


class TestDrags:
    def test_stop_loss_drag_sequence(self, router, hit_map):
        router.route(PointerEvent.press(700, 275, 0), hit_map)
        begin = router.route(PointerEvent.move(700, 280, 10), hit_map)
        assert begin.kind == IntentionKind.BEGIN_ADJUST
        assert begin.level == LevelKind.STOP_LOSS
        assert begin.price == _price(280)
        move = router.route(PointerEvent.move(700, 290, 20), hit_map)
        assert move.kind == IntentionKind.ADJUST_LEVEL
        end = router.route(PointerEvent.release(700, 300, 30), hit_map)
        assert end.kind == IntentionKind.END_ADJUST
        assert end.price == _price(300)
        assert router.dragging is False

    def test_small_travel_is_not_drag(self, router, hit_map):
        router.route(PointerEvent.press(700, 275, 0), hit_map)
        assert router.route(PointerEvent.move(701, 276, 10), hit_map).kind != IntentionKind.BEGIN_ADJUST
        assert router.dragging is False

    def test_entry_drag_moves_tool(self, router, hit_map):
        router.route(PointerEvent.press(700, 250, 0), hit_map)
        assert router.route(PointerEvent.move(700, 240, 10), hit_map).kind == IntentionKind.BEGIN_MOVE
        assert router.route(PointerEvent.move(700, 230, 20), hit_map).kind == IntentionKind.MOVE_TOOL
        assert router.route(PointerEvent.release(700, 230, 30), hit_map).kind == IntentionKind.END_MOVE

    def test_body_is_not_draggable(self, router, hit_map):
        router.route(PointerEvent.press(700, 230, 0), hit_map)
        assert router.route(PointerEvent.move(700, 210, 10), hit_map).kind == IntentionKind.NONE

    def test_escape_cancels_adjust(self, router, hit_map):
        router.route(PointerEvent.press(700, 200, 0), hit_map)
        router.route(PointerEvent.move(700, 190, 10), hit_map)
        intention = router.route(PointerEvent.escape(20), hit_map)
        assert intention.kind == IntentionKind.CANCEL_ADJUST
        assert intention.level == LevelKind.TAKE_PROFIT
        assert router.dragging is False
        # The release that follows is not a click or drag end
        assert router.route(PointerEvent.release(700, 190, 30), hit_map).kind == IntentionKind.NONE

    def test_escape_cancels_move(self, router, hit_map):
        router.route(PointerEvent.press(700, 250, 0), hit_map)
        router.route(PointerEvent.move(700, 260, 10), hit_map)
        assert router.route(PointerEvent.escape(20), hit_map).kind == IntentionKind.CANCEL_MOVE

    def test_escape_without_drag(self, router, hit_map):
        assert router.route(PointerEvent.escape(0), hit_map).kind == IntentionKind.NONE

    def test_button_drag_reports_deltas(self, router, hit_map):
        router.route(PointerEvent.press(20, 20, 0), hit_map)
        first = router.route(PointerEvent.move(30, 25, 10), hit_map)
        assert first.kind == IntentionKind.MOVE_BUTTON
        assert (first.dx, first.dy) == (10, 5)
        second = router.route(PointerEvent.move(35, 25, 20), hit_map)
        assert (second.dx, second.dy) == (5, 0)
        end = router.route(PointerEvent.release(35, 30, 30), hit_map)
        assert end.kind == IntentionKind.END_BUTTON_MOVE
        assert (end.dx, end.dy) == (0, 5)
        assert end.element == Element.PRIMARY_BUTTON

    def test_escape_during_button_drag_reverses_it(self, router, hit_map):
        router.route(PointerEvent.press(20, 20, 0), hit_map)
        router.route(PointerEvent.move(30, 25, 10), hit_map)
        router.route(PointerEvent.move(45, 32, 20), hit_map)
        cancel = router.route(PointerEvent.escape(30), hit_map)
        assert cancel.kind == IntentionKind.CANCEL_BUTTON_MOVE
        assert (cancel.dx, cancel.dy) == (-25, -12)
        assert not router.dragging


class TestPopupAndHover:
    def test_press_outside_popup_closes(self, router, popup_map):
        intention = router.route(PointerEvent.press(100, 450, 0), popup_map)
        assert intention.kind == IntentionKind.CLOSE_POPUP

    def test_press_on_line_with_popup_open_closes_and_does_not_drag(self, router, popup_map):
        assert router.route(PointerEvent.press(600, 275, 0), popup_map).kind == IntentionKind.CLOSE_POPUP
        assert router.route(PointerEvent.move(600, 290, 10), popup_map).kind != IntentionKind.BEGIN_ADJUST

    def test_flip_click(self, router, popup_map):
        router.route(PointerEvent.press(720, 260, 0), popup_map)
        assert router.route(PointerEvent.release(720, 260, 20), popup_map).kind == IntentionKind.TOGGLE_DIRECTION

    def test_hover_enter_and_leave(self, router, hit_map):
        enter = router.route(PointerEvent.move(700, 230, 0), hit_map)
        assert enter.kind == IntentionKind.HOVER_CHANGED
        assert enter.hover_inside is True
        assert router.route(PointerEvent.move(710, 230, 10), hit_map).kind == IntentionKind.NONE
        leave = router.route(PointerEvent.move(100, 400, 20), hit_map)
        assert leave.kind == IntentionKind.HOVER_CHANGED
        assert leave.hover_inside is False
