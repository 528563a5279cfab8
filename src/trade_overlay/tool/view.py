"""ToolView: turns a ToolInstance into drawing calls on the chart surface.

The view holds no tool semantics.  Every ``refresh`` releases the previous
drawables, recomputes geometry from the instance and redraws.  It also
records the screen bounds of everything it drew (the ``HitMap``) so that
the router can hit-test the next pointer event against what the user
actually sees.

Surface failures are boundary errors: the failed primitive is skipped
and logged, the rest of the frame is still drawn.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Hashable

from trade_overlay.core.config import InstrumentConfig, LayoutConfig
from trade_overlay.core.enums import Element, LevelKind, OptionName, ToolState
from trade_overlay.core.errors import LevelValidationError
from trade_overlay.core.ids import element_id
from trade_overlay.core.interfaces import IRenderingSurface
from trade_overlay.core.models import DrawStyle, LevelSet, Point, Rect, VisibleBounds

from . import geometry
from .instance import ToolInstance

logger = logging.getLogger(__name__)

ENTRY_STYLE = DrawStyle(color="#9e9e9e", width=1.5)
STOP_STYLE = DrawStyle(color="#e53935", width=1.5)
TARGET_STYLE = DrawStyle(color="#43a047", width=1.5)
RISK_ZONE_STYLE = DrawStyle(color="#e53935", width=0.0, fill="#e53935", opacity=0.15)
REWARD_ZONE_STYLE = DrawStyle(color="#43a047", width=0.0, fill="#43a047", opacity=0.15)
LABEL_STYLE = DrawStyle(color="#eeeeee", font_size=11)
MESSAGE_STYLE = DrawStyle(color="#ffb300", font_size=11)
BUTTON_STYLE = DrawStyle(color="#607d8b", fill="#263238")
HANDLE_STYLE = DrawStyle(color="#607d8b", width=2.0, dashed=True)
POPUP_STYLE = DrawStyle(color="#90a4ae", fill="#37474f")

_LINE_STYLES: dict[LevelKind, DrawStyle] = {
    LevelKind.ENTRY: ENTRY_STYLE,
    LevelKind.STOP_LOSS: STOP_STYLE,
    LevelKind.TAKE_PROFIT: TARGET_STYLE,
}

_LINE_ELEMENTS: dict[LevelKind, Element] = {
    LevelKind.ENTRY: Element.ENTRY_LINE,
    LevelKind.STOP_LOSS: Element.STOP_LOSS_LINE,
    LevelKind.TAKE_PROFIT: Element.TAKE_PROFIT_LINE,
}

_CONFIG_ROWS: list[tuple[Element, OptionName, str]] = [
    (Element.OPTION_HIDE_UNFOCUSED, OptionName.HIDE_LABELS_WHEN_UNFOCUSED, "Hide labels when unfocused"),
    (Element.OPTION_HIDE_EDITING, OptionName.HIDE_LABELS_WHILE_EDITING, "Hide labels while editing"),
    (Element.OPTION_LINK_BUTTONS, OptionName.LINK_BUTTONS, "Link buttons"),
]

_ONE_DECIMAL = Decimal("0.1")
_TWO_DECIMALS = Decimal("0.01")


@dataclass
class HitMap:
    """Last-known screen bounds of every drawn element."""

    elements: dict[Element, Rect] = field(default_factory=dict)
    tool_bounds: Rect | None = None

    def get(self, element: Element) -> Rect | None:
        return self.elements.get(element)

    def hit(self, element: Element, point: Point) -> bool:
        rect = self.elements.get(element)
        return rect is not None and rect.contains(point)

    @property
    def popup_open(self) -> bool:
        return Element.POPUP in self.elements


def format_ratio(levels: LevelSet) -> str:
    """Risk/reward ratio rounded to two decimals, e.g. ``"2.00"``."""
    try:
        ratio = geometry.compute_ratio(levels)
    except LevelValidationError:
        return "-"
    return str(ratio.quantize(_TWO_DECIMALS, rounding=ROUND_HALF_UP))


class ToolView:
    """Draws one tool instance.

    Args:
        tool_id: Owning tool, used to build drawable ids.
        surface: Chart rendering surface.
        layout: Pixel layout settings.
        instrument: Pip size and label precision.
        line_hit_px: Half-height of the hit band around a level line.
    """

    def __init__(
        self,
        tool_id: str,
        surface: IRenderingSurface,
        layout: LayoutConfig,
        instrument: InstrumentConfig,
        line_hit_px: float = 4.0,
    ) -> None:
        self._tool_id = tool_id
        self._surface = surface
        self._layout = layout
        self._instrument = instrument
        self._line_hit_px = line_hit_px
        self._handles: list[Hashable] = []
        self._frame_hits: HitMap = HitMap()
        self.hit_map = HitMap()
        self.failed_draws = 0

    @property
    def handle_count(self) -> int:
        return len(self._handles)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def refresh(self, instance: ToolInstance) -> HitMap:
        """Release the previous frame and draw *instance* from scratch."""
        self.release()
        self._frame_hits = HitMap()

        self._draw_buttons(instance)

        levels = instance.levels
        if instance.state != ToolState.HIDDEN and levels is not None:
            bounds = self._visible_bounds()
            if bounds is not None:
                self._draw_levels(instance, levels, bounds)
                self._draw_popup(instance, bounds)

        self.hit_map = self._frame_hits
        return self.hit_map

    def release(self) -> None:
        """Remove every drawable produced by the last refresh."""
        for handle in self._handles:
            try:
                self._surface.remove(handle)
            except Exception:
                logger.warning(
                    "Tool %s: failed to remove drawable %r",
                    self._tool_id[:8], handle, exc_info=True,
                )
        self._handles.clear()
        self.hit_map = HitMap()

    # ------------------------------------------------------------------
    # Buttons
    # ------------------------------------------------------------------

    def button_rect(self, top_left: Point) -> Rect:
        return Rect(
            top_left.x,
            top_left.y,
            top_left.x + self._layout.button_width,
            top_left.y + self._layout.button_height,
        )

    def _draw_buttons(self, instance: ToolInstance) -> None:
        primary = self.button_rect(instance.buttons.primary)
        confirm = self.button_rect(instance.buttons.confirm)
        primary_text = "Show" if instance.state == ToolState.HIDDEN else "Hide"
        self._draw_button(Element.PRIMARY_BUTTON, primary, primary_text)
        if instance.state != ToolState.HIDDEN:
            self._draw_button(Element.CONFIRM_BUTTON, confirm, "Send")

        if instance.options.link_buttons:
            x0, y0 = primary.right, (primary.top + primary.bottom) / 2
            x1, y1 = confirm.left, (confirm.top + confirm.bottom) / 2
            if self._draw(self._surface.draw_line, Element.LINK_HANDLE, (x0, y0, x1, y1), HANDLE_STYLE):
                self._frame_hits.elements[Element.LINK_HANDLE] = Rect.around(
                    x0, y0, x1, y1,
                ).inflate(0, self._line_hit_px)

    def _draw_button(self, element: Element, rect: Rect, text: str) -> None:
        coords = (rect.left, rect.top, rect.right, rect.bottom)
        if self._draw(self._surface.draw_rectangle, element, coords, BUTTON_STYLE):
            self._frame_hits.elements[element] = rect
            self._draw_text(element, Point(rect.left + 6, rect.top + 4), LABEL_STYLE, text)

    # ------------------------------------------------------------------
    # Levels
    # ------------------------------------------------------------------

    def _draw_levels(
        self, instance: ToolInstance, levels: LevelSet, bounds: VisibleBounds
    ) -> None:
        try:
            ys = {
                kind: self._surface.price_to_pixel(
                    geometry.clamp_to_chart_bounds(
                        levels.price_of(kind), bounds.min_price, bounds.max_price,
                    )
                )
                for kind in LevelKind
            }
        except Exception:
            logger.warning(
                "Tool %s: price to pixel mapping failed, levels not drawn",
                self._tool_id[:8], exc_info=True,
            )
            return

        x0 = bounds.pixel_width * self._layout.tool_left
        x1 = bounds.pixel_width * self._layout.tool_right
        entry_y = ys[LevelKind.ENTRY]

        risk = Rect.around(x0, entry_y, x1, ys[LevelKind.STOP_LOSS])
        reward = Rect.around(x0, entry_y, x1, ys[LevelKind.TAKE_PROFIT])
        self._draw(self._surface.draw_rectangle, "risk_zone",
                   (risk.left, risk.top, risk.right, risk.bottom), RISK_ZONE_STYLE)
        self._draw(self._surface.draw_rectangle, "reward_zone",
                   (reward.left, reward.top, reward.right, reward.bottom), REWARD_ZONE_STYLE)
        body = Rect(x0, min(risk.top, reward.top), x1, max(risk.bottom, reward.bottom))
        self._frame_hits.elements[Element.TOOL_BODY] = body
        self._frame_hits.tool_bounds = body

        for kind, y in ys.items():
            element = _LINE_ELEMENTS[kind]
            if self._draw(self._surface.draw_line, element, (x0, y, x1, y), _LINE_STYLES[kind]):
                self._frame_hits.elements[element] = Rect(x0, y, x1, y).inflate(
                    0, self._line_hit_px,
                )

        if self._labels_visible(instance):
            self._draw_labels(levels, ys, x0)
        if instance.message:
            self._draw_text("message", Point(x0 + 4, entry_y + 6), MESSAGE_STYLE, instance.message)

    def _labels_visible(self, instance: ToolInstance) -> bool:
        options = instance.options
        if options.hide_labels_while_editing and instance.state == ToolState.EDITING:
            return False
        if options.hide_labels_when_unfocused and not instance.hover_inside:
            return False
        return True

    def _draw_labels(self, levels: LevelSet, ys: dict[LevelKind, float], x: float) -> None:
        precision = self._instrument.price_precision
        pip_size = self._instrument.pip_size

        def pips(price: Decimal) -> str:
            distance = geometry.pips_between(levels.entry, price, pip_size)
            return str(distance.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))

        side = "Buy" if levels.is_buy else "Sell"
        texts = {
            LevelKind.ENTRY: f"{side} {levels.entry:.{precision}f}  R:R {format_ratio(levels)}",
            LevelKind.STOP_LOSS: f"SL {levels.stop_loss:.{precision}f} ({pips(levels.stop_loss)} pips)",
            LevelKind.TAKE_PROFIT: f"TP {levels.take_profit:.{precision}f} ({pips(levels.take_profit)} pips)",
        }
        for kind, text in texts.items():
            self._draw_text(f"{kind.value}_label", Point(x + 4, ys[kind] - 14), LABEL_STYLE, text)

    # ------------------------------------------------------------------
    # Popup
    # ------------------------------------------------------------------

    def _draw_popup(self, instance: ToolInstance, bounds: VisibleBounds) -> None:
        if instance.state == ToolState.MENU_OPEN:
            levels = instance.levels
            flip_to = "Sell" if levels is not None and levels.is_buy else "Buy"
            rows = [
                (Element.MENU_FLIP, f"Flip to {flip_to}"),
                (Element.MENU_GEAR, "Settings"),
            ]
        elif instance.state == ToolState.CONFIG_OPEN:
            rows = [
                (element, ("[x] " if instance.options.get(name) else "[ ] ") + label)
                for element, name, label in _CONFIG_ROWS
            ]
        else:
            return

        anchor = instance.popup_anchor or Point(0.0, 0.0)
        width = self._layout.popup_width
        row_h = self._layout.popup_row_height
        height = row_h * len(rows)
        # Keep the popup on screen
        left = min(max(anchor.x, 0.0), max(bounds.pixel_width - width, 0.0))
        top = min(max(anchor.y, 0.0), max(bounds.pixel_height - height, 0.0))
        popup = Rect(left, top, left + width, top + height)

        coords = (popup.left, popup.top, popup.right, popup.bottom)
        if not self._draw(self._surface.draw_rectangle, Element.POPUP, coords, POPUP_STYLE):
            return
        self._frame_hits.elements[Element.POPUP] = popup
        for i, (element, text) in enumerate(rows):
            row = Rect(left, top + i * row_h, left + width, top + (i + 1) * row_h)
            if self._draw_text(element, Point(row.left + 6, row.top + 4), LABEL_STYLE, text):
                self._frame_hits.elements[element] = row

    # ------------------------------------------------------------------
    # Surface calls
    # ------------------------------------------------------------------

    def _visible_bounds(self) -> VisibleBounds | None:
        try:
            return self._surface.get_visible_bounds()
        except Exception:
            logger.warning(
                "Tool %s: could not read visible bounds", self._tool_id[:8], exc_info=True,
            )
            return None

    def _draw_text(self, element: Element | str, at: Point, style: DrawStyle, text: str) -> bool:
        name = element.value if isinstance(element, Element) else element
        try:
            handle = self._surface.draw_text(
                element_id(self._tool_id, name), (at.x, at.y), style, text,
            )
        except Exception:
            self._record_failure(name)
            return False
        self._handles.append(handle)
        return True

    def _draw(
        self,
        draw: Callable[..., Hashable],
        element: Element | str,
        coords: tuple[float, float, float, float],
        style: DrawStyle,
    ) -> bool:
        name = element.value if isinstance(element, Element) else element
        try:
            handle = draw(element_id(self._tool_id, name), coords, style)
        except Exception:
            self._record_failure(name)
            return False
        self._handles.append(handle)
        return True

    def _record_failure(self, name: str) -> None:
        self.failed_draws += 1
        logger.warning(
            "Tool %s: draw of %s failed, skipped", self._tool_id[:8], name, exc_info=True,
        )
