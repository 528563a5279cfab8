"""Enumerations used across the overlay tool."""

from enum import Enum


class Direction(str, Enum):
    BUY = "buy"
    SELL = "sell"

    @property
    def is_buy(self) -> bool:
        return self is Direction.BUY

    @classmethod
    def from_is_buy(cls, is_buy: bool) -> "Direction":
        return cls.BUY if is_buy else cls.SELL


class SignalType(str, Enum):
    OPEN = "OPEN"  # Open a new position
    CLOSE = "CLOSE"  # Close an existing position


class OperationType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class LevelKind(str, Enum):
    ENTRY = "entry"
    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"


class ToolState(str, Enum):
    """Lifecycle states for a single tool instance."""

    HIDDEN = "hidden"
    VISIBLE = "visible"
    EDITING = "editing"
    MENU_OPEN = "menu_open"
    CONFIG_OPEN = "config_open"


class Trigger(str, Enum):
    """Events that may cause a ToolState transition."""

    PRIMARY_PRESSED = "primary_pressed"
    LEVEL_DRAG_BEGAN = "level_drag_began"
    DRAG_ENDED = "drag_ended"
    DRAG_CANCELLED = "drag_cancelled"
    ENTRY_DOUBLE_PRESSED = "entry_double_pressed"
    GEAR_PRESSED = "gear_pressed"
    OUTSIDE_PRESSED = "outside_pressed"
    CONFIRM_PRESSED = "confirm_pressed"


class Operation(str, Enum):
    """Non-transition operations whose legality depends on the state."""

    MOVE_TOOL = "move_tool"
    ADJUST_LEVEL = "adjust_level"
    FLIP_DIRECTION = "flip_direction"
    SET_OPTION = "set_option"
    MOVE_BUTTON = "move_button"


class PointerEventType(str, Enum):
    PRESS = "press"
    MOVE = "move"
    RELEASE = "release"
    ESCAPE = "escape"


class Element(str, Enum):
    """Drawable elements that can be targeted by the pointer."""

    ENTRY_LINE = "entry_line"
    STOP_LOSS_LINE = "stop_loss_line"
    TAKE_PROFIT_LINE = "take_profit_line"
    TOOL_BODY = "tool_body"
    PRIMARY_BUTTON = "primary_button"
    CONFIRM_BUTTON = "confirm_button"
    LINK_HANDLE = "link_handle"
    POPUP = "popup"
    MENU_FLIP = "menu_flip"
    MENU_GEAR = "menu_gear"
    OPTION_HIDE_UNFOCUSED = "option_hide_unfocused"
    OPTION_HIDE_EDITING = "option_hide_editing"
    OPTION_LINK_BUTTONS = "option_link_buttons"

    @property
    def level(self) -> LevelKind | None:
        return _ELEMENT_LEVELS.get(self)

    @property
    def is_button(self) -> bool:
        return self in (
            Element.PRIMARY_BUTTON, Element.CONFIRM_BUTTON, Element.LINK_HANDLE,
        )


_ELEMENT_LEVELS: dict[Element, LevelKind] = {
    Element.ENTRY_LINE: LevelKind.ENTRY,
    Element.STOP_LOSS_LINE: LevelKind.STOP_LOSS,
    Element.TAKE_PROFIT_LINE: LevelKind.TAKE_PROFIT,
}


class Gesture(str, Enum):
    PRESS = "press"
    DOUBLE_PRESS = "double_press"
    DRAG_BEGIN = "drag_begin"
    DRAG_MOVE = "drag_move"
    DRAG_END = "drag_end"
    DRAG_CANCEL = "drag_cancel"
    CLICK = "click"
    HOVER = "hover"
    NONE = "none"


class IntentionKind(str, Enum):
    """What the router asks the controller to do."""

    NONE = "none"
    TOGGLE_VISIBILITY = "toggle_visibility"
    CONFIRM = "confirm"
    BEGIN_ADJUST = "begin_adjust"
    ADJUST_LEVEL = "adjust_level"
    END_ADJUST = "end_adjust"
    CANCEL_ADJUST = "cancel_adjust"
    BEGIN_MOVE = "begin_move"
    MOVE_TOOL = "move_tool"
    END_MOVE = "end_move"
    CANCEL_MOVE = "cancel_move"
    OPEN_MENU = "open_menu"
    OPEN_CONFIG = "open_config"
    TOGGLE_DIRECTION = "toggle_direction"
    TOGGLE_OPTION = "toggle_option"
    CLOSE_POPUP = "close_popup"
    MOVE_BUTTON = "move_button"
    END_BUTTON_MOVE = "end_button_move"
    CANCEL_BUTTON_MOVE = "cancel_button_move"
    HOVER_CHANGED = "hover_changed"


class OptionName(str, Enum):
    HIDE_LABELS_WHEN_UNFOCUSED = "hide_labels_when_unfocused"
    HIDE_LABELS_WHILE_EDITING = "hide_labels_while_editing"
    LINK_BUTTONS = "link_buttons"
