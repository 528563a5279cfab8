"""ToolInstance aggregate: everything one controller exclusively owns."""

from __future__ import annotations

from dataclasses import dataclass

from trade_overlay.core.enums import ToolState
from trade_overlay.core.models import LevelSet, Point, ToolOptions

from .level_model import LevelModel
from .state_machine import ToolStateMachine


@dataclass
class ButtonLayout:
    """Top-left pixel positions of the two tool buttons."""

    primary: Point
    confirm: Point

    def moved(self, dx: float, dy: float, *, primary: bool, confirm: bool) -> ButtonLayout:
        return ButtonLayout(
            primary=Point(self.primary.x + dx, self.primary.y + dy) if primary else self.primary,
            confirm=Point(self.confirm.x + dx, self.confirm.y + dy) if confirm else self.confirm,
        )


@dataclass
class ToolInstance:
    """One tool on one chart.

    Levels and options live in the LevelModel, state in the state machine;
    the remaining fields are transient UI state regenerated per session.
    """

    tool_id: str
    model: LevelModel
    machine: ToolStateMachine
    buttons: ButtonLayout
    hover_inside: bool = False
    popup_anchor: Point | None = None
    message: str = ""  # Last validation message shown to the user
    removed: bool = False

    @property
    def levels(self) -> LevelSet | None:
        return self.model.levels

    @property
    def options(self) -> ToolOptions:
        return self.model.options

    @property
    def state(self) -> ToolState:
        return self.machine.state

    def snapshot(self) -> InstanceSnapshot:
        return InstanceSnapshot(
            levels=self.model.levels,
            options=self.model.options.model_copy(),
            state=self.machine.state,
            buttons=self.buttons,
            hover_inside=self.hover_inside,
            popup_anchor=self.popup_anchor,
        )

    def restore(self, snap: InstanceSnapshot) -> None:
        self.model.restore(snap.levels)
        self.model.options = snap.options
        self.machine.restore(snap.state)
        self.buttons = snap.buttons
        self.hover_inside = snap.hover_inside
        self.popup_anchor = snap.popup_anchor


@dataclass(frozen=True)
class InstanceSnapshot:
    """Pre-call copy used to roll back an aborted operation."""

    levels: LevelSet | None
    options: ToolOptions
    state: ToolState
    buttons: ButtonLayout
    hover_inside: bool
    popup_anchor: Point | None
