"""Tool lifecycle state machine.

Every tool instance follows a deterministic lifecycle:

    HIDDEN      -[primary]->        VISIBLE
    VISIBLE     -[primary]->        HIDDEN
    VISIBLE     -[level drag]->     EDITING
    EDITING     -[drag end]->       VISIBLE
    EDITING     -[drag cancel]->    VISIBLE
    VISIBLE     -[entry dbl-press]-> MENU_OPEN
    MENU_OPEN   -[gear]->           CONFIG_OPEN
    MENU_OPEN   -[outside press]->  VISIBLE
    CONFIG_OPEN -[outside press]->  VISIBLE
    VISIBLE     -[confirm]->        VISIBLE
    EDITING     -[confirm]->        EDITING

A trigger with no transition from the current state is a no-op: the
state is unchanged and ``fire`` returns None.  All transitions are
recorded for debugging.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

from trade_overlay.core.enums import Operation, ToolState, Trigger

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

# (from, trigger) -> to
TRANSITIONS: dict[tuple[ToolState, Trigger], ToolState] = {
    (ToolState.HIDDEN, Trigger.PRIMARY_PRESSED): ToolState.VISIBLE,
    (ToolState.VISIBLE, Trigger.PRIMARY_PRESSED): ToolState.HIDDEN,
    (ToolState.VISIBLE, Trigger.LEVEL_DRAG_BEGAN): ToolState.EDITING,
    (ToolState.EDITING, Trigger.DRAG_ENDED): ToolState.VISIBLE,
    (ToolState.EDITING, Trigger.DRAG_CANCELLED): ToolState.VISIBLE,
    (ToolState.VISIBLE, Trigger.ENTRY_DOUBLE_PRESSED): ToolState.MENU_OPEN,
    (ToolState.MENU_OPEN, Trigger.GEAR_PRESSED): ToolState.CONFIG_OPEN,
    (ToolState.MENU_OPEN, Trigger.OUTSIDE_PRESSED): ToolState.VISIBLE,
    (ToolState.CONFIG_OPEN, Trigger.OUTSIDE_PRESSED): ToolState.VISIBLE,
    (ToolState.VISIBLE, Trigger.CONFIRM_PRESSED): ToolState.VISIBLE,
    (ToolState.EDITING, Trigger.CONFIRM_PRESSED): ToolState.EDITING,
}

# Operations that do not change state, and the states that allow them
PERMISSIONS: dict[Operation, frozenset[ToolState]] = {
    Operation.MOVE_TOOL: frozenset({ToolState.VISIBLE}),
    Operation.ADJUST_LEVEL: frozenset({ToolState.EDITING}),
    Operation.FLIP_DIRECTION: frozenset({ToolState.MENU_OPEN, ToolState.CONFIG_OPEN}),
    Operation.SET_OPTION: frozenset({ToolState.CONFIG_OPEN}),
    Operation.MOVE_BUTTON: frozenset(ToolState),
}

POPUP_STATES: frozenset[ToolState] = frozenset({
    ToolState.MENU_OPEN, ToolState.CONFIG_OPEN,
})


@dataclass(frozen=True)
class Transition:
    """One recorded state change."""

    source: ToolState
    trigger: Trigger
    target: ToolState
    at: float

    @property
    def changed(self) -> bool:
        return self.source != self.target


# ---------------------------------------------------------------------------
# ToolStateMachine
# ---------------------------------------------------------------------------

class ToolStateMachine:
    """State machine for a single tool instance.

    Args:
        tool_id: Owning tool, used in log lines.
        initial: Starting state (HIDDEN unless restoring).
    """

    def __init__(self, tool_id: str = "", initial: ToolState = ToolState.HIDDEN) -> None:
        self.tool_id = tool_id
        self.state = initial
        self.history: list[Transition] = []

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def can_fire(self, trigger: Trigger) -> bool:
        return (self.state, trigger) in TRANSITIONS

    def fire(self, trigger: Trigger) -> Transition | None:
        """Apply *trigger*.  Returns the transition, or None if undefined."""
        target = TRANSITIONS.get((self.state, trigger))
        if target is None:
            logger.debug(
                "Tool %s: ignoring %s in state %s",
                self.tool_id[:8], trigger.value, self.state.value,
            )
            return None
        transition = Transition(self.state, trigger, target, time.monotonic())
        self.history.append(transition)
        if transition.changed:
            logger.debug(
                "Tool %s: %s -> %s (%s)",
                self.tool_id[:8], self.state.value, target.value, trigger.value,
            )
        self.state = target
        return transition

    def restore(self, state: ToolState) -> None:
        """Force the state back to a snapshot after an aborted operation."""
        self.state = state

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------

    def permits(self, operation: Operation) -> bool:
        return self.state in PERMISSIONS.get(operation, frozenset())

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_hidden(self) -> bool:
        return self.state == ToolState.HIDDEN

    @property
    def popup_open(self) -> bool:
        return self.state in POPUP_STATES

    @property
    def transition_count(self) -> int:
        return len(self.history)

    def to_audit_dict(self) -> dict[str, Any]:
        """Serialize for debug logging."""
        return {
            "tool_id": self.tool_id,
            "state": self.state.value,
            "history": [
                {"from": t.source.value, "trigger": t.trigger.value,
                 "to": t.target.value, "at": t.at}
                for t in self.history
            ],
        }
