"""Trade tool: level model, lifecycle, pointer routing and rendering.

One ``ToolController`` per tool instance; the ``ToolRegistry`` owns every
controller on a chart session.
"""

from __future__ import annotations

from .controller import ToolController
from .level_model import LevelModel
from .registry import ToolRegistry
from .router import EventRouter, Intention
from .state_machine import ToolStateMachine
from .view import HitMap, ToolView

__all__ = [
    "EventRouter",
    "HitMap",
    "Intention",
    "LevelModel",
    "ToolController",
    "ToolRegistry",
    "ToolStateMachine",
    "ToolView",
]
