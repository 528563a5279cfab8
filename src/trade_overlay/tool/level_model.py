"""Price levels and label options for one tool instance.

Every mutator either returns the newly accepted ``LevelSet`` or raises
``LevelValidationError``; an invalid set is never partially applied.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from pydantic import ValidationError

from trade_overlay.core.errors import LevelValidationError
from trade_overlay.core.models import LevelSet, ToolOptions

from . import geometry

logger = logging.getLogger(__name__)


class LevelModel:
    """Holds the current LevelSet (None while no levels are set) and options."""

    def __init__(
        self,
        levels: LevelSet | None = None,
        options: ToolOptions | None = None,
    ) -> None:
        if levels is not None:
            geometry.require_ordering(levels)
        self._levels = levels
        self.options = options or ToolOptions()

    @property
    def levels(self) -> LevelSet | None:
        return self._levels

    def require_levels(self) -> LevelSet:
        if self._levels is None:
            raise LevelValidationError("No levels set")
        return self._levels

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def set_levels(self, stop_loss: Decimal, take_profit: Decimal) -> LevelSet:
        """Replace stop-loss and take-profit, keeping entry and direction."""
        current = self.require_levels()
        try:
            candidate = LevelSet(
                entry=current.entry,
                stop_loss=stop_loss,
                take_profit=take_profit,
                is_buy=current.is_buy,
            )
        except ValidationError as exc:
            raise LevelValidationError(
                f"Invalid prices: stop_loss={stop_loss} take_profit={take_profit}",
            ) from exc
        return self._accept(candidate)

    def set_entry(self, entry: Decimal) -> LevelSet:
        """Move the whole set to *entry*, preserving every distance."""
        current = self.require_levels()
        return self._accept(geometry.shift_levels(current, entry))

    def flip_direction(self) -> LevelSet:
        """Mirror SL/TP around entry and invert the direction."""
        current = self.require_levels()
        return self._accept(geometry.mirror_on_flip(current))

    def reset(
        self,
        entry: Decimal,
        is_buy: bool,
        stop_pips: Decimal,
        take_profit_pips: Decimal,
        pip_size: Decimal,
    ) -> LevelSet:
        """Replace the levels with defaults around *entry*."""
        candidate = geometry.default_levels(
            entry, is_buy, stop_pips, take_profit_pips, pip_size,
        )
        return self._accept(candidate)

    def restore(self, levels: LevelSet | None) -> None:
        """Put back a snapshot taken earlier (cancelled drag, aborted call)."""
        if levels is not None:
            geometry.require_ordering(levels)
        self._levels = levels

    def clear(self) -> None:
        self._levels = None

    def _accept(self, candidate: LevelSet) -> LevelSet:
        geometry.require_ordering(candidate)
        self._levels = candidate
        logger.debug(
            "Levels accepted: entry=%s sl=%s tp=%s buy=%s",
            candidate.entry, candidate.stop_loss, candidate.take_profit,
            candidate.is_buy,
        )
        return candidate
