"""Level geometry: ordering, clamping, pip conversion and R:R.

Pure functions with no state.  All arithmetic is ``Decimal`` so that
round trips (flip twice, shift back) reproduce prices exactly.

Ordering invariant::

    buy:   stop_loss < entry < take_profit
    sell:  stop_loss > entry > take_profit
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import ValidationError

from trade_overlay.core.enums import LevelKind
from trade_overlay.core.errors import LevelValidationError
from trade_overlay.core.models import LevelSet

_ZERO = Decimal("0")
_TWO = Decimal("2")


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

def validate_ordering(levels: LevelSet) -> bool:
    """True if the levels satisfy the directional ordering invariant."""
    if levels.is_buy:
        return levels.stop_loss < levels.entry < levels.take_profit
    return levels.stop_loss > levels.entry > levels.take_profit


def require_ordering(levels: LevelSet) -> LevelSet:
    """Return *levels* unchanged or raise ``LevelValidationError``."""
    if not validate_ordering(levels):
        side = "buy" if levels.is_buy else "sell"
        raise LevelValidationError(
            f"Invalid {side} levels: stop_loss={levels.stop_loss} "
            f"entry={levels.entry} take_profit={levels.take_profit}",
            levels,
        )
    return levels


def _is_valid_position(levels: LevelSet, level: LevelKind, price: Decimal) -> bool:
    if price <= _ZERO:
        return False
    if level == LevelKind.STOP_LOSS:
        return price < levels.entry if levels.is_buy else price > levels.entry
    if level == LevelKind.TAKE_PROFIT:
        return price > levels.entry if levels.is_buy else price < levels.entry
    # Entry alone must stay strictly between the other two
    lo = min(levels.stop_loss, levels.take_profit)
    hi = max(levels.stop_loss, levels.take_profit)
    return lo < price < hi


def clamp_drag_target(
    levels: LevelSet, dragged_level: LevelKind, proposed_price: Decimal
) -> Decimal:
    """Constrain a single-level drag to the valid side of entry.

    A proposal that would break ordering returns the boundary, which is
    the entry price, so the dragged line sticks instead of jumping across.
    """
    if _is_valid_position(levels, dragged_level, proposed_price):
        return proposed_price
    return levels.entry


def clamp_to_chart_bounds(
    price: Decimal, min_visible: Decimal, max_visible: Decimal
) -> Decimal:
    """Constrain *price* to the visible price range."""
    if min_visible > max_visible:
        raise ValueError(
            f"Empty visible range: min={min_visible} > max={max_visible}"
        )
    return min(max(price, min_visible), max_visible)


# ---------------------------------------------------------------------------
# Pips
# ---------------------------------------------------------------------------

def _check_pip_size(pip_size: Decimal) -> None:
    if pip_size <= _ZERO:
        raise ValueError(f"pip_size must be positive, got {pip_size}")


def pips_between(a: Decimal, b: Decimal, pip_size: Decimal) -> Decimal:
    """Absolute distance between two prices, in pips."""
    _check_pip_size(pip_size)
    return abs(a - b) / pip_size


def price_from_pips(
    base: Decimal, pips: Decimal, sign: int, pip_size: Decimal
) -> Decimal:
    """Price *pips* away from *base*; ``sign`` is +1 (above) or -1 (below)."""
    _check_pip_size(pip_size)
    if sign not in (1, -1):
        raise ValueError(f"sign must be +1 or -1, got {sign}")
    return base + sign * pips * pip_size


def default_levels(
    entry: Decimal,
    is_buy: bool,
    stop_pips: Decimal,
    take_profit_pips: Decimal,
    pip_size: Decimal,
) -> LevelSet:
    """Levels at fixed pip offsets around *entry* for the given direction."""
    if not entry.is_finite() or entry <= _ZERO:
        raise LevelValidationError(f"Entry must be a positive price, got {entry}")
    stop_sign = -1 if is_buy else 1
    try:
        levels = LevelSet(
            entry=entry,
            stop_loss=price_from_pips(entry, stop_pips, stop_sign, pip_size),
            take_profit=price_from_pips(entry, take_profit_pips, -stop_sign, pip_size),
            is_buy=is_buy,
        )
    except ValidationError as exc:
        raise LevelValidationError(
            f"Default offsets around entry={entry} give a non-positive price",
        ) from exc
    return require_ordering(levels)


# ---------------------------------------------------------------------------
# Risk / reward
# ---------------------------------------------------------------------------

def compute_ratio(levels: LevelSet) -> Decimal:
    """Reward distance divided by risk distance, both measured from entry.

    Raises:
        LevelValidationError: If the risk distance is zero.
    """
    risk = levels.risk_distance
    if risk == _ZERO:
        raise LevelValidationError("Risk distance is zero: entry equals stop loss", levels)
    return levels.reward_distance / risk


# ---------------------------------------------------------------------------
# Whole-set transforms
# ---------------------------------------------------------------------------

def mirror_on_flip(levels: LevelSet) -> LevelSet:
    """Move SL and TP to the opposite side of entry and invert direction.

    Each level keeps its exact distance from entry, so applying this twice
    returns the original prices.
    """
    doubled = levels.entry * _TWO
    stop_loss = doubled - levels.stop_loss
    take_profit = doubled - levels.take_profit
    if stop_loss <= _ZERO or take_profit <= _ZERO:
        raise LevelValidationError(
            "Flip would move a level to a non-positive price", levels,
        )
    return LevelSet(
        entry=levels.entry,
        stop_loss=stop_loss,
        take_profit=take_profit,
        is_buy=not levels.is_buy,
    )


def shift_levels(levels: LevelSet, new_entry: Decimal) -> LevelSet:
    """Move the whole set so entry lands on *new_entry*.

    Every level keeps its distance from entry.
    """
    delta = new_entry - levels.entry
    if levels.low + delta <= _ZERO:
        raise LevelValidationError(
            f"Move to entry={new_entry} would push a level to a non-positive price",
            levels,
        )
    return LevelSet(
        entry=new_entry,
        stop_loss=levels.stop_loss + delta,
        take_profit=levels.take_profit + delta,
        is_buy=levels.is_buy,
    )


def clamp_shift_to_bounds(
    levels: LevelSet,
    new_entry: Decimal,
    min_visible: Decimal,
    max_visible: Decimal,
) -> Decimal:
    """Clamp a whole-tool move so every level stays on screen.

    Returns the entry price to move to.  When the tool is taller than the
    visible range only the entry itself is kept on screen.
    """
    delta = new_entry - levels.entry
    lowest_delta = min_visible - levels.low
    highest_delta = max_visible - levels.high
    if lowest_delta <= highest_delta:
        delta = min(max(delta, lowest_delta), highest_delta)
        return levels.entry + delta
    return clamp_to_chart_bounds(new_entry, min_visible, max_visible)
