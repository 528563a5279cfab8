"""Tests for tool.geometry: ordering, clamping, pips, ratio, flip."""

from __future__ import annotations

from decimal import Decimal

import pytest

from trade_overlay.core.enums import LevelKind
from trade_overlay.core.errors import LevelValidationError
from trade_overlay.core.models import LevelSet
from trade_overlay.tool import geometry

PIP = Decimal("0.0001")


def _levels(entry: str, sl: str, tp: str, is_buy: bool = True) -> LevelSet:
    return LevelSet(
        entry=Decimal(entry), stop_loss=Decimal(sl), take_profit=Decimal(tp), is_buy=is_buy,
    )


class TestOrdering:
    def test_valid_buy(self, buy_levels):
        assert geometry.validate_ordering(buy_levels) is True

    def test_valid_sell(self, sell_levels):
        assert geometry.validate_ordering(sell_levels) is True

    def test_buy_with_sell_layout_is_invalid(self):
        assert not geometry.validate_ordering(_levels("1.1", "1.101", "1.098", is_buy=True))

    def test_equal_prices_are_invalid(self):
        assert not geometry.validate_ordering(_levels("1.1", "1.1", "1.102"))

    def test_require_ordering_raises_with_levels(self):
        bad = _levels("1.1", "1.101", "1.102")
        with pytest.raises(LevelValidationError, match="Invalid buy levels") as exc_info:
            geometry.require_ordering(bad)
        assert exc_info.value.levels == bad

    def test_require_ordering_returns_input(self, buy_levels):
        assert geometry.require_ordering(buy_levels) is buy_levels


class TestClampDragTarget:
    def test_stop_below_entry_kept_for_buy(self, buy_levels):
        price = Decimal("1.09850")
        assert geometry.clamp_drag_target(buy_levels, LevelKind.STOP_LOSS, price) == price

    def test_stop_above_entry_clamps_to_entry_for_buy(self, buy_levels):
        result = geometry.clamp_drag_target(buy_levels, LevelKind.STOP_LOSS, Decimal("1.10050"))
        assert result == Decimal("1.10000")

    def test_stop_at_entry_returns_entry(self, buy_levels):
        result = geometry.clamp_drag_target(buy_levels, LevelKind.STOP_LOSS, Decimal("1.10000"))
        assert result == buy_levels.entry

    def test_target_below_entry_clamps_for_buy(self, buy_levels):
        result = geometry.clamp_drag_target(buy_levels, LevelKind.TAKE_PROFIT, Decimal("1.09950"))
        assert result == buy_levels.entry

    def test_sell_stop_must_be_above(self, sell_levels):
        assert geometry.clamp_drag_target(
            sell_levels, LevelKind.STOP_LOSS, Decimal("1.10300"),
        ) == Decimal("1.10300")
        assert geometry.clamp_drag_target(
            sell_levels, LevelKind.STOP_LOSS, Decimal("1.09990"),
        ) == sell_levels.entry

    def test_sell_target_must_be_below(self, sell_levels):
        assert geometry.clamp_drag_target(
            sell_levels, LevelKind.TAKE_PROFIT, Decimal("1.10010"),
        ) == sell_levels.entry

    def test_entry_must_stay_between(self, buy_levels):
        inside = Decimal("1.10100")
        assert geometry.clamp_drag_target(buy_levels, LevelKind.ENTRY, inside) == inside
        assert geometry.clamp_drag_target(
            buy_levels, LevelKind.ENTRY, Decimal("1.10300"),
        ) == buy_levels.entry

    def test_non_positive_price_clamps(self, buy_levels):
        assert geometry.clamp_drag_target(
            buy_levels, LevelKind.STOP_LOSS, Decimal("-1"),
        ) == buy_levels.entry


class TestChartBounds:
    def test_inside_unchanged(self):
        assert geometry.clamp_to_chart_bounds(
            Decimal("1.1"), Decimal("1.0"), Decimal("1.2"),
        ) == Decimal("1.1")

    def test_clamps_both_sides(self):
        lo, hi = Decimal("1.0"), Decimal("1.2")
        assert geometry.clamp_to_chart_bounds(Decimal("0.9"), lo, hi) == lo
        assert geometry.clamp_to_chart_bounds(Decimal("1.3"), lo, hi) == hi

    def test_empty_range_raises(self):
        with pytest.raises(ValueError, match="Empty visible range"):
            geometry.clamp_to_chart_bounds(Decimal("1"), Decimal("2"), Decimal("1"))


class TestPips:
    def test_pips_between_is_absolute(self):
        assert geometry.pips_between(Decimal("1.10000"), Decimal("1.09900"), PIP) == Decimal("10")
        assert geometry.pips_between(Decimal("1.09900"), Decimal("1.10000"), PIP) == Decimal("10")

    def test_jpy_pip_size(self):
        assert geometry.pips_between(
            Decimal("150.00"), Decimal("149.85"), Decimal("0.01"),
        ) == Decimal("15")

    def test_price_from_pips(self):
        assert geometry.price_from_pips(Decimal("1.10000"), Decimal("20"), 1, PIP) == Decimal("1.10200")
        assert geometry.price_from_pips(Decimal("1.10000"), Decimal("10"), -1, PIP) == Decimal("1.09900")

    def test_bad_sign_raises(self):
        with pytest.raises(ValueError, match="sign"):
            geometry.price_from_pips(Decimal("1.1"), Decimal("1"), 0, PIP)

    def test_bad_pip_size_raises(self):
        with pytest.raises(ValueError, match="pip_size"):
            geometry.pips_between(Decimal("1"), Decimal("2"), Decimal("0"))


class TestDefaultLevels:
    def test_buy_defaults(self):
        levels = geometry.default_levels(
            Decimal("1.10000"), True, Decimal("10"), Decimal("20"), PIP,
        )
        assert levels.stop_loss == Decimal("1.09900")
        assert levels.take_profit == Decimal("1.10200")
        assert levels.is_buy is True
        assert geometry.compute_ratio(levels) == Decimal("2")

    def test_sell_defaults(self):
        levels = geometry.default_levels(
            Decimal("1.10000"), False, Decimal("10"), Decimal("20"), PIP,
        )
        assert levels.stop_loss == Decimal("1.10100")
        assert levels.take_profit == Decimal("1.09800")

    def test_non_positive_entry_raises(self):
        with pytest.raises(LevelValidationError, match="positive"):
            geometry.default_levels(Decimal("0"), True, Decimal("10"), Decimal("20"), PIP)

    def test_stop_below_zero_rejected(self):
        with pytest.raises(LevelValidationError, match="non-positive price"):
            geometry.default_levels(Decimal("0.0005"), True, Decimal("10"), Decimal("20"), PIP)


class TestComputeRatio:
    def test_two_to_one(self, buy_levels):
        assert geometry.compute_ratio(buy_levels) == Decimal("2")

    def test_exact_fraction(self):
        levels = _levels("1.10000", "1.09970", "1.10010")
        assert geometry.compute_ratio(levels) == Decimal("0.00010") / Decimal("0.00030")

    def test_zero_risk_raises(self):
        levels = _levels("1.1", "1.1", "1.2")
        with pytest.raises(LevelValidationError, match="Risk distance is zero"):
            geometry.compute_ratio(levels)


class TestMirrorOnFlip:
    def test_buy_becomes_sell(self, buy_levels):
        flipped = geometry.mirror_on_flip(buy_levels)
        assert flipped.is_buy is False
        assert flipped.entry == buy_levels.entry
        assert flipped.stop_loss == Decimal("1.10100")
        assert flipped.take_profit == Decimal("1.09800")
        assert geometry.validate_ordering(flipped)

    def test_distances_preserved(self, buy_levels):
        flipped = geometry.mirror_on_flip(buy_levels)
        assert flipped.risk_distance == buy_levels.risk_distance
        assert flipped.reward_distance == buy_levels.reward_distance

    def test_twice_is_identity(self, sell_levels):
        assert geometry.mirror_on_flip(geometry.mirror_on_flip(sell_levels)) == sell_levels

    def test_flip_below_zero_raises(self):
        levels = _levels("0.00010", "0.00005", "0.00030")
        with pytest.raises(LevelValidationError, match="non-positive"):
            geometry.mirror_on_flip(levels)


class TestShift:
    def test_shift_preserves_distances(self, buy_levels):
        moved = geometry.shift_levels(buy_levels, Decimal("1.10500"))
        assert moved.entry == Decimal("1.10500")
        assert moved.stop_loss == Decimal("1.10400")
        assert moved.take_profit == Decimal("1.10700")

    def test_shift_to_non_positive_raises(self, buy_levels):
        with pytest.raises(LevelValidationError):
            geometry.shift_levels(buy_levels, Decimal("0.0005"))

    def test_clamp_shift_keeps_whole_set_visible(self, buy_levels):
        # Range 1.09..1.11: TP sits 0.002 above entry, so entry tops out at 1.108
        entry = geometry.clamp_shift_to_bounds(
            buy_levels, Decimal("1.10950"), Decimal("1.09"), Decimal("1.11"),
        )
        assert entry == Decimal("1.10800")

    def test_clamp_shift_bottom(self, buy_levels):
        entry = geometry.clamp_shift_to_bounds(
            buy_levels, Decimal("1.08"), Decimal("1.09"), Decimal("1.11"),
        )
        assert entry == Decimal("1.09100")

    def test_tool_taller_than_chart_clamps_entry_only(self, buy_levels):
        entry = geometry.clamp_shift_to_bounds(
            buy_levels, Decimal("1.2"), Decimal("1.100"), Decimal("1.101"),
        )
        assert entry == Decimal("1.101")
