"""Overlay settings.

Instrument, default levels, gesture thresholds, layout and logging, read
from an optional TOML file with ``OVERLAY_*`` environment overrides.
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings

from .enums import Direction
from .errors import ConfigError


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class InstrumentConfig(BaseModel):
    symbol: str = "EURUSD"
    pip_size: Decimal = Decimal("0.0001")  # 0.01 for JPY pairs
    price_precision: int = 5  # Decimal places shown in labels


class DefaultsConfig(BaseModel):
    direction: Direction = Direction.BUY
    stop_pips: Decimal = Decimal("10")
    take_profit_pips: Decimal = Decimal("20")
    hide_labels_when_unfocused: bool = False
    hide_labels_while_editing: bool = True
    link_buttons: bool = False


class GestureConfig(BaseModel):
    double_press_ms: int = 400  # Max gap between presses of a double-press
    double_press_px: float = 5.0  # Max pointer travel between those presses
    drag_slop_px: float = 3.0  # Travel before a press becomes a drag
    line_hit_px: float = 4.0  # Half-height of a level line's hit band


class LayoutConfig(BaseModel):
    tool_left: float = 0.55  # Fraction of chart width
    tool_right: float = 0.92
    button_width: float = 64.0
    button_height: float = 22.0
    primary_button_x: float = 12.0
    primary_button_y: float = 12.0
    confirm_button_x: float = 84.0
    confirm_button_y: float = 12.0
    popup_width: float = 140.0
    popup_row_height: float = 20.0


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "console"  # "json" or "console"


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level overlay settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    instrument: InstrumentConfig = Field(default_factory=InstrumentConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    gestures: GestureConfig = Field(default_factory=GestureConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "OVERLAY_", "env_nested_delimiter": "__"}


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.

    Raises:
        ConfigError: If the file cannot be parsed or fails validation.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            import tomli

            try:
                with open(path, "rb") as f:
                    data = tomli.load(f)
            except tomli.TOMLDecodeError as exc:
                raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    if overrides:
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value

    try:
        return Settings(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc
