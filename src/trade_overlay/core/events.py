"""Inbound pointer events and the outbound trade Signal.

Both are Pydantic models.  Pointer events arrive from the host chart's
dispatch thread; Signals leave through the registered consumer callback.
"""

from __future__ import annotations

import json
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import BaseModel, Field, ValidationError, model_validator

from .enums import OperationType, PointerEventType, SignalType
from .errors import SignalConstructionError
from .ids import SIGNAL_ID_PREFIX, new_signal_id


# ===========================================================================
# Inbound: pointer input
# ===========================================================================

class PointerEvent(BaseModel):
    """A raw pointer event in chart pixel coordinates."""

    type: PointerEventType
    x: float = 0.0
    y: float = 0.0
    timestamp_ms: int = 0

    model_config = {"frozen": True}

    @classmethod
    def press(cls, x: float, y: float, timestamp_ms: int = 0) -> PointerEvent:
        return cls(type=PointerEventType.PRESS, x=x, y=y, timestamp_ms=timestamp_ms)

    @classmethod
    def move(cls, x: float, y: float, timestamp_ms: int = 0) -> PointerEvent:
        return cls(type=PointerEventType.MOVE, x=x, y=y, timestamp_ms=timestamp_ms)

    @classmethod
    def release(cls, x: float, y: float, timestamp_ms: int = 0) -> PointerEvent:
        return cls(type=PointerEventType.RELEASE, x=x, y=y, timestamp_ms=timestamp_ms)

    @classmethod
    def escape(cls, timestamp_ms: int = 0) -> PointerEvent:
        return cls(type=PointerEventType.ESCAPE, timestamp_ms=timestamp_ms)


# ===========================================================================
# Outbound: trade signal
# ===========================================================================

_ONE_DECIMAL = Decimal("0.1")


class Signal(BaseModel):
    """Immutable trade signal handed to the external trading consumer.

    OPEN signals carry an operation type and a positive stop distance in
    pips; CLOSE signals carry neither.  Any other combination fails
    validation, so a partially-valid Signal never exists.
    """

    unique_id: str = Field(default_factory=new_signal_id)
    signal_type: SignalType
    operation_type: OperationType | None = None
    stop_pips: Decimal | None = None
    instrument: str

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_kind_dependent_fields(self) -> Signal:
        if not self.instrument or not self.instrument.strip():
            raise SignalConstructionError("Instrument cannot be empty")
        if not self.unique_id.startswith(SIGNAL_ID_PREFIX):
            raise SignalConstructionError(
                f"unique_id must start with {SIGNAL_ID_PREFIX!r}, got {self.unique_id!r}"
            )

        if self.signal_type == SignalType.OPEN:
            if self.operation_type is None:
                raise SignalConstructionError(
                    "Operation type cannot be null for OPEN signals"
                )
            if self.stop_pips is None:
                raise SignalConstructionError("Stop pips are required for OPEN signals")
            if not self.stop_pips.is_finite() or self.stop_pips <= 0:
                raise SignalConstructionError(
                    f"Stop pips must be positive for OPEN signals, got {self.stop_pips}"
                )
        else:
            if self.operation_type is not None:
                raise SignalConstructionError(
                    "Operation type must be null for CLOSE signals"
                )
            if self.stop_pips is not None:
                raise SignalConstructionError("Stop pips must be absent for CLOSE signals")
        return self

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def open_for(
        cls,
        operation_type: OperationType,
        stop_pips: Decimal | float | str,
        instrument: str,
    ) -> Signal:
        """Build an OPEN signal.

        Raises:
            SignalConstructionError: If the fields do not form a valid OPEN signal.
        """
        return cls._build(
            signal_type=SignalType.OPEN,
            operation_type=operation_type,
            stop_pips=Decimal(str(stop_pips)),
            instrument=instrument,
        )

    @classmethod
    def close_for(cls, instrument: str) -> Signal:
        """Build a CLOSE signal for *instrument*."""
        return cls._build(signal_type=SignalType.CLOSE, instrument=instrument)

    @classmethod
    def _build(cls, **fields: Any) -> Signal:
        try:
            return cls(**fields)
        except ValidationError as exc:
            errors = exc.errors()
            if not errors:
                raise SignalConstructionError(str(exc)) from exc
            # Validator errors carry the original exception; prefer its text
            cause = errors[0].get("ctx", {}).get("error")
            raise SignalConstructionError(str(cause or errors[0]["msg"])) from exc

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @property
    def stop_pips_text(self) -> str | None:
        """Stop distance formatted with one decimal (``"20.0"``)."""
        if self.stop_pips is None:
            return None
        return str(self.stop_pips.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))

    def to_wire(self) -> dict[str, Any]:
        """Wire representation consumed by the trading component."""
        wire: dict[str, Any] = {"signalType": self.signal_type.value}
        if self.signal_type == SignalType.OPEN:
            assert self.operation_type is not None and self.stop_pips_text is not None
            wire["operationType"] = self.operation_type.value
            wire["stopPips"] = float(self.stop_pips_text)
        wire["uniqueId"] = self.unique_id
        return wire

    def to_json(self) -> str:
        return json.dumps(self.to_wire(), indent=2)

    def __str__(self) -> str:
        parts = [f"ID: {self.unique_id}", f"Type: {self.signal_type.value}"]
        if self.signal_type == SignalType.OPEN:
            assert self.operation_type is not None
            parts.append(f"Operation: {self.operation_type.value}")
            parts.append(f"StopPips: {self.stop_pips_text}")
        parts.append(f"Instrument: {self.instrument}")
        return "Signal[" + ", ".join(parts) + "]"
