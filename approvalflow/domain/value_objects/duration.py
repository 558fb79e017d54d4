"""Duration value object - a value plus a time unit

Used for node staleTimeout and challenge timeouts. These durations describe the
runtime behaviour of the designed workflow; nothing in this package enforces them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class TimeoutUnit(str, Enum):
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


@dataclass(frozen=True)
class Duration:
    """Duration value object

    Attributes:
    - value: amount (validation decides whether it must be positive)
    - unit: TimeoutUnit
    """

    value: float
    unit: TimeoutUnit = TimeoutUnit.MINUTES

    @classmethod
    def from_dict(cls, raw: Any) -> Duration | None:
        """Lenient parse of {"value": ..., "unit": ...}

        Returns None when the payload is absent or has no numeric value; an unknown
        unit falls back to minutes.
        """
        if not isinstance(raw, dict):
            return None
        value = raw.get("value")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        try:
            unit = TimeoutUnit(raw.get("unit", TimeoutUnit.MINUTES.value))
        except ValueError:
            unit = TimeoutUnit.MINUTES
        return cls(value=value, unit=unit)

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "unit": self.unit.value}
