"""Flag entity - a named enumeration that FlagChange nodes can set

A flag such as "Estado de cartera" owns options ("Al día", "Vencido", ...), each
with a color token for display. Names and option labels are unique
case-insensitively; see `flag_manager.validate_flag`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class FlagOption:
    id: str
    label: str
    color: str

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> FlagOption:
        return cls(
            id=str(raw.get("id") or ""),
            label=str(raw.get("label") or ""),
            color=str(raw.get("color") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "label": self.label, "color": self.color}


@dataclass
class Flag:
    id: str
    name: str
    options: list[FlagOption] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Flag:
        return cls(
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or ""),
            options=[
                FlagOption.from_dict(option)
                for option in raw.get("options") or []
                if isinstance(option, dict)
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "options": [option.to_dict() for option in self.options],
        }
