"""Flag management - validation and factories for workflow flags

Flags are defined per workflow and referenced by FlagChange nodes. Options are
colored with one of the Tailwind "-500" color tokens.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass
from uuid import uuid4

from approvalflow.domain.entities.flag import Flag, FlagOption

FLAG_COLORS: dict[str, str] = {
    "red-500": "rgb(239, 68, 68)",
    "orange-500": "rgb(249, 115, 22)",
    "amber-500": "rgb(245, 158, 11)",
    "yellow-500": "rgb(234, 179, 8)",
    "lime-500": "rgb(132, 204, 22)",
    "green-500": "rgb(34, 197, 94)",
    "emerald-500": "rgb(16, 185, 129)",
    "teal-500": "rgb(20, 184, 166)",
    "cyan-500": "rgb(6, 182, 212)",
    "sky-500": "rgb(14, 165, 233)",
    "blue-500": "rgb(59, 130, 246)",
    "indigo-500": "rgb(99, 102, 241)",
    "violet-500": "rgb(139, 92, 246)",
    "purple-500": "rgb(168, 85, 247)",
    "fuchsia-500": "rgb(217, 70, 239)",
    "pink-500": "rgb(236, 72, 153)",
    "rose-500": "rgb(244, 63, 94)",
    "slate-500": "rgb(100, 116, 139)",
    "gray-500": "rgb(107, 114, 128)",
    "zinc-500": "rgb(113, 113, 122)",
    "neutral-500": "rgb(115, 115, 115)",
    "stone-500": "rgb(120, 113, 108)",
}
DEFAULT_FLAG_COLOR = "blue-500"
DEFAULT_OPTION_LABEL = "Opción 1"


@dataclass(frozen=True)
class FlagCheck:
    valid: bool
    error: str | None = None


def generate_flag_id() -> str:
    return f"flag-{uuid4().hex[:12]}"


def generate_flag_option_id() -> str:
    return f"option-{uuid4().hex[:12]}"


def validate_flag(flag: Flag) -> FlagCheck:
    """Check a single flag; the first problem found is reported"""
    if not flag.name or not flag.name.strip():
        return FlagCheck(valid=False, error="El nombre del flag es requerido")

    if not flag.options:
        return FlagCheck(valid=False, error="El flag debe tener al menos una opción")

    for option in flag.options:
        if not option.label or not option.label.strip():
            return FlagCheck(valid=False, error="Todas las opciones deben tener un label")
        if option.color not in FLAG_COLORS:
            return FlagCheck(valid=False, error="Todas las opciones deben tener un color válido")

    labels = [option.label.strip().lower() for option in flag.options]
    if len(labels) != len(set(labels)):
        return FlagCheck(valid=False, error="No puede haber opciones con el mismo nombre")

    return FlagCheck(valid=True)


def validate_flags_unique(flags: Sequence[Flag]) -> FlagCheck:
    names = [flag.name.strip().lower() for flag in flags]
    if len(names) != len(set(names)):
        return FlagCheck(valid=False, error="No puede haber flags con el mismo nombre")
    return FlagCheck(valid=True)


def get_color_value(color: str) -> str:
    """RGB value of a color token; unknown tokens render as blue-500"""
    return FLAG_COLORS.get(color, FLAG_COLORS[DEFAULT_FLAG_COLOR])


def get_random_color() -> str:
    return random.choice(list(FLAG_COLORS))


def create_default_flag() -> Flag:
    """New unnamed flag with one option, ready for the user to fill in"""
    return Flag(
        id=generate_flag_id(),
        name="",
        options=[
            FlagOption(
                id=generate_flag_option_id(),
                label=DEFAULT_OPTION_LABEL,
                color=get_random_color(),
            )
        ],
    )


def create_default_flag_option() -> FlagOption:
    return FlagOption(id=generate_flag_option_id(), label="", color=get_random_color())
