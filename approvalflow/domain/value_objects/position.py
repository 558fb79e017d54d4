"""Position value object - node coordinates on the canvas

Position is owned by the rendering side; the graph core only carries it around
and shifts it when pasting.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Position:
    """Position value object

    Attributes:
    - x: horizontal coordinate (px, may be negative)
    - y: vertical coordinate (px, may be negative)

    >>> Position(x=100, y=200) == Position(x=100, y=200)
    True
    """

    x: float
    y: float

    def shifted(self, dx: float, dy: float) -> "Position":
        """Return a new position moved by (dx, dy)"""
        return Position(x=self.x + dx, y=self.y + dy)
