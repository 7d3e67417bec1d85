"""Small value types shared by the live-wire components."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Point:
    """Integer pixel coordinate on the image grid.

    Points compare and hash by value, so copies of the same coordinate
    are interchangeable as queue items and dictionary keys.
    """

    x: int
    y: int

    def as_tuple(self) -> tuple[int, int]:
        """Return the coordinate as an (x, y) tuple."""
        return (self.x, self.y)

    def is_diagonal_to(self, other: "Point") -> bool:
        """Check if other is reached by a diagonal step from this point."""
        return self.x != other.x and self.y != other.y


@dataclass
class UnitVector:
    """Mutable 2D vector used as a reusable output buffer.

    Callers own instances and pass them into grad_unit_vector() so that
    inner loops do not allocate.
    """

    x: float = -1.0
    y: float = -1.0


# A finalized pixel paired with its parent (None for the seed).
BatchEntry = tuple[Point, Optional[Point]]
