"""Axis-aligned bounding boxes in simulation coordinates."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Bounds:
    """Bounding box given by its top-left corner and extent."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def degenerate(self) -> bool:
        """True when the box has no area (single node, coincident points)."""
        return self.width <= 0 or self.height <= 0

    @classmethod
    def from_points(
        cls, points: list[tuple[float, float]], margins: list[float] | None = None
    ) -> "Bounds | None":
        """Smallest box around the points, each optionally grown by a margin."""
        if not points:
            return None
        margins = margins or [0.0] * len(points)
        min_x = min(x - m for (x, _), m in zip(points, margins))
        min_y = min(y - m for (_, y), m in zip(points, margins))
        max_x = max(x + m for (x, _), m in zip(points, margins))
        max_y = max(y + m for (_, y), m in zip(points, margins))
        return cls(min_x, min_y, max_x - min_x, max_y - min_y)
