"""
Selection data models.

Immutable value types for the polygon editor. Every Polygon "mutation"
returns a new Polygon, so snapshots can be kept in the edit history as-is.
"""

from dataclasses import dataclass, field
from enum import Enum

from selection.geometry import bounding_box


class EditMode(str, Enum):
    """Input mode of the editor. Only DRAW and SMART touch geometry."""
    TEXT = "text"
    SMART = "smart"
    DRAW = "draw"


@dataclass(frozen=True)
class Point:
    """A point in image space."""
    x: float
    y: float

    def __iter__(self):
        """Allow tuple unpacking: x, y = point"""
        return iter((self.x, self.y))

    def translated(self, dx: float, dy: float) -> 'Point':
        return Point(self.x + dx, self.y + dy)


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box as min corner plus size."""
    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0

    @property
    def xyxy(self) -> list[float]:
        """Box as [xmin, ymin, xmax, ymax]."""
        return [self.x, self.y, self.x + self.w, self.y + self.h]

    @classmethod
    def from_points(cls, points) -> 'BoundingBox':
        return cls(*bounding_box(points))


@dataclass(frozen=True)
class Polygon:
    """
    Selection shape in image space.

    Attributes:
        points: Vertices in drawing order
        closed: Whether the last vertex connects back to the first
        bbox: Exact bounds of points, computed on construction
    """
    points: tuple[Point, ...] = ()
    closed: bool = False
    bbox: BoundingBox = field(init=False, compare=False)

    def __post_init__(self):
        points = tuple(p if isinstance(p, Point) else Point(*p) for p in self.points)
        if self.closed and len(points) < 3:
            raise ValueError(
                f"Closed polygon needs at least 3 points, got {len(points)}"
            )
        object.__setattr__(self, "points", points)
        object.__setattr__(self, "bbox", BoundingBox.from_points(points))

    def __len__(self) -> int:
        return len(self.points)

    def with_point(self, point: Point) -> 'Polygon':
        """Append a vertex."""
        return Polygon(self.points + (point,), self.closed)

    def with_vertex(self, index: int, point: Point) -> 'Polygon':
        """Replace the vertex at index."""
        points = list(self.points)
        points[index] = point
        return Polygon(tuple(points), self.closed)

    def translated(self, dx: float, dy: float) -> 'Polygon':
        """Move every vertex by (dx, dy)."""
        return Polygon(tuple(p.translated(dx, dy) for p in self.points), self.closed)

    def close(self) -> 'Polygon':
        return Polygon(self.points, closed=True)

    def as_tuples(self) -> list[tuple[float, float]]:
        return [(p.x, p.y) for p in self.points]

    def to_dict(self) -> dict:
        return {
            "points": [[p.x, p.y] for p in self.points],
            "closed": self.closed,
            "bbox": {"x": self.bbox.x, "y": self.bbox.y, "w": self.bbox.w, "h": self.bbox.h},
        }


@dataclass(frozen=True)
class SelectionBox:
    """Transient rectangle drawn during a smart-select drag."""
    x: float
    y: float
    w: float = 0.0
    h: float = 0.0

    @classmethod
    def from_corners(cls, a: Point, b: Point) -> 'SelectionBox':
        """Normalized box spanning two corners in any order."""
        return cls(
            x=min(a.x, b.x),
            y=min(a.y, b.y),
            w=abs(a.x - b.x),
            h=abs(a.y - b.y),
        )

    @property
    def xyxy(self) -> list[float]:
        """Box as [xmin, ymin, xmax, ymax]."""
        return [self.x, self.y, self.x + self.w, self.y + self.h]

