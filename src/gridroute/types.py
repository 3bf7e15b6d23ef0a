"""Routing primitives — grid points, directions, segments, lanes and routes.

All routing-graph coordinates are stored doubled (``col2 = 2 * col``) so that
the half-integer junctions and street intersections hash and compare exactly.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import total_ordering

# Lane index on a segment: 0 is the center, positive goes right/down,
# negative goes left/up.
Lane = int


class Direction(Enum):
    North = 0
    East = 1
    South = 2
    West = 3

    @property
    def is_horizontal(self) -> bool:
        return self in (Direction.East, Direction.West)

    def is_turn(self, other: Direction) -> bool:
        """Whether moving on in ``other`` after ``self`` switches axis."""
        return self.is_horizontal != other.is_horizontal

    @property
    def opposite(self) -> Direction:
        return Direction((self.value + 2) % 4)

    @property
    def delta(self) -> tuple[int, int]:
        """(dcol2, drow2) of one half-unit step."""
        return _DELTAS[self]


_DELTAS: dict[Direction, tuple[int, int]] = {
    Direction.North: (0, -1),
    Direction.East: (1, 0),
    Direction.South: (0, 1),
    Direction.West: (-1, 0),
}


class NodeKind(Enum):
    CellCenter = "cell"
    Junction = "junction"
    StreetIntersection = "street"


@total_ordering
@dataclass(frozen=True)
class GridPoint:
    """A routing-graph point in doubled-integer coordinates.

    ``GridPoint.cell(2, 3)`` is the center of cell (2, 3); ``GridPoint.at(1.5, 3)``
    is the junction between cells (1, 3) and (2, 3). Points order by row first.
    """

    col2: int
    row2: int

    @classmethod
    def cell(cls, col: int, row: int) -> GridPoint:
        return cls(col * 2, row * 2)

    @classmethod
    def at(cls, col: float, row: float) -> GridPoint:
        return cls(round(col * 2), round(row * 2))

    @property
    def col(self) -> float:
        return self.col2 / 2

    @property
    def row(self) -> float:
        return self.row2 / 2

    @property
    def kind(self) -> NodeKind:
        odd_col = self.col2 % 2 != 0
        odd_row = self.row2 % 2 != 0
        if odd_col and odd_row:
            return NodeKind.StreetIntersection
        if odd_col or odd_row:
            return NodeKind.Junction
        return NodeKind.CellCenter

    @property
    def is_cell_center(self) -> bool:
        return self.col2 % 2 == 0 and self.row2 % 2 == 0

    def step(self, direction: Direction) -> GridPoint:
        dc, dr = direction.delta
        return GridPoint(self.col2 + dc, self.row2 + dr)

    def manhattan(self, other: GridPoint) -> float:
        """Manhattan distance in grid units."""
        return (abs(self.col2 - other.col2) + abs(self.row2 - other.row2)) / 2

    def direction_to(self, other: GridPoint) -> Direction | None:
        """Axis direction from ``self`` to ``other``, or None if not aligned."""
        dc = other.col2 - self.col2
        dr = other.row2 - self.row2
        if dr == 0 and dc > 0:
            return Direction.East
        if dr == 0 and dc < 0:
            return Direction.West
        if dc == 0 and dr > 0:
            return Direction.South
        if dc == 0 and dr < 0:
            return Direction.North
        return None

    def __lt__(self, other: GridPoint) -> bool:
        if not isinstance(other, GridPoint):
            return NotImplemented
        return (self.row2, self.col2) < (other.row2, other.col2)

    def __repr__(self) -> str:
        return f"GridPoint({self.col:g}, {self.row:g})"


@dataclass(frozen=True)
class SegmentId:
    """Canonical id of the segment between two adjacent points (lesser first)."""

    a: GridPoint
    b: GridPoint

    @classmethod
    def between(cls, p: GridPoint, q: GridPoint) -> SegmentId:
        return cls(p, q) if p <= q else cls(q, p)

    @property
    def is_horizontal(self) -> bool:
        return self.a.row2 == self.b.row2


@dataclass(frozen=True)
class Waypoint:
    """A route point plus the lane of the segment leaving it."""

    point: GridPoint
    lane: Lane = 0


@dataclass(frozen=True)
class RouteComplexity:
    """Cost of a route: ``length + turns + lane_changes``."""

    length: float = 0.0
    turns: int = 0
    lane_changes: int = 0

    @property
    def total(self) -> float:
        return self.length + self.turns + self.lane_changes

    def sort_key(self) -> tuple[float, float, int, int]:
        return (self.total, self.length, self.turns, self.lane_changes)


@dataclass(frozen=True)
class Route:
    """Ordered waypoints from the source cell center to the target cell center.

    The last waypoint's lane is unused and always 0.
    """

    waypoints: tuple[Waypoint, ...]
    complexity: RouteComplexity

    @property
    def points(self) -> list[GridPoint]:
        return [wp.point for wp in self.waypoints]

    @property
    def source(self) -> GridPoint:
        return self.waypoints[0].point

    @property
    def target(self) -> GridPoint:
        return self.waypoints[-1].point

    def segments(self) -> list[tuple[SegmentId, Lane]]:
        """Every (segment, lane) pair the route occupies, in travel order."""
        return [
            (SegmentId.between(cur.point, nxt.point), cur.lane)
            for cur, nxt in zip(self.waypoints, self.waypoints[1:])
        ]

    def tiebreak_key(self) -> tuple[tuple[int, int, int], ...]:
        return tuple((wp.point.col2, wp.point.row2, wp.lane) for wp in self.waypoints)


@dataclass(frozen=True)
class RouteResult:
    """Outcome of routing one relationship: a route or a warning."""

    route: Route | None = None
    warning: str | None = None

    @classmethod
    def success(cls, route: Route) -> RouteResult:
        return cls(route=route)

    @classmethod
    def failure(cls, warning: str) -> RouteResult:
        return cls(warning=warning)

    @property
    def failed(self) -> bool:
        return self.route is None
