"""Routing configuration and lane-capacity derivation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_LANE_CAPACITY: int = 3
MAX_LANE_CAPACITY: int = 7
# Upper bound on A* pops per direction search.
DEFAULT_MAX_EXPANSIONS: int = 200_000
# Grid extent at which streets are considered crowded; smaller grids get
# proportionally wider streets.
CROWDED_GRID_EXTENT: int = 4


class MixedPositionPolicy(Enum):
    """What the layout engine does when only some components carry ``pos``."""

    FixExplicit = "fix-explicit"
    Reject = "reject"


def _clamp(value: int) -> int:
    return max(1, min(MAX_LANE_CAPACITY, value))


def lane_capacities(aspect_ratio: float, cols: int, rows: int) -> tuple[int, int]:
    """Derive ``(h_lane_capacity, v_lane_capacity)`` for a canvas and grid.

    ``aspect_ratio`` is canvas width / height. Segments running along the wider
    canvas dimension get proportionally more lanes; grids smaller than
    ``CROWDED_GRID_EXTENT`` on their longest side get more lanes everywhere.
    Both values are clamped to ``[1, MAX_LANE_CAPACITY]`` and the wide-axis
    capacity is never below the narrow-axis one.
    """
    if aspect_ratio <= 0:
        raise ValueError(f"aspect_ratio must be positive, got {aspect_ratio}")
    if cols < 1 or rows < 1:
        raise ValueError(f"grid extent must be at least 1x1, got {cols}x{rows}")

    room = max(1.0, CROWDED_GRID_EXTENT / max(cols, rows))
    narrow = _clamp(round(DEFAULT_LANE_CAPACITY * room))
    stretch = aspect_ratio if aspect_ratio >= 1 else 1 / aspect_ratio
    wide = max(narrow, _clamp(round(narrow * stretch)))

    if aspect_ratio >= 1:
        return wide, narrow
    return narrow, wide


@dataclass(frozen=True)
class RoutingConfig:
    """Knobs for one routing pass.

    Attributes:
        h_lane_capacity: Lanes on every horizontal segment.
        v_lane_capacity: Lanes on every vertical segment.
        search_workers: Threads used for the per-direction searches of one
            relationship; 1 runs them inline. The searches are pure Python
            and hold the GIL, so more workers do not make routing faster.
            Results are identical for any worker count.
        max_expansions: A* pop budget per direction search.
    """

    h_lane_capacity: int = DEFAULT_LANE_CAPACITY
    v_lane_capacity: int = DEFAULT_LANE_CAPACITY
    search_workers: int = 1
    max_expansions: int = DEFAULT_MAX_EXPANSIONS

    def __post_init__(self) -> None:
        if self.h_lane_capacity < 1 or self.v_lane_capacity < 1:
            raise ValueError(
                f"lane capacities must be >= 1, got h={self.h_lane_capacity} v={self.v_lane_capacity}"
            )
        if self.search_workers < 1:
            raise ValueError(f"search_workers must be >= 1, got {self.search_workers}")
        if self.max_expansions < 1:
            raise ValueError(f"max_expansions must be >= 1, got {self.max_expansions}")

    @classmethod
    def for_canvas(cls, aspect_ratio: float, cols: int, rows: int, **kwargs: int) -> RoutingConfig:
        h, v = lane_capacities(aspect_ratio, cols, rows)
        return cls(h_lane_capacity=h, v_lane_capacity=v, **kwargs)

