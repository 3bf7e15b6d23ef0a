"""Lane occupancy and the route cost model.

``LaneOccupancy`` is the only mutable state of a routing pass. Searches never
see it directly: they read an ``OccupancySnapshot`` taken before each search,
and the router commits the chosen route afterwards.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from types import MappingProxyType

from gridroute.errors import LaneConflictError
from gridroute.types import Lane, Route, RouteComplexity, SegmentId, Waypoint

# ─── Lane Ordering ────────────────────────────────────────────────────────────


def spiral_lanes(capacity: int) -> list[Lane]:
    """Lane indices in preference order: 0, 1, -1, 2, -2, ...

    Returns exactly ``capacity`` lanes (none for capacity <= 0).
    """
    lanes: list[Lane] = []
    offset = 1
    if capacity > 0:
        lanes.append(0)
    while len(lanes) < capacity:
        lanes.append(offset)
        if len(lanes) < capacity:
            lanes.append(-offset)
        offset += 1
    return lanes


def spiral_rank(lane: Lane) -> int:
    """Position of ``lane`` in spiral order (0 -> 0, 1 -> 1, -1 -> 2, ...)."""
    if lane > 0:
        return 2 * lane - 1
    return -2 * lane


# ─── Occupancy ────────────────────────────────────────────────────────────────


class OccupancySnapshot:
    """Read-only view of lane claims: segment -> {lane: owner}."""

    def __init__(self, claims: Mapping[SegmentId, Mapping[Lane, int]]) -> None:
        self._claims = claims

    def is_available(self, segment: SegmentId, lane: Lane) -> bool:
        owners = self._claims.get(segment)
        return owners is None or lane not in owners

    def available_lanes(self, segment: SegmentId, capacity: int) -> list[Lane]:
        """Free lanes on ``segment`` in spiral order."""
        owners = self._claims.get(segment)
        if not owners:
            return spiral_lanes(capacity)
        return [lane for lane in spiral_lanes(capacity) if lane not in owners]

    def owner(self, segment: SegmentId, lane: Lane) -> int | None:
        """Index of the relationship holding ``lane``, or None if free."""
        owners = self._claims.get(segment)
        return None if owners is None else owners.get(lane)

    def claimed_lanes(self, segment: SegmentId) -> dict[Lane, int]:
        return dict(self._claims.get(segment, {}))

    def claimed_count(self, segment: SegmentId) -> int:
        return len(self._claims.get(segment, {}))

    def segments(self) -> list[SegmentId]:
        return sorted(self._claims, key=lambda s: (s.a, s.b))


class LaneOccupancy(OccupancySnapshot):
    """Mutable lane table owned by one routing pass."""

    def __init__(self) -> None:
        self._table: dict[SegmentId, dict[Lane, int]] = {}
        super().__init__(self._table)

    def claim(self, segment: SegmentId, lane: Lane, owner: int) -> None:
        owners = self._table.setdefault(segment, {})
        held_by = owners.get(lane)
        if held_by is not None and held_by != owner:
            raise LaneConflictError(f"lane {lane} on {segment} already claimed by relationship {held_by}")
        owners[lane] = owner

    def claim_route(self, route: Route, owner: int) -> None:
        """Claim every (segment, lane) pair of ``route`` for ``owner``."""
        pairs = route.segments()
        for segment, lane in pairs:
            held_by = self.owner(segment, lane)
            if held_by is not None and held_by != owner:
                raise LaneConflictError(f"lane {lane} on {segment} already claimed by relationship {held_by}")
        for segment, lane in pairs:
            self.claim(segment, lane, owner)

    def snapshot(self) -> OccupancySnapshot:
        """Frozen copy of the current claims."""
        frozen = {seg: MappingProxyType(dict(owners)) for seg, owners in self._table.items()}
        return OccupancySnapshot(MappingProxyType(frozen))


# ─── Cost Model ───────────────────────────────────────────────────────────────


def compute_complexity(waypoints: Sequence[Waypoint]) -> RouteComplexity:
    """Score a waypoint sequence.

    - length: sum of axis distances between consecutive waypoints.
    - turns: interior waypoints where travel switches between horizontal and
      vertical. Leaving the source and arriving at the target are not turns.
    - lane_changes: interior waypoints where the lane of the outgoing segment
      differs from the incoming one, unless that waypoint is also a turn.
    """
    length = 0.0
    turns = 0
    lane_changes = 0

    for i in range(1, len(waypoints)):
        prev = waypoints[i - 1]
        curr = waypoints[i]
        length += prev.point.manhattan(curr.point)

        if i < 2:
            continue
        before = waypoints[i - 2]
        incoming = before.point.direction_to(prev.point)
        outgoing = prev.point.direction_to(curr.point)
        if incoming is None or outgoing is None:
            continue
        is_turn = incoming.is_turn(outgoing)
        if is_turn:
            turns += 1
        elif before.lane != prev.lane:
            lane_changes += 1

    return RouteComplexity(length=length, turns=turns, lane_changes=lane_changes)


def build_route(waypoints: Iterable[Waypoint]) -> Route:
    """Make a ``Route`` and score it. The final waypoint's lane is reset to 0."""
    wps = list(waypoints)
    if wps:
        wps[-1] = Waypoint(wps[-1].point, 0)
    return Route(waypoints=tuple(wps), complexity=compute_complexity(wps))
