"""Minimum-complexity route search.

One A* search runs per departure direction from the source cell center. The
search state is ``(point, incoming direction, incoming lane)``; the cost of a
move is half a grid unit of length, plus 1 for a turn, plus 1 for a lane
change that is not a turn. The heuristic is the Manhattan distance to the
target, which never overestimates the remaining length.

Searches only read an ``OccupancySnapshot``, so the four directions may run
on worker threads. Choosing between them is deterministic.
"""

from __future__ import annotations

import heapq
from concurrent.futures import Executor

from gridroute.config import DEFAULT_MAX_EXPANSIONS
from gridroute.grid import RoutingGraph
from gridroute.lanes import OccupancySnapshot, build_route, spiral_rank
from gridroute.types import Direction, GridPoint, Lane, Route, RouteComplexity, SegmentId, Waypoint

STEP_LENGTH: float = 0.5

# (point, incoming direction, lane of the incoming segment)
State = tuple[GridPoint, Direction, Lane]


def _heap_entry(f: float, g: float, state: State) -> tuple:
    point, direction, lane = state
    # Fully ordered: no two distinct states share every field.
    return (f, g, point.row2, point.col2, spiral_rank(lane), direction.value, lane)


def _entry_state(entry: tuple) -> State:
    _, _, row2, col2, _, direction, lane = entry
    return (GridPoint(col2, row2), Direction(direction), lane)


def _may_enter(graph: RoutingGraph, segment: SegmentId, source: GridPoint, target: GridPoint) -> bool:
    owner = graph.internal_owner(segment)
    return owner is None or owner == source or owner == target


def search_from_direction(
    graph: RoutingGraph,
    occupancy: OccupancySnapshot,
    source: GridPoint,
    target: GridPoint,
    initial: Direction,
    max_expansions: int = DEFAULT_MAX_EXPANSIONS,
) -> Route | None:
    """Cheapest route that leaves ``source`` heading ``initial``, or None."""
    first = source.step(initial)
    if first not in graph:
        return None
    first_segment = next(seg for nb, seg, _ in graph.neighbors(source) if nb == first)
    if not _may_enter(graph, first_segment, source, target):
        return None

    best_g: dict[State, float] = {}
    came_from: dict[State, State | None] = {}
    open_heap: list[tuple] = []

    for lane in occupancy.available_lanes(first_segment, graph.capacity(first_segment)):
        state: State = (first, initial, lane)
        best_g[state] = STEP_LENGTH
        came_from[state] = None
        heapq.heappush(open_heap, _heap_entry(STEP_LENGTH + first.manhattan(target), STEP_LENGTH, state))

    expansions = 0
    while open_heap:
        entry = heapq.heappop(open_heap)
        g = entry[1]
        current = _entry_state(entry)
        if g > best_g.get(current, float("inf")):
            continue

        point, heading, lane = current
        if point == target:
            return _reconstruct(came_from, current, source)

        expansions += 1
        if expansions > max_expansions:
            return None

        for neighbor, segment, direction in graph.neighbors(point):
            if direction == heading.opposite or neighbor == source:
                continue
            if not _may_enter(graph, segment, source, target):
                continue

            is_turn = heading.is_turn(direction)
            for next_lane in occupancy.available_lanes(segment, graph.capacity(segment)):
                cost = STEP_LENGTH
                if is_turn:
                    cost += 1
                elif next_lane != lane:
                    cost += 1
                new_g = g + cost
                nxt: State = (neighbor, direction, next_lane)
                if new_g >= best_g.get(nxt, float("inf")):
                    continue
                best_g[nxt] = new_g
                came_from[nxt] = current
                heapq.heappush(open_heap, _heap_entry(new_g + neighbor.manhattan(target), new_g, nxt))

    return None


def _reconstruct(came_from: dict[State, State | None], final: State, source: GridPoint) -> Route:
    chain: list[State] = []
    state: State | None = final
    while state is not None:
        chain.append(state)
        state = came_from[state]
    chain.reverse()

    # Each state's lane belongs to the segment arriving at it, i.e. the
    # segment leaving the previous waypoint.
    waypoints = [Waypoint(source, chain[0][2])]
    for i, (point, _, _) in enumerate(chain):
        lane = chain[i + 1][2] if i + 1 < len(chain) else 0
        waypoints.append(Waypoint(point, lane))
    return build_route(waypoints)


def _preference(route: Route) -> tuple:
    return (route.complexity.sort_key(), route.tiebreak_key())


def find_best_route(
    graph: RoutingGraph,
    occupancy: OccupancySnapshot,
    source: GridPoint,
    target: GridPoint,
    executor: Executor | None = None,
    max_expansions: int = DEFAULT_MAX_EXPANSIONS,
) -> Route | None:
    """Lowest-complexity route from ``source`` to ``target`` under ``occupancy``.

    Runs one search per departure direction, on ``executor`` when given.
    Equal complexities are resolved by comparing waypoint sequences.
    """
    if source == target:
        return Route(waypoints=(Waypoint(source, 0),), complexity=RouteComplexity())
    if source not in graph or target not in graph:
        return None

    args = (graph, occupancy, source, target)
    if executor is None:
        candidates = [search_from_direction(*args, d, max_expansions) for d in Direction]
    else:
        futures = [executor.submit(search_from_direction, *args, d, max_expansions) for d in Direction]
        candidates = [f.result() for f in futures]

    routes = [r for r in candidates if r is not None]
    if not routes:
        return None
    return min(routes, key=_preference)
