"""Tests for search.py and router.py — route search, lane allocation and failures.

Covers:
  - find_best_route / search_from_direction on small grids
  - internal roads: only endpoint cells may be entered
  - priority order: earlier relationships get better lanes
  - route failures are reported, not raised
"""

from __future__ import annotations

import logging

import pytest

from gridroute.config import RoutingConfig
from gridroute.grid import RoutingGraph
from gridroute.lanes import LaneOccupancy
from gridroute.model import Relationship
from gridroute.router import EdgeRouter, route_all_edges
from gridroute.search import find_best_route, search_from_direction
from gridroute.serialize import dump_route_set, route_to_string
from gridroute.types import Direction, GridPoint, SegmentId

# ─── Helpers ──────────────────────────────────────────────────────────────────


def best(positions: list[tuple[int, int]], src: tuple[int, int], tgt: tuple[int, int], **kwargs):
    """Best route between two cells on an empty lane table."""
    graph = RoutingGraph.build(positions, 3, 3)
    return find_best_route(graph, LaneOccupancy().snapshot(), GridPoint.cell(*src), GridPoint.cell(*tgt), **kwargs)


def route_text(route) -> str:
    return route_to_string(route)


def tight() -> RoutingConfig:
    return RoutingConfig(h_lane_capacity=1, v_lane_capacity=1)


# ─── Search Tests ─────────────────────────────────────────────────────────────


class TestFindBestRoute:
    def test_adjacent(self):
        route = best([(1, 1), (2, 1)], (1, 1), (2, 1))
        assert route_text(route) == "(1,1)-L0-(1.5,1)-L0-(2,1)"
        assert route.complexity.length == 1.0
        assert route.complexity.total == 1.0

    def test_straight_through_empty_cell(self):
        """An empty cell center between the endpoints is an ordinary point."""
        route = best([(1, 1), (3, 1)], (1, 1), (3, 1))
        assert route.complexity.length == 2.0
        assert route.complexity.turns == 0

    def test_detours_around_occupied_cell(self):
        """C sits between A and B; the route takes the street above it."""
        route = best([(1, 1), (2, 1), (3, 1)], (1, 1), (3, 1))
        assert route_text(route) == (
            "(1,1)-L0-(1,0.5)-L0-(1.5,0.5)-L0-(2,0.5)-L0-(2.5,0.5)-L0-(3,0.5)-L0-(3,1)"
        )
        assert route.complexity.turns == 2
        assert route.complexity.total == 5.0
        assert GridPoint.cell(2, 1) not in route.points

    def test_diagonal_single_turn(self):
        """Both L-shapes cost 3; the tie goes to the lexicographically smaller waypoints."""
        route = best([(1, 1), (2, 2)], (1, 1), (2, 2))
        assert route.complexity.turns == 1
        assert route.complexity.total == 3.0
        assert route_text(route) == "(1,1)-L0-(1,1.5)-L0-(1,2)-L0-(1.5,2)-L0-(2,2)"

    def test_sparse_grid(self):
        route = best([(1, 1), (10, 10)], (1, 1), (10, 10))
        assert route.complexity.length == 18.0
        assert route.complexity.turns == 1

    def test_self_loop(self):
        route = best([(1, 1)], (1, 1), (1, 1))
        assert route.points == [GridPoint.cell(1, 1)]
        assert route.complexity.total == 0

    def test_unknown_point(self):
        assert best([(1, 1)], (1, 1), (5, 5)) is None

    def test_expansion_budget(self):
        assert best([(1, 1), (3, 3)], (1, 1), (3, 3), max_expansions=1) is None

    def test_route_is_contiguous(self):
        route = best([(1, 1), (2, 1), (3, 1), (1, 2), (3, 3)], (1, 1), (3, 3))
        for a, b in zip(route.points, route.points[1:]):
            assert a.direction_to(b) is not None
            assert a.manhattan(b) == 0.5

    def test_same_result_with_executor(self):
        from concurrent.futures import ThreadPoolExecutor

        positions = [(1, 1), (2, 1), (3, 1), (2, 3)]
        inline = best(positions, (1, 1), (2, 3))
        with ThreadPoolExecutor(max_workers=4) as pool:
            threaded = best(positions, (1, 1), (2, 3), executor=pool)
        assert route_text(inline) == route_text(threaded)


class TestSearchFromDirection:
    def test_forced_departure(self):
        """Leaving west from A to reach B on its east side costs three turns."""
        graph = RoutingGraph.build([(1, 1), (2, 1)], 3, 3)
        source, target = GridPoint.cell(1, 1), GridPoint.cell(2, 1)
        route = search_from_direction(graph, LaneOccupancy().snapshot(), source, target, Direction.West)
        assert route.points[1] == GridPoint.at(0.5, 1)
        assert route.complexity.turns == 3
        assert route.complexity.total == 6.0

    def test_departure_lane_claimed_out(self):
        graph = RoutingGraph.build([(1, 1), (2, 1)], 1, 1)
        occ = LaneOccupancy()
        occ.claim(SegmentId.between(GridPoint.cell(1, 1), GridPoint.at(1.5, 1)), 0, owner=0)
        route = search_from_direction(
            graph, occ.snapshot(), GridPoint.cell(1, 1), GridPoint.cell(2, 1), Direction.East
        )
        assert route is None

    def test_never_passes_through_source(self):
        graph = RoutingGraph.build([(1, 1), (3, 1)], 3, 3)
        source = GridPoint.cell(1, 1)
        route = search_from_direction(graph, LaneOccupancy().snapshot(), source, GridPoint.cell(3, 1), Direction.West)
        assert route.points.count(source) == 1


# ─── Router Tests ─────────────────────────────────────────────────────────────


class TestEdgeRouter:
    def test_parallel_edges_spread_over_lanes(self):
        """Three A → B edges on capacity-3 streets use lanes 0, 1, -1 in order."""
        positions = {"A": (1, 1), "B": (2, 1)}
        rels = [Relationship("A", "B", label=str(i)) for i in range(3)]
        route_set = route_all_edges(positions, rels)
        assert [e.route.waypoints[0].lane for e in route_set] == [0, 1, -1]
        assert all(e.route.complexity.total == 1.0 for e in route_set)

    def test_declaration_order_is_priority(self):
        """Reversing three relationships on one segment hands lane 0 to the new first."""
        positions = {"A": (1, 1), "B": (2, 1)}
        rels = [Relationship("A", "B", label=name) for name in "xyz"]

        def lanes(route_set) -> dict[str, int]:
            return {e.relationship.label: e.route.waypoints[0].lane for e in route_set}

        assert lanes(route_all_edges(positions, rels)) == {"x": 0, "y": 1, "z": -1}
        assert lanes(route_all_edges(positions, rels[::-1])) == {"z": 0, "y": 1, "x": -1}

    def test_single_lane_streets_fill_up(self):
        """With one lane per segment, the fourth A → B edge has nowhere to go."""
        positions = {"A": (1, 1), "B": (2, 1)}
        rels = [Relationship("A", "B", label=str(i)) for i in range(4)]
        route_set = route_all_edges(positions, rels, tight())

        assert route_text(route_set[0].route) == "(1,1)-L0-(1.5,1)-L0-(2,1)"
        assert route_text(route_set[1].route) == "(1,1)-L0-(1,0.5)-L0-(1.5,0.5)-L0-(2,0.5)-L0-(2,1)"
        assert route_text(route_set[2].route) == "(1,1)-L0-(1,1.5)-L0-(1.5,1.5)-L0-(2,1.5)-L0-(2,1)"
        assert route_set[1].route.complexity.total == 4.0
        assert route_set[2].route.complexity.total == 4.0

        assert route_set[3].failed
        assert route_set[3].warning == "Could not find route from 'A' to 'B'"
        assert route_set.warnings == ["Could not find route from 'A' to 'B'"]
        assert len(route_set.routes()) == 3
        assert [e.index for e in route_set.failures()] == [3]

    def test_failure_does_not_claim(self):
        positions = {"A": (1, 1), "B": (2, 1)}
        rels = [Relationship("A", "B", label=str(i)) for i in range(4)]
        route_set = route_all_edges(positions, rels, tight())
        owners = {
            route_set.occupancy.owner(seg, lane)
            for seg in route_set.occupancy.segments()
            for lane in route_set.occupancy.claimed_lanes(seg)
        }
        assert owners == {0, 1, 2}

    def test_no_lane_shared(self):
        positions = {"A": (1, 1), "B": (3, 1), "C": (2, 2), "D": (1, 3)}
        rels = [
            Relationship("A", "B"),
            Relationship("A", "C"),
            Relationship("B", "D"),
            Relationship("C", "D"),
            Relationship("A", "D"),
            Relationship("D", "B"),
        ]
        route_set = route_all_edges(positions, rels)
        seen: dict[tuple[SegmentId, int], int] = {}
        for entry in route_set.routes():
            for pair in entry.route.segments():
                assert pair not in seen, f"{pair} used by {seen.get(pair)} and {entry.index}"
                seen[pair] = entry.index

    def test_unknown_endpoints(self):
        positions = {"A": (1, 1)}
        route_set = route_all_edges(positions, [Relationship("Z", "A"), Relationship("A", "Q")])
        assert [e.warning for e in route_set] == ["Unknown source node 'Z'", "Unknown target node 'Q'"]
        assert route_set.routes() == []

    def test_self_loop_routes_trivially(self):
        route_set = route_all_edges({"A": (1, 1)}, [Relationship("A", "A")])
        assert not route_set[0].failed
        assert route_set.route_for(0).points == [GridPoint.cell(1, 1)]

    def test_router_keeps_claims_between_calls(self):
        positions = {"A": (1, 1), "B": (2, 1)}
        graph = RoutingGraph.build(positions.values(), 3, 3)
        router = EdgeRouter(graph)
        first = router.route(positions, [Relationship("A", "B")])
        second = router.route(positions, [Relationship("A", "B")])
        assert first[0].index == 0
        assert second[0].index == 1
        assert second[0].route.waypoints[0].lane == 1

    @pytest.mark.parametrize("workers", [2, 4])
    def test_worker_threads_give_same_routes(self, workers):
        positions = {"A": (1, 1), "B": (3, 1), "C": (2, 2), "D": (1, 3), "E": (3, 3)}
        rels = [Relationship(s, t) for s, t in ["AB", "AC", "CE", "DE", "AD", "BE", "DB", "CA"]]
        inline = route_all_edges(positions, rels)
        threaded = route_all_edges(positions, rels, RoutingConfig(search_workers=workers))
        assert dump_route_set(inline) == dump_route_set(threaded)

    def test_failure_logged(self, caplog):
        positions = {"A": (1, 1)}
        with caplog.at_level(logging.WARNING, logger="gridroute.router"):
            route_all_edges(positions, [Relationship("A", "Z")])
        assert "Unknown target node 'Z'" in caplog.text
