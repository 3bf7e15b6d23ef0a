"""Routing graph construction.

The routing graph covers the bounding box of the placed components plus the
boundary streets half a unit outside it. In doubled coordinates:

    cell centers          (even, even)
    junctions             (odd, even) or (even, odd)
    street intersections  (odd, odd)

Every point connects to its four axis neighbours half a unit away. Segments
that touch an occupied cell center are that cell's internal roads.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

import networkx as nx

from gridroute.types import Direction, GridPoint, NodeKind, SegmentId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridBounds:
    """Inclusive cell bounding box of the placed components."""

    min_col: int
    max_col: int
    min_row: int
    max_row: int

    @classmethod
    def from_positions(cls, positions: Iterable[tuple[int, int]]) -> GridBounds | None:
        cells = list(positions)
        if not cells:
            return None
        cols = [c for c, _ in cells]
        rows = [r for _, r in cells]
        return cls(min(cols), max(cols), min(rows), max(rows))

    @property
    def cols(self) -> int:
        return self.max_col - self.min_col + 1

    @property
    def rows(self) -> int:
        return self.max_row - self.min_row + 1

    def contains(self, col: int, row: int) -> bool:
        return self.min_col <= col <= self.max_col and self.min_row <= row <= self.max_row


class RoutingGraph:
    """Routing nodes and segments with lane capacities.

    Backed by an undirected ``networkx.Graph`` whose nodes are ``GridPoint``
    values (attribute ``kind``) and whose edges carry:

    - ``segment``: the canonical ``SegmentId``
    - ``capacity``: number of lanes
    - ``internal_to``: the occupied cell center this segment leads into, or None
    """

    def __init__(self, graph: nx.Graph, occupied: frozenset[GridPoint], bounds: GridBounds | None) -> None:
        self.graph = graph
        self.occupied = occupied
        self.bounds = bounds
        # Neighbour lists in Direction order so every search expands identically.
        self._neighbors: dict[GridPoint, list[tuple[GridPoint, SegmentId, Direction]]] = {}
        for point in graph.nodes:
            entries = []
            for direction in Direction:
                other = point.step(direction)
                if graph.has_edge(point, other):
                    entries.append((other, graph.edges[point, other]["segment"], direction))
            self._neighbors[point] = entries

    @classmethod
    def build(
        cls,
        positions: Iterable[tuple[int, int]],
        h_lane_capacity: int,
        v_lane_capacity: int,
    ) -> RoutingGraph:
        """Build the routing graph for components placed at ``positions``."""
        cells = list(positions)
        bounds = GridBounds.from_positions(cells)
        g: nx.Graph = nx.Graph()
        if bounds is None:
            return cls(g, frozenset(), None)

        occupied = frozenset(GridPoint.cell(c, r) for c, r in cells)

        c2_range = range(2 * bounds.min_col - 1, 2 * bounds.max_col + 2)
        r2_range = range(2 * bounds.min_row - 1, 2 * bounds.max_row + 2)
        for r2 in r2_range:
            for c2 in c2_range:
                point = GridPoint(c2, r2)
                g.add_node(point, kind=point.kind)

        for point in list(g.nodes):
            for direction in (Direction.East, Direction.South):
                other = point.step(direction)
                if other not in g:
                    continue
                segment = SegmentId.between(point, other)
                capacity = h_lane_capacity if segment.is_horizontal else v_lane_capacity
                internal_to = None
                for end in (point, other):
                    if end in occupied:
                        internal_to = end
                g.add_edge(point, other, segment=segment, capacity=capacity, internal_to=internal_to)

        logger.debug(
            "routing graph: %d nodes, %d segments, %d occupied cells",
            g.number_of_nodes(),
            g.number_of_edges(),
            len(occupied),
        )
        return cls(g, occupied, bounds)

    def __contains__(self, point: object) -> bool:
        return point in self._neighbors

    def node_kind(self, point: GridPoint) -> NodeKind:
        return self.graph.nodes[point]["kind"]

    def neighbors(self, point: GridPoint) -> list[tuple[GridPoint, SegmentId, Direction]]:
        """(neighbour, segment, travel direction) triples in N/E/S/W order."""
        return self._neighbors.get(point, [])

    def capacity(self, segment: SegmentId) -> int:
        if not self.graph.has_edge(segment.a, segment.b):
            return 0
        return self.graph.edges[segment.a, segment.b]["capacity"]

    def internal_owner(self, segment: SegmentId) -> GridPoint | None:
        """The occupied cell whose internal road ``segment`` is, if any."""
        if not self.graph.has_edge(segment.a, segment.b):
            return None
        return self.graph.edges[segment.a, segment.b]["internal_to"]

    def is_occupied(self, point: GridPoint) -> bool:
        return point in self.occupied

    def segments(self) -> list[SegmentId]:
        return sorted((data["segment"] for _, _, data in self.graph.edges(data=True)), key=lambda s: (s.a, s.b))
