"""Edge routing — sequential, priority-ordered lane commitment.

Relationships are routed one at a time in declaration order. Each search reads
a snapshot of the lane table; the chosen route is then claimed before the next
relationship is searched, so earlier relationships get first choice of lanes
and later ones route around them. A relationship with no available path is
reported as a failure and the pass continues.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from gridroute.config import RoutingConfig
from gridroute.grid import RoutingGraph
from gridroute.lanes import LaneOccupancy, OccupancySnapshot
from gridroute.model import Relationship
from gridroute.search import find_best_route
from gridroute.types import GridPoint, Route, RouteResult

logger = logging.getLogger(__name__)

# ─── Output ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RoutedRelationship:
    """One relationship and the outcome of routing it."""

    index: int
    relationship: Relationship
    result: RouteResult

    @property
    def route(self) -> Route | None:
        return self.result.route

    @property
    def failed(self) -> bool:
        return self.result.failed

    @property
    def warning(self) -> str | None:
        return self.result.warning


@dataclass
class RouteSet:
    """Routing outcome for every relationship, in declaration order."""

    entries: list[RoutedRelationship] = field(default_factory=list)
    occupancy: OccupancySnapshot = field(default_factory=lambda: LaneOccupancy().snapshot())

    def __iter__(self) -> Iterator[RoutedRelationship]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> RoutedRelationship:
        return self.entries[index]

    def routes(self) -> list[RoutedRelationship]:
        return [e for e in self.entries if not e.failed]

    def failures(self) -> list[RoutedRelationship]:
        return [e for e in self.entries if e.failed]

    @property
    def warnings(self) -> list[str]:
        return [e.warning for e in self.entries if e.warning is not None]

    def route_for(self, index: int) -> Route | None:
        return self.entries[index].route


# ─── Router ───────────────────────────────────────────────────────────────────


class EdgeRouter:
    """Routes relationships over one ``RoutingGraph``.

    The router owns the lane table for the graph; routing more relationships
    with the same router keeps earlier claims.
    """

    def __init__(self, graph: RoutingGraph, config: RoutingConfig | None = None) -> None:
        self.graph = graph
        self.config = config or RoutingConfig()
        self.occupancy = LaneOccupancy()
        self._next_index = 0

    def route(
        self,
        positions: Mapping[str, tuple[int, int]],
        relationships: Sequence[Relationship],
    ) -> RouteSet:
        """Route and commit ``relationships`` in order against ``positions``."""
        if self.config.search_workers > 1:
            with ThreadPoolExecutor(max_workers=self.config.search_workers) as pool:
                entries = [self._route_one(positions, rel, pool) for rel in relationships]
        else:
            entries = [self._route_one(positions, rel, None) for rel in relationships]
        return RouteSet(entries=entries, occupancy=self.occupancy.snapshot())

    def _route_one(
        self,
        positions: Mapping[str, tuple[int, int]],
        rel: Relationship,
        pool: ThreadPoolExecutor | None,
    ) -> RoutedRelationship:
        index = self._next_index
        self._next_index += 1

        if rel.source not in positions:
            result = RouteResult.failure(f"Unknown source node '{rel.source}'")
        elif rel.target not in positions:
            result = RouteResult.failure(f"Unknown target node '{rel.target}'")
        else:
            source = GridPoint.cell(*positions[rel.source])
            target = GridPoint.cell(*positions[rel.target])
            route = find_best_route(
                self.graph,
                self.occupancy.snapshot(),
                source,
                target,
                executor=pool,
                max_expansions=self.config.max_expansions,
            )
            if route is None:
                result = RouteResult.failure(f"Could not find route from '{rel.source}' to '{rel.target}'")
            else:
                self.occupancy.claim_route(route, owner=index)
                logger.debug(
                    "routed %s -> %s: complexity %.1f (%d waypoints)",
                    rel.source,
                    rel.target,
                    route.complexity.total,
                    len(route.waypoints),
                )
                result = RouteResult.success(route)

        if result.failed:
            logger.warning("%s", result.warning)
        return RoutedRelationship(index=index, relationship=rel, result=result)


def route_all_edges(
    positions: Mapping[str, tuple[int, int]],
    relationships: Sequence[Relationship],
    config: RoutingConfig | None = None,
) -> RouteSet:
    """Build the routing graph for ``positions`` and route every relationship."""
    config = config or RoutingConfig()
    graph = RoutingGraph.build(positions.values(), config.h_lane_capacity, config.v_lane_capacity)
    return EdgeRouter(graph, config).route(positions, relationships)
