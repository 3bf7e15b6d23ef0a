"""Layout module — integer grid placement for diagram components.

Phases for diagrams without explicit positions:
  1. Shape classification (empty / single / path / hierarchy)
  2. Path layout: one row, left to right along the chain
  3. Hierarchy layout, per connected component:
       a. root selection + BFS depth
       b. row ordering (barycenter of placed neighbours)
       c. centered coordinate assignment, components stacked vertically

Everything iterates in declaration order, so equal input gives equal output.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum

import networkx as nx

from gridroute.config import MixedPositionPolicy
from gridroute.errors import PlacementError
from gridroute.model import DiagramModel, PlacementMode

logger = logging.getLogger(__name__)

Position = tuple[int, int]


class GraphShape(Enum):
    """How a diagram's components were placed."""

    Empty = "empty"
    Explicit = "explicit"
    Single = "single"
    Path = "path"
    Hierarchy = "hierarchy"


@dataclass
class Placement:
    """Result of layout: a 1-based ``(col, row)`` for every component."""

    positions: dict[str, Position]
    shape: GraphShape
    warnings: list[str] = field(default_factory=list)


# ─── Shape Classification ─────────────────────────────────────────────────────


def undirected_adjacency(model: DiagramModel) -> nx.Graph:
    """Undirected adjacency of the model, without self-loops."""
    g: nx.Graph = nx.Graph()
    g.add_nodes_from(model.ids)
    for rel in model.relationships:
        if not rel.is_self_loop:
            g.add_edge(rel.source, rel.target)
    return g


def directed_adjacency(model: DiagramModel) -> nx.DiGraph:
    """Directed adjacency of the model, without self-loops."""
    g = model.digraph
    g.remove_edges_from(list(nx.selfloop_edges(g)))
    return g


def classify(graph: nx.Graph) -> GraphShape:
    """Classify an undirected adjacency graph.

    A path is connected, has no node of degree above 2 and exactly two
    endpoints of degree 1. Cycles and disconnected graphs are hierarchies.
    """
    n = graph.number_of_nodes()
    if n == 0:
        return GraphShape.Empty
    if n == 1:
        return GraphShape.Single
    if not nx.is_connected(graph):
        return GraphShape.Hierarchy
    degrees = [d for _, d in graph.degree()]
    if max(degrees) <= 2 and degrees.count(1) == 2:
        return GraphShape.Path
    return GraphShape.Hierarchy


# ─── Path Layout ──────────────────────────────────────────────────────────────


def path_order(ug: nx.Graph, dg: nx.DiGraph, order: dict[str, int]) -> list[str]:
    """Nodes of a path graph from one endpoint to the other.

    Starts at the first declared endpoint with no incoming edge, else at the
    first declared endpoint.
    """
    endpoints = sorted((n for n in ug.nodes if ug.degree(n) == 1), key=order.__getitem__)
    start = next((n for n in endpoints if dg.in_degree(n) == 0), endpoints[0])

    walk = [start]
    prev: str | None = None
    current = start
    while True:
        nxt = [n for n in ug.neighbors(current) if n != prev]
        if not nxt:
            return walk
        prev, current = current, nxt[0]
        walk.append(current)


def linear_layout(ordered: list[str]) -> dict[str, Position]:
    return {node_id: (i + 1, 1) for i, node_id in enumerate(ordered)}


# ─── Layer Assignment ─────────────────────────────────────────────────────────


def choose_roots(dg: nx.DiGraph, members: list[str], order: dict[str, int]) -> list[str]:
    """Nodes with no incoming edge, or the least-entered node if none."""
    roots = [n for n in members if dg.in_degree(n) == 0]
    if roots:
        return roots
    return [min(members, key=lambda n: (dg.in_degree(n), order[n]))]


def assign_depths(dg: nx.DiGraph, ug: nx.Graph, members: list[str], order: dict[str, int]) -> dict[str, int]:
    """Depth (0-based row) of every node in one connected component.

    BFS along edge direction from the roots; nodes that direction cannot
    reach are picked up through undirected adjacency, one row below the
    neighbour that found them. Edges may point upward inside cycles.
    """
    roots = choose_roots(dg, members, order)
    depth: dict[str, int] = {r: 0 for r in roots}
    queue = deque(roots)
    while queue:
        u = queue.popleft()
        for v in dg.successors(u):
            if v not in depth:
                depth[v] = depth[u] + 1
                queue.append(v)

    if len(depth) < len(members):
        queue = deque(sorted(depth, key=lambda n: (depth[n], order[n])))
        while queue:
            u = queue.popleft()
            for v in sorted(ug.neighbors(u), key=order.__getitem__):
                if v not in depth:
                    depth[v] = depth[u] + 1
                    queue.append(v)

    return depth


# ─── Row Ordering (Barycenter) ────────────────────────────────────────────────


def _barycenter(node_id: str, ug: nx.Graph, placed_cols: dict[str, int]) -> float:
    """Average column of a node's already-placed neighbours (inf if none)."""
    cols = [placed_cols[nb] for nb in ug.neighbors(node_id) if nb in placed_cols]
    if not cols:
        return float("inf")
    return sum(cols) / len(cols)


def order_rows(depth: dict[str, int], ug: nx.Graph, order: dict[str, int]) -> list[list[str]]:
    """Group nodes into rows; order each row below the first by barycenter.

    Columns used for the barycenter are row-local indices, so the ordering
    does not depend on how rows are later centered.
    """
    row_count = max(depth.values()) + 1
    rows: list[list[str]] = [[] for _ in range(row_count)]
    for node_id in sorted(depth, key=order.__getitem__):
        rows[depth[node_id]].append(node_id)
    rows = [row for row in rows if row]

    placed: dict[str, int] = {}
    for row in rows:
        row.sort(key=lambda n: (_barycenter(n, ug, placed), order[n]))
        width = len(row)
        for i, node_id in enumerate(row):
            # Doubled centered index so rows of different widths line up.
            placed[node_id] = 2 * i - (width - 1)
    return rows


# ─── Coordinate Assignment ────────────────────────────────────────────────────


def assign_coordinates(stacked_rows: list[list[str]]) -> dict[str, Position]:
    """Center every row on the widest one; row index i becomes row i + 1."""
    widest = max((len(r) for r in stacked_rows), default=0)
    positions: dict[str, Position] = {}
    for row_idx, row in enumerate(stacked_rows):
        offset = (widest - len(row)) // 2
        for i, node_id in enumerate(row):
            positions[node_id] = (offset + i + 1, row_idx + 1)
    return positions


def hierarchical_layout(dg: nx.DiGraph, ug: nx.Graph, order: dict[str, int]) -> dict[str, Position]:
    """Lay out each connected component as a tree, stacking them vertically."""
    components = sorted(
        (sorted(c, key=order.__getitem__) for c in nx.connected_components(ug)),
        key=lambda members: order[members[0]],
    )
    stacked: list[list[str]] = []
    for members in components:
        depth = assign_depths(dg, ug, members, order)
        stacked.extend(order_rows(depth, ug, order))
    return assign_coordinates(stacked)


# ─── Mixed Positions ──────────────────────────────────────────────────────────


def nearest_free(want: Position, taken: set[Position]) -> Position:
    """Closest free cell to ``want`` by Manhattan distance (row, then col on ties)."""
    col, row = want
    distance = 0
    while True:
        distance += 1
        ring = set()
        for dc in range(-distance, distance + 1):
            dr = distance - abs(dc)
            ring.add((col + dc, row + dr))
            ring.add((col + dc, row - dr))
        free = [p for p in ring if p[0] >= 1 and p[1] >= 1 and p not in taken]
        if free:
            return min(free, key=lambda p: (p[1], p[0]))


# ─── Engine ───────────────────────────────────────────────────────────────────


class LayoutEngine:
    """Assigns a grid position to every component of a ``DiagramModel``."""

    def __init__(self, mixed_positions: MixedPositionPolicy = MixedPositionPolicy.FixExplicit) -> None:
        self.mixed_positions = mixed_positions

    def place(self, model: DiagramModel) -> Placement:
        mode = model.placement_mode
        if mode is PlacementMode.Empty:
            return Placement(positions={}, shape=GraphShape.Empty)
        if mode is PlacementMode.Explicit:
            return Placement(positions={c.id: c.pos for c in model.components}, shape=GraphShape.Explicit)
        if mode is PlacementMode.Auto:
            positions, shape = self.auto_layout(model)
            return Placement(positions=positions, shape=shape)
        return self._place_mixed(model)

    def auto_layout(self, model: DiagramModel) -> tuple[dict[str, Position], GraphShape]:
        """Place every component, ignoring any explicit positions."""
        order = {node_id: i for i, node_id in enumerate(model.ids)}
        ug = undirected_adjacency(model)
        dg = directed_adjacency(model)
        shape = classify(ug)
        logger.debug("layout: %d components classified as %s", len(order), shape.value)

        if shape is GraphShape.Empty:
            return {}, shape
        if shape is GraphShape.Single:
            return {model.ids[0]: (1, 1)}, shape
        if shape is GraphShape.Path:
            return linear_layout(path_order(ug, dg, order)), shape
        return hierarchical_layout(dg, ug, order), shape

    def _place_mixed(self, model: DiagramModel) -> Placement:
        missing = [c.id for c in model.components if c.pos is None]
        if self.mixed_positions is MixedPositionPolicy.Reject:
            raise PlacementError(missing)

        auto, shape = self.auto_layout(model)
        positions: dict[str, Position] = {c.id: c.pos for c in model.components if c.pos is not None}
        taken = set(positions.values())
        warnings: list[str] = []
        for node_id in missing:
            want = auto[node_id]
            if want in taken:
                got = nearest_free(want, taken)
                msg = f"Component '{node_id}' moved from {want} to {got} to avoid a fixed component"
                logger.warning("%s", msg)
                warnings.append(msg)
                want = got
            positions[node_id] = want
            taken.add(want)

        ordered = {c.id: positions[c.id] for c in model.components}
        return Placement(positions=ordered, shape=shape, warnings=warnings)
