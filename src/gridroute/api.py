"""Public API — lay out and route one diagram."""

from __future__ import annotations

from dataclasses import dataclass, field

from gridroute.config import MixedPositionPolicy, RoutingConfig
from gridroute.grid import GridBounds, RoutingGraph
from gridroute.layout import GraphShape, LayoutEngine
from gridroute.model import DiagramModel
from gridroute.router import EdgeRouter, RouteSet


@dataclass
class DiagramLayout:
    """Everything the renderer needs: positions, grid bounds and routes."""

    positions: dict[str, tuple[int, int]]
    bounds: GridBounds | None
    shape: GraphShape
    routes: RouteSet
    warnings: list[str] = field(default_factory=list)


def layout_diagram(
    model: DiagramModel,
    aspect_ratio: float | None = None,
    config: RoutingConfig | None = None,
    mixed_positions: MixedPositionPolicy = MixedPositionPolicy.FixExplicit,
) -> DiagramLayout:
    """Place every component of ``model`` and route every relationship.

    Lane capacities come from ``config`` when given, else from
    ``aspect_ratio`` (canvas width / height) and the grid extent, else the
    defaults.
    """
    placement = LayoutEngine(mixed_positions).place(model)
    bounds = GridBounds.from_positions(placement.positions.values())

    if config is None:
        if aspect_ratio is not None and bounds is not None:
            config = RoutingConfig.for_canvas(aspect_ratio, bounds.cols, bounds.rows)
        else:
            config = RoutingConfig()

    graph = RoutingGraph.build(placement.positions.values(), config.h_lane_capacity, config.v_lane_capacity)
    routes = EdgeRouter(graph, config).route(placement.positions, model.relationships)

    return DiagramLayout(
        positions=placement.positions,
        bounds=bounds,
        shape=placement.shape,
        routes=routes,
        warnings=placement.warnings + routes.warnings,
    )
