"""gridroute — grid layout and lane-aware orthogonal edge routing for diagrams."""

from gridroute.api import DiagramLayout, layout_diagram
from gridroute.config import MixedPositionPolicy, RoutingConfig, lane_capacities
from gridroute.errors import DiagramError, LaneConflictError, PlacementError, RouteSyntaxError
from gridroute.grid import GridBounds, RoutingGraph
from gridroute.layout import GraphShape, LayoutEngine, Placement
from gridroute.model import ArrowKind, Component, ComponentStyle, DiagramModel, Relationship
from gridroute.router import EdgeRouter, RoutedRelationship, RouteSet, route_all_edges
from gridroute.serialize import dump_route_set, route_to_string, string_to_route
from gridroute.types import Direction, GridPoint, Route, RouteComplexity, RouteResult, Waypoint

__all__ = [
    # Model
    "ArrowKind", "Component", "ComponentStyle", "DiagramModel", "Relationship",
    # Layout
    "GraphShape", "LayoutEngine", "Placement",
    # Grid
    "GridBounds", "RoutingGraph",
    # Routing
    "Direction", "EdgeRouter", "GridPoint", "Route", "RouteComplexity", "RouteResult",
    "RouteSet", "RoutedRelationship", "Waypoint", "route_all_edges",
    # Config
    "MixedPositionPolicy", "RoutingConfig", "lane_capacities",
    # Serialization
    "dump_route_set", "route_to_string", "string_to_route",
    # Pipeline
    "DiagramLayout", "layout_diagram",
    # Errors
    "DiagramError", "LaneConflictError", "PlacementError", "RouteSyntaxError",
]
