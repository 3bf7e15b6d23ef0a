"""Routing language — a compact text form of routes.

    (1,1)-L0-(1.5,1)-L1-(1.5,2)-L0-(2,2)

Points alternate with the lane used on the segment between them. Integer
coordinates print without a decimal point; lanes may be negative (``L-1``).
"""

from __future__ import annotations

import re

from gridroute.errors import RouteSyntaxError
from gridroute.lanes import build_route
from gridroute.router import RouteSet
from gridroute.types import GridPoint, Route, Waypoint

_TOKEN = re.compile(r"\(\s*(?P<col>-?\d+(?:\.\d+)?)\s*,\s*(?P<row>-?\d+(?:\.\d+)?)\s*\)|L(?P<lane>-?\d+)")


def _format_number(value: float) -> str:
    return str(int(value)) if value == int(value) else str(value)


def format_point(point: GridPoint) -> str:
    return f"({_format_number(point.col)},{_format_number(point.row)})"


def parse_point(text: str) -> GridPoint:
    m = _TOKEN.fullmatch(text.strip())
    if m is None or m.group("lane") is not None:
        raise RouteSyntaxError(f"not a grid point: {text!r}")
    return GridPoint.at(float(m.group("col")), float(m.group("row")))


def route_to_string(route: Route) -> str:
    parts: list[str] = []
    last = len(route.waypoints) - 1
    for i, wp in enumerate(route.waypoints):
        parts.append(format_point(wp.point))
        if i < last:
            parts.append(f"L{wp.lane}")
    return "-".join(parts)


def _tokenize(text: str) -> list[re.Match[str]]:
    tokens: list[re.Match[str]] = []
    pos = 0
    while pos < len(text):
        if text[pos] in "- \t":
            pos += 1
            continue
        m = _TOKEN.match(text, pos)
        if m is None:
            raise RouteSyntaxError(f"unexpected character {text[pos]!r} at offset {pos} in {text!r}")
        tokens.append(m)
        pos = m.end()
    return tokens


def string_to_route(text: str) -> Route:
    """Parse routing-language text. The complexity is recomputed."""
    tokens = _tokenize(text.strip())
    if len(tokens) < 3 or len(tokens) % 2 == 0:
        raise RouteSyntaxError(f"route needs point, lane, point, ... point: {text!r}")

    waypoints: list[Waypoint] = []
    for i in range(0, len(tokens), 2):
        point_tok = tokens[i]
        if point_tok.group("lane") is not None:
            raise RouteSyntaxError(f"expected a point, got {point_tok.group(0)!r}")
        lane = 0
        if i + 1 < len(tokens):
            lane_tok = tokens[i + 1]
            if lane_tok.group("lane") is None:
                raise RouteSyntaxError(f"expected a lane, got {lane_tok.group(0)!r}")
            lane = int(lane_tok.group("lane"))
        point = GridPoint.at(float(point_tok.group("col")), float(point_tok.group("row")))
        waypoints.append(Waypoint(point, lane))
    return build_route(waypoints)


def dump_route_set(route_set: RouteSet) -> str:
    """One line per relationship: ``source -> target: <route>`` or ``FAILED``."""
    lines = []
    for entry in route_set:
        rel = entry.relationship
        head = f"{rel.source} {rel.arrow.value} {rel.target}"
        if entry.route is None:
            lines.append(f"{head}: FAILED {entry.warning}")
        else:
            lines.append(f"{head}: {route_to_string(entry.route)}")
    return "\n".join(lines)
