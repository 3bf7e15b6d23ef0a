"""Exceptions raised by the layout and routing engine.

Route failures are not exceptions: they are reported per relationship in the
``RouteSet``. Everything here signals bad input or a broken invariant.
"""

from __future__ import annotations


class DiagramError(ValueError):
    """The diagram model is invalid (duplicate ids, unknown endpoints, ...)."""


class PlacementError(DiagramError):
    """Some components carry explicit positions and others do not."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"mixed explicit and automatic positions; missing pos for: {', '.join(missing)}")


class LaneConflictError(RuntimeError):
    """A lane claim would overwrite a lane held by another relationship."""


class RouteSyntaxError(ValueError):
    """Malformed routing-language text."""
