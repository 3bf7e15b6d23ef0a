"""Diagram model — the components and relationships of a single diagram.

The model is produced by the diagram-text parser and consumed read-only by
the layout engine and the edge router. Relationship order is significant:
earlier relationships get first choice of routing lanes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import networkx as nx

from gridroute.errors import DiagramError

# ─── Enums ────────────────────────────────────────────────────────────────────


class ComponentStyle(Enum):
    Primary = "primary"
    Secondary = "secondary"
    Muted = "muted"


class ArrowKind(Enum):
    """How a relationship is drawn. Routing treats every kind the same way."""

    SolidForward = "->"
    SolidBackward = "<-"
    SolidBidirectional = "<->"
    DashedUndirected = "--"
    DashedForward = "-->"

    @classmethod
    def from_token(cls, token: str) -> ArrowKind:
        """Map an arrow token such as ``"->"`` or ``"<->"`` to its kind."""
        try:
            return cls(token.strip())
        except ValueError:
            raise DiagramError(f"unknown arrow token {token!r}") from None

    @property
    def is_dashed(self) -> bool:
        return self in (ArrowKind.DashedUndirected, ArrowKind.DashedForward)

    @property
    def head_at_target(self) -> bool:
        return self in (ArrowKind.SolidForward, ArrowKind.SolidBidirectional, ArrowKind.DashedForward)

    @property
    def head_at_source(self) -> bool:
        return self in (ArrowKind.SolidBackward, ArrowKind.SolidBidirectional)


class PlacementMode(Enum):
    """Which components of a model carry an explicit ``pos``."""

    Empty = "empty"
    Explicit = "explicit"
    Auto = "auto"
    Mixed = "mixed"


# ─── Components & Relationships ───────────────────────────────────────────────


@dataclass(frozen=True)
class Component:
    """A named box on the diagram grid.

    ``pos`` is a 1-based ``(col, row)`` pair or ``None`` when the layout engine
    should place the component. ``label`` defaults to the id.
    """

    id: str
    icon: str = "box"
    pos: tuple[int, int] | None = None
    label: str | None = None
    style: ComponentStyle = ComponentStyle.Primary
    reveal_step: int = 0

    def __post_init__(self) -> None:
        if not self.id:
            raise DiagramError("component id must not be empty")
        if self.label is None:
            object.__setattr__(self, "label", self.id)
        if self.pos is not None:
            col, row = self.pos
            if not isinstance(col, int) or not isinstance(row, int):
                raise DiagramError(f"component {self.id!r}: pos must be integers, got {self.pos!r}")
            if col < 1 or row < 1:
                raise DiagramError(f"component {self.id!r}: pos must be >= (1, 1), got {self.pos!r}")
            object.__setattr__(self, "pos", (col, row))
        if self.reveal_step < 0:
            raise DiagramError(f"component {self.id!r}: reveal_step must be >= 0")


@dataclass(frozen=True)
class Relationship:
    """A connection between two components, drawn with ``arrow``."""

    source: str
    target: str
    arrow: ArrowKind = ArrowKind.SolidForward
    label: str | None = None
    reveal_step: int = 0

    def __post_init__(self) -> None:
        if self.reveal_step < 0:
            raise DiagramError(f"relationship {self.source!r} -> {self.target!r}: reveal_step must be >= 0")

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target


# ─── Diagram ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class DiagramModel:
    """Immutable description of one diagram.

    Validation on construction guarantees unique component ids, relationship
    endpoints that exist, and no two explicit positions on the same cell.
    """

    components: tuple[Component, ...] = ()
    relationships: tuple[Relationship, ...] = ()
    _index: dict[str, Component] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "components", tuple(self.components))
        object.__setattr__(self, "relationships", tuple(self.relationships))

        index: dict[str, Component] = {}
        taken: dict[tuple[int, int], str] = {}
        for comp in self.components:
            if comp.id in index:
                raise DiagramError(f"duplicate component id {comp.id!r}")
            index[comp.id] = comp
            if comp.pos is not None:
                if comp.pos in taken:
                    raise DiagramError(f"components {taken[comp.pos]!r} and {comp.id!r} share position {comp.pos}")
                taken[comp.pos] = comp.id

        for rel in self.relationships:
            for end in (rel.source, rel.target):
                if end not in index:
                    raise DiagramError(f"relationship {rel.source!r} -> {rel.target!r}: unknown component {end!r}")

        object.__setattr__(self, "_index", index)

    @property
    def ids(self) -> list[str]:
        """Component ids in declaration order."""
        return [c.id for c in self.components]

    def component(self, component_id: str) -> Component:
        try:
            return self._index[component_id]
        except KeyError:
            raise DiagramError(f"unknown component {component_id!r}") from None

    def __contains__(self, component_id: object) -> bool:
        return component_id in self._index

    @property
    def placement_mode(self) -> PlacementMode:
        if not self.components:
            return PlacementMode.Empty
        explicit = sum(1 for c in self.components if c.pos is not None)
        if explicit == len(self.components):
            return PlacementMode.Explicit
        if explicit == 0:
            return PlacementMode.Auto
        return PlacementMode.Mixed

    @property
    def digraph(self) -> nx.DiGraph:
        """Directed view of the model: one node per component, one edge per
        distinct (source, target) pair. Node attribute ``data`` holds the
        ``Component``; edge attribute ``data`` holds the first relationship
        declared for that pair.
        """
        g: nx.DiGraph = nx.DiGraph()
        for comp in self.components:
            g.add_node(comp.id, data=comp)
        for rel in self.relationships:
            if not g.has_edge(rel.source, rel.target):
                g.add_edge(rel.source, rel.target, data=rel)
        return g

    def step_count(self) -> int:
        """Number of reveal steps the presentation engine has to play."""
        steps = [c.reveal_step for c in self.components]
        steps.extend(r.reveal_step for r in self.relationships)
        return max(steps, default=0)
