from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from vecplot.colors import Color
from vecplot.errors import GraphParseError


class NodeShape(str, Enum):
    ELLIPSE = "ellipse"
    CIRCLE = "circle"
    BOX = "box"
    DIAMOND = "diamond"
    MDIAMOND = "Mdiamond"
    MSQUARE = "Msquare"
    PLAINTEXT = "plaintext"


class EdgeStyle(str, Enum):
    SOLID = "solid"
    DASHED = "dashed"
    DOTTED = "dotted"


@dataclass(frozen=True)
class Node:
    id: str
    label: str | None = None
    shape: NodeShape = NodeShape.ELLIPSE
    color: Color | None = None
    fill: Color | None = None

    @property
    def display_label(self) -> str:
        return self.label if self.label is not None else self.id


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    label: str | None = None
    style: EdgeStyle = EdgeStyle.SOLID
    color: Color | None = None


@dataclass
class Subgraph:
    id: str
    label: str | None = None
    nodes: list[str] = field(default_factory=list)
    filled: bool = False
    color: Color | None = None
    fill: Color | None = None


@dataclass
class Graph:
    """Ordered node/edge container; insertion order drives every layout."""

    directed: bool = True
    name: str | None = None
    label: str | None = None
    rankdir: str = "TB"
    layout: str | None = None
    edges: list[Edge] = field(default_factory=list)
    subgraphs: list[Subgraph] = field(default_factory=list)
    _nodes: dict[str, Node] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    @property
    def nodes(self) -> list[Node]:
        return list(self._nodes.values())

    @property
    def node_ids(self) -> list[str]:
        return list(self._nodes)

    def node(self, node_id: str) -> Node:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise GraphParseError(f"unknown node: {node_id!r}") from None

    def add_node(
        self,
        node_id: str,
        *,
        label: str | None = None,
        shape: NodeShape | None = None,
        color: Color | None = None,
        fill: Color | None = None,
    ) -> Node:
        """Declare a node; re-declaring merges attributes and keeps its position."""
        if not node_id:
            raise GraphParseError("node id must be non-empty")
        existing = self._nodes.get(node_id)
        updates = {
            k: v
            for k, v in (("label", label), ("shape", shape), ("color", color), ("fill", fill))
            if v is not None
        }
        if existing is None:
            node = Node(id=node_id, **updates)
        else:
            node = replace(existing, **updates)
        self._nodes[node_id] = node
        return node

    def add_edge(
        self,
        source: str,
        target: str,
        *,
        label: str | None = None,
        style: EdgeStyle = EdgeStyle.SOLID,
        color: Color | None = None,
    ) -> Edge:
        for endpoint in (source, target):
            if endpoint not in self._nodes:
                raise GraphParseError(f"edge references unknown node: {endpoint!r}")
        edge = Edge(source=source, target=target, label=label, style=style, color=color)
        self.edges.append(edge)
        return edge

    def add_subgraph(self, subgraph: Subgraph) -> Subgraph:
        for node_id in subgraph.nodes:
            if node_id not in self._nodes:
                raise GraphParseError(f"subgraph {subgraph.id!r} references unknown node: {node_id!r}")
        self.subgraphs.append(subgraph)
        return subgraph

    def index_of(self) -> dict[str, int]:
        return {node_id: i for i, node_id in enumerate(self._nodes)}
