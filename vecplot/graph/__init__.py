from .dot import parse_dot
from .layout import ForceParams, LayoutAlgorithm, LayoutResult, compute_layout
from .model import Edge, EdgeStyle, Graph, Node, NodeShape, Subgraph
from .render import render_graph

__all__ = [
    "Edge",
    "EdgeStyle",
    "ForceParams",
    "Graph",
    "LayoutAlgorithm",
    "LayoutResult",
    "Node",
    "NodeShape",
    "Subgraph",
    "compute_layout",
    "parse_dot",
    "render_graph",
]
