from __future__ import annotations

import math
from collections import Counter
from typing import TYPE_CHECKING

from vecplot.canvas.primitives import Circle, Ellipse, Line, Path, Point, Primitive, Rect, Style, Text
from vecplot.colors import BLACK, WHITE, Color
from vecplot.graph.layout import LayoutResult
from vecplot.graph.model import Edge, EdgeStyle, Graph, Node, NodeShape, Subgraph

if TYPE_CHECKING:
    from vecplot.charts.base import PlotFrame


NODE_RX = 27.0
NODE_RY = 18.0
ARROW_LENGTH = 8.0
ARROW_HALF_WIDTH = 5.0
CURVE_OFFSET = 0.2
CURVE_SEGMENTS = 10
STRAIGHT_BELOW_PX = 50.0
SUBGRAPH_PAD = 0.05
SUBGRAPH_FILL_OPACITY = 0.3
_DASHES = {
    EdgeStyle.SOLID: None,
    EdgeStyle.DASHED: (5.0, 5.0),
    EdgeStyle.DOTTED: (2.0, 3.0),
}
_SUBGRAPH_DEFAULT_FILL = Color(211, 211, 211)


def render_graph(graph: Graph, layout: LayoutResult, frame: PlotFrame) -> list[Primitive]:
    """Subgraph boxes, then edges, then nodes, in pixel space of ``frame``."""
    centers = {node_id: _to_pixels(frame, pos) for node_id, pos in layout.positions.items()}
    out: list[Primitive] = []
    for subgraph in graph.subgraphs:
        out.extend(_subgraph_box(subgraph, layout, frame))

    seen: Counter[tuple[str, str]] = Counter()
    for edge in graph.edges:
        key = (min(edge.source, edge.target), max(edge.source, edge.target))
        ordinal = seen[key]
        seen[key] += 1
        out.extend(
            _edge_primitives(
                edge,
                centers,
                graph.node(edge.source),
                graph.node(edge.target),
                directed=graph.directed,
                ordinal=ordinal,
                frame=frame,
            )
        )

    for node in graph.nodes:
        out.extend(node_primitives(node, centers[node.id], frame))
    return out


def node_primitives(node: Node, center: Point, frame: PlotFrame) -> list[Primitive]:
    x, y = center
    stroke = node.color or BLACK
    style = Style(stroke=stroke, fill=node.fill or WHITE, stroke_width=1.0)
    out: list[Primitive] = []
    if node.shape is NodeShape.ELLIPSE:
        out.append(Ellipse(center=center, rx=NODE_RX, ry=NODE_RY, style=style))
    elif node.shape is NodeShape.CIRCLE:
        out.append(Circle(center=center, radius=NODE_RY, style=style))
    elif node.shape is NodeShape.BOX:
        out.append(Rect(origin=(x - NODE_RX, y - NODE_RY), size=(2 * NODE_RX, 2 * NODE_RY), style=style))
    elif node.shape in (NodeShape.DIAMOND, NodeShape.MDIAMOND):
        w, h = NODE_RX * 1.3, NODE_RY * 1.3
        out.append(Path(points=((x, y - h), (x + w, y), (x, y + h), (x - w, y)), closed=True, style=style))
        if node.shape is NodeShape.MDIAMOND:
            edge = Style(stroke=stroke, stroke_width=1.0)
            out.append(Line(p1=(x - w * 0.2, y - h * 0.8), p2=(x + w * 0.2, y - h * 0.8), style=edge))
            out.append(Line(p1=(x - w * 0.2, y + h * 0.8), p2=(x + w * 0.2, y + h * 0.8), style=edge))
            out.append(Line(p1=(x - w * 0.8, y - h * 0.2), p2=(x - w * 0.8, y + h * 0.2), style=edge))
            out.append(Line(p1=(x + w * 0.8, y - h * 0.2), p2=(x + w * 0.8, y + h * 0.2), style=edge))
    elif node.shape is NodeShape.MSQUARE:
        s = NODE_RY
        cut = s * 0.3
        out.append(Rect(origin=(x - s, y - s), size=(2 * s, 2 * s), style=style))
        edge = Style(stroke=stroke, stroke_width=1.0)
        out.append(Line(p1=(x - s + cut, y - s), p2=(x - s, y - s + cut), style=edge))
        out.append(Line(p1=(x + s - cut, y - s), p2=(x + s, y - s + cut), style=edge))
        out.append(Line(p1=(x - s, y + s - cut), p2=(x - s + cut, y + s), style=edge))
        out.append(Line(p1=(x + s, y + s - cut), p2=(x + s - cut, y + s), style=edge))
    label_style = Style(fill=frame.theme.color("text_color"), font_size=frame.theme.font_size_px, anchor="middle", baseline="middle")
    out.append(Text(position=center, content=node.display_label, style=label_style))
    return out


def boundary_radius(shape: NodeShape, angle: float) -> float:
    """Distance from a node centre to its outline along ``angle``."""
    c, s = abs(math.cos(angle)), abs(math.sin(angle))
    if shape is NodeShape.CIRCLE:
        return NODE_RY
    if shape in (NodeShape.BOX, NodeShape.PLAINTEXT):
        return min(NODE_RX / c if c > 1e-12 else math.inf, NODE_RY / s if s > 1e-12 else math.inf)
    if shape is NodeShape.MSQUARE:
        return min(NODE_RY / c if c > 1e-12 else math.inf, NODE_RY / s if s > 1e-12 else math.inf)
    if shape in (NodeShape.DIAMOND, NodeShape.MDIAMOND):
        return 1.0 / (c / (NODE_RX * 1.3) + s / (NODE_RY * 1.3))
    return NODE_RX * NODE_RY / math.hypot(NODE_RY * c, NODE_RX * s)


def edge_curve(p: Point, q: Point, ordinal: int = 0) -> list[Point]:
    """Quadratic Bezier from p to q; short chords stay straight."""
    dx, dy = q[0] - p[0], q[1] - p[1]
    dist = math.hypot(dx, dy)
    if dist < STRAIGHT_BELOW_PX and ordinal == 0:
        return [p, q]
    side = -1.0 if ordinal % 2 else 1.0
    offset = CURVE_OFFSET * dist * (1 + ordinal // 2) * side
    nx, ny = (-dy / dist, dx / dist) if dist > 0 else (0.0, -1.0)
    cx = (p[0] + q[0]) / 2.0 + nx * offset
    cy = (p[1] + q[1]) / 2.0 + ny * offset
    points = []
    for k in range(CURVE_SEGMENTS + 1):
        t = k / CURVE_SEGMENTS
        a, b, c = (1 - t) ** 2, 2 * (1 - t) * t, t * t
        points.append((a * p[0] + b * cx + c * q[0], a * p[1] + b * cy + c * q[1]))
    return points


def trim_polyline(points: list[Point], center: Point, radius: float) -> list[Point]:
    """Drop the leading part of ``points`` inside a circle of ``radius`` around ``center``."""
    for k in range(1, len(points)):
        d1 = math.dist(points[k], center)
        if d1 >= radius:
            d0 = math.dist(points[k - 1], center)
            t = 0.0 if d1 == d0 else max(0.0, min(1.0, (radius - d0) / (d1 - d0)))
            a, b = points[k - 1], points[k]
            start = (a[0] + t * (b[0] - a[0]), a[1] + t * (b[1] - a[1]))
            return [start] + points[k:]
    return []


def arrowhead(tip: Point, tail: Point) -> tuple[Point, Point, Point]:
    dx, dy = tip[0] - tail[0], tip[1] - tail[1]
    length = math.hypot(dx, dy) or 1.0
    ux, uy = dx / length, dy / length
    bx, by = tip[0] - ux * ARROW_LENGTH, tip[1] - uy * ARROW_LENGTH
    return (tip, (bx - uy * ARROW_HALF_WIDTH, by + ux * ARROW_HALF_WIDTH), (bx + uy * ARROW_HALF_WIDTH, by - ux * ARROW_HALF_WIDTH))


def _edge_primitives(
    edge: Edge,
    centers: dict[str, Point],
    source: Node,
    target: Node,
    *,
    directed: bool,
    ordinal: int,
    frame: PlotFrame,
) -> list[Primitive]:
    color = edge.color or BLACK
    p, q = centers[edge.source], centers[edge.target]
    if edge.source == edge.target:
        points = _self_loop(p, source.shape)
    else:
        # bend relative to the sorted pair so a->b and b->a separate
        if edge.source <= edge.target:
            curve = edge_curve(p, q, ordinal)
        else:
            curve = edge_curve(q, p, ordinal)[::-1]
        start_angle = math.atan2(curve[1][1] - p[1], curve[1][0] - p[0])
        end_angle = math.atan2(curve[-2][1] - q[1], curve[-2][0] - q[0])
        points = trim_polyline(curve, p, boundary_radius(source.shape, start_angle))
        points = trim_polyline(points[::-1], q, boundary_radius(target.shape, end_angle))[::-1]
    if len(points) < 2:
        return []

    out: list[Primitive] = []
    line = Style(stroke=color, stroke_width=1.0, dash=_DASHES[edge.style])
    if directed:
        tip, tail = points[-1], points[-2]
        head = arrowhead(tip, tail)
        base = ((head[1][0] + head[2][0]) / 2.0, (head[1][1] + head[2][1]) / 2.0)
        out.append(Path(points=tuple(points[:-1]) + (base,), closed=False, style=line))
        out.append(Path(points=head, closed=True, style=Style(fill=color, stroke=color, stroke_width=1.0)))
    else:
        out.append(Path(points=tuple(points), closed=False, style=line))
    if edge.label:
        mid = points[len(points) // 2]
        style = Style(fill=frame.theme.color("text_color"), font_size=frame.theme.font_size_px * 0.9, anchor="start", baseline="middle")
        out.append(Text(position=(mid[0] + 4.0, mid[1]), content=edge.label, style=style))
    return out


def _self_loop(center: Point, shape: NodeShape) -> list[Point]:
    x, y = center
    r = boundary_radius(shape, -math.pi / 2)
    loop = NODE_RY * 1.2
    points = []
    for k in range(CURVE_SEGMENTS + 1):
        theta = math.pi * (0.1 + 0.8 * k / CURVE_SEGMENTS)
        points.append((x - loop * math.cos(theta) * 0.8, y - r - loop * math.sin(theta) + loop * 0.3))
    return points


def _subgraph_box(subgraph: Subgraph, layout: LayoutResult, frame: PlotFrame) -> list[Primitive]:
    members = [layout.positions[m] for m in subgraph.nodes if m in layout.positions]
    if not members:
        return []
    xs = [p[0] for p in members]
    ys = [p[1] for p in members]
    x0, y0 = _to_pixels(frame, (min(xs) - SUBGRAPH_PAD, min(ys) - SUBGRAPH_PAD))
    x1, y1 = _to_pixels(frame, (max(xs) + SUBGRAPH_PAD, max(ys) + SUBGRAPH_PAD))
    left, top = min(x0, x1) - NODE_RX, min(y0, y1) - NODE_RY
    width, height = abs(x1 - x0) + 2 * NODE_RX, abs(y1 - y0) + 2 * NODE_RY
    border = subgraph.color or BLACK
    if subgraph.filled:
        fill = subgraph.fill or subgraph.color or _SUBGRAPH_DEFAULT_FILL
        style = Style(fill=fill.with_alpha(SUBGRAPH_FILL_OPACITY), stroke=border, stroke_width=1.0)
    else:
        style = Style(stroke=border, stroke_width=1.0)
    out: list[Primitive] = [Rect(origin=(left, top), size=(width, height), style=style)]
    if subgraph.label:
        text = Style(fill=frame.theme.color("text_color"), font_size=frame.theme.font_size_px, baseline="hanging")
        out.append(Text(position=(left + 4.0, top + 4.0), content=subgraph.label, style=text))
    return out


def _to_pixels(frame: PlotFrame, pos: tuple[float, float]) -> Point:
    return (frame.x_scale.map(pos[0]), frame.y_scale.map(pos[1]))
