from __future__ import annotations

import math
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING

from vecplot.canvas.primitives import Circle, Ellipse, Line, Path, Point, Polyline, Primitive, Rect, Style, Text
from vecplot.colors import Color

if TYPE_CHECKING:
    from vecplot.canvas.canvas import Canvas


SVG_NS = "http://www.w3.org/2000/svg"


def serialize_canvas(canvas: "Canvas") -> str:
    root = ET.Element(
        "svg",
        {
            "xmlns": SVG_NS,
            "version": "1.1",
            "width": _num(canvas.width),
            "height": _num(canvas.height),
            "viewBox": f"0 0 {_num(canvas.width)} {_num(canvas.height)}",
            "font-family": f"{canvas.font_family}, sans-serif",
        },
    )
    background = {"x": "0", "y": "0", "width": _num(canvas.width), "height": _num(canvas.height)}
    background.update(_paint("fill", canvas.background))
    ET.SubElement(root, "rect", background)
    for group in canvas.groups:
        node = ET.SubElement(root, "g", {"id": group.group_id, "class": "subplot"})
        for primitive in group.primitives:
            _append_primitive(node, primitive)
    return ET.tostring(root, encoding="unicode")


def _append_primitive(parent: ET.Element, primitive: Primitive) -> ET.Element:
    if isinstance(primitive, Line):
        attrs = {
            "x1": _num(primitive.p1[0]),
            "y1": _num(primitive.p1[1]),
            "x2": _num(primitive.p2[0]),
            "y2": _num(primitive.p2[1]),
        }
        return ET.SubElement(parent, "line", {**attrs, **_shape_style(primitive.style, default_fill=False)})
    if isinstance(primitive, Polyline):
        attrs = {"points": _points(primitive.points)}
        return ET.SubElement(parent, "polyline", {**attrs, **_shape_style(primitive.style, default_fill=False)})
    if isinstance(primitive, Circle):
        attrs = {
            "cx": _num(primitive.center[0]),
            "cy": _num(primitive.center[1]),
            "r": _num(primitive.radius),
        }
        return ET.SubElement(parent, "circle", {**attrs, **_shape_style(primitive.style)})
    if isinstance(primitive, Ellipse):
        attrs = {
            "cx": _num(primitive.center[0]),
            "cy": _num(primitive.center[1]),
            "rx": _num(primitive.rx),
            "ry": _num(primitive.ry),
        }
        return ET.SubElement(parent, "ellipse", {**attrs, **_shape_style(primitive.style)})
    if isinstance(primitive, Rect):
        attrs = {
            "x": _num(primitive.origin[0]),
            "y": _num(primitive.origin[1]),
            "width": _num(primitive.size[0]),
            "height": _num(primitive.size[1]),
        }
        return ET.SubElement(parent, "rect", {**attrs, **_shape_style(primitive.style)})
    if isinstance(primitive, Path):
        attrs = {"d": _path_data(primitive.points, primitive.closed)}
        return ET.SubElement(parent, "path", {**attrs, **_shape_style(primitive.style, default_fill=primitive.closed)})
    if isinstance(primitive, Text):
        return _append_text(parent, primitive)
    raise TypeError(f"unsupported primitive: {type(primitive)!r}")


def _append_text(parent: ET.Element, text: Text) -> ET.Element:
    style = text.style
    x, y = text.position
    attrs = {"x": _num(x), "y": _num(y), "font-size": _num(style.font_size)}
    if style.font_weight != "normal":
        attrs["font-weight"] = style.font_weight
    if style.anchor != "start":
        attrs["text-anchor"] = style.anchor
    if style.baseline != "auto":
        attrs["dominant-baseline"] = style.baseline
    attrs.update(_paint("fill", style.fill if style.fill is not None else Color(0, 0, 0)))
    if style.opacity < 1.0:
        attrs["opacity"] = _num(style.opacity)
    if text.rotate:
        attrs["transform"] = f"rotate({_num(text.rotate)} {_num(x)} {_num(y)})"
    node = ET.SubElement(parent, "text", attrs)
    node.text = text.content
    return node


def _shape_style(style: Style, *, default_fill: bool = True) -> dict[str, str]:
    attrs: dict[str, str] = {}
    if style.fill is not None:
        attrs.update(_paint("fill", style.fill))
    elif default_fill:
        attrs["fill"] = "none"
    if style.stroke is not None:
        attrs.update(_paint("stroke", style.stroke))
        attrs["stroke-width"] = _num(style.stroke_width)
        if style.dash:
            attrs["stroke-dasharray"] = ",".join(_num(d) for d in style.dash)
    if not default_fill and style.fill is None:
        attrs["fill"] = "none"
    if style.opacity < 1.0:
        attrs["opacity"] = _num(style.opacity)
    return attrs


def _paint(key: str, color: Color) -> dict[str, str]:
    attrs = {key: color.to_hex()}
    if color.a < 1.0:
        attrs[f"{key}-opacity"] = _num(color.a)
    return attrs


def _points(points: tuple[Point, ...]) -> str:
    return " ".join(f"{_num(x)},{_num(y)}" for x, y in points)


def _path_data(points: tuple[Point, ...], closed: bool) -> str:
    if not points:
        return ""
    head, *rest = points
    parts = [f"M {_num(head[0])} {_num(head[1])}"]
    parts.extend(f"L {_num(x)} {_num(y)}" for x, y in rest)
    if closed:
        parts.append("Z")
    return " ".join(parts)


def _num(value: float) -> str:
    v = float(value)
    if not math.isfinite(v):
        raise ValueError(f"cannot serialize non-finite coordinate: {value}")
    out = f"{v:.3f}".rstrip("0").rstrip(".")
    if out in ("-0", ""):
        return "0"
    return out
