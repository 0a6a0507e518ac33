from .canvas import Canvas, PrimitiveGroup, Region
from .primitives import Circle, Ellipse, Line, Path, Polyline, Primitive, Rect, Style, Text, translate

__all__ = [
    "Canvas",
    "Circle",
    "Ellipse",
    "Line",
    "Path",
    "Polyline",
    "Primitive",
    "PrimitiveGroup",
    "Rect",
    "Region",
    "Style",
    "Text",
    "translate",
]
