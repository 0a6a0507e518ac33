from __future__ import annotations

import math
from enum import Enum

from vecplot.canvas.primitives import Circle, Path, Primitive, Rect, Style
from vecplot.colors import Color


class Marker(str, Enum):
    CIRCLE = "circle"
    SQUARE = "square"
    TRIANGLE_UP = "triangle_up"
    TRIANGLE_DOWN = "triangle_down"
    DIAMOND = "diamond"
    PLUS = "plus"
    CROSS = "cross"
    STAR = "star"
    NONE = "none"

    @property
    def visible(self) -> bool:
        return self is not Marker.NONE


_MARKER_ALIASES = {
    "o": Marker.CIRCLE,
    "s": Marker.SQUARE,
    "^": Marker.TRIANGLE_UP,
    "v": Marker.TRIANGLE_DOWN,
    "D": Marker.DIAMOND,
    "+": Marker.PLUS,
    "x": Marker.CROSS,
    "*": Marker.STAR,
    "": Marker.NONE,
}


def parse_marker(value: Marker | str | None) -> Marker:
    if value is None:
        return Marker.NONE
    if isinstance(value, Marker):
        return value
    alias = _MARKER_ALIASES.get(value)
    if alias is not None:
        return alias
    try:
        return Marker(value.strip().lower())
    except ValueError as exc:
        raise ValueError(f"unknown marker: {value!r}") from exc


def marker_primitives(marker: Marker, x: float, y: float, size: float, color: Color) -> list[Primitive]:
    """Primitives for one marker of diameter ``size`` centred on (x, y)."""
    if not marker.visible or size <= 0:
        return []
    half = size / 2.0
    fill = Style(fill=color)
    if marker is Marker.CIRCLE:
        return [Circle(center=(x, y), radius=half, style=fill)]
    if marker is Marker.SQUARE:
        return [Rect(origin=(x - half, y - half), size=(size, size), style=fill)]
    if marker in (Marker.TRIANGLE_UP, Marker.TRIANGLE_DOWN):
        h = half * math.sqrt(3.0) / 2.0
        sign = -1.0 if marker is Marker.TRIANGLE_UP else 1.0
        points = ((x, y + sign * h), (x - half, y - sign * h), (x + half, y - sign * h))
        return [Path(points=points, closed=True, style=fill)]
    if marker is Marker.DIAMOND:
        points = ((x, y - half), (x + half, y), (x, y + half), (x - half, y))
        return [Path(points=points, closed=True, style=fill)]
    if marker is Marker.PLUS:
        thin = half * 0.2
        return [
            Rect(origin=(x - thin, y - half), size=(2 * thin, size), style=fill),
            Rect(origin=(x - half, y - thin), size=(size, 2 * thin), style=fill),
        ]
    if marker is Marker.CROSS:
        stroke = Style(stroke=color, stroke_width=max(1.0, half * 0.4))
        d = half * math.sqrt(0.5)
        return [
            Path(points=((x - d, y - d), (x + d, y + d)), closed=False, style=stroke),
            Path(points=((x - d, y + d), (x + d, y - d)), closed=False, style=stroke),
        ]
    if marker is Marker.STAR:
        points = []
        for i in range(10):
            angle = i * math.pi / 5.0 - math.pi / 2.0
            radius = half if i % 2 == 0 else half * 0.4
            points.append((x + radius * math.cos(angle), y + radius * math.sin(angle)))
        return [Path(points=tuple(points), closed=True, style=fill)]
    raise ValueError(f"unsupported marker: {marker!r}")
