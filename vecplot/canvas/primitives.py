from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal, Union

from vecplot.colors import Color


Point = tuple[float, float]
TextAnchor = Literal["start", "middle", "end"]
TextBaseline = Literal["auto", "middle", "hanging"]


@dataclass(frozen=True)
class Style:
    stroke: Color | None = None
    fill: Color | None = None
    stroke_width: float = 1.0
    opacity: float = 1.0
    dash: tuple[float, ...] | None = None
    font_size: float = 12.0
    font_weight: Literal["normal", "bold"] = "normal"
    anchor: TextAnchor = "start"
    baseline: TextBaseline = "auto"

    def __post_init__(self) -> None:
        if self.stroke_width < 0:
            raise ValueError("stroke_width must be >= 0")
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError("opacity must be in [0, 1]")
        if self.font_size <= 0:
            raise ValueError("font_size must be > 0")


@dataclass(frozen=True)
class Line:
    p1: Point
    p2: Point
    style: Style


@dataclass(frozen=True)
class Polyline:
    points: tuple[Point, ...]
    style: Style


@dataclass(frozen=True)
class Circle:
    center: Point
    radius: float
    style: Style


@dataclass(frozen=True)
class Ellipse:
    center: Point
    rx: float
    ry: float
    style: Style


@dataclass(frozen=True)
class Rect:
    origin: Point
    size: tuple[float, float]
    style: Style


@dataclass(frozen=True)
class Path:
    points: tuple[Point, ...]
    closed: bool
    style: Style


@dataclass(frozen=True)
class Text:
    position: Point
    content: str
    style: Style
    rotate: float = 0.0


Primitive = Union[Line, Polyline, Circle, Ellipse, Rect, Path, Text]


def as_points(xs, ys) -> tuple[Point, ...]:
    return tuple((float(x), float(y)) for x, y in zip(xs, ys, strict=True))


def translate(primitive: Primitive, dx: float, dy: float) -> Primitive:
    if dx == 0 and dy == 0:
        return primitive
    if isinstance(primitive, Line):
        return replace(primitive, p1=_shift(primitive.p1, dx, dy), p2=_shift(primitive.p2, dx, dy))
    if isinstance(primitive, (Polyline, Path)):
        return replace(primitive, points=tuple(_shift(p, dx, dy) for p in primitive.points))
    if isinstance(primitive, (Circle, Ellipse)):
        return replace(primitive, center=_shift(primitive.center, dx, dy))
    if isinstance(primitive, Rect):
        return replace(primitive, origin=_shift(primitive.origin, dx, dy))
    if isinstance(primitive, Text):
        return replace(primitive, position=_shift(primitive.position, dx, dy))
    raise TypeError(f"unsupported primitive: {type(primitive)!r}")


def _shift(point: Point, dx: float, dy: float) -> Point:
    return (point[0] + dx, point[1] + dy)
