from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from vecplot.canvas.primitives import Primitive, translate
from vecplot.canvas.svg import serialize_canvas
from vecplot.canvas.text import DEFAULT_FONT_FAMILY
from vecplot.colors import WHITE, Color


@dataclass(frozen=True)
class Region:
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("region width/height must be > 0")


@dataclass
class PrimitiveGroup:
    group_id: str
    region: Region
    primitives: list[Primitive] = field(default_factory=list)


@dataclass
class Canvas:
    width: int
    height: int
    background: Color = WHITE
    font_family: str = DEFAULT_FONT_FAMILY
    groups: list[PrimitiveGroup] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("canvas width/height must be > 0")

    def add_group(self, group_id: str, region: Region, primitives: Iterable[Primitive]) -> PrimitiveGroup:
        """Append region-local primitives, shifted by the region origin, as one group."""
        if any(g.group_id == group_id for g in self.groups):
            raise ValueError(f"duplicate group id: {group_id}")
        shifted = [translate(p, region.x, region.y) for p in primitives]
        group = PrimitiveGroup(group_id=group_id, region=region, primitives=shifted)
        self.groups.append(group)
        return group

    def primitive_count(self) -> int:
        return sum(len(g.primitives) for g in self.groups)

    def to_svg(self) -> str:
        return serialize_canvas(self)
