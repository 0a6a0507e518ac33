from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Literal, Union

import numpy as np

from vecplot.colors import Color
from vecplot.markers import Marker

if TYPE_CHECKING:
    from vecplot.graph.layout import LayoutAlgorithm
    from vecplot.graph.model import Graph


ChartFamily = Literal["cartesian", "pie", "graph"]


@dataclass(frozen=True)
class SeriesStyle:
    color: Color | None = None
    marker: Marker = Marker.NONE
    marker_size: float | None = None
    line_width: float | None = None
    alpha: float = 1.0
    label: str | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.alpha <= 1.0:
            raise ValueError("alpha must be in [0, 1]")
        if self.marker_size is not None and self.marker_size <= 0:
            raise ValueError("marker_size must be > 0")
        if self.line_width is not None and self.line_width <= 0:
            raise ValueError("line_width must be > 0")


@dataclass(frozen=True)
class LineChart:
    family: ClassVar[ChartFamily] = "cartesian"
    x: np.ndarray
    y: np.ndarray
    style: SeriesStyle = field(default_factory=SeriesStyle)


@dataclass(frozen=True)
class ScatterChart:
    family: ClassVar[ChartFamily] = "cartesian"
    x: np.ndarray
    y: np.ndarray
    style: SeriesStyle = field(default_factory=lambda: SeriesStyle(marker=Marker.CIRCLE))


@dataclass(frozen=True)
class BarChart:
    family: ClassVar[ChartFamily] = "cartesian"
    x: np.ndarray
    heights: np.ndarray
    categories: tuple[str, ...] | None = None
    gap_fraction: float | None = None
    style: SeriesStyle = field(default_factory=SeriesStyle)

    def __post_init__(self) -> None:
        if self.gap_fraction is not None and not 0.0 <= self.gap_fraction < 1.0:
            raise ValueError("gap_fraction must be in [0, 1)")


@dataclass(frozen=True)
class HistogramChart:
    family: ClassVar[ChartFamily] = "cartesian"
    values: np.ndarray
    bins: int | None = None
    value_range: tuple[float, float] | None = None
    style: SeriesStyle = field(default_factory=SeriesStyle)


@dataclass(frozen=True)
class PieChart:
    family: ClassVar[ChartFamily] = "pie"
    values: np.ndarray
    labels: tuple[str, ...] | None = None
    colors: tuple[Color, ...] | None = None
    style: SeriesStyle = field(default_factory=SeriesStyle)


@dataclass(frozen=True)
class BoxChart:
    family: ClassVar[ChartFamily] = "cartesian"
    datasets: tuple[np.ndarray, ...]
    labels: tuple[str, ...] | None = None
    positions: tuple[float, ...] | None = None
    style: SeriesStyle = field(default_factory=SeriesStyle)


@dataclass(frozen=True)
class ViolinChart:
    family: ClassVar[ChartFamily] = "cartesian"
    datasets: tuple[np.ndarray, ...]
    labels: tuple[str, ...] | None = None
    positions: tuple[float, ...] | None = None
    points: int | None = None
    style: SeriesStyle = field(default_factory=SeriesStyle)


@dataclass(frozen=True)
class ContourChart:
    family: ClassVar[ChartFamily] = "cartesian"
    x: np.ndarray
    y: np.ndarray
    z: np.ndarray
    levels: int | tuple[float, ...] | None = None
    style: SeriesStyle = field(default_factory=SeriesStyle)


@dataclass(frozen=True)
class HeatmapChart:
    family: ClassVar[ChartFamily] = "cartesian"
    z: np.ndarray
    style: SeriesStyle = field(default_factory=SeriesStyle)


@dataclass(frozen=True)
class GraphChart:
    family: ClassVar[ChartFamily] = "graph"
    graph: Graph
    layout: LayoutAlgorithm
    style: SeriesStyle = field(default_factory=SeriesStyle)


Chart = Union[
    LineChart,
    ScatterChart,
    BarChart,
    HistogramChart,
    PieChart,
    BoxChart,
    ViolinChart,
    ContourChart,
    HeatmapChart,
    GraphChart,
]
