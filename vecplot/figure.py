from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

import numpy as np

from vecplot.adapters.normalize import (
    normalize_categories,
    normalize_datasets,
    normalize_grid,
    normalize_values,
    normalize_xy,
)
from vecplot.canvas.canvas import Canvas, Region
from vecplot.canvas.primitives import Primitive
from vecplot.charts.bar import slot_width
from vecplot.charts.base import Extent, PlotFrame
from vecplot.charts.decorations import (
    LegendEntry,
    render_axes,
    render_grid,
    render_labels,
    render_legend,
    render_placeholder,
)
from vecplot.charts.dispatch import BarGroup, chart_extent, render_chart
from vecplot.colors import ColorLike, parse_color
from vecplot.config import DEFAULT_THEME, PlotTheme
from vecplot.errors import PlotDataError
from vecplot.graph.dot import parse_dot
from vecplot.graph.layout import LayoutAlgorithm
from vecplot.graph.model import Graph
from vecplot.markers import Marker, parse_marker
from vecplot.scales import Domain, LinearScale, PixelRange, Tick, compute_domain
from vecplot.series import (
    BarChart,
    BoxChart,
    Chart,
    ChartFamily,
    ContourChart,
    GraphChart,
    HeatmapChart,
    HistogramChart,
    LineChart,
    PieChart,
    ScatterChart,
    SeriesStyle,
    ViolinChart,
)


LOGGER = logging.getLogger(__name__)

_UNIT = Domain(0.0, 1.0)


@dataclass(frozen=True)
class SubplotFailure:
    index: int
    error: PlotDataError

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass(frozen=True)
class FigureRender:
    document: str
    failures: tuple[SubplotFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass
class Axes:
    figure: "Figure"
    index: int
    title: str = ""
    x_label: str = ""
    y_label: str = ""
    show_grid: bool = True
    show_legend: bool = False
    show_x_axis: bool = True
    show_y_axis: bool = True
    equal_aspect: bool = False
    x_limits: tuple[float, float] | None = None
    y_limits: tuple[float, float] | None = None
    warnings: list[str] = field(default_factory=list)
    error: PlotDataError | None = None

    _family: ChartFamily | None = None
    _charts: list[Chart] = field(default_factory=list)
    _extra: list[Primitive] = field(default_factory=list)
    _categories: dict[str, float] = field(default_factory=dict)

    @property
    def family(self) -> ChartFamily | None:
        return self._family

    @property
    def charts(self) -> tuple[Chart, ...]:
        return tuple(self._charts)

    def plot(
        self,
        y: Any = None,
        *,
        x: Any = None,
        data: Any = None,
        label: str | None = None,
        color: ColorLike | None = None,
        marker: Marker | str | None = None,
        marker_size: float | None = None,
        width: float | None = None,
        alpha: float = 1.0,
    ) -> "Axes":
        style = _series_style(color, marker, marker_size, width, alpha, label)
        x_arr, y_arr = normalize_xy(y=y, x=x, data=data)
        return self._add(LineChart(x=x_arr, y=y_arr, style=style))

    def scatter(
        self,
        y: Any = None,
        *,
        x: Any = None,
        data: Any = None,
        label: str | None = None,
        color: ColorLike | None = None,
        marker: Marker | str | None = Marker.CIRCLE,
        size: float | None = None,
        alpha: float = 1.0,
    ) -> "Axes":
        style = _series_style(color, marker, size, None, alpha, label)
        if not style.marker.visible:
            raise ValueError("scatter requires a visible marker")
        x_arr, y_arr = normalize_xy(y=y, x=x, data=data)
        return self._add(ScatterChart(x=x_arr, y=y_arr, style=style))

    def bar(
        self,
        heights: Any = None,
        *,
        x: Any = None,
        data: Any = None,
        label: str | None = None,
        color: ColorLike | None = None,
        gap_fraction: float | None = None,
        alpha: float = 1.0,
    ) -> "Axes":
        style = _series_style(color, None, None, None, alpha, label)
        h_arr = normalize_values(heights, label="heights", data=data)
        if x is None:
            positions, categories = np.arange(h_arr.size, dtype=np.float64), None
        else:
            positions, categories = normalize_categories(x)
            if categories is not None:
                positions = np.asarray(self._category_positions(categories, base=0.0), dtype=np.float64)
        return self._add(BarChart(x=positions, heights=h_arr, categories=categories, gap_fraction=gap_fraction, style=style))

    def histogram(
        self,
        values: Any = None,
        *,
        bins: int | None = None,
        range: tuple[float, float] | None = None,
        data: Any = None,
        label: str | None = None,
        color: ColorLike | None = None,
        alpha: float = 1.0,
    ) -> "Axes":
        style = _series_style(color, None, None, None, alpha, label)
        arr = normalize_values(values, label="values", data=data)
        value_range = None if range is None else (float(range[0]), float(range[1]))
        return self._add(HistogramChart(values=arr, bins=bins, value_range=value_range, style=style))

    def pie(
        self,
        values: Any = None,
        *,
        labels: Sequence[str] | None = None,
        colors: Sequence[ColorLike] | None = None,
        data: Any = None,
        alpha: float = 1.0,
    ) -> "Axes":
        if any(isinstance(c, PieChart) for c in self._charts):
            raise ValueError("subplot already holds a pie chart")
        style = _series_style(None, None, None, None, alpha, None)
        arr = normalize_values(values, label="values", data=data)
        chart = PieChart(
            values=arr,
            labels=None if labels is None else tuple(str(v) for v in labels),
            colors=None if colors is None else tuple(parse_color(c) for c in colors),
            style=style,
        )
        return self._add(chart)

    def boxplot(
        self,
        datasets: Any,
        *,
        labels: Sequence[str] | None = None,
        label: str | None = None,
        color: ColorLike | None = None,
        alpha: float = 1.0,
    ) -> "Axes":
        style = _series_style(color, None, None, None, alpha, label)
        arrays = tuple(normalize_datasets(datasets))
        names = _labels(labels)
        positions = None if names is None else self._category_positions(names, base=1.0)
        return self._add(BoxChart(datasets=arrays, labels=names, positions=positions, style=style))

    def violin(
        self,
        datasets: Any,
        *,
        labels: Sequence[str] | None = None,
        points: int | None = None,
        label: str | None = None,
        color: ColorLike | None = None,
        alpha: float = 1.0,
    ) -> "Axes":
        if points is not None and points < 2:
            raise ValueError("violin points must be >= 2")
        style = _series_style(color, None, None, None, alpha, label)
        arrays = tuple(normalize_datasets(datasets))
        names = _labels(labels)
        positions = None if names is None else self._category_positions(names, base=1.0)
        return self._add(ViolinChart(datasets=arrays, labels=names, positions=positions, points=points, style=style))

    def contour(
        self,
        z: Any,
        *,
        x: Any = None,
        y: Any = None,
        levels: int | Sequence[float] | None = None,
        label: str | None = None,
        color: ColorLike | None = None,
        width: float | None = None,
    ) -> "Axes":
        style = _series_style(color, None, None, width, 1.0, label)
        grid = normalize_grid(z)
        rows, cols = grid.shape
        x_arr = np.arange(cols, dtype=np.float64) if x is None else normalize_values(x, label="x")
        y_arr = np.arange(rows, dtype=np.float64) if y is None else normalize_values(y, label="y")
        if isinstance(levels, (int, np.integer)):
            if levels <= 0:
                raise ValueError("contour levels must be > 0")
            level_values: int | tuple[float, ...] | None = int(levels)
        elif levels is None:
            level_values = None
        else:
            level_values = tuple(float(v) for v in levels)
        return self._add(ContourChart(x=x_arr, y=y_arr, z=grid, levels=level_values, style=style))

    def heatmap(self, z: Any, *, alpha: float = 1.0) -> "Axes":
        style = _series_style(None, None, None, None, alpha, None)
        return self._add(HeatmapChart(z=normalize_grid(z), style=style))

    def add_primitive(self, primitive: Primitive) -> "Axes":
        """Append a raw primitive in region-local pixel space, drawn after the charts."""
        self._extra.append(primitive)
        return self

    def set_title(self, title: str) -> "Axes":
        self.title = title
        return self

    def set_xlabel(self, label: str) -> "Axes":
        self.x_label = label
        return self

    def set_ylabel(self, label: str) -> "Axes":
        self.y_label = label
        return self

    def set_xlim(self, lo: float, hi: float) -> "Axes":
        self.x_limits = _limits(lo, hi, "x")
        return self

    def set_ylim(self, lo: float, hi: float) -> "Axes":
        self.y_limits = _limits(lo, hi, "y")
        return self

    def grid(self, show: bool = True) -> "Axes":
        self.show_grid = bool(show)
        return self

    def legend(self, show: bool = True) -> "Axes":
        self.show_legend = bool(show)
        return self

    def set_show_x_axis(self, show: bool) -> "Axes":
        self.show_x_axis = bool(show)
        return self

    def set_show_y_axis(self, show: bool) -> "Axes":
        self.show_y_axis = bool(show)
        return self

    def set_equal_aspect(self, equal: bool = True) -> "Axes":
        self.equal_aspect = bool(equal)
        return self

    def _add(self, chart: Chart) -> "Axes":
        family = chart.family
        if self._family is not None and self._family != family:
            raise ValueError(f"cannot add a {family} chart to a {self._family} subplot")
        if family == "graph" and self._charts:
            raise ValueError("graph subplot already holds a graph")
        self._family = family
        self._charts.append(chart)
        return self

    def render(self, width: float, height: float) -> list[Primitive]:
        """Region-local primitives for this subplot; raises PlotDataError on bad data."""
        self.warnings = []
        self.error = None
        theme = self.figure.theme
        left, right, top, bottom = _plot_box(width, height, theme)
        if self._family in ("pie", "graph"):
            frame = PlotFrame(
                x_scale=LinearScale(_UNIT, PixelRange(left, right)),
                y_scale=LinearScale(_UNIT, PixelRange(top, bottom)),
                theme=theme,
            )
            out, legend = self._render_charts(frame)
            out.extend(self._extra)
            out.extend(render_labels(width, height, frame, title=self._resolved_title()))
            if self.show_legend:
                out.extend(render_legend(legend, frame))
            return out

        extents = [e for e in (chart_extent(c, theme) for c in self._charts) if e is not None]
        x_domain = _axis_domain(extents, "x", self.x_limits, theme.pad_ratio)
        y_domain = _axis_domain(extents, "y", self.y_limits, theme.pad_ratio)
        if self.equal_aspect:
            left, right, top, bottom = _equal_aspect(left, right, top, bottom, x_domain, y_domain)
        frame = PlotFrame(
            x_scale=LinearScale(x_domain, PixelRange(left, right)),
            y_scale=LinearScale(y_domain, PixelRange(bottom, top)),
            theme=theme,
        )
        x_ticks = self._category_ticks() or frame.x_scale.ticks(theme.tick_target)
        y_ticks = frame.y_scale.ticks(theme.tick_target)

        out: list[Primitive] = []
        if self.show_grid:
            out.extend(render_grid(frame, x_ticks, y_ticks))
        charts, legend = self._render_charts(frame)
        out.extend(charts)
        out.extend(self._extra)
        out.extend(render_axes(frame, x_ticks, y_ticks, show_x=self.show_x_axis, show_y=self.show_y_axis))
        out.extend(render_labels(width, height, frame, title=self.title, x_label=self.x_label, y_label=self.y_label))
        if self.show_legend:
            out.extend(render_legend(legend, frame))
        return out

    def _render_charts(self, frame: PlotFrame) -> tuple[list[Primitive], list[LegendEntry]]:
        bars = [c for c in self._charts if isinstance(c, BarChart) and c.x.size]
        bar_slots = {id(c): i for i, c in enumerate(bars)}
        slot = min((slot_width(c.x) for c in bars), default=None)
        color_index = 0
        primitives: list[Primitive] = []
        legend: list[LegendEntry] = []
        for chart in self._charts:
            group = None
            if id(chart) in bar_slots:
                group = BarGroup(index=bar_slots[id(chart)], count=len(bars), slot=slot)
            result = render_chart(chart, frame, color_index, bar_group=group)
            color_index = result.color_index
            primitives.extend(result.primitives)
            legend.extend(result.legend)
            self.warnings.extend(result.warnings)
        LOGGER.debug("subplot %d rendered %d chart(s) into %d primitive(s)", self.index, len(self._charts), len(primitives))
        return primitives, legend

    def _category_positions(self, labels: tuple[str, ...], *, base: float) -> tuple[float, ...]:
        """Slot of each label in the subplot-wide category order; new labels append a slot."""
        for label in labels:
            if label not in self._categories:
                self._categories[label] = base if not self._categories else max(self._categories.values()) + 1.0
        return tuple(self._categories[label] for label in labels)

    def _category_ticks(self) -> list[Tick] | None:
        if not self._categories:
            return None
        return [Tick(value=pos, label=label) for label, pos in self._categories.items()]

    def _resolved_title(self) -> str:
        if self.title:
            return self.title
        for chart in self._charts:
            if isinstance(chart, GraphChart) and chart.graph.label:
                return chart.graph.label
        return ""


@dataclass
class Figure:
    width: int = 1200
    height: int = 900
    theme: PlotTheme = DEFAULT_THEME
    _axes: list[Axes] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("width and height must be > 0")

    @property
    def axes(self) -> tuple[Axes, ...]:
        return tuple(self._axes)

    def add_subplot(self, *, title: str = "", x_label: str = "", y_label: str = "") -> Axes:
        ax = Axes(figure=self, index=len(self._axes), title=title, x_label=x_label, y_label=y_label)
        self._axes.append(ax)
        return ax

    def add_graph_subplot(
        self,
        source: str | Graph,
        layout: LayoutAlgorithm | str | None = None,
        *,
        title: str = "",
    ) -> Axes:
        """Parse ``source`` eagerly; malformed DOT raises GraphParseError and adds nothing."""
        graph = parse_dot(source) if isinstance(source, str) else source
        if layout is None:
            layout = graph.layout or LayoutAlgorithm.HIERARCHICAL
        algorithm = LayoutAlgorithm.parse(layout)
        ax = Axes(figure=self, index=len(self._axes), title=title)
        ax._add(GraphChart(graph=graph, layout=algorithm))
        self._axes.append(ax)
        return ax

    def subplot_regions(self) -> list[Region]:
        """Row-major grid of regions, as square as the subplot count allows."""
        n = len(self._axes)
        if n == 0:
            return []
        cols = int(math.ceil(math.sqrt(n)))
        rows = int(math.ceil(n / cols))
        gap = self.theme.subplot_gap
        cell_w = (self.width - gap * (cols - 1)) / cols
        cell_h = (self.height - gap * (rows - 1)) / rows
        if cell_w <= 0 or cell_h <= 0:
            raise PlotDataError("figure too small for subplot layout")
        return [
            Region(x=(i % cols) * (cell_w + gap), y=(i // cols) * (cell_h + gap), width=cell_w, height=cell_h)
            for i in range(n)
        ]

    def render(self) -> FigureRender:
        if not self._axes:
            raise PlotDataError("figure has no axes")
        canvas = Canvas(
            width=self.width,
            height=self.height,
            background=self.theme.color("background"),
            font_family=self.theme.font_family,
        )
        failures: list[SubplotFailure] = []
        for ax, region in zip(self._axes, self.subplot_regions(), strict=True):
            try:
                primitives = ax.render(region.width, region.height)
            except PlotDataError as exc:
                LOGGER.warning("subplot %d failed to render: %s", ax.index, exc)
                ax.error = exc
                ax.warnings.append(str(exc))
                failures.append(SubplotFailure(index=ax.index, error=exc))
                primitives = render_placeholder(region.width, region.height, str(exc), self.theme)
            canvas.add_group(f"subplot-{ax.index}", region, primitives)
        LOGGER.debug(
            "figure rendered %d subplot(s), %d primitive(s), %d failure(s)",
            len(self._axes),
            canvas.primitive_count(),
            len(failures),
        )
        return FigureRender(document=canvas.to_svg(), failures=tuple(failures))

    def to_svg(self) -> str:
        return self.render().document

    def save(self, path: str | Path) -> FigureRender:
        result = self.render()
        Path(path).write_text(result.document, encoding="utf-8")
        return result


def _series_style(
    color: ColorLike | None,
    marker: Marker | str | None,
    marker_size: float | None,
    line_width: float | None,
    alpha: float,
    label: str | None,
) -> SeriesStyle:
    return SeriesStyle(
        color=None if color is None else parse_color(color),
        marker=parse_marker(marker),
        marker_size=marker_size,
        line_width=line_width,
        alpha=float(alpha),
        label=label,
    )


def _labels(labels: Sequence[str] | None) -> tuple[str, ...] | None:
    return None if labels is None else tuple(str(v) for v in labels)


def _limits(lo: float, hi: float, axis: str) -> tuple[float, float]:
    lo, hi = float(lo), float(hi)
    if not (math.isfinite(lo) and math.isfinite(hi)):
        raise ValueError(f"{axis} limits must be finite")
    if lo >= hi:
        raise ValueError(f"{axis} limits must satisfy lo < hi")
    return lo, hi


def _plot_box(width: float, height: float, theme: PlotTheme) -> tuple[float, float, float, float]:
    """Plot area inside the gutters, shrinking the gutters for tiny regions."""
    sx = min(1.0, 0.8 * width / max(1.0, theme.gutter_left + theme.gutter_right))
    sy = min(1.0, 0.8 * height / max(1.0, theme.gutter_top + theme.gutter_bottom))
    return (
        theme.gutter_left * sx,
        width - theme.gutter_right * sx,
        theme.gutter_top * sy,
        height - theme.gutter_bottom * sy,
    )


def _axis_domain(
    extents: list[Extent],
    axis: str,
    explicit: tuple[float, float] | None,
    pad_ratio: float,
) -> Domain:
    if explicit is not None:
        return compute_domain(explicit=explicit)
    if axis == "x":
        bounds = [(e.xmin, e.xmax) for e in extents]
        padded = any(e.pad_x for e in extents)
    else:
        bounds = [(e.ymin, e.ymax) for e in extents]
        padded = any(e.pad_y for e in extents)
    values = np.asarray(bounds, dtype=np.float64).reshape(-1)
    return compute_domain(values, pad_ratio=pad_ratio if padded else 0.0)


def _equal_aspect(
    left: float,
    right: float,
    top: float,
    bottom: float,
    x_domain: Domain,
    y_domain: Domain,
) -> tuple[float, float, float, float]:
    if x_domain.degenerate or y_domain.degenerate:
        return left, right, top, bottom
    px_per_unit = min((right - left) / x_domain.span, (bottom - top) / y_domain.span)
    w = x_domain.span * px_per_unit
    h = y_domain.span * px_per_unit
    cx, cy = (left + right) / 2.0, (top + bottom) / 2.0
    return cx - w / 2.0, cx + w / 2.0, cy - h / 2.0, cy + h / 2.0

