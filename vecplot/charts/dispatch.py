from __future__ import annotations

from dataclasses import dataclass, field

from vecplot.canvas.primitives import Primitive
from vecplot.charts.bar import bar_extent, histogram_extent, render_bar, render_histogram
from vecplot.charts.base import Extent, PlotFrame, series_color
from vecplot.charts.contour import contour_extent, heatmap_extent, render_contour, render_heatmap
from vecplot.charts.decorations import LegendEntry
from vecplot.charts.line import render_line, render_scatter, xy_extent
from vecplot.charts.pie import render_pie
from vecplot.charts.stats import box_extent, render_box, render_violin, violin_extent
from vecplot.config import PlotTheme
from vecplot.graph.layout import ForceParams, compute_layout
from vecplot.graph.render import render_graph
from vecplot.markers import Marker
from vecplot.series import (
    BarChart,
    BoxChart,
    Chart,
    ContourChart,
    GraphChart,
    HeatmapChart,
    HistogramChart,
    LineChart,
    PieChart,
    ScatterChart,
    ViolinChart,
)


@dataclass(frozen=True)
class BarGroup:
    index: int = 0
    count: int = 1
    slot: float | None = None


@dataclass
class ChartRender:
    primitives: list[Primitive] = field(default_factory=list)
    color_index: int = 0
    legend: list[LegendEntry] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def chart_extent(chart: Chart, theme: PlotTheme) -> Extent | None:
    """Data bounds for cartesian charts; ``None`` when the chart contributes none."""
    if isinstance(chart, (LineChart, ScatterChart)):
        return xy_extent(chart)
    if isinstance(chart, BarChart):
        return bar_extent(chart)
    if isinstance(chart, HistogramChart):
        return histogram_extent(chart, theme.histogram_bins)
    if isinstance(chart, BoxChart):
        return box_extent(chart)
    if isinstance(chart, ViolinChart):
        return violin_extent(chart, theme.violin_points)
    if isinstance(chart, ContourChart):
        return contour_extent(chart)
    if isinstance(chart, HeatmapChart):
        return heatmap_extent(chart)
    return None


def render_chart(
    chart: Chart,
    frame: PlotFrame,
    color_index: int,
    *,
    bar_group: BarGroup | None = None,
) -> ChartRender:
    """Single dispatch over the chart variant; ``color_index`` is the subplot's cycle counter."""
    label = chart.style.label
    if isinstance(chart, PieChart):
        primitives, next_index = render_pie(chart, frame, color_index)
        return ChartRender(primitives=primitives, color_index=next_index)
    if isinstance(chart, GraphChart):
        return _render_graph_chart(chart, frame, color_index)
    if isinstance(chart, HeatmapChart):
        return ChartRender(primitives=render_heatmap(chart, frame), color_index=color_index)
    if isinstance(chart, ContourChart):
        color = None if chart.style.color is None else series_color(chart.style, color_index)[0]
        out = ChartRender(primitives=render_contour(chart, frame, color), color_index=color_index)
        if label and color is not None:
            out.legend.append(LegendEntry(label=label, kind="line", color=color))
        return out

    color, next_index = series_color(chart.style, color_index)
    if isinstance(chart, LineChart):
        primitives = render_line(chart, frame, color)
        kind = "line"
    elif isinstance(chart, ScatterChart):
        primitives = render_scatter(chart, frame, color)
        kind = "marker"
    elif isinstance(chart, BarChart):
        group = bar_group or BarGroup()
        primitives = render_bar(chart, frame, color, group_index=group.index, group_count=group.count, slot=group.slot)
        kind = "patch"
    elif isinstance(chart, HistogramChart):
        primitives = render_histogram(chart, frame, color)
        kind = "patch"
    elif isinstance(chart, BoxChart):
        primitives = render_box(chart, frame, color)
        kind = "patch"
    elif isinstance(chart, ViolinChart):
        primitives = render_violin(chart, frame, color)
        kind = "patch"
    else:
        raise TypeError(f"unsupported chart type: {type(chart).__name__}")

    out = ChartRender(primitives=primitives, color_index=next_index)
    if label:
        marker = chart.style.marker if kind != "patch" else Marker.NONE
        out.legend.append(LegendEntry(label=label, kind=kind, color=color, marker=marker))
    return out


def force_params(theme: PlotTheme) -> ForceParams:
    return ForceParams(
        iterations=theme.force_iterations,
        tolerance=theme.force_tolerance,
        repulsion=theme.force_repulsion,
        spring=theme.force_spring,
        damping=theme.force_damping,
    )


def _render_graph_chart(chart: GraphChart, frame: PlotFrame, color_index: int) -> ChartRender:
    layout = compute_layout(chart.graph, chart.layout, params=force_params(frame.theme))
    out = ChartRender(primitives=render_graph(chart.graph, layout, frame), color_index=color_index)
    if not layout.converged:
        out.warnings.append(f"force-directed layout did not converge after {layout.iterations} iterations")
    return out
