from __future__ import annotations

import numpy as np

from vecplot.canvas.primitives import Polyline, Primitive, Style, as_points
from vecplot.charts.base import Extent, PlotFrame, require_finite, require_same_length
from vecplot.colors import Color
from vecplot.markers import Marker, marker_primitives
from vecplot.series import LineChart, ScatterChart


def xy_extent(chart: LineChart | ScatterChart) -> Extent | None:
    _validate_xy(chart)
    if chart.x.size == 0:
        return None
    return Extent(
        xmin=float(np.min(chart.x)),
        xmax=float(np.max(chart.x)),
        ymin=float(np.min(chart.y)),
        ymax=float(np.max(chart.y)),
    )


def render_line(chart: LineChart, frame: PlotFrame, color: Color) -> list[Primitive]:
    """Connect points in input order; markers are drawn over the line when configured."""
    _validate_xy(chart)
    if chart.x.size == 0:
        return []
    px = frame.x_scale.map_array(chart.x)
    py = frame.y_scale.map_array(chart.y)
    out: list[Primitive] = []
    if px.size >= 2:
        width = chart.style.line_width or frame.theme.line_width
        out.append(Polyline(points=as_points(px, py), style=Style(stroke=color, stroke_width=width)))
    marker = chart.style.marker
    if marker.visible or px.size == 1:
        out.extend(_markers(px, py, marker if marker.visible else Marker.CIRCLE, chart, frame, color))
    return out


def render_scatter(chart: ScatterChart, frame: PlotFrame, color: Color) -> list[Primitive]:
    _validate_xy(chart)
    if chart.x.size == 0:
        return []
    px = frame.x_scale.map_array(chart.x)
    py = frame.y_scale.map_array(chart.y)
    return _markers(px, py, chart.style.marker, chart, frame, color)


def _markers(
    px: np.ndarray,
    py: np.ndarray,
    marker: Marker,
    chart: LineChart | ScatterChart,
    frame: PlotFrame,
    color: Color,
) -> list[Primitive]:
    size = chart.style.marker_size or frame.theme.marker_size
    out: list[Primitive] = []
    for x, y in zip(px.tolist(), py.tolist(), strict=True):
        out.extend(marker_primitives(marker, x, y, size, color))
    return out


def _validate_xy(chart: LineChart | ScatterChart) -> None:
    require_same_length(chart.x, chart.y)
    require_finite(chart.x, label="x")
    require_finite(chart.y, label="y")
