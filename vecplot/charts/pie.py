from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from vecplot.canvas.primitives import Path, Point, Primitive, Style, Text
from vecplot.charts.base import PlotFrame, require_finite, require_non_empty
from vecplot.colors import WHITE, Color, cycle_color
from vecplot.errors import DataShapeError, DomainError
from vecplot.series import PieChart


TAU = 2.0 * math.pi
LABEL_OFFSET_PX = 18.0
_ARC_STEP = math.pi / 90.0


@dataclass(frozen=True)
class PieSector:
    index: int
    value: float
    fraction: float
    start_angle: float
    end_angle: float

    @property
    def sweep(self) -> float:
        return self.end_angle - self.start_angle

    @property
    def mid_angle(self) -> float:
        return 0.5 * (self.start_angle + self.end_angle)


def compute_pie_sectors(values: np.ndarray) -> list[PieSector]:
    """Sectors measured clockwise from 12 o'clock, in radians."""
    require_non_empty(values, label="pie values")
    require_finite(values, label="pie values")
    if np.any(values < 0):
        raise DomainError("pie values must be non-negative")
    total = float(np.sum(values))
    if total <= 0:
        raise DomainError("pie values must sum to a positive number")

    cumulative = np.concatenate(([0.0], np.cumsum(values, dtype=np.float64)))
    angles = TAU * cumulative / total
    angles[-1] = TAU
    return [
        PieSector(
            index=i,
            value=float(values[i]),
            fraction=float(values[i]) / total,
            start_angle=float(angles[i]),
            end_angle=float(angles[i + 1]),
        )
        for i in range(values.size)
    ]


def pie_point(center: Point, radius: float, angle: float) -> Point:
    """Point on the circle at ``angle`` clockwise from 12 o'clock in y-down pixels."""
    return (center[0] + radius * math.sin(angle), center[1] - radius * math.cos(angle))


def sector_points(center: Point, radius: float, start: float, end: float) -> tuple[Point, ...]:
    sweep = end - start
    steps = max(2, int(math.ceil(sweep / _ARC_STEP)))
    arc = tuple(pie_point(center, radius, start + sweep * k / steps) for k in range(steps + 1))
    if sweep >= TAU - 1e-12:
        return arc[:-1]
    return (center,) + arc


def render_pie(chart: PieChart, frame: PlotFrame, color_index: int) -> tuple[list[Primitive], int]:
    sectors = compute_pie_sectors(chart.values)
    if chart.labels is not None and len(chart.labels) != len(sectors):
        raise DataShapeError(f"pie labels length mismatch: {len(chart.labels)} != {len(sectors)}")
    if chart.colors is not None and len(chart.colors) != len(sectors):
        raise DataShapeError(f"pie colors length mismatch: {len(chart.colors)} != {len(sectors)}")

    center = (frame.left + frame.width / 2.0, frame.top + frame.height / 2.0)
    radius = 0.5 * min(frame.width, frame.height) - LABEL_OFFSET_PX - frame.theme.font_size_px
    radius = max(radius, 0.25 * min(frame.width, frame.height))
    text_color = frame.theme.color("text_color")

    wedges: list[Primitive] = []
    labels: list[Primitive] = []
    for sector in sectors:
        if chart.colors is not None:
            fill = chart.colors[sector.index]
        else:
            fill = cycle_color(color_index)
            color_index += 1
        fill = fill.with_alpha(fill.a * chart.style.alpha)
        if sector.sweep > 0:
            points = sector_points(center, radius, sector.start_angle, sector.end_angle)
            wedges.append(Path(points=points, closed=True, style=Style(fill=fill, stroke=WHITE, stroke_width=1.0)))
        labels.append(_sector_label(chart, sector, center, radius, text_color, frame.theme.font_size_px))
    return wedges + labels, color_index


def _sector_label(
    chart: PieChart,
    sector: PieSector,
    center: Point,
    radius: float,
    color: Color,
    font_size: float,
) -> Text:
    content = chart.labels[sector.index] if chart.labels is not None else f"{sector.fraction * 100:.1f}%"
    anchor_x = math.sin(sector.mid_angle)
    if anchor_x > 0.05:
        anchor = "start"
    elif anchor_x < -0.05:
        anchor = "end"
    else:
        anchor = "middle"
    position = pie_point(center, radius + LABEL_OFFSET_PX, sector.mid_angle)
    style = Style(fill=color, font_size=font_size, anchor=anchor, baseline="middle")
    return Text(position=position, content=content, style=style)
