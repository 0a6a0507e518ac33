from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from vecplot.canvas.primitives import Circle, Line, Path, Primitive, Rect, Style, as_points
from vecplot.charts.base import Extent, PlotFrame, require_finite, require_non_empty
from vecplot.colors import BLACK, WHITE, Color
from vecplot.errors import DataShapeError
from vecplot.series import BoxChart, ViolinChart


WHISKER_FACTOR = 1.5
BOX_WIDTH = 0.5
VIOLIN_HALF_WIDTH = 0.4


@dataclass(frozen=True)
class BoxStats:
    q1: float
    median: float
    q3: float
    whisker_lo: float
    whisker_hi: float
    outliers: np.ndarray

    @property
    def iqr(self) -> float:
        return self.q3 - self.q1

    @property
    def lower_fence(self) -> float:
        return self.q1 - WHISKER_FACTOR * self.iqr

    @property
    def upper_fence(self) -> float:
        return self.q3 + WHISKER_FACTOR * self.iqr


@dataclass(frozen=True)
class DensityEstimate:
    grid: np.ndarray
    density: np.ndarray
    bandwidth: float


def compute_box_stats(values: np.ndarray) -> BoxStats:
    require_non_empty(values, label="box values")
    require_finite(values, label="box values")
    q1, median, q3 = (float(q) for q in np.quantile(values, [0.25, 0.5, 0.75], method="linear"))
    iqr = q3 - q1
    lo_fence = q1 - WHISKER_FACTOR * iqr
    hi_fence = q3 + WHISKER_FACTOR * iqr
    inside = values[(values >= lo_fence) & (values <= hi_fence)]
    if inside.size == 0:
        whisker_lo, whisker_hi = q1, q3
    else:
        whisker_lo, whisker_hi = float(np.min(inside)), float(np.max(inside))
    outliers = np.sort(values[(values < lo_fence) | (values > hi_fence)])
    return BoxStats(
        q1=q1,
        median=median,
        q3=q3,
        whisker_lo=whisker_lo,
        whisker_hi=whisker_hi,
        outliers=outliers,
    )


def silverman_bandwidth(values: np.ndarray) -> float:
    n = values.size
    std = float(np.std(values, ddof=1)) if n > 1 else 0.0
    q25, q75 = np.quantile(values, [0.25, 0.75], method="linear")
    iqr_scale = float(q75 - q25) / 1.34
    spread = min(std, iqr_scale)
    if spread <= 0:
        spread = max(std, iqr_scale)
    if spread <= 0:
        # constant data: fall back to a scale tied to the magnitude
        spread = abs(float(values[0])) * 0.1 or 1.0
    return 0.9 * spread * n ** (-0.2)


def gaussian_kde(values: np.ndarray, points: int = 100) -> DensityEstimate:
    require_non_empty(values, label="violin values")
    require_finite(values, label="violin values")
    if points < 2:
        raise DataShapeError("density grid needs at least 2 points")
    bandwidth = silverman_bandwidth(values)
    lo, hi = float(np.min(values)), float(np.max(values))
    if lo == hi:
        lo -= 3.0 * bandwidth
        hi += 3.0 * bandwidth
    grid = np.linspace(lo, hi, points)
    u = (grid[:, None] - values[None, :]) / bandwidth
    density = np.exp(-0.5 * u * u).sum(axis=1) / (values.size * bandwidth * math.sqrt(2.0 * math.pi))
    return DensityEstimate(grid=grid, density=density, bandwidth=bandwidth)


def box_extent(chart: BoxChart) -> Extent:
    _validate_labels(chart)
    lows: list[float] = []
    highs: list[float] = []
    for values in chart.datasets:
        stats = compute_box_stats(values)
        lows.append(min(stats.whisker_lo, float(np.min(values))))
        highs.append(max(stats.whisker_hi, float(np.max(values))))
    return Extent(
        xmin=min(dataset_positions(chart)) - 0.5,
        xmax=max(dataset_positions(chart)) + 0.5,
        ymin=min(lows),
        ymax=max(highs),
        pad_x=False,
    )


def violin_extent(chart: ViolinChart, default_points: int) -> Extent:
    _validate_labels(chart)
    estimates = [gaussian_kde(v, chart.points or default_points) for v in chart.datasets]
    return Extent(
        xmin=min(dataset_positions(chart)) - 0.5,
        xmax=max(dataset_positions(chart)) + 0.5,
        ymin=min(float(e.grid[0]) for e in estimates),
        ymax=max(float(e.grid[-1]) for e in estimates),
        pad_x=False,
    )


def render_box(chart: BoxChart, frame: PlotFrame, color: Color) -> list[Primitive]:
    _validate_labels(chart)
    xs, ys = frame.x_scale, frame.y_scale
    edge = Style(stroke=BLACK, stroke_width=1.0)
    body = Style(fill=color, stroke=BLACK, stroke_width=1.0)
    flier = Style(stroke=BLACK, stroke_width=1.0)
    flier_radius = (chart.style.marker_size or frame.theme.marker_size) / 2.0
    out: list[Primitive] = []
    for pos, values in zip(dataset_positions(chart), chart.datasets, strict=True):
        stats = compute_box_stats(values)
        left, right = xs.map(pos - BOX_WIDTH / 2), xs.map(pos + BOX_WIDTH / 2)
        cap_left, cap_right = xs.map(pos - BOX_WIDTH / 4), xs.map(pos + BOX_WIDTH / 4)
        center = xs.map(pos)
        top, bottom = ys.map(stats.q3), ys.map(stats.q1)
        out.append(Line(p1=(center, ys.map(stats.whisker_hi)), p2=(center, top), style=edge))
        out.append(Line(p1=(center, bottom), p2=(center, ys.map(stats.whisker_lo)), style=edge))
        out.append(Line(p1=(cap_left, ys.map(stats.whisker_hi)), p2=(cap_right, ys.map(stats.whisker_hi)), style=edge))
        out.append(Line(p1=(cap_left, ys.map(stats.whisker_lo)), p2=(cap_right, ys.map(stats.whisker_lo)), style=edge))
        out.append(Rect(origin=(left, min(top, bottom)), size=(right - left, abs(bottom - top)), style=body))
        med = ys.map(stats.median)
        out.append(Line(p1=(left, med), p2=(right, med), style=Style(stroke=BLACK, stroke_width=2.0)))
        for value in stats.outliers.tolist():
            out.append(Circle(center=(center, ys.map(value)), radius=flier_radius, style=flier))
    return out


def render_violin(chart: ViolinChart, frame: PlotFrame, color: Color) -> list[Primitive]:
    _validate_labels(chart)
    xs, ys = frame.x_scale, frame.y_scale
    body = Style(fill=color.with_alpha(0.7 * color.a), stroke=color, stroke_width=1.0)
    out: list[Primitive] = []
    for pos, values in zip(dataset_positions(chart), chart.datasets, strict=True):
        est = gaussian_kde(values, chart.points or frame.theme.violin_points)
        peak = float(np.max(est.density))
        half = est.density / peak * VIOLIN_HALF_WIDTH if peak > 0 else np.zeros_like(est.density)
        right = xs.map_array(pos + half)
        left = xs.map_array(pos - half)
        py = ys.map_array(est.grid)
        outline = as_points(right, py) + as_points(left[::-1], py[::-1])
        out.append(Path(points=outline, closed=True, style=body))
        med = ys.map(float(np.median(values)))
        tick = VIOLIN_HALF_WIDTH / 4
        out.append(Line(p1=(xs.map(pos - tick), med), p2=(xs.map(pos + tick), med), style=Style(stroke=WHITE, stroke_width=2.0)))
    return out


def _validate_labels(chart: BoxChart | ViolinChart) -> None:
    if not chart.datasets:
        raise DataShapeError("at least one dataset is required")
    if chart.labels is not None and len(chart.labels) != len(chart.datasets):
        raise DataShapeError(f"labels length mismatch: {len(chart.labels)} != {len(chart.datasets)}")
    if chart.positions is not None and len(chart.positions) != len(chart.datasets):
        raise DataShapeError(f"positions length mismatch: {len(chart.positions)} != {len(chart.datasets)}")


def dataset_positions(chart: BoxChart | ViolinChart) -> tuple[float, ...]:
    """x slot of each dataset: explicit category positions, else 1..k."""
    if chart.positions is None:
        return tuple(float(i + 1) for i in range(len(chart.datasets)))
    return chart.positions
