from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from vecplot.canvas.primitives import Primitive, Rect, Style
from vecplot.charts.base import Extent, PlotFrame, require_finite, require_same_length
from vecplot.colors import WHITE, Color
from vecplot.errors import DataShapeError, DomainError
from vecplot.series import BarChart, HistogramChart


@dataclass(frozen=True)
class HistogramBins:
    edges: np.ndarray
    counts: np.ndarray


def slot_width(x: np.ndarray) -> float:
    """Width of one category slot: the smallest spacing between distinct positions."""
    uniq = np.unique(x)
    if uniq.size < 2:
        return 1.0
    return float(np.min(np.diff(uniq)))


def bar_extent(chart: BarChart) -> Extent | None:
    _validate_bar(chart)
    if chart.x.size == 0:
        return None
    half = slot_width(chart.x) / 2.0
    return Extent(
        xmin=float(np.min(chart.x)) - half,
        xmax=float(np.max(chart.x)) + half,
        ymin=min(0.0, float(np.min(chart.heights))),
        ymax=max(0.0, float(np.max(chart.heights))),
        pad_x=False,
    )


def render_bar(
    chart: BarChart,
    frame: PlotFrame,
    color: Color,
    *,
    group_index: int = 0,
    group_count: int = 1,
    slot: float | None = None,
) -> list[Primitive]:
    """Bars for one series; grouped series share each slot side by side."""
    _validate_bar(chart)
    if chart.x.size == 0:
        return []
    if not 0 <= group_index < group_count:
        raise ValueError("group_index must be in [0, group_count)")
    gap = frame.theme.bar_gap_fraction if chart.gap_fraction is None else chart.gap_fraction
    slot = slot_width(chart.x) if slot is None else slot
    total = slot * (1.0 - gap)
    each = total / group_count
    lefts = chart.x - total / 2.0 + group_index * each
    style = Style(fill=color, stroke=WHITE, stroke_width=0.5)
    return _bars(lefts, lefts + each, np.zeros_like(chart.heights), chart.heights, frame, style)


def compute_histogram(values: np.ndarray, bins: int, value_range: tuple[float, float] | None = None) -> HistogramBins:
    if bins <= 0:
        raise DataShapeError(f"histogram bin count must be >= 1, got {bins}")
    require_finite(values, label="values")

    if value_range is not None:
        lo, hi = float(value_range[0]), float(value_range[1])
        if not (np.isfinite(lo) and np.isfinite(hi)) or lo > hi:
            raise DomainError(f"invalid histogram range: ({lo}, {hi})")
    elif values.size == 0:
        lo, hi = 0.0, 1.0
    else:
        lo, hi = float(np.min(values)), float(np.max(values))

    if lo == hi:
        # A single distinct value collapses to one bin padded around it.
        pad = max(0.5, abs(lo) * 0.05)
        return HistogramBins(
            edges=np.asarray([lo - pad, hi + pad], dtype=np.float64),
            counts=np.asarray([values.size], dtype=np.int64),
        )

    width = (hi - lo) / bins
    idx = np.floor((values - lo) / width).astype(np.int64)
    np.clip(idx, 0, bins - 1, out=idx)
    counts = np.bincount(idx, minlength=bins).astype(np.int64)
    edges = lo + width * np.arange(bins + 1, dtype=np.float64)
    edges[-1] = hi
    return HistogramBins(edges=edges, counts=counts)


def histogram_extent(chart: HistogramChart, default_bins: int) -> Extent | None:
    if chart.values.size == 0 and chart.value_range is None:
        require_finite(chart.values, label="values")
        return None
    hist = compute_histogram(chart.values, default_bins if chart.bins is None else chart.bins, chart.value_range)
    return Extent(
        xmin=float(hist.edges[0]),
        xmax=float(hist.edges[-1]),
        ymin=0.0,
        ymax=float(np.max(hist.counts)),
        pad_x=False,
    )


def render_histogram(chart: HistogramChart, frame: PlotFrame, color: Color) -> list[Primitive]:
    if chart.values.size == 0:
        require_finite(chart.values, label="values")
        return []
    hist = compute_histogram(chart.values, frame.theme.histogram_bins if chart.bins is None else chart.bins, chart.value_range)
    style = Style(fill=color, stroke=WHITE, stroke_width=0.5)
    counts = hist.counts.astype(np.float64)
    return _bars(hist.edges[:-1], hist.edges[1:], np.zeros_like(counts), counts, frame, style)


def _bars(
    x0: np.ndarray,
    x1: np.ndarray,
    y0: np.ndarray,
    y1: np.ndarray,
    frame: PlotFrame,
    style: Style,
) -> list[Primitive]:
    px0 = frame.x_scale.map_array(x0)
    px1 = frame.x_scale.map_array(x1)
    py0 = frame.y_scale.map_array(y0)
    py1 = frame.y_scale.map_array(y1)
    out: list[Primitive] = []
    for a, b, c, d in zip(px0.tolist(), px1.tolist(), py0.tolist(), py1.tolist(), strict=True):
        left, top = min(a, b), min(c, d)
        out.append(Rect(origin=(left, top), size=(abs(b - a), abs(d - c)), style=style))
    return out


def _validate_bar(chart: BarChart) -> None:
    require_same_length(chart.x, chart.heights, names=("x", "height"))
    require_finite(chart.x, label="x")
    require_finite(chart.heights, label="height")
