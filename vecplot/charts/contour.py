from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from vecplot.canvas.primitives import Line, Point, Primitive, Rect, Style
from vecplot.charts.base import Extent, PlotFrame, require_finite, require_non_empty
from vecplot.colors import Color, colormap
from vecplot.errors import DataShapeError, DomainError
from vecplot.series import ContourChart, HeatmapChart


# Cell corners: 0 bottom-left, 1 bottom-right, 2 top-right, 3 top-left.
# Cell edges: "b" (0-1), "r" (1-2), "t" (3-2), "l" (0-3).
_SEGMENTS: dict[int, tuple[tuple[str, str], ...]] = {
    1: (("l", "b"),),
    2: (("b", "r"),),
    3: (("l", "r"),),
    4: (("r", "t"),),
    6: (("b", "t"),),
    7: (("l", "t"),),
    8: (("t", "l"),),
    9: (("b", "t"),),
    11: (("r", "t"),),
    12: (("l", "r"),),
    13: (("b", "r"),),
    14: (("l", "b"),),
}
_SADDLES: dict[tuple[int, bool], tuple[tuple[str, str], ...]] = {
    (5, True): (("b", "r"), ("l", "t")),
    (5, False): (("l", "b"), ("r", "t")),
    (10, True): (("l", "b"), ("r", "t")),
    (10, False): (("b", "r"), ("t", "l")),
}


@dataclass(frozen=True)
class ContourSegment:
    level: float
    p1: Point
    p2: Point


def contour_levels(z: np.ndarray, levels: int | tuple[float, ...] | np.ndarray) -> np.ndarray:
    if isinstance(levels, (int, np.integer)):
        if levels <= 0:
            raise DataShapeError(f"contour level count must be >= 1, got {levels}")
        zmin, zmax = float(np.min(z)), float(np.max(z))
        return np.linspace(zmin, zmax, int(levels) + 2)[1:-1]
    arr = np.asarray(levels, dtype=np.float64).ravel()
    require_non_empty(arr, label="contour levels")
    require_finite(arr, label="contour levels")
    return np.sort(arr)


def compute_contour_segments(
    x: np.ndarray,
    y: np.ndarray,
    z: np.ndarray,
    levels: int | tuple[float, ...] | np.ndarray,
) -> list[ContourSegment]:
    """Marching squares over z[yi][xi]; one or two segments per crossed cell and level."""
    _validate_grid(x, y, z)
    segments: list[ContourSegment] = []
    for level in contour_levels(z, levels).tolist():
        above = z >= level
        case = (
            above[:-1, :-1].astype(np.int8)
            | (above[:-1, 1:].astype(np.int8) << 1)
            | (above[1:, 1:].astype(np.int8) << 2)
            | (above[1:, :-1].astype(np.int8) << 3)
        )
        rows, cols = np.nonzero((case != 0) & (case != 15))
        for j, i in zip(rows.tolist(), cols.tolist(), strict=True):
            code = int(case[j, i])
            if code in (5, 10):
                center = 0.25 * (z[j, i] + z[j, i + 1] + z[j + 1, i + 1] + z[j + 1, i])
                pairs = _SADDLES[(code, bool(center >= level))]
            else:
                pairs = _SEGMENTS[code]
            for a, b in pairs:
                segments.append(
                    ContourSegment(
                        level=level,
                        p1=_edge_crossing(x, y, z, i, j, a, level),
                        p2=_edge_crossing(x, y, z, i, j, b, level),
                    )
                )
    return segments


def _edge_crossing(x: np.ndarray, y: np.ndarray, z: np.ndarray, i: int, j: int, edge: str, level: float) -> Point:
    # Shared edges are always interpolated from the same (lower-index first) endpoints.
    if edge == "b":
        return _interpolate(x[i], y[j], z[j, i], x[i + 1], y[j], z[j, i + 1], level)
    if edge == "t":
        return _interpolate(x[i], y[j + 1], z[j + 1, i], x[i + 1], y[j + 1], z[j + 1, i + 1], level)
    if edge == "l":
        return _interpolate(x[i], y[j], z[j, i], x[i], y[j + 1], z[j + 1, i], level)
    return _interpolate(x[i + 1], y[j], z[j, i + 1], x[i + 1], y[j + 1], z[j + 1, i + 1], level)


def _interpolate(xa: float, ya: float, va: float, xb: float, yb: float, vb: float, level: float) -> Point:
    t = 0.5 if vb == va else (level - va) / (vb - va)
    return (float(xa + t * (xb - xa)), float(ya + t * (yb - ya)))


def contour_extent(chart: ContourChart) -> Extent:
    _validate_grid(chart.x, chart.y, chart.z)
    return Extent(
        xmin=float(chart.x[0]),
        xmax=float(chart.x[-1]),
        ymin=float(chart.y[0]),
        ymax=float(chart.y[-1]),
        pad_x=False,
        pad_y=False,
    )


def render_contour(chart: ContourChart, frame: PlotFrame, color: Color | None) -> list[Primitive]:
    levels = chart.levels if chart.levels is not None else frame.theme.contour_levels
    segments = compute_contour_segments(chart.x, chart.y, chart.z, levels)
    palette = _level_colors(chart.z, contour_levels(chart.z, levels))
    width = chart.style.line_width or frame.theme.line_width
    out: list[Primitive] = []
    for seg in segments:
        stroke = color if color is not None else palette[seg.level]
        p1 = (frame.x_scale.map(seg.p1[0]), frame.y_scale.map(seg.p1[1]))
        p2 = (frame.x_scale.map(seg.p2[0]), frame.y_scale.map(seg.p2[1]))
        out.append(Line(p1=p1, p2=p2, style=Style(stroke=stroke, stroke_width=width)))
    return out


def heatmap_extent(chart: HeatmapChart) -> Extent:
    _validate_heatmap(chart.z)
    rows, cols = chart.z.shape
    return Extent(xmin=0.0, xmax=float(cols), ymin=0.0, ymax=float(rows), pad_x=False, pad_y=False)


def render_heatmap(chart: HeatmapChart, frame: PlotFrame) -> list[Primitive]:
    """One rect per cell; row 0 is drawn at the top."""
    _validate_heatmap(chart.z)
    rows, cols = chart.z.shape
    zmin, zmax = float(np.min(chart.z)), float(np.max(chart.z))
    if zmax == zmin:
        norm = np.full(chart.z.shape, 0.5)
    else:
        norm = (chart.z - zmin) / (zmax - zmin)
    rgb = colormap(norm.ravel()).reshape(rows, cols, 3)
    x_edges = frame.x_scale.map_array(np.arange(cols + 1, dtype=np.float64))
    y_edges = frame.y_scale.map_array(np.arange(rows + 1, dtype=np.float64))
    out: list[Primitive] = []
    for r in range(rows):
        top = float(y_edges[rows - r])
        bottom = float(y_edges[rows - r - 1])
        for c in range(cols):
            red, green, blue = (int(v) for v in rgb[r, c])
            fill = Color(red, green, blue, chart.style.alpha)
            left, right = float(x_edges[c]), float(x_edges[c + 1])
            out.append(
                Rect(
                    origin=(min(left, right), min(top, bottom)),
                    size=(abs(right - left), abs(bottom - top)),
                    style=Style(fill=fill),
                )
            )
    return out


def _level_colors(z: np.ndarray, levels: np.ndarray) -> dict[float, Color]:
    zmin, zmax = float(np.min(z)), float(np.max(z))
    span = zmax - zmin
    out: dict[float, Color] = {}
    for level in levels.tolist():
        t = 0.5 if span == 0 else (level - zmin) / span
        red, green, blue = (int(v) for v in colormap(t)[0])
        out[level] = Color(red, green, blue)
    return out


def _validate_grid(x: np.ndarray, y: np.ndarray, z: np.ndarray) -> None:
    if z.ndim != 2:
        raise DataShapeError(f"z must be 2-D, got {z.ndim}-D")
    if z.shape != (y.size, x.size):
        raise DataShapeError(f"z shape {z.shape} does not match (len(y), len(x)) = ({y.size}, {x.size})")
    if x.size < 2 or y.size < 2:
        raise DataShapeError("contour grid needs at least 2 points along each axis")
    require_finite(x, label="x")
    require_finite(y, label="y")
    require_finite(z, label="z")
    if np.any(np.diff(x) <= 0) or np.any(np.diff(y) <= 0):
        raise DomainError("contour coordinates must be strictly increasing")


def _validate_heatmap(z: np.ndarray) -> None:
    if z.ndim != 2:
        raise DataShapeError(f"heatmap data must be 2-D, got {z.ndim}-D")
    require_non_empty(z, label="heatmap data")
    require_finite(z, label="heatmap data")
