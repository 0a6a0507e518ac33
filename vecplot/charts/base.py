from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from vecplot.colors import Color, cycle_color
from vecplot.config import PlotTheme
from vecplot.errors import DataShapeError, DomainError
from vecplot.scales import LinearScale
from vecplot.series import SeriesStyle


@dataclass(frozen=True)
class Extent:
    """Data bounds a chart needs visible; padded axes get the domain pad ratio."""

    xmin: float
    xmax: float
    ymin: float
    ymax: float
    pad_x: bool = True
    pad_y: bool = True


@dataclass(frozen=True)
class PlotFrame:
    x_scale: LinearScale
    y_scale: LinearScale
    theme: PlotTheme

    @property
    def left(self) -> float:
        return min(self.x_scale.range.lo, self.x_scale.range.hi)

    @property
    def right(self) -> float:
        return max(self.x_scale.range.lo, self.x_scale.range.hi)

    @property
    def top(self) -> float:
        return min(self.y_scale.range.lo, self.y_scale.range.hi)

    @property
    def bottom(self) -> float:
        return max(self.y_scale.range.lo, self.y_scale.range.hi)

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top


def series_color(style: SeriesStyle, color_index: int) -> tuple[Color, int]:
    """Resolve a series color; cycle colors advance the per-subplot counter."""
    if style.color is not None:
        return style.color.with_alpha(style.color.a * style.alpha), color_index
    return cycle_color(color_index).with_alpha(style.alpha), color_index + 1


def require_same_length(x: np.ndarray, y: np.ndarray, *, names: tuple[str, str] = ("x", "y")) -> None:
    if x.shape != y.shape:
        raise DataShapeError(f"{names[0]} and {names[1]} length mismatch: {x.size} != {y.size}")


def require_finite(values: np.ndarray, *, label: str) -> None:
    if not np.all(np.isfinite(values)):
        bad = int(np.count_nonzero(~np.isfinite(values)))
        raise DomainError(f"{label} contains {bad} non-finite value(s)")


def require_non_empty(values: np.ndarray, *, label: str) -> None:
    if values.size == 0:
        raise DataShapeError(f"{label} must not be empty")
