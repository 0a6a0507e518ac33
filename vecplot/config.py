from __future__ import annotations

from dataclasses import asdict, dataclass, fields
import re
from typing import Any, Mapping

from vecplot.colors import Color, parse_color

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")

_COLOR_KEYS = ("background", "text_color", "axis_color", "grid_color")
_POSITIVE_INT_KEYS = ("tick_target", "histogram_bins", "contour_levels", "violin_points", "force_iterations")
_FRACTION_KEYS = ("pad_ratio", "bar_gap_fraction", "force_damping")


@dataclass(frozen=True)
class PlotTheme:
    """Figure-wide styling and algorithm defaults."""

    font_family: str = "DejaVu Sans"
    font_size_px: float = 12.0
    background: str = "#ffffff"
    text_color: str = "#000000"
    axis_color: str = "#4d4d4d"
    grid_color: str = "#e6e6e6"
    gutter_left: float = 64.0
    gutter_right: float = 24.0
    gutter_top: float = 40.0
    gutter_bottom: float = 48.0
    subplot_gap: float = 16.0
    tick_target: int = 6
    pad_ratio: float = 0.05
    line_width: float = 1.5
    marker_size: float = 6.0
    bar_gap_fraction: float = 0.2
    histogram_bins: int = 10
    contour_levels: int = 7
    violin_points: int = 100
    force_iterations: int = 300
    force_tolerance: float = 1e-4
    force_repulsion: float = 0.01
    force_spring: float = 0.1
    force_damping: float = 0.85

    def color(self, key: str) -> Color:
        if key not in _COLOR_KEYS:
            raise ValueError(f"unknown theme color: {key}")
        return parse_color(getattr(self, key))

    @property
    def title_font_size(self) -> float:
        return self.font_size_px + 4.0


DEFAULT_THEME = PlotTheme()


def validate_theme_overrides(overrides: Mapping[str, Any] | None = None, *, base: PlotTheme = DEFAULT_THEME) -> PlotTheme:
    raw: dict[str, Any] = asdict(base)
    if overrides:
        for key, value in overrides.items():
            if key not in raw:
                raise ValueError(f"unknown theme option: {key}")
            raw[key] = value

    for key in _COLOR_KEYS:
        if not isinstance(raw[key], str) or not _HEX_COLOR.match(raw[key]):
            raise ValueError(f"theme option `{key}` must be a hex color (#RRGGBB)")

    if not isinstance(raw["font_family"], str) or not raw["font_family"].strip():
        raise ValueError("theme option `font_family` must be a non-empty string")

    for key in _POSITIVE_INT_KEYS:
        if isinstance(raw[key], bool) or not isinstance(raw[key], int) or raw[key] <= 0:
            raise ValueError(f"theme option `{key}` must be a positive integer")

    for key in _FRACTION_KEYS:
        if not isinstance(raw[key], (int, float)) or not 0.0 <= float(raw[key]) < 1.0:
            raise ValueError(f"theme option `{key}` must be in [0, 1)")
        raw[key] = float(raw[key])

    numeric = {f.name for f in fields(PlotTheme) if f.type == "float"}
    for key in sorted(numeric - set(_FRACTION_KEYS)):
        if not isinstance(raw[key], (int, float)) or float(raw[key]) < 0:
            raise ValueError(f"theme option `{key}` must be a non-negative number")
        raw[key] = float(raw[key])
    if raw["font_size_px"] <= 0:
        raise ValueError("theme option `font_size_px` must be a positive number")

    return PlotTheme(**raw)


def resolve_theme(theme: PlotTheme | Mapping[str, Any] | None) -> PlotTheme:
    if theme is None:
        return DEFAULT_THEME
    if isinstance(theme, PlotTheme):
        return theme
    return validate_theme_overrides(theme)
