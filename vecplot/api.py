from __future__ import annotations

from typing import Any, Mapping

from vecplot.config import PlotTheme, resolve_theme
from vecplot.figure import Figure


DEFAULT_WIDTH = 1200
DEFAULT_HEIGHT = 900
DEFAULT_ASPECT_RATIO = DEFAULT_WIDTH / DEFAULT_HEIGHT


def figure(
    width: int | None = None,
    height: int | None = None,
    *,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
    theme: PlotTheme | Mapping[str, Any] | None = None,
) -> Figure:
    if aspect_ratio <= 0:
        raise ValueError("aspect_ratio must be > 0")
    if width is None and height is None:
        width, height = DEFAULT_WIDTH, DEFAULT_HEIGHT
    elif width is None and height is not None:
        if height <= 0:
            raise ValueError("height must be > 0")
        width = max(1, int(round(height * aspect_ratio)))
    elif width is not None and height is None:
        if width <= 0:
            raise ValueError("width must be > 0")
        height = max(1, int(round(width / aspect_ratio)))
    assert width is not None and height is not None
    return Figure(width=width, height=height, theme=resolve_theme(theme))
