from .base import Extent, PlotFrame
from .decorations import LegendEntry
from .dispatch import BarGroup, ChartRender, chart_extent, render_chart

__all__ = [
    "BarGroup",
    "ChartRender",
    "Extent",
    "LegendEntry",
    "PlotFrame",
    "chart_extent",
    "render_chart",
]
