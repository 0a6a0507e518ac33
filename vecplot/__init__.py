from vecplot.api import figure
from vecplot.config import DEFAULT_THEME, PlotTheme, validate_theme_overrides
from vecplot.errors import DataShapeError, DomainError, GraphParseError, LayoutError, PlotDataError
from vecplot.figure import Axes, Figure, FigureRender, SubplotFailure
from vecplot.graph import Graph, LayoutAlgorithm, compute_layout, parse_dot

__all__ = [
    "Axes",
    "DEFAULT_THEME",
    "DataShapeError",
    "DomainError",
    "Figure",
    "FigureRender",
    "Graph",
    "GraphParseError",
    "LayoutAlgorithm",
    "LayoutError",
    "PlotDataError",
    "PlotTheme",
    "SubplotFailure",
    "compute_layout",
    "figure",
    "parse_dot",
    "validate_theme_overrides",
]
