from __future__ import annotations


class PlotDataError(ValueError):
    """Raised when plot input data cannot be turned into a chart."""


class DataShapeError(PlotDataError):
    pass


class DomainError(PlotDataError):
    pass


class LayoutError(PlotDataError):
    pass


class GraphParseError(PlotDataError):
    def __init__(self, message: str, *, line: int | None = None) -> None:
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line
