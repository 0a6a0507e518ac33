from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from vecplot.canvas.primitives import Line, Primitive, Rect, Style, Text
from vecplot.canvas.text import text_size
from vecplot.charts.base import PlotFrame
from vecplot.colors import WHITE, Color
from vecplot.config import PlotTheme
from vecplot.markers import Marker, marker_primitives
from vecplot.scales import Tick


TICK_LENGTH_PX = 5.0
TICK_LABEL_GAP_PX = 8.0

LegendKind = Literal["line", "marker", "patch"]


@dataclass(frozen=True)
class LegendEntry:
    label: str
    kind: LegendKind
    color: Color
    marker: Marker = Marker.NONE


@dataclass(frozen=True)
class LegendLayout:
    entries: tuple[LegendEntry, ...]
    font_px: float
    swatch_w: float
    swatch_h: float
    item_gap: float
    pad: float
    item_h: float
    box_w: float
    box_h: float


def render_grid(frame: PlotFrame, x_ticks: list[Tick], y_ticks: list[Tick]) -> list[Primitive]:
    style = Style(stroke=frame.theme.color("grid_color"), stroke_width=1.0)
    out: list[Primitive] = []
    for tick in x_ticks:
        px = frame.x_scale.map(tick.value)
        out.append(Line(p1=(px, frame.top), p2=(px, frame.bottom), style=style))
    for tick in y_ticks:
        py = frame.y_scale.map(tick.value)
        out.append(Line(p1=(frame.left, py), p2=(frame.right, py), style=style))
    return out


def render_axes(
    frame: PlotFrame,
    x_ticks: list[Tick],
    y_ticks: list[Tick],
    *,
    show_x: bool = True,
    show_y: bool = True,
) -> list[Primitive]:
    theme = frame.theme
    axis = Style(stroke=theme.color("axis_color"), stroke_width=1.0)
    x_label_style = Style(fill=theme.color("text_color"), font_size=theme.font_size_px, anchor="middle", baseline="hanging")
    y_label_style = Style(fill=theme.color("text_color"), font_size=theme.font_size_px, anchor="end", baseline="middle")
    out: list[Primitive] = []
    if show_x:
        out.append(Line(p1=(frame.left, frame.bottom), p2=(frame.right, frame.bottom), style=axis))
        for tick in x_ticks:
            px = frame.x_scale.map(tick.value)
            out.append(Line(p1=(px, frame.bottom), p2=(px, frame.bottom + TICK_LENGTH_PX), style=axis))
            out.append(Text(position=(px, frame.bottom + TICK_LABEL_GAP_PX), content=tick.label, style=x_label_style))
    if show_y:
        out.append(Line(p1=(frame.left, frame.top), p2=(frame.left, frame.bottom), style=axis))
        for tick in y_ticks:
            py = frame.y_scale.map(tick.value)
            out.append(Line(p1=(frame.left - TICK_LENGTH_PX, py), p2=(frame.left, py), style=axis))
            out.append(Text(position=(frame.left - TICK_LABEL_GAP_PX, py), content=tick.label, style=y_label_style))
    return out


def render_labels(
    region_w: float,
    region_h: float,
    frame: PlotFrame,
    *,
    title: str = "",
    x_label: str = "",
    y_label: str = "",
) -> list[Primitive]:
    theme = frame.theme
    color = theme.color("text_color")
    out: list[Primitive] = []
    cx = frame.left + frame.width / 2.0
    if title:
        style = Style(fill=color, font_size=theme.title_font_size, font_weight="bold", anchor="middle", baseline="middle")
        out.append(Text(position=(cx, frame.top / 2.0), content=title, style=style))
    if x_label:
        style = Style(fill=color, font_size=theme.font_size_px, anchor="middle")
        out.append(Text(position=(cx, region_h - 6.0), content=x_label, style=style))
    if y_label:
        style = Style(fill=color, font_size=theme.font_size_px, anchor="middle", baseline="hanging")
        cy = frame.top + frame.height / 2.0
        out.append(Text(position=(4.0, cy), content=y_label, style=style, rotate=-90.0))
    return out


def build_legend_layout(entries: list[LegendEntry], theme: PlotTheme) -> LegendLayout | None:
    if not entries:
        return None
    font_px = max(10.0, theme.font_size_px * 0.9)
    swatch_w = max(10.0, font_px * 1.6)
    swatch_h = max(6.0, font_px * 0.9)
    item_gap = max(3.0, font_px * 0.5)
    pad = max(5.0, font_px * 0.55)
    text_w = max(
        (text_size(entry.label, font_size_px=font_px)[0] for entry in entries),
        default=0,
    )
    item_h = max(swatch_h, float(round(font_px)))
    return LegendLayout(
        entries=tuple(entries),
        font_px=font_px,
        swatch_w=swatch_w,
        swatch_h=swatch_h,
        item_gap=item_gap,
        pad=pad,
        item_h=item_h,
        box_w=pad * 2 + swatch_w + 6 + text_w,
        box_h=pad * 2 + len(entries) * item_h + (len(entries) - 1) * item_gap,
    )


def render_legend(entries: list[LegendEntry], frame: PlotFrame) -> list[Primitive]:
    """Boxed legend in the top-right corner of the plot area."""
    layout = build_legend_layout(entries, frame.theme)
    if layout is None:
        return []
    x = max(frame.left + 4.0, frame.right - layout.box_w - 6.0)
    y = frame.top + 6.0
    text_color = frame.theme.color("text_color")
    out: list[Primitive] = [
        Rect(
            origin=(x, y),
            size=(layout.box_w, layout.box_h),
            style=Style(fill=WHITE.with_alpha(0.85), stroke=frame.theme.color("axis_color"), stroke_width=0.5),
        )
    ]
    for i, entry in enumerate(layout.entries):
        top = y + layout.pad + i * (layout.item_h + layout.item_gap)
        mid = top + layout.item_h / 2.0
        sx0 = x + layout.pad
        sx1 = sx0 + layout.swatch_w
        if entry.kind == "patch":
            out.append(Rect(origin=(sx0, mid - layout.swatch_h / 2.0), size=(layout.swatch_w, layout.swatch_h), style=Style(fill=entry.color)))
        else:
            if entry.kind == "line":
                out.append(Line(p1=(sx0, mid), p2=(sx1, mid), style=Style(stroke=entry.color, stroke_width=2.0)))
            if entry.marker.visible:
                out.extend(marker_primitives(entry.marker, (sx0 + sx1) / 2.0, mid, layout.swatch_h, entry.color))
        label_style = Style(fill=text_color, font_size=layout.font_px, baseline="middle")
        out.append(Text(position=(sx1 + 6.0, mid), content=entry.label, style=label_style))
    return out


def render_placeholder(region_w: float, region_h: float, message: str, theme: PlotTheme) -> list[Primitive]:
    """Stand-in content for a subplot whose render step failed."""
    border = Style(stroke=theme.color("axis_color"), stroke_width=1.0, dash=(4.0, 4.0))
    text = Style(fill=Color(214, 39, 40), font_size=theme.font_size_px, anchor="middle", baseline="middle")
    return [
        Rect(origin=(1.0, 1.0), size=(max(1.0, region_w - 2.0), max(1.0, region_h - 2.0)), style=border),
        Text(position=(region_w / 2.0, region_h / 2.0), content=f"render failed: {message}", style=text),
    ]
