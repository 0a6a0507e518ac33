from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

import numpy as np

from vecplot.api import figure
from vecplot.errors import GraphParseError, LayoutError
from vecplot.figure import Figure, FigureRender
from vecplot.graph.layout import LayoutAlgorithm


LOGGER = logging.getLogger(__name__)

_DEMO_DOT = """
digraph pipeline {
    label="pipeline";
    node [shape=box];
    load -> clean -> train -> evaluate;
    clean -> features -> train;
    evaluate -> report [style=dashed, label="ok"];
    subgraph cluster_model {
        label="model"; style=filled; fillcolor=lightgray;
        train; evaluate;
    }
}
"""


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper()), format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.command == "render-dot":
            result = _render_dot(args)
        elif args.command == "demo":
            result = _write(build_demo_figure(), args.output)
        else:
            raise RuntimeError(f"unsupported command: {args.command}")
    except (GraphParseError, LayoutError) as exc:
        print(f"vecplot: error: {exc}", file=sys.stderr)
        return 2

    for failure in result.failures:
        print(f"vecplot: warning: subplot {failure.index}: {failure.message}", file=sys.stderr)
    return 0


def build_demo_figure() -> Figure:
    """One subplot per chart kind, plus a DOT graph."""
    rng = np.random.default_rng(7)
    fig = figure(1600, 1200)
    x = np.linspace(0.0, 2.0 * np.pi, 40)
    fig.add_subplot(title="line", x_label="t", y_label="value").plot(
        np.sin(x), x=x, label="sin", marker="o"
    ).plot(np.cos(x), x=x, label="cos").legend()
    fig.add_subplot(title="scatter").scatter(rng.normal(size=60), x=rng.normal(size=60), marker="^")
    fig.add_subplot(title="bar").bar([3, 5, 2], x=["a", "b", "c"], label="q1").bar(
        [4, 1, 3], x=["a", "b", "c"], label="q2"
    ).legend()
    fig.add_subplot(title="histogram").histogram(rng.normal(size=500), bins=20)
    fig.add_subplot(title="pie").pie([35, 25, 20, 20], labels=["w", "x", "y", "z"])
    fig.add_subplot(title="box").boxplot(
        [rng.normal(0, 1, 100), rng.normal(1, 2, 100)], labels=["ctrl", "test"]
    )
    fig.add_subplot(title="violin").violin([rng.normal(0, 1, 200), rng.normal(2, 0.5, 200)])
    gx, gy = np.meshgrid(np.linspace(-2, 2, 30), np.linspace(-2, 2, 30))
    fig.add_subplot(title="contour").contour(
        np.exp(-(gx**2 + gy**2)), x=np.linspace(-2, 2, 30), y=np.linspace(-2, 2, 30)
    )
    fig.add_subplot(title="heatmap").heatmap(rng.random((6, 8)))
    fig.add_graph_subplot(_DEMO_DOT, "hierarchical")
    return fig


def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--log-level", choices=["debug", "info", "warning", "error"], default="warning")

    parser = argparse.ArgumentParser(prog="vecplot", description="Render charts and DOT graphs to SVG.")
    sub = parser.add_subparsers(dest="command", required=True)

    dot = sub.add_parser("render-dot", parents=[common], help="Render a DOT graph file as an SVG document.")
    dot.add_argument("input", help="DOT source file, or '-' for stdin.")
    dot.add_argument("-o", "--output", type=Path, default=None, help="Output path. Default: stdout.")
    dot.add_argument(
        "--layout",
        choices=[a.value for a in LayoutAlgorithm],
        default=None,
        help="Layout algorithm. Default: the graph's layout attribute, else hierarchical.",
    )
    dot.add_argument("--width", type=int, default=None)
    dot.add_argument("--height", type=int, default=None)
    dot.add_argument("--title", default="")

    demo = sub.add_parser("demo", parents=[common], help="Write a figure exercising every chart kind.")
    demo.add_argument("-o", "--output", type=Path, default=None, help="Output path. Default: stdout.")
    return parser


def _render_dot(args: argparse.Namespace) -> FigureRender:
    if args.input == "-":
        source = sys.stdin.read()
    else:
        source = Path(args.input).read_text(encoding="utf-8")
    fig = figure(args.width, args.height)
    fig.add_graph_subplot(source, args.layout, title=args.title)
    return _write(fig, args.output)


def _write(fig: Figure, output: Path | None) -> FigureRender:
    if output is None:
        result = fig.render()
        sys.stdout.write(result.document)
        sys.stdout.write("\n")
        return result
    result = fig.save(output)
    LOGGER.info("wrote %s (%d bytes)", output, len(result.document))
    return result


if __name__ == "__main__":
    sys.exit(main())
