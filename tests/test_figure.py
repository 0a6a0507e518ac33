from __future__ import annotations

import tempfile
import unittest
import xml.etree.ElementTree as ET
from pathlib import Path

import numpy as np

import vecplot
from vecplot.canvas.primitives import Line, Rect, Style, Text
from vecplot.errors import DataShapeError, GraphParseError, PlotDataError
from vecplot.graph import LayoutAlgorithm

SVG = "{http://www.w3.org/2000/svg}"


def _texts(primitives) -> list[str]:
    return [p.content for p in primitives if isinstance(p, Text)]


class FigureApiTests(unittest.TestCase):
    def test_default_dimensions(self) -> None:
        fig = vecplot.figure()
        self.assertEqual((fig.width, fig.height), (1200, 900))

    def test_dimension_from_aspect_ratio(self) -> None:
        fig = vecplot.figure(800)
        self.assertEqual((fig.width, fig.height), (800, 600))
        fig = vecplot.figure(height=300)
        self.assertEqual((fig.width, fig.height), (400, 300))
        fig = vecplot.figure(height=100, aspect_ratio=2.0)
        self.assertEqual((fig.width, fig.height), (200, 100))

    def test_invalid_dimensions(self) -> None:
        with self.assertRaises(ValueError):
            vecplot.figure(aspect_ratio=0.0)
        with self.assertRaises(ValueError):
            vecplot.figure(0, 100)

    def test_theme_overrides_from_mapping(self) -> None:
        fig = vecplot.figure(theme={"font_size_px": 14, "background": "#101010"})
        self.assertEqual(fig.theme.font_size_px, 14.0)
        self.assertEqual(fig.theme.background, "#101010")
        with self.assertRaises(ValueError):
            vecplot.figure(theme={"no_such_option": 1})

    def test_empty_figure_cannot_render(self) -> None:
        with self.assertRaises(PlotDataError):
            vecplot.figure().render()


class AxesBuilderTests(unittest.TestCase):
    def test_builders_chain(self) -> None:
        ax = vecplot.figure().add_subplot()
        same = ax.plot([1, 2, 3]).scatter([3, 2, 1]).set_title("t").set_xlabel("x").grid(False).legend()
        self.assertIs(same, ax)
        self.assertEqual(len(ax.charts), 2)
        self.assertEqual(ax.family, "cartesian")
        self.assertFalse(ax.show_grid)
        self.assertTrue(ax.show_legend)

    def test_chart_families_do_not_mix(self) -> None:
        ax = vecplot.figure().add_subplot().plot([1, 2])
        with self.assertRaises(ValueError):
            ax.pie([1, 2])
        pie = vecplot.figure().add_subplot().pie([1, 2])
        with self.assertRaises(ValueError):
            pie.bar([1, 2])
        with self.assertRaises(ValueError):
            pie.pie([3, 4])

    def test_graph_subplot_holds_only_its_graph(self) -> None:
        ax = vecplot.figure().add_graph_subplot("digraph { a -> b }")
        self.assertEqual(ax.family, "graph")
        with self.assertRaises(ValueError):
            ax.plot([1, 2])

    def test_scatter_requires_visible_marker(self) -> None:
        with self.assertRaises(ValueError):
            vecplot.figure().add_subplot().scatter([1, 2], marker=None)

    def test_invalid_limits(self) -> None:
        ax = vecplot.figure().add_subplot()
        with self.assertRaises(ValueError):
            ax.set_xlim(1.0, 1.0)
        with self.assertRaises(ValueError):
            ax.set_ylim(0.0, float("nan"))

    def test_builder_argument_checks(self) -> None:
        ax = vecplot.figure().add_subplot()
        with self.assertRaises(ValueError):
            ax.violin([[1.0, 2.0]], points=1)
        with self.assertRaises(ValueError):
            ax.contour(np.zeros((2, 2)), levels=0)
        with self.assertRaises(ValueError):
            ax.contour(np.zeros((2, 2)), levels=np.int64(0))
        with self.assertRaises(DataShapeError):
            ax.heatmap([1.0, 2.0])

    def test_contour_accepts_numpy_integer_levels(self) -> None:
        ax = vecplot.figure().add_subplot().contour(np.arange(16.0).reshape(4, 4), levels=np.int64(3))
        levels = ax.charts[0].levels
        self.assertEqual(levels, 3)
        self.assertIs(type(levels), int)
        self.assertTrue(any(isinstance(p, Line) for p in ax.render(400.0, 300.0)))

    def test_malformed_dot_adds_no_subplot(self) -> None:
        fig = vecplot.figure()
        with self.assertRaises(GraphParseError):
            fig.add_graph_subplot("digraph { a -> }")
        self.assertEqual(fig.axes, ())

    def test_graph_layout_defaults(self) -> None:
        fig = vecplot.figure()
        plain = fig.add_graph_subplot("digraph { a -> b }")
        circo = fig.add_graph_subplot("digraph { layout=circo; a -> b }")
        forced = fig.add_graph_subplot("digraph { layout=circo; a -> b }", "grid")
        self.assertIs(plain.charts[0].layout, LayoutAlgorithm.HIERARCHICAL)
        self.assertIs(circo.charts[0].layout, LayoutAlgorithm.CIRCULAR)
        self.assertIs(forced.charts[0].layout, LayoutAlgorithm.GRID)


class AxesRenderTests(unittest.TestCase):
    def test_category_bars_label_the_x_axis(self) -> None:
        ax = vecplot.figure().add_subplot().bar([3, 5, 2], x=["a", "b", "c"])
        prims = ax.render(400.0, 300.0)
        texts = _texts(prims)
        for category in ("a", "b", "c"):
            self.assertIn(category, texts)
        self.assertEqual(len([p for p in prims if isinstance(p, Rect)]), 3)

    def test_bar_series_share_the_category_union(self) -> None:
        ax = vecplot.figure().add_subplot().bar([1, 2], x=["a", "b"]).bar([5, 6], x=["b", "c"])
        prims = ax.render(600.0, 300.0)
        tick_x = {p.content: p.position[0] for p in prims if isinstance(p, Text) and p.content in ("a", "b", "c")}
        self.assertEqual(sorted(tick_x, key=tick_x.get), ["a", "b", "c"])
        centers = [r.origin[0] + r.size[0] / 2.0 for r in prims if isinstance(r, Rect)]
        self.assertEqual(len(centers), 4)
        nearest = [min(tick_x, key=lambda k: abs(tick_x[k] - c)) for c in centers]
        self.assertEqual(nearest, ["a", "b", "b", "c"])
        self.assertLess(centers[1], tick_x["b"])
        self.assertGreater(centers[2], tick_x["b"])

    def test_box_series_share_the_category_union(self) -> None:
        ax = vecplot.figure().add_subplot()
        ax.boxplot([[1, 2, 3], [4, 5, 6]], labels=["x", "y"]).boxplot([[2, 3, 4], [5, 6, 7]], labels=["y", "z"])
        self.assertEqual(ax.charts[0].positions, (1.0, 2.0))
        self.assertEqual(ax.charts[1].positions, (2.0, 3.0))
        texts = _texts(ax.render(600.0, 300.0))
        self.assertEqual([texts.count(label) for label in ("x", "y", "z")], [1, 1, 1])

    def test_legend_only_when_enabled(self) -> None:
        ax = vecplot.figure().add_subplot().plot([1, 2, 3], label="series-a")
        self.assertNotIn("series-a", _texts(ax.render(400.0, 300.0)))
        ax.legend()
        self.assertIn("series-a", _texts(ax.render(400.0, 300.0)))

    def test_explicit_limits_drive_ticks(self) -> None:
        ax = vecplot.figure().add_subplot().plot([1, 2, 3]).set_xlim(0, 10)
        texts = _texts(ax.render(400.0, 300.0))
        self.assertIn("0", texts)
        self.assertIn("10", texts)

    def test_hidden_axes_and_grid_draw_fewer_lines(self) -> None:
        ax = vecplot.figure().add_subplot().plot([1, 2, 3])
        full = len([p for p in ax.render(400.0, 300.0) if isinstance(p, Line)])
        ax.grid(False).set_show_x_axis(False).set_show_y_axis(False)
        bare = len([p for p in ax.render(400.0, 300.0) if isinstance(p, Line)])
        self.assertLess(bare, full)

    def test_extra_primitives_are_drawn(self) -> None:
        marker = Text(position=(5.0, 5.0), content="note", style=Style())
        ax = vecplot.figure().add_subplot().plot([1, 2]).add_primitive(marker)
        self.assertIn(marker, ax.render(400.0, 300.0))

    def test_graph_title_falls_back_to_graph_label(self) -> None:
        ax = vecplot.figure().add_graph_subplot('digraph { label="flow"; a -> b }')
        self.assertIn("flow", _texts(ax.render(400.0, 300.0)))

    def test_force_layout_non_convergence_becomes_a_warning(self) -> None:
        fig = vecplot.figure(theme={"force_iterations": 1, "force_tolerance": 0.0})
        ax = fig.add_graph_subplot("graph { a -- b -- c -- a }", "force_directed")
        with self.assertLogs("vecplot.graph.layout", level="WARNING"):
            result = fig.render()
        self.assertTrue(result.ok)
        self.assertEqual(len(ax.warnings), 1)
        self.assertIn("did not converge", ax.warnings[0])


class FigureRenderTests(unittest.TestCase):
    def test_regions_form_a_near_square_grid(self) -> None:
        fig = vecplot.figure(1200, 900)
        for _ in range(5):
            fig.add_subplot()
        regions = fig.subplot_regions()
        self.assertEqual(len(regions), 5)
        cell_w = (1200 - 2 * 16) / 3
        self.assertAlmostEqual(regions[1].x, cell_w + 16)
        self.assertEqual(regions[1].y, 0.0)
        self.assertEqual(regions[3].x, 0.0)
        self.assertAlmostEqual(regions[3].y, (900 - 16) / 2 + 16)
        self.assertAlmostEqual(regions[0].width, cell_w)

    def test_failed_subplot_is_isolated(self) -> None:
        fig = vecplot.figure(800, 400)
        good = fig.add_subplot(title="good").plot([1, 2, 3])
        bad = fig.add_subplot(title="bad").plot([1, 2, 3], x=[1, 2])
        with self.assertLogs("vecplot.figure", level="WARNING"):
            result = fig.render()

        self.assertFalse(result.ok)
        self.assertEqual([f.index for f in result.failures], [1])
        self.assertIsInstance(bad.error, DataShapeError)
        self.assertIsNone(good.error)
        self.assertIn(result.failures[0].message, bad.warnings)

        root = ET.fromstring(result.document)
        groups = root.findall(f"{SVG}g")
        self.assertEqual([g.get("id") for g in groups], ["subplot-0", "subplot-1"])
        failed_text = [t.text for t in groups[1].iter(f"{SVG}text")]
        self.assertEqual(len(failed_text), 1)
        self.assertTrue(failed_text[0].startswith("render failed:"))
        self.assertIn("good", [t.text for t in groups[0].iter(f"{SVG}text")])

    def test_render_is_deterministic(self) -> None:
        def build() -> str:
            fig = vecplot.figure(600, 400)
            fig.add_subplot().plot([1, 4, 2], label="a").bar([1, 2, 3]).legend()
            fig.add_subplot().pie([1, 2, 3], labels=["x", "y", "z"])
            fig.add_graph_subplot("digraph { a -> b -> c; c -> a }", "force_directed")
            return fig.to_svg()

        self.assertEqual(build(), build())

    def test_save_writes_document(self) -> None:
        fig = vecplot.figure(300, 200)
        fig.add_subplot().histogram([1, 2, 2, 3, 3, 3], bins=3)
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "out.svg"
            result = fig.save(path)
            self.assertTrue(result.ok)
            self.assertEqual(path.read_text(encoding="utf-8"), result.document)


if __name__ == "__main__":
    unittest.main()
