from __future__ import annotations

import math
import unittest

import numpy as np

from vecplot.canvas.primitives import Ellipse, Path, Rect, Text
from vecplot.charts.base import PlotFrame
from vecplot.config import DEFAULT_THEME
from vecplot.errors import GraphParseError, LayoutError
from vecplot.graph import (
    EdgeStyle,
    ForceParams,
    Graph,
    LayoutAlgorithm,
    NodeShape,
    Subgraph,
    compute_layout,
    render_graph,
)
from vecplot.graph.layout import BOX_HI, BOX_LO, CIRCLE_RADIUS, find_first_back_edge, longest_path_ranks
from vecplot.graph.render import NODE_RX, arrowhead, boundary_radius, edge_curve
from vecplot.scales import Domain, LinearScale, PixelRange


def _graph(edges: list[tuple[str, str]], nodes: list[str] | None = None, *, directed: bool = True) -> Graph:
    graph = Graph(directed=directed)
    for node_id in nodes or []:
        graph.add_node(node_id)
    for source, target in edges:
        graph.add_node(source)
        graph.add_node(target)
        graph.add_edge(source, target)
    return graph


def _frame(size: float = 400.0) -> PlotFrame:
    return PlotFrame(
        x_scale=LinearScale(Domain(0.0, 1.0), PixelRange(0.0, size)),
        y_scale=LinearScale(Domain(0.0, 1.0), PixelRange(0.0, size)),
        theme=DEFAULT_THEME,
    )


class GraphModelTests(unittest.TestCase):
    def test_redeclaring_a_node_merges_attributes_and_keeps_order(self) -> None:
        graph = Graph()
        graph.add_node("a")
        graph.add_node("b", shape=NodeShape.BOX)
        graph.add_node("a", label="Alpha")
        self.assertEqual(graph.node_ids, ["a", "b"])
        self.assertEqual(graph.node("a").display_label, "Alpha")
        self.assertEqual(graph.node("b").display_label, "b")
        self.assertIs(graph.node("b").shape, NodeShape.BOX)

    def test_edge_to_unknown_node_is_rejected(self) -> None:
        graph = Graph()
        graph.add_node("a")
        with self.assertRaises(GraphParseError):
            graph.add_edge("a", "missing")

    def test_subgraph_members_must_exist(self) -> None:
        graph = _graph([("a", "b")])
        with self.assertRaises(GraphParseError):
            graph.add_subgraph(Subgraph(id="cluster_x", nodes=["a", "zzz"]))


class LayoutTests(unittest.TestCase):
    def test_empty_graph_raises(self) -> None:
        with self.assertRaises(LayoutError):
            compute_layout(Graph(), LayoutAlgorithm.CIRCULAR)

    def test_unknown_algorithm_raises(self) -> None:
        with self.assertRaises(LayoutError):
            compute_layout(_graph([("a", "b")]), "spiral")

    def test_algorithm_names_and_engine_aliases(self) -> None:
        self.assertIs(LayoutAlgorithm.parse("force-directed"), LayoutAlgorithm.FORCE_DIRECTED)
        self.assertIs(LayoutAlgorithm.parse("neato"), LayoutAlgorithm.FORCE_DIRECTED)
        self.assertIs(LayoutAlgorithm.parse("DOT"), LayoutAlgorithm.HIERARCHICAL)
        self.assertIs(LayoutAlgorithm.parse("circo"), LayoutAlgorithm.CIRCULAR)
        self.assertIs(LayoutAlgorithm.parse(LayoutAlgorithm.GRID), LayoutAlgorithm.GRID)

    def test_every_algorithm_is_deterministic_and_in_the_unit_box(self) -> None:
        edges = [("a", "b"), ("b", "c"), ("c", "d"), ("d", "a"), ("a", "c"), ("e", "a")]
        for algo in LayoutAlgorithm:
            first = compute_layout(_graph(edges), algo)
            second = compute_layout(_graph(edges), algo)
            self.assertEqual(first.positions, second.positions, algo)
            self.assertEqual(list(first.positions), ["a", "b", "c", "d", "e"])
            arr = first.as_array()
            self.assertTrue(np.all(np.isfinite(arr)))
            self.assertTrue(np.all(arr >= BOX_LO - 1e-9), algo)
            self.assertTrue(np.all(arr <= BOX_HI + 1e-9), algo)

    def test_single_node_is_centered(self) -> None:
        for algo in LayoutAlgorithm:
            result = compute_layout(_graph([], nodes=["solo"]), algo)
            self.assertEqual(result.positions["solo"], (0.5, 0.5), algo)

    def test_circular_places_nodes_at_equal_radius(self) -> None:
        result = compute_layout(_graph([], nodes=["a", "b", "c", "d", "e"]), LayoutAlgorithm.CIRCULAR)
        for x, y in result.positions.values():
            self.assertAlmostEqual(math.hypot(x - 0.5, y - 0.5), CIRCLE_RADIUS, places=9)
        self.assertAlmostEqual(result.positions["a"][0], 0.9)
        self.assertAlmostEqual(result.positions["a"][1], 0.5)

    def test_grid_fills_rows_in_insertion_order(self) -> None:
        result = compute_layout(_graph([], nodes=["a", "b", "c", "d", "e"]), LayoutAlgorithm.GRID)
        self.assertEqual(result.positions["a"], (0.1, 0.1))
        self.assertAlmostEqual(result.positions["c"][0], 0.9)
        self.assertAlmostEqual(result.positions["c"][1], 0.1)
        self.assertAlmostEqual(result.positions["d"][0], 0.1)
        self.assertAlmostEqual(result.positions["d"][1], 0.9)

    def test_hierarchical_ranks_by_longest_path(self) -> None:
        graph = _graph([("a", "b"), ("b", "c"), ("a", "c"), ("x", "c")])
        result = compute_layout(graph, LayoutAlgorithm.HIERARCHICAL)
        self.assertEqual(result.ranks, {"a": 0, "b": 1, "c": 2, "x": 0})
        self.assertEqual(result.positions["a"][1], result.positions["x"][1])
        self.assertLess(result.positions["a"][1], result.positions["b"][1])
        self.assertLess(result.positions["b"][1], result.positions["c"][1])

    def test_hierarchical_breaks_cycles(self) -> None:
        graph = _graph([("a", "b"), ("b", "c"), ("c", "a")])
        result = compute_layout(graph, LayoutAlgorithm.HIERARCHICAL)
        self.assertEqual(result.ignored_edges, (2,))
        self.assertEqual(result.ranks, {"a": 0, "b": 1, "c": 2})
        points = set(result.positions.values())
        self.assertEqual(len(points), 3)

    def test_hierarchical_ignores_self_loops_for_ranking(self) -> None:
        graph = _graph([("a", "a"), ("a", "b")])
        result = compute_layout(graph, LayoutAlgorithm.HIERARCHICAL)
        self.assertEqual(result.ranks, {"a": 0, "b": 1})
        self.assertEqual(result.ignored_edges, (0,))

    def test_rankdir_left_to_right_swaps_axes(self) -> None:
        graph = _graph([("a", "b")])
        graph.rankdir = "LR"
        result = compute_layout(graph, LayoutAlgorithm.HIERARCHICAL)
        self.assertAlmostEqual(result.positions["a"][0], 0.1)
        self.assertAlmostEqual(result.positions["b"][0], 0.9)
        self.assertEqual(result.positions["a"][1], 0.5)
        self.assertEqual(result.positions["b"][1], 0.5)

    def test_rankdir_bottom_to_top_flips_ranks(self) -> None:
        graph = _graph([("a", "b")])
        graph.rankdir = "BT"
        result = compute_layout(graph, LayoutAlgorithm.HIERARCHICAL)
        self.assertAlmostEqual(result.positions["a"][1], 0.9)
        self.assertAlmostEqual(result.positions["b"][1], 0.1)

    def test_force_directed_separates_nodes(self) -> None:
        graph = _graph([("a", "b"), ("b", "c"), ("c", "a"), ("c", "d")])
        result = compute_layout(graph, LayoutAlgorithm.FORCE_DIRECTED)
        arr = result.as_array()
        for i in range(len(arr)):
            for j in range(i + 1, len(arr)):
                self.assertGreater(float(np.linalg.norm(arr[i] - arr[j])), 1e-3)
        self.assertGreater(result.iterations, 0)

    def test_force_directed_reports_non_convergence(self) -> None:
        graph = _graph([("a", "b"), ("b", "c"), ("c", "d"), ("d", "a")])
        params = ForceParams(iterations=1, tolerance=0.0)
        with self.assertLogs("vecplot.graph.layout", level="WARNING"):
            result = compute_layout(graph, LayoutAlgorithm.FORCE_DIRECTED, params=params)
        self.assertFalse(result.converged)
        self.assertEqual(result.iterations, 1)

    def test_force_params_validation(self) -> None:
        with self.assertRaises(ValueError):
            ForceParams(iterations=0)
        with self.assertRaises(ValueError):
            ForceParams(damping=1.0)

    def test_back_edge_search_follows_insertion_order(self) -> None:
        edges = [(0, 1), (1, 0), (1, 2), (2, 1)]
        self.assertEqual(find_first_back_edge(3, edges, [True] * 4), 1)
        self.assertIsNone(find_first_back_edge(3, edges, [True, False, True, False]))

    def test_longest_path_rejects_cycles(self) -> None:
        with self.assertRaises(LayoutError):
            longest_path_ranks(2, [(0, 1), (1, 0)])


class GraphRenderTests(unittest.TestCase):
    def test_directed_edge_gets_path_and_arrowhead(self) -> None:
        graph = _graph([("a", "b")])
        layout = compute_layout(graph, LayoutAlgorithm.HIERARCHICAL)
        prims = render_graph(graph, layout, _frame())

        paths = [p for p in prims if isinstance(p, Path)]
        self.assertEqual([p.closed for p in paths], [False, True])
        self.assertEqual(len([p for p in prims if isinstance(p, Ellipse)]), 2)
        self.assertEqual([t.content for t in prims if isinstance(t, Text)], ["a", "b"])

        tip = paths[1].points[0]
        tx, ty = layout.positions["b"]
        target = (tx * 400.0, ty * 400.0)
        angle = math.atan2(tip[1] - target[1], tip[0] - target[0])
        self.assertAlmostEqual(math.dist(tip, target), boundary_radius(NodeShape.ELLIPSE, angle), places=6)

    def test_undirected_edge_has_no_arrowhead(self) -> None:
        graph = _graph([("a", "b")], directed=False)
        prims = render_graph(graph, compute_layout(graph, LayoutAlgorithm.HIERARCHICAL), _frame())
        paths = [p for p in prims if isinstance(p, Path)]
        self.assertEqual(len(paths), 1)
        self.assertFalse(paths[0].closed)

    def test_edges_drawn_before_nodes(self) -> None:
        graph = _graph([("a", "b")])
        prims = render_graph(graph, compute_layout(graph, LayoutAlgorithm.CIRCULAR), _frame())
        first_node = next(i for i, p in enumerate(prims) if isinstance(p, Ellipse))
        last_path = max(i for i, p in enumerate(prims) if isinstance(p, Path))
        self.assertLess(last_path, first_node)

    def test_parallel_edges_bend_to_opposite_sides(self) -> None:
        graph = _graph([("a", "b"), ("b", "a")], directed=False)
        prims = render_graph(graph, compute_layout(graph, LayoutAlgorithm.HIERARCHICAL), _frame())
        paths = [p for p in prims if isinstance(p, Path)]
        self.assertEqual(len(paths), 2)
        mid_x = [p.points[len(p.points) // 2][0] for p in paths]
        self.assertGreater(max(mid_x), 200.0)
        self.assertLess(min(mid_x), 200.0)

    def test_dashed_edge_and_box_node(self) -> None:
        graph = Graph()
        graph.add_node("a", shape=NodeShape.BOX)
        graph.add_node("b")
        graph.add_edge("a", "b", style=EdgeStyle.DASHED, label="go")
        prims = render_graph(graph, compute_layout(graph, LayoutAlgorithm.HIERARCHICAL), _frame())
        line = next(p for p in prims if isinstance(p, Path) and not p.closed)
        self.assertEqual(line.style.dash, (5.0, 5.0))
        self.assertEqual(len([p for p in prims if isinstance(p, Rect)]), 1)
        self.assertIn("go", [t.content for t in prims if isinstance(t, Text)])

    def test_filled_subgraph_box_encloses_members(self) -> None:
        graph = _graph([("a", "b"), ("b", "c")])
        graph.add_subgraph(Subgraph(id="cluster_0", label="group", nodes=["a", "b"], filled=True))
        layout = compute_layout(graph, LayoutAlgorithm.HIERARCHICAL)
        prims = render_graph(graph, layout, _frame())
        box = prims[0]
        self.assertIsInstance(box, Rect)
        self.assertAlmostEqual(box.style.fill.a, 0.3)
        for node_id in ("a", "b"):
            x, y = layout.positions[node_id]
            self.assertGreater(x * 400.0, box.origin[0])
            self.assertLess(x * 400.0, box.origin[0] + box.size[0])
            self.assertGreater(y * 400.0, box.origin[1])
            self.assertLess(y * 400.0, box.origin[1] + box.size[1])
        self.assertEqual(prims[1].content, "group")

    def test_self_loop_renders(self) -> None:
        graph = _graph([("a", "a")])
        prims = render_graph(graph, compute_layout(graph, LayoutAlgorithm.CIRCULAR), _frame())
        self.assertEqual(len([p for p in prims if isinstance(p, Path)]), 2)


class GeometryTests(unittest.TestCase):
    def test_short_chords_stay_straight(self) -> None:
        self.assertEqual(edge_curve((0.0, 0.0), (30.0, 0.0)), [(0.0, 0.0), (30.0, 0.0)])
        curve = edge_curve((0.0, 0.0), (200.0, 0.0))
        self.assertEqual(curve[0], (0.0, 0.0))
        self.assertEqual(curve[-1], (200.0, 0.0))
        self.assertGreater(len(curve), 2)

    def test_boundary_radius_by_shape(self) -> None:
        self.assertAlmostEqual(boundary_radius(NodeShape.ELLIPSE, 0.0), NODE_RX)
        self.assertAlmostEqual(boundary_radius(NodeShape.BOX, 0.0), NODE_RX)
        self.assertAlmostEqual(boundary_radius(NodeShape.CIRCLE, 1.0), 18.0)

    def test_arrowhead_points_back_from_tip(self) -> None:
        tip, left, right = arrowhead((100.0, 0.0), (0.0, 0.0))
        self.assertEqual(tip, (100.0, 0.0))
        self.assertAlmostEqual(left[0], 92.0)
        self.assertAlmostEqual(right[0], 92.0)
        self.assertAlmostEqual(abs(left[1] - right[1]), 10.0)


if __name__ == "__main__":
    unittest.main()
