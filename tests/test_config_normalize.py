from __future__ import annotations

from decimal import Decimal
import unittest

import numpy as np

from vecplot.adapters.normalize import (
    normalize_categories,
    normalize_datasets,
    normalize_grid,
    normalize_values,
    normalize_xy,
)
from vecplot.colors import Color, colormap, colormap_color, cycle_color, parse_color
from vecplot.config import DEFAULT_THEME, PlotTheme, resolve_theme, validate_theme_overrides
from vecplot.errors import DataShapeError
from vecplot.markers import Marker, marker_primitives, parse_marker


class ThemeTests(unittest.TestCase):
    def test_overrides_are_validated(self) -> None:
        theme = validate_theme_overrides({"tick_target": 8, "pad_ratio": 0, "font_family": "Arial"})
        self.assertEqual(theme.tick_target, 8)
        self.assertEqual(theme.pad_ratio, 0.0)
        self.assertEqual(theme.font_family, "Arial")
        self.assertEqual(DEFAULT_THEME.tick_target, 6)

    def test_rejects_invalid_options(self) -> None:
        for overrides in (
            {"unknown": 1},
            {"background": "white"},
            {"tick_target": 0},
            {"histogram_bins": True},
            {"pad_ratio": 1.0},
            {"font_family": "  "},
            {"gutter_left": -1},
            {"font_size_px": 0},
        ):
            with self.subTest(overrides=overrides):
                with self.assertRaises(ValueError):
                    validate_theme_overrides(overrides)

    def test_resolve_theme(self) -> None:
        custom = PlotTheme(font_size_px=10.0)
        self.assertIs(resolve_theme(None), DEFAULT_THEME)
        self.assertIs(resolve_theme(custom), custom)
        self.assertEqual(resolve_theme({"subplot_gap": 4}).subplot_gap, 4.0)

    def test_theme_colors(self) -> None:
        self.assertEqual(DEFAULT_THEME.color("grid_color"), Color(230, 230, 230))
        with self.assertRaises(ValueError):
            DEFAULT_THEME.color("font_family")


class ColorTests(unittest.TestCase):
    def test_parse_color_forms(self) -> None:
        self.assertEqual(parse_color("#f00"), Color(255, 0, 0))
        self.assertEqual(parse_color("#00ff0080"), Color(0, 255, 0, 128 / 255.0))
        self.assertEqual(parse_color("Orange"), Color(255, 165, 0))
        self.assertEqual(parse_color((1, 2, 3)), Color(1, 2, 3))
        for bad in ("#12", "#zzzzzz", "mauve-ish", (1, 2)):
            with self.subTest(value=bad):
                with self.assertRaises(ValueError):
                    parse_color(bad)

    def test_color_validation_and_hex(self) -> None:
        with self.assertRaises(ValueError):
            Color(256, 0, 0)
        with self.assertRaises(ValueError):
            Color(0, 0, 0, 1.5)
        self.assertEqual(Color(1, 171, 255).to_hex(), "#01abff")
        self.assertEqual(Color(0, 0, 0).with_alpha(2.0).a, 1.0)

    def test_cycle_wraps(self) -> None:
        self.assertEqual(cycle_color(0), cycle_color(10))
        self.assertNotEqual(cycle_color(0), cycle_color(1))

    def test_colormap_endpoints_and_clamp(self) -> None:
        rows = colormap(np.asarray([-1.0, 0.0, 1.0, 2.0]))
        self.assertEqual(rows.dtype, np.uint8)
        self.assertEqual(rows.tolist(), [[68, 1, 84], [68, 1, 84], [253, 231, 37], [253, 231, 37]])
        self.assertEqual(colormap_color(0.5), Color(33, 145, 140))


class MarkerTests(unittest.TestCase):
    def test_parse_marker_aliases(self) -> None:
        self.assertIs(parse_marker("o"), Marker.CIRCLE)
        self.assertIs(parse_marker("^"), Marker.TRIANGLE_UP)
        self.assertIs(parse_marker("Square"), Marker.SQUARE)
        self.assertIs(parse_marker(None), Marker.NONE)
        with self.assertRaises(ValueError):
            parse_marker("hexagon")

    def test_every_visible_marker_draws(self) -> None:
        for marker in Marker:
            prims = marker_primitives(marker, 10.0, 10.0, 6.0, Color(0, 0, 0))
            if marker.visible:
                self.assertTrue(prims, marker)
            else:
                self.assertEqual(prims, [])


class NormalizeTests(unittest.TestCase):
    def test_y_only_gets_index_x(self) -> None:
        x, y = normalize_xy([3, 1, 2])
        self.assertEqual(x.tolist(), [0.0, 1.0, 2.0])
        self.assertEqual(y.dtype, np.float64)

    def test_decimal_and_none_values(self) -> None:
        values = normalize_values([Decimal("1.5"), None, 2])
        self.assertEqual(values[0], 1.5)
        self.assertTrue(np.isnan(values[1]))
        self.assertEqual(values[2], 2.0)

    def test_rejects_bad_input(self) -> None:
        with self.assertRaises(DataShapeError):
            normalize_values(["a", "b"])
        with self.assertRaises(DataShapeError):
            normalize_values(np.zeros((2, 2)))
        with self.assertRaises(DataShapeError):
            normalize_xy(None)
        with self.assertRaises(DataShapeError):
            normalize_values(42)

    def test_datasets_accept_single_nested_and_matrix(self) -> None:
        self.assertEqual(len(normalize_datasets([1, 2, 3])), 1)
        self.assertEqual(len(normalize_datasets([[1, 2], [3, 4, 5]])), 2)
        matrix = normalize_datasets(np.arange(6, dtype=np.float64).reshape(3, 2))
        self.assertEqual([d.tolist() for d in matrix], [[0.0, 2.0, 4.0], [1.0, 3.0, 5.0]])

    def test_grid_must_be_two_dimensional(self) -> None:
        self.assertEqual(normalize_grid([[1, 2], [3, 4]]).shape, (2, 2))
        with self.assertRaises(DataShapeError):
            normalize_grid([1, 2, 3])
        with self.assertRaises(DataShapeError):
            normalize_grid([[1, 2], [3]])

    def test_string_categories_map_to_slots(self) -> None:
        positions, labels = normalize_categories(["q1", "q2", "q3"])
        self.assertEqual(positions.tolist(), [0.0, 1.0, 2.0])
        self.assertEqual(labels, ("q1", "q2", "q3"))
        positions, labels = normalize_categories([2, 4])
        self.assertEqual(positions.tolist(), [2.0, 4.0])
        self.assertIsNone(labels)

    def test_pandas_inputs(self) -> None:
        try:
            import pandas as pd
        except Exception:
            self.skipTest("pandas is not installed")

        df = pd.DataFrame({"t": [0, 1, 2], "v": [1.0, 4.0, 9.0], "name": ["a", "b", "c"]})
        x, y = normalize_xy("v", x="t", data=df)
        self.assertEqual(x.tolist(), [0.0, 1.0, 2.0])
        self.assertEqual(y.tolist(), [1.0, 4.0, 9.0])
        self.assertEqual(len(normalize_datasets(df)), 2)
        with self.assertRaises(DataShapeError):
            normalize_xy("missing", data=df)

    def test_torch_inputs(self) -> None:
        try:
            import torch
        except Exception:
            self.skipTest("torch is not installed")

        y = torch.tensor([1, 2, 3], dtype=torch.int64)
        _, out = normalize_xy(y)
        self.assertEqual(out.dtype, np.float64)
        self.assertEqual(out.tolist(), [1.0, 2.0, 3.0])
        grid = normalize_grid(torch.ones((2, 3)))
        self.assertEqual(grid.shape, (2, 3))


if __name__ == "__main__":
    unittest.main()
