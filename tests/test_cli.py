from __future__ import annotations

import contextlib
import io
import tempfile
import unittest
import xml.etree.ElementTree as ET
from pathlib import Path
from unittest import mock

from vecplot.cli import build_demo_figure, main

SVG = "{http://www.w3.org/2000/svg}"


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_render_dot_to_file(self) -> None:
        source = self.tmp / "g.dot"
        source.write_text("digraph { a -> b -> c; a -> c }", encoding="utf-8")
        out = self.tmp / "g.svg"
        code = main(["render-dot", str(source), "-o", str(out), "--layout", "circular", "--width", "400", "--height", "300"])
        self.assertEqual(code, 0)
        root = ET.fromstring(out.read_text(encoding="utf-8"))
        self.assertEqual(root.get("width"), "400")
        self.assertEqual(len(root.findall(f"{SVG}g")), 1)
        self.assertEqual(len(root.findall(f".//{SVG}ellipse")), 3)

    def test_render_dot_from_stdin_to_stdout(self) -> None:
        stdout = io.StringIO()
        with mock.patch("sys.stdin", io.StringIO("graph { x -- y }")), contextlib.redirect_stdout(stdout):
            code = main(["render-dot", "-"])
        self.assertEqual(code, 0)
        self.assertTrue(stdout.getvalue().startswith("<svg"))

    def test_bad_dot_exits_with_error(self) -> None:
        source = self.tmp / "bad.dot"
        source.write_text("digraph {\n  a -> \n", encoding="utf-8")
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr):
            code = main(["render-dot", str(source), "-o", str(self.tmp / "bad.svg")])
        self.assertEqual(code, 2)
        self.assertIn("vecplot: error: line 2", stderr.getvalue())
        self.assertFalse((self.tmp / "bad.svg").exists())

    def test_unknown_layout_is_rejected_by_argparse(self) -> None:
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                main(["render-dot", "x.dot", "--layout", "spiral"])
        self.assertEqual(ctx.exception.code, 2)

    def test_demo_writes_every_subplot(self) -> None:
        out = self.tmp / "demo.svg"
        self.assertEqual(main(["demo", "-o", str(out), "--log-level", "error"]), 0)
        root = ET.fromstring(out.read_text(encoding="utf-8"))
        self.assertEqual(len(root.findall(f"{SVG}g")), 10)

    def test_demo_figure_renders_cleanly(self) -> None:
        result = build_demo_figure().render()
        self.assertTrue(result.ok, [f.message for f in result.failures])


if __name__ == "__main__":
    unittest.main()
