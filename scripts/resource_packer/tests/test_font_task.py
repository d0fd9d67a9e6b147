"""
Tests for the font rasterization task.
"""

import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

from PIL import Image

from ..errors import ConversionError, ResourceError
from ..flags import Color, Outline, OutlineJoin, WHITE
from ..resource import ResourceTree
from ..tasks.base import Severity
from ..tasks.fonts import CreateFontsTask
from .helpers import make_context, names, stub_rasterizer, write_file


class TestCreateFontsTask(unittest.TestCase):
    """Test flag handling and tree mutation of the font task."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.input_dir = self.temp_dir / "raw"
        write_file(self.input_dir / "readme.txt")
        self.task = CreateFontsTask()
        self.trees = []

    def tearDown(self):
        for tree in self.trees:
            tree.cleanup()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def offer(self, font_name, rasterizer=None):
        write_file(self.input_dir / "fonts" / font_name, "not really a font")
        tree = ResourceTree.discover(self.input_dir)
        tree.start()
        self.trees.append(tree)

        rasterizer = rasterizer or stub_rasterizer()
        fonts = tree.root.child_named("fonts")
        node = fonts.child_named(font_name.split(".")[0] + "." + font_name.split(".")[-1])
        outcome = self.task.operate(node, make_context(tree, font_rasterizer=rasterizer))
        return outcome, node, fonts, rasterizer

    def messages(self, outcome, severity):
        return [d.message for d in outcome.diagnostics if d.severity is severity]

    def test_non_font_is_skipped(self):
        tree = ResourceTree.discover(self.input_dir)
        outcome = self.task.operate(tree.root.children[0], make_context(tree))

        self.assertFalse(outcome.claimed)

    def test_outline_font_is_rasterized(self):
        outcome, node, fonts, rasterizer = self.offer("Body.24.outline 2 000000.ttf")

        self.assertTrue(outcome.claimed)
        self.assertTrue(node.removed)
        self.assertEqual(names(fonts), ["Body.fnt", "Body.png"])
        self.assertIn("Font created.", self.messages(outcome, Severity.INFO))

        parameters = rasterizer.pack.call_args[0][2]
        self.assertEqual(parameters.size, 24)
        self.assertEqual(parameters.font_name, "Body")
        self.assertEqual(parameters.outline, Outline(2, Color(0, 0, 0, 255), OutlineJoin.ROUND))
        self.assertEqual(parameters.color, WHITE)
        self.assertIsNone(parameters.code_points)

    def test_pages_are_clamped_not_blended(self):
        _, _, fonts, _ = self.offer("Body.24.ttf")

        with Image.open(fonts.child_named("Body.png").path) as page:
            self.assertEqual(page.getpixel((1, 0)), (255, 0, 0, 0))

    def test_background_is_blended_after_clamp(self):
        outcome, _, fonts, _ = self.offer("Title.16.bg#FF00FF.bg#0000FF.ttf")

        with Image.open(fonts.child_named("Title.png").path) as page:
            self.assertEqual(page.getpixel((0, 0)), (255, 0, 0, 255))
            self.assertEqual(page.getpixel((1, 0)), (0, 0, 255, 255))
        self.assertFalse(outcome.has(Severity.ERROR))

    def test_size_zero_is_error_without_mutation(self):
        outcome, node, fonts, rasterizer = self.offer("Body.0.ttf")

        self.assertTrue(outcome.claimed)
        self.assertEqual(self.messages(outcome, Severity.ERROR), ["Size must be bigger than 0."])
        self.assertFalse(node.removed)
        self.assertEqual(names(fonts), ["Body.0.ttf"])
        rasterizer.pack.assert_not_called()

    def test_missing_size_is_left_alone(self):
        outcome, node, fonts, rasterizer = self.offer("Body.ttf")

        self.assertTrue(outcome.claimed)
        self.assertEqual(self.messages(outcome, Severity.DEBUG), ["Not rasterizing font, size not specified."])
        self.assertFalse(node.removed)
        rasterizer.pack.assert_not_called()

    def test_first_size_wins(self):
        _, _, _, rasterizer = self.offer("Body.12.48.otf")

        self.assertEqual(rasterizer.pack.call_args[0][2].size, 12)

    def test_ranges_are_unioned(self):
        _, _, _, rasterizer = self.offer("Body.12.65-70.68-72.ttf")

        self.assertEqual(rasterizer.pack.call_args[0][2].code_points, set(range(65, 73)))

    def test_reversed_range_is_warned_and_skipped(self):
        outcome, _, _, rasterizer = self.offer("Body.12.90-65.48-57.ttf")

        self.assertEqual(rasterizer.pack.call_args[0][2].code_points, set(range(48, 58)))
        self.assertEqual(len(self.messages(outcome, Severity.WARNING)), 1)

    def test_first_foreground_wins(self):
        _, _, _, rasterizer = self.offer("Body.12.fg#FF0000.fg#00FF00.ttf")

        self.assertEqual(rasterizer.pack.call_args[0][2].color, Color(255, 0, 0))

    def test_malformed_color_is_reported_and_ignored(self):
        outcome, node, _, rasterizer = self.offer("Body.12.fg#12345.ttf")

        self.assertEqual(len(self.messages(outcome, Severity.ERROR)), 1)
        self.assertEqual(rasterizer.pack.call_args[0][2].color, WHITE)
        self.assertTrue(node.removed)

    def test_straight_outline(self):
        _, _, _, rasterizer = self.offer("Body.12.outline 1 FFF straight.ttf")

        self.assertEqual(rasterizer.pack.call_args[0][2].outline.join, OutlineJoin.STRAIGHT)

    def test_several_pages_warn(self):
        outcome, _, fonts, _ = self.offer("Body.12.ttf", stub_rasterizer(page_count=2))

        self.assertEqual(names(fonts), ["Body.fnt", "Body_0.png", "Body_1.png"])
        self.assertIn("Font did render on 2 pages. This may cause problems when loading for UI skin.",
                      self.messages(outcome, Severity.WARNING))

    def test_no_pages_warn(self):
        outcome, _, fonts, _ = self.offer("Body.12.ttf", stub_rasterizer(page_count=0))

        self.assertEqual(names(fonts), ["Body.fnt"])
        self.assertIn("Font didn't render on any pages.", self.messages(outcome, Severity.WARNING))

    def test_conversion_error_leaves_font(self):
        rasterizer = MagicMock()
        rasterizer.pack.side_effect = ConversionError("bad font")

        outcome, node, fonts, _ = self.offer("Body.12.ttf", rasterizer)

        self.assertTrue(outcome.has(Severity.ERROR))
        self.assertFalse(node.removed)
        self.assertEqual(names(fonts), ["Body.12.ttf"])

    def test_failed_add_restores_font(self):
        rasterizer = stub_rasterizer(extra_paths=("missing.fnt",))

        with self.assertRaises(ResourceError):
            self.offer("Body.12.ttf", rasterizer)

        fonts = self.trees[-1].root.child_named("fonts")
        self.assertEqual(names(fonts), ["Body.12.ttf"])
        self.assertFalse(fonts.children[0].removed)


if __name__ == '__main__':
    unittest.main()
