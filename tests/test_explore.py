import tempfile
import unittest
from collections import defaultdict
from pathlib import Path

import numpy as np
import PIL.Image
import pygame

import explore
from fractal_explorer import RenderProgress, ViewportParameters, drain, new_buffer


def keydown(key):
    return pygame.event.Event(pygame.KEYDOWN, key=key, mod=0)


def held(*keys):
    pressed = defaultdict(bool)
    for key in keys:
        pressed[key] = True
    return pressed


class TestCollectIntents(unittest.TestCase):
    def test_nothing_pressed(self):
        intents = explore.collect_intents([], held())
        self.assertEqual(intents, explore.InputIntents())

    def test_held_keys_map_to_directions_and_zoom(self):
        intents = explore.collect_intents([], held(pygame.K_UP, pygame.K_d, pygame.K_i))
        self.assertTrue(intents.pan_up)
        self.assertTrue(intents.pan_right)
        self.assertTrue(intents.zoom_in)
        self.assertFalse(intents.pan_down)
        self.assertFalse(intents.pan_left)
        self.assertFalse(intents.zoom_out)

    def test_key_presses_count_iteration_changes(self):
        events = [keydown(pygame.K_e), keydown(pygame.K_e), keydown(pygame.K_q)]
        intents = explore.collect_intents(events, held())
        self.assertEqual((intents.iter_up, intents.iter_down), (2, 1))

    def test_export_and_resize(self):
        events = [
            keydown(pygame.K_r),
            pygame.event.Event(pygame.VIDEORESIZE, w=640, h=480, size=(640, 480)),
        ]
        intents = explore.collect_intents(events, held())
        self.assertTrue(intents.export_requested)
        self.assertEqual(intents.resize, (640, 480))

    def test_quit(self):
        self.assertIsNone(explore.collect_intents([pygame.event.Event(pygame.QUIT)], held()))
        self.assertIsNone(explore.collect_intents([keydown(pygame.K_ESCAPE)], held()))


class TestConfig(unittest.TestCase):
    def resolve(self, *argv):
        parser = explore.build_parser()
        return explore.resolve_explorer_config(parser.parse_args(list(argv)), parser)

    def test_defaults(self):
        config = self.resolve()
        self.assertEqual(
            config.params,
            ViewportParameters(center_re=0.0, center_im=0.0, width=800, height=600, real_domain=4.0, max_iter=64),
        )
        self.assertAlmostEqual(config.budget, 0.016)
        self.assertEqual(config.output_path.name, "out.png")
        self.assertEqual(config.image_format, "png")
        self.assertFalse(config.headless)

    def test_output_gets_format_suffix(self):
        config = self.resolve("--output", "snapshot", "--format", ".JPG")
        self.assertEqual(config.output_path.name, "snapshot.jpg")
        self.assertEqual(config.image_format, "jpg")

    def test_invalid_options_exit(self):
        for argv in (
            ["--width", "0"],
            ["--height", "-3"],
            ["--real-domain", "0"],
            ["--max-iterations", "0"],
            ["--max-iterations", str((1 << 20) + 1)],
            ["--frame-budget-ms", "0"],
            ["--output", ""],
        ):
            with self.assertRaises(SystemExit, msg=argv):
                self.resolve(*argv)

    def test_pil_format_names(self):
        self.assertEqual(explore._pil_format_name("jpg"), "JPEG")
        self.assertEqual(explore._pil_format_name("tif"), "TIFF")
        self.assertEqual(explore._pil_format_name("png"), "PNG")


class TestExport(unittest.TestCase):
    def test_exporter_writes_the_snapshot(self):
        buffer = new_buffer(12, 8)
        buffer[2:5, 3:7] = 200
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "out.png"
            exporter = explore.FileExporter(path, "png")
            exporter(buffer, 12, 8)

            self.assertEqual(exporter.count, 1)
            with PIL.Image.open(path) as image:
                self.assertEqual(image.size, (12, 8))
                np.testing.assert_array_equal(np.asarray(image.convert("RGB")), buffer)

    def test_headless_render_matches_a_full_drain(self):
        with tempfile.TemporaryDirectory() as tmp:
            parser = explore.build_parser()
            opt = parser.parse_args([
                "--headless",
                "--width", "24",
                "--height", "16",
                "--center-re", "-0.5",
                "--real-domain", "3",
                "--max-iterations", "40",
                "--output", str(Path(tmp) / "view.png"),
            ])
            config = explore.resolve_explorer_config(opt, parser)

            path = explore.run_headless(config)

            expected = new_buffer(24, 16)
            drain(expected, config.params, RenderProgress())
            with PIL.Image.open(path) as image:
                np.testing.assert_array_equal(np.asarray(image.convert("RGB")), expected)


if __name__ == '__main__':
    unittest.main()
