import os
import sys
import unittest

# Allow `import core.*` like the app does when running `python app/main.py`.
REPO_ROOT = os.path.dirname(os.path.dirname(__file__))
APP_DIR = os.path.join(REPO_ROOT, "app")
if APP_DIR not in sys.path:
    sys.path.insert(0, APP_DIR)

from core.chart_config import ZoomConfig
from core.viewport import Viewport

from chart_fixtures import make_series


class ViewportTests(unittest.TestCase):
    def assert_window_valid(self, vp: Viewport) -> None:
        visible = vp.visible_count
        pan = vp.pan_offset
        self.assertGreaterEqual(pan, 0)
        self.assertLessEqual(pan + visible, vp.total_count)
        self.assertGreaterEqual(visible, min(5, vp.total_count))
        self.assertGreaterEqual(vp.zoom_level, 1.0)
        self.assertLessEqual(vp.zoom_level, vp.max_zoom)

    def test_initialize_shows_latest_ten(self):
        vp = Viewport(100)
        self.assertEqual(vp.visible_count, 10)
        self.assertEqual(vp.pan_offset, 90)
        self.assertAlmostEqual(vp.zoom_level, 10.0)
        self.assertEqual(vp.visible_range(), (90, 100))

    def test_short_series_shows_everything(self):
        vp = Viewport(8)
        self.assertEqual(vp.zoom_level, 1.0)
        self.assertEqual(vp.pan_offset, 0)
        self.assertEqual(vp.visible_count, 8)

        tiny = Viewport(3)
        self.assertEqual(tiny.visible_count, 3)
        self.assertEqual(tiny.max_pan, 0)

    def test_empty_series(self):
        vp = Viewport(0)
        self.assertEqual(vp.visible_count, 0)
        self.assertEqual(vp.pan_offset, 0)
        self.assertEqual(vp.visible_slice(make_series(0)), [])
        vp.zoom_in(1.5)
        vp.pan_by(10)
        self.assertEqual(vp.visible_range(), (0, 0))

    def test_wheel_zoom_out_keeps_window_inside_series(self):
        vp = Viewport(100)
        vp.zoom_out(1.3)
        self.assertGreaterEqual(vp.visible_count, 10)
        self.assertLessEqual(vp.pan_offset + vp.visible_count, 100)
        self.assert_window_valid(vp)

    def test_zoom_in_is_monotonic_and_floors_at_min_visible(self):
        vp = Viewport(60)
        previous = vp.visible_count
        for _ in range(20):
            vp.zoom_in(1.3)
            self.assertLessEqual(vp.visible_count, previous)
            previous = vp.visible_count
            self.assert_window_valid(vp)
        self.assertAlmostEqual(vp.zoom_level, 20.0)
        self.assertEqual(vp.visible_count, 5)

    def test_zoom_out_is_monotonic_and_stops_at_full_series(self):
        vp = Viewport(60)
        previous = vp.visible_count
        for _ in range(20):
            vp.zoom_out(1.5)
            self.assertGreaterEqual(vp.visible_count, previous)
            previous = vp.visible_count
            self.assert_window_valid(vp)
        self.assertEqual(vp.zoom_level, 1.0)
        self.assertEqual(vp.visible_count, 60)
        self.assertEqual(vp.pan_offset, 0)

    def test_pan_is_clamped(self):
        vp = Viewport(100)
        vp.pan_by(25)
        self.assertEqual(vp.pan_offset, 90)
        vp.set_pan(-40)
        self.assertEqual(vp.pan_offset, 0)
        vp.pan_by(7)
        self.assertEqual(vp.pan_offset, 7)
        self.assertTrue(vp.contains(7))
        self.assertTrue(vp.contains(16))
        self.assertFalse(vp.contains(17))

    def test_window_invariant_over_zoom_and_pan_grid(self):
        for total in (1, 4, 5, 6, 17, 100, 1000):
            vp = Viewport(total)
            for step in range(12):
                if step % 2:
                    vp.zoom_in(1.5)
                else:
                    vp.zoom_out(1.3)
                for pan in (-50, 0, 3, total // 2, total, total * 2):
                    vp.set_pan(pan)
                    self.assert_window_valid(vp)

    def test_resize_series_keeps_pan_and_reclamps(self):
        vp = Viewport(100)
        vp.set_pan(40)
        vp.resize_series(120)
        self.assertEqual(vp.pan_offset, 40)
        vp.resize_series(20)
        self.assert_window_valid(vp)
        self.assertLessEqual(vp.pan_offset, vp.max_pan)

    def test_custom_zoom_config(self):
        vp = Viewport(100, ZoomConfig(default_visible=25))
        self.assertEqual(vp.visible_count, 25)
        self.assertEqual(vp.pan_offset, 75)

    def test_visible_slice_matches_range(self):
        series = make_series(30)
        vp = Viewport(len(series))
        candles = vp.visible_slice(series)
        self.assertEqual(len(candles), 10)
        self.assertEqual(candles[0], series.candles[20])
        self.assertEqual(candles[-1], series.candles[29])


if __name__ == "__main__":
    unittest.main()
