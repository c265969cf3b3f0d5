import os
import sys
import unittest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Allow `import core.*` like the app does when running `python app/main.py`.
REPO_ROOT = os.path.dirname(os.path.dirname(__file__))
APP_DIR = os.path.join(REPO_ROOT, "app")
if APP_DIR not in sys.path:
    sys.path.insert(0, APP_DIR)


def _app():
    from PyQt6.QtWidgets import QApplication

    return QApplication.instance() or QApplication([])


class OhlcChartSmokeTests(unittest.TestCase):
    def test_painter_surface_renders_frame(self):
        from PyQt6.QtGui import QImage, QPainter

        from core.chart_config import DEFAULT_STYLE
        from core.interaction import ChartController
        from ui.charts.ohlc_render import render_controller
        from ui.charts.surface import QPainterSurface

        from chart_fixtures import make_series

        app = _app()
        _ = app  # keep reference for the duration of the test

        ctl = ChartController(make_series(40), width=600, height=390)
        ctl.set_current_price(ctl.series.candles[-1].close)
        ctl.pointer_move(300, 120)

        img = QImage(600, 390, QImage.Format.Format_ARGB32_Premultiplied)
        img.fill(0)
        painter = QPainter(img)
        try:
            surface = QPainterSurface(painter, 600, 390, background=DEFAULT_STYLE.background)
            self.assertGreater(surface.text_width("$1,234.50"), 0.0)
            render_controller(surface, ctl)
            render_controller(surface, ctl)
        finally:
            painter.end()

        self.assertEqual(img.pixelColor(2, 2).name(), DEFAULT_STYLE.background.lower())

    def test_widget_hosts_controller(self):
        from core.chart_feed import FakeChartFeed
        from core.interaction import RangeArmed
        from ui.charts.ohlc_chart import OhlcChartWidget

        app = _app()
        _ = app

        payload = FakeChartFeed(bar_count=120, now=1_700_000_000).load_chart("BTC", "1h")
        widget = OhlcChartWidget()
        widget.resize(640, 390)
        widget.controller.resize(640, 390)

        hints = []
        changes = []
        widget.range_hint_changed.connect(hints.append)
        widget.state_changed.connect(lambda: changes.append(1))

        widget.set_series(payload.series, payload.current_price)
        self.assertIs(widget.controller.series, payload.series)
        self.assertEqual(widget.controller.viewport.visible_count, 10)
        self.assertGreaterEqual(len(changes), 1)

        widget.zoom_in()
        self.assertLess(widget.controller.viewport.visible_count, 10)
        widget.reset_view()
        self.assertEqual(widget.controller.viewport.visible_count, 10)

        widget.controller.pointer_down(100, 50, range_modifier=True)
        self.assertIsInstance(widget.controller.state, RangeArmed)
        self.assertTrue(widget.has_range())
        self.assertEqual(hints, ["Shift+click end point"])
        widget.clear_range()
        self.assertFalse(widget.has_range())
        self.assertEqual(hints[-1], "Shift+click to measure range")

        image = widget.render_image(scale=2.0)
        self.assertFalse(image.isNull())
        self.assertEqual(image.width(), 1280)
        self.assertEqual(image.height(), 780)

    def test_empty_widget_renders_placeholder(self):
        from ui.charts.ohlc_chart import OhlcChartWidget

        app = _app()
        _ = app

        widget = OhlcChartWidget()
        widget.resize(320, 390)
        image = widget.render_image(scale=1.0)
        self.assertEqual(image.width(), 320)
        self.assertFalse(widget.has_range())

    def test_details_dialog_uses_plain_prices(self):
        from core.chart_feed import FakeChartFeed
        from core.formatting import format_plain_price
        from ui.coin_details_dialog import CoinDetailsDialog

        app = _app()
        _ = app

        payload = FakeChartFeed(bar_count=30, now=1_700_000_000).load_chart("DOGE", "15m")
        dialog = CoinDetailsDialog(payload)
        self.assertIs(dialog.chart.controller.series, payload.series)
        self.assertEqual(dialog.price_label.text(), format_plain_price(payload.current_price))
        self.assertIs(dialog.chart.formatter, format_plain_price)
        dialog.update_current_price(None)
        self.assertEqual(dialog.price_label.text(), "")
        self.assertIsNone(dialog.chart.controller.current_price)

    def test_error_dock_collapses_repeats(self):
        from ui.error_dock import ErrorDock

        app = _app()
        _ = app

        dock = ErrorDock()
        for _ in range(3):
            dock.append_error("feed timeout")
        dock.append_error("other failure")
        text = dock.text.toPlainText()
        self.assertEqual(text.count("feed timeout"), 1)
        self.assertIn("(repeated 2x)", text)
        self.assertIn("other failure", text)


if __name__ == "__main__":
    unittest.main()
