import os
import sys
import unittest

# Allow `import core.*` like the app does when running `python app/main.py`.
REPO_ROOT = os.path.dirname(os.path.dirname(__file__))
APP_DIR = os.path.join(REPO_ROOT, "app")
if APP_DIR not in sys.path:
    sys.path.insert(0, APP_DIR)

from core.chart_data import ChartSeries, timeframe_to_seconds
from core.chart_feed import ChartPayloadError, FakeChartFeed, parse_chart_payload, parse_candles, parse_volumes


def _row(ts, o=1.0, h=2.0, l=0.5, c=1.5):
    return {"time": ts, "open": o, "high": h, "low": l, "close": c}


class ParsePayloadTests(unittest.TestCase):
    def test_parses_coin_candles_and_volume(self):
        data = {
            "coin": {"symbol": "PEPE", "currentPrice": "0.00012"},
            "candlestickData": [_row(60), _row(120, c=1.8)],
            "volumeData": [{"time": 60, "volume": 12.5}, {"time": 120, "volume": "7"}],
            "timeframe": "5m",
        }
        payload = parse_chart_payload(data)
        self.assertEqual(payload.symbol, "PEPE")
        self.assertEqual(payload.timeframe, "5m")
        self.assertAlmostEqual(payload.current_price, 0.00012)
        self.assertEqual(len(payload.series), 2)
        self.assertEqual(payload.series.identity, ("PEPE", "5m"))
        self.assertEqual(payload.series.volume_at(1), 7.0)
        self.assertEqual(payload.series.candles[1].close, 1.8)

    def test_malformed_rows_are_dropped(self):
        rows = [
            _row(60),
            {"time": "bad", "open": 1, "high": 1, "low": 1, "close": 1},
            {"time": 120, "open": None, "high": 1, "low": 1, "close": 1},
            _row(180, h=float("nan")),
            _row(240, c=float("inf")),
            {"time": float("inf"), "open": 1, "high": 2, "low": 0.5, "close": 1.5},
            {"time": float("nan"), "open": 1, "high": 2, "low": 0.5, "close": 1.5},
            "not a row",
            _row(300),
        ]
        candles = parse_candles(rows)
        self.assertEqual([c.time for c in candles], [60, 300])

    def test_non_finite_volume_time_is_skipped(self):
        samples = parse_volumes([{"time": float("inf"), "volume": 1}, {"time": 60, "volume": 2}])
        self.assertEqual([(s.time, s.volume) for s in samples], [(60, 2.0)])

    def test_non_list_sections_are_empty(self):
        payload = parse_chart_payload({"candlestickData": 5, "volumeData": {"time": 60}}, symbol="BTC")
        self.assertTrue(payload.series.is_empty())
        self.assertEqual(payload.series.volumes, ())

        payload = parse_chart_payload({"candlestickData": "abc", "volumeData": 3.5}, symbol="BTC")
        self.assertTrue(payload.series.is_empty())

    def test_times_stay_strictly_increasing(self):
        candles = parse_candles([_row(60), _row(120), _row(120, c=1.9), _row(90), _row(180)])
        self.assertEqual([c.time for c in candles], [60, 120, 180])
        self.assertEqual(candles[1].close, 1.9)

    def test_negative_and_invalid_volume_skipped(self):
        data = {
            "candlestickData": [_row(60), _row(120), _row(180)],
            "volumeData": [
                {"time": 60, "volume": -1},
                {"time": 120, "volume": "x"},
                {"time": 180, "volume": 3},
                ["bad"],
            ],
        }
        series = parse_chart_payload(data, symbol="X", timeframe="1m").series
        self.assertIsNone(series.volume_for_time(60))
        self.assertIsNone(series.volume_for_time(120))
        self.assertEqual(series.volume_for_time(180), 3.0)

    def test_missing_sections(self):
        payload = parse_chart_payload({}, symbol="BTC", timeframe="1h")
        self.assertEqual(payload.symbol, "BTC")
        self.assertEqual(payload.timeframe, "1h")
        self.assertTrue(payload.series.is_empty())
        self.assertIsNone(payload.current_price)

    def test_unknown_timeframe_falls_back(self):
        payload = parse_chart_payload({"timeframe": "7x"}, symbol="BTC", timeframe="4h")
        self.assertEqual(payload.timeframe, "4h")
        payload = parse_chart_payload({"timeframe": "7x"}, symbol="BTC")
        self.assertEqual(payload.timeframe, "1m")

    def test_non_mapping_raises(self):
        with self.assertRaises(ChartPayloadError):
            parse_chart_payload([1, 2, 3])
        with self.assertRaises(ValueError):
            parse_chart_payload("nope")


class FakeChartFeedTests(unittest.TestCase):
    NOW = 1_700_000_123

    def test_deterministic_per_symbol_and_timeframe(self):
        feed = FakeChartFeed(bar_count=50, now=self.NOW)
        first = feed.load_chart("BTC", "5m")
        second = feed.load_chart("BTC", "5m")
        self.assertEqual(first.series, second.series)
        self.assertEqual(first.current_price, second.current_price)
        other = feed.load_chart("ETH", "5m")
        self.assertNotEqual(first.series.candles, other.series.candles)

    def test_bars_are_aligned_and_consistent(self):
        feed = FakeChartFeed(bar_count=40, start_price=2.0, now=self.NOW)
        payload = feed.load_chart("SOL", "15m")
        series = payload.series
        self.assertIsInstance(series, ChartSeries)
        self.assertEqual(len(series), 40)
        step = timeframe_to_seconds("15m")
        times = [c.time for c in series.candles]
        self.assertTrue(all(b - a == step for a, b in zip(times, times[1:])))
        self.assertEqual(times[-1] % step, 0)
        self.assertLessEqual(times[-1], self.NOW)
        self.assertEqual(series.candles[0].open, 2.0)
        for candle in series.candles:
            self.assertGreaterEqual(candle.high, max(candle.open, candle.close))
            self.assertLessEqual(candle.low, min(candle.open, candle.close))
            self.assertGreater(candle.low, 0.0)
        for i in range(len(series)):
            self.assertGreaterEqual(series.volume_at(i), 0.0)
        self.assertEqual(payload.current_price, series.candles[-1].close)

    def test_zero_bars(self):
        payload = FakeChartFeed(bar_count=0, now=self.NOW).load_chart("BTC", "1m")
        self.assertTrue(payload.series.is_empty())
        self.assertIsNone(payload.current_price)


class TimeframeTests(unittest.TestCase):
    def test_timeframe_to_seconds(self):
        self.assertEqual(timeframe_to_seconds("1m"), 60)
        self.assertEqual(timeframe_to_seconds("15m"), 900)
        self.assertEqual(timeframe_to_seconds("4h"), 14_400)
        self.assertEqual(timeframe_to_seconds("1d"), 86_400)
        self.assertEqual(timeframe_to_seconds(""), 60)
        self.assertEqual(timeframe_to_seconds("xm"), 60)


if __name__ == "__main__":
    unittest.main()
