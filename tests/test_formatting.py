import os
import sys
import unittest

# Allow `import core.*` like the app does when running `python app/main.py`.
REPO_ROOT = os.path.dirname(os.path.dirname(__file__))
APP_DIR = os.path.join(REPO_ROOT, "app")
if APP_DIR not in sys.path:
    sys.path.insert(0, APP_DIR)

from core.formatting import (
    format_percent,
    format_plain_price,
    format_signed_price,
    format_usd_price,
    format_volume,
)


class PriceFormatTests(unittest.TestCase):
    def test_usd_tiers(self):
        self.assertEqual(format_usd_price(0.00005), "$5.00e-05")
        self.assertEqual(format_usd_price(0.005), "$0.005000")
        self.assertEqual(format_usd_price(0.5), "$0.5000")
        self.assertEqual(format_usd_price(1234.5), "$1,234.50")

    def test_plain_tiers(self):
        self.assertEqual(format_plain_price(0.00005), "5.0000e-05")
        self.assertEqual(format_plain_price(0.005), "0.005000")
        self.assertEqual(format_plain_price(0.5), "0.5000")
        self.assertEqual(format_plain_price(42.0), "42.00")

    def test_signed_price_formats_magnitude(self):
        self.assertEqual(format_signed_price(-1.0, format_usd_price), "-$1.00")
        self.assertEqual(format_signed_price(0.5, format_usd_price), "+$0.5000")
        self.assertEqual(format_signed_price(0.0, format_plain_price), "+0.0000e+00")

    def test_percent(self):
        self.assertEqual(format_percent(-10.0), "-10.00%")
        self.assertEqual(format_percent(2.5), "+2.50%")
        self.assertEqual(format_percent(None), "n/a")

    def test_volume(self):
        self.assertEqual(format_volume(1234567.891), "$1,234,567.89")


if __name__ == "__main__":
    unittest.main()
