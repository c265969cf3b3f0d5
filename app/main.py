import argparse
import faulthandler
import os
import sys
import threading
import traceback
from PyQt6.QtWidgets import QApplication
from core.chart_feed import FakeChartFeed
from ui.main_window import MainWindow

_FAULT_LOG_HANDLE = None


def _install_exception_logging() -> None:
    log_path = os.path.join(os.path.dirname(__file__), "exception.log")
    def _hook(exc_type, exc_value, exc_tb):
        try:
            with open(log_path, "a", encoding="utf-8") as handle:
                handle.write("\n=== Unhandled Exception ===\n")
                traceback.print_exception(exc_type, exc_value, exc_tb, file=handle)
        except OSError:
            pass
        sys.__excepthook__(exc_type, exc_value, exc_tb)
    sys.excepthook = _hook
    def _thread_hook(args):
        _hook(args.exc_type, args.exc_value, args.exc_traceback)
    threading.excepthook = _thread_hook


def _parse_args(argv):
    parser = argparse.ArgumentParser(description='Interactive coin price chart')
    parser.add_argument('symbol', nargs='?', default='DEMO', help='coin symbol to chart')
    parser.add_argument('--bars', type=int, default=200, help='candles generated by the offline feed')
    parser.add_argument('--start-price', type=float, default=1.0, help='first open of the offline feed')
    return parser.parse_args(argv)


def main(argv=None):
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    try:
        log_path = os.path.join(os.path.dirname(__file__), "faulthandler.log")
        # faulthandler may write at any point, so the handle lives as long as the process.
        global _FAULT_LOG_HANDLE
        _FAULT_LOG_HANDLE = open(log_path, "w", encoding="utf-8")
        _FAULT_LOG_HANDLE.write(f"pid={os.getpid()}\n")
        _FAULT_LOG_HANDLE.flush()
        faulthandler.enable(_FAULT_LOG_HANDLE, all_threads=True)
    except Exception:
        faulthandler.enable(all_threads=True)
    _install_exception_logging()
    app = QApplication([])
    qss_path = os.path.join(os.path.dirname(__file__), 'ui', 'theme', 'app.qss')
    if os.path.exists(qss_path):
        with open(qss_path, 'r', encoding='utf-8') as handle:
            app.setStyleSheet(handle.read())
    feed = FakeChartFeed(bar_count=args.bars, start_price=args.start_price)
    window = MainWindow(feed, args.symbol.upper())
    window.show()
    return app.exec()


if __name__ == '__main__':
    sys.exit(main())
