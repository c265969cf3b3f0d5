import time
from typing import Optional

from PyQt6.QtCore import QSettings, QThread, pyqtSignal
from PyQt6.QtWidgets import QButtonGroup, QHBoxLayout, QLabel, QPushButton, QVBoxLayout, QWidget

from core.chart_data import DEFAULT_TIMEFRAME, TIMEFRAMES
from core.chart_feed import ChartFeed, ChartPayload
from core.formatting import format_usd_price
from .charts.ohlc_chart import OhlcChartWidget


class ChartFetchWorker(QThread):
    data_ready = pyqtSignal(object)
    error = pyqtSignal(str)

    def __init__(self, feed: ChartFeed, symbol: str, timeframe: str) -> None:
        super().__init__()
        self.feed = feed
        self.symbol = symbol
        self.timeframe = timeframe

    def run(self) -> None:
        try:
            payload = self.feed.load_chart(self.symbol, self.timeframe)
            self.data_ready.emit(payload)
        except Exception as exc:
            self.error.emit(str(exc))


class CoinChartView(QWidget):
    """Coin page chart: timeframe selector, view controls and the OHLC chart."""

    def __init__(self, feed: ChartFeed, symbol: str, error_sink=None, debug_sink=None) -> None:
        super().__init__()
        self.feed = feed
        self.symbol = symbol
        self.error_sink = error_sink
        self.debug_sink = debug_sink
        self._worker: Optional[ChartFetchWorker] = None
        self.last_payload: Optional[ChartPayload] = None
        self._pending_timeframe: Optional[str] = None
        self._fetch_start_ms: Optional[int] = None
        self._last_fetch_duration_ms: Optional[int] = None
        self._debug_last_update = 0.0
        self._settings = QSettings('CoinChart', 'CoinChart')
        saved = self._settings.value('timeframe')
        self.current_timeframe = saved if saved in TIMEFRAMES else DEFAULT_TIMEFRAME

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.toolbar = QWidget()
        self.toolbar.setObjectName('TopToolbar')
        toolbar_layout = QHBoxLayout(self.toolbar)
        toolbar_layout.setContentsMargins(6, 6, 6, 4)
        toolbar_layout.setSpacing(6)

        self.title_label = QLabel(symbol)
        toolbar_layout.addWidget(self.title_label)

        self.timeframe_buttons: dict[str, QPushButton] = {}
        self.timeframe_group = QButtonGroup(self)
        self.timeframe_group.setExclusive(True)
        for tf in TIMEFRAMES:
            button = QPushButton(tf)
            button.setCheckable(True)
            button.setMinimumHeight(22)
            button.clicked.connect(lambda _checked, val=tf: self._set_timeframe(val))
            self.timeframe_buttons[tf] = button
            self.timeframe_group.addButton(button)
            toolbar_layout.addWidget(button)
        self.timeframe_buttons[self.current_timeframe].setChecked(True)

        self.status_label = QLabel('')
        toolbar_layout.addWidget(self.status_label)
        toolbar_layout.addStretch(1)

        self.hint_label = QLabel('')
        self.hint_label.setStyleSheet('color: #B2B5BE;')
        toolbar_layout.addWidget(self.hint_label)

        self.zoom_in_button = QPushButton('+')
        self.zoom_in_button.setToolTip('Zoom In')
        self.zoom_out_button = QPushButton('-')
        self.zoom_out_button.setToolTip('Zoom Out')
        self.reset_button = QPushButton('Reset')
        self.reset_button.setToolTip('Reset view')
        self.clear_range_button = QPushButton('Clear range')
        self.clear_range_button.setToolTip('Clear range')
        self.clear_range_button.hide()
        for button in (self.zoom_in_button, self.zoom_out_button, self.reset_button, self.clear_range_button):
            button.setMinimumHeight(22)
            toolbar_layout.addWidget(button)
        layout.addWidget(self.toolbar)

        self.chart = OhlcChartWidget(formatter=format_usd_price)
        layout.addWidget(self.chart)
        layout.addStretch(1)

        self.zoom_in_button.clicked.connect(self.chart.zoom_in)
        self.zoom_out_button.clicked.connect(self.chart.zoom_out)
        self.reset_button.clicked.connect(self.chart.reset_view)
        self.clear_range_button.clicked.connect(self.chart.clear_range)
        self.chart.range_hint_changed.connect(self.hint_label.setText)
        self.chart.state_changed.connect(self._on_chart_state_changed)
        self.hint_label.setText(self.chart.controller.range_hint())

    def load(self) -> None:
        self._start_fetch(self.symbol, self.current_timeframe)

    def set_symbol(self, symbol: str) -> None:
        if symbol == self.symbol:
            return
        self.symbol = symbol
        self.title_label.setText(symbol)
        self.load()

    def shutdown(self) -> None:
        if self._worker and self._worker.isRunning():
            self._worker.wait(2000)

    def _set_timeframe(self, timeframe: str) -> None:
        if timeframe == self.current_timeframe:
            return
        self.current_timeframe = timeframe
        self._settings.setValue('timeframe', timeframe)
        self._start_fetch(self.symbol, timeframe)

    def _start_fetch(self, symbol: str, timeframe: str) -> None:
        if self._worker and self._worker.isRunning():
            # Only the latest request matters once the worker returns.
            self._pending_timeframe = timeframe
            return
        self._fetch_start_ms = int(time.time() * 1000)
        self._set_loading(True, f'Loading {symbol} {timeframe}...')
        self._worker = ChartFetchWorker(self.feed, symbol, timeframe)
        self._worker.data_ready.connect(self._on_data_ready)
        self._worker.error.connect(self._on_error)
        self._worker.finished.connect(self._on_fetch_finished)
        self._worker.start()

    def _on_data_ready(self, payload: ChartPayload) -> None:
        if payload.symbol != self.symbol or payload.timeframe != self.current_timeframe:
            return
        try:
            self.chart.set_series(payload.series, payload.current_price)
            self.last_payload = payload
        except Exception as exc:
            self._report_error(f'Chart render failed: {exc}')
        self._emit_debug_state()

    def _on_error(self, message: str) -> None:
        self.status_label.setText(f'Error: {message}')
        self.status_label.setStyleSheet('color: #EF5350;')
        self._report_error(message)
        self._emit_debug_state()

    def _on_fetch_finished(self) -> None:
        self._set_loading(False, '')
        if self._fetch_start_ms is not None:
            self._last_fetch_duration_ms = int(time.time() * 1000) - self._fetch_start_ms
            self._fetch_start_ms = None
        if self._pending_timeframe is not None:
            pending = self._pending_timeframe
            self._pending_timeframe = None
            self._start_fetch(self.symbol, pending)
            return
        self._emit_debug_state()

    def _set_loading(self, is_loading: bool, message: str) -> None:
        if is_loading:
            self.status_label.setText(message)
            self.status_label.setStyleSheet('color: #B2B5BE;')
        else:
            if not self.status_label.text().startswith('Error:'):
                self.status_label.setText('')

    def _report_error(self, message: str) -> None:
        if self.error_sink is not None:
            try:
                self.error_sink.append_error(message)
            except Exception:
                pass

    def _on_chart_state_changed(self) -> None:
        self.clear_range_button.setVisible(self.chart.has_range())
        self._emit_debug_state()

    def _emit_debug_state(self) -> None:
        if self.debug_sink is None:
            return
        now = time.time()
        if now - self._debug_last_update < 0.5:
            return
        self._debug_last_update = now
        lines = self.chart.controller.describe()
        if self._last_fetch_duration_ms is not None:
            lines.append(f'Last fetch: {self._last_fetch_duration_ms} ms')
        lines.append(f'Worker running: {bool(self._worker and self._worker.isRunning())}')
        try:
            self.debug_sink.set_metrics(lines)
        except Exception:
            pass
