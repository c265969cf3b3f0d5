from typing import Optional

from PyQt6.QtWidgets import QDialog, QHBoxLayout, QLabel, QPushButton, QVBoxLayout, QWidget

from core.chart_feed import ChartPayload
from core.formatting import format_plain_price
from .charts.ohlc_chart import OhlcChartWidget


class CoinDetailsDialog(QDialog):
    """Holding details modal showing the same chart with plain price labels."""

    def __init__(self, payload: ChartPayload, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setObjectName('CoinDetailsDialog')
        self.setWindowTitle(f'{payload.symbol} details')
        self.setMinimumWidth(560)

        layout = QVBoxLayout(self)
        header = QHBoxLayout()
        self.title_label = QLabel(payload.symbol)
        header.addWidget(self.title_label)
        header.addStretch(1)
        self.price_label = QLabel('')
        header.addWidget(self.price_label)
        layout.addLayout(header)

        self.chart = OhlcChartWidget(formatter=format_plain_price)
        layout.addWidget(self.chart)

        self.hint_label = QLabel(self.chart.controller.range_hint())
        self.hint_label.setStyleSheet('color: #B2B5BE;')
        layout.addWidget(self.hint_label)
        self.chart.range_hint_changed.connect(self.hint_label.setText)

        footer = QHBoxLayout()
        footer.addStretch(1)
        self.close_button = QPushButton('Close')
        self.close_button.clicked.connect(self.accept)
        footer.addWidget(self.close_button)
        layout.addLayout(footer)

        self.set_payload(payload)

    def set_payload(self, payload: ChartPayload) -> None:
        self.title_label.setText(f'{payload.symbol} · {payload.timeframe}')
        self.chart.set_series(payload.series, payload.current_price)
        self.update_current_price(payload.current_price)

    def update_current_price(self, price: Optional[float]) -> None:
        self.price_label.setText(format_plain_price(price) if price is not None else '')
        self.chart.set_current_price(price)
