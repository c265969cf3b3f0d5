import os
from typing import Optional

from PyQt6.QtCore import QSettings, Qt
from PyQt6.QtGui import QAction
from PyQt6.QtWidgets import QDockWidget, QFileDialog, QInputDialog, QMainWindow, QTabWidget

from core.chart_feed import ChartFeed
from .coin_chart_view import CoinChartView
from .coin_details_dialog import CoinDetailsDialog
from .debug_dock import DebugDock
from .error_dock import ErrorDock


class MainWindow(QMainWindow):
    def __init__(self, feed: ChartFeed, symbol: str) -> None:
        super().__init__()
        self.setWindowTitle('CoinChart')
        self.resize(1100, 560)
        self.feed = feed

        self.error_dock = ErrorDock()
        self.debug_dock = DebugDock()
        self.chart_view = CoinChartView(
            feed,
            symbol,
            error_sink=self.error_dock,
            debug_sink=self.debug_dock,
        )
        self.setCentralWidget(self.chart_view)

        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, self.error_dock)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, self.debug_dock)
        self.tabifyDockWidget(self.error_dock, self.debug_dock)
        self.setTabPosition(Qt.DockWidgetArea.RightDockWidgetArea, QTabWidget.TabPosition.East)
        self.error_dock.raise_()

        self._settings = QSettings('CoinChart', 'CoinChart')
        self._details_dialog: Optional[CoinDetailsDialog] = None
        self._setup_menu()
        self._restore_layout()
        self.chart_view.load()

    def closeEvent(self, event) -> None:
        self._save_layout()
        self.chart_view.shutdown()
        super().closeEvent(event)

    def _setup_menu(self) -> None:
        menu_bar = self.menuBar()
        file_menu = menu_bar.addMenu('File')
        coin_menu = menu_bar.addMenu('Coin')
        window_menu = menu_bar.addMenu('Window')

        export_action = QAction('Export Chart as PNG...', self)
        export_action.triggered.connect(self._export_chart_png)
        file_menu.addAction(export_action)

        symbol_action = QAction('Change Symbol...', self)
        symbol_action.triggered.connect(self._change_symbol)
        coin_menu.addAction(symbol_action)

        details_action = QAction('Coin Details...', self)
        details_action.triggered.connect(self._open_details)
        coin_menu.addAction(details_action)

        for dock in (self.error_dock, self.debug_dock):
            action = QAction(dock.windowTitle(), self)
            action.setCheckable(True)
            action.setChecked(not dock.isHidden())
            action.triggered.connect(lambda checked, d=dock: self._toggle_dock(d, checked))
            dock.visibilityChanged.connect(lambda visible, a=action: a.setChecked(visible))
            window_menu.addAction(action)

    def _toggle_dock(self, dock: QDockWidget, visible: bool) -> None:
        if visible:
            dock.show()
            dock.raise_()
        else:
            dock.hide()

    def _change_symbol(self) -> None:
        symbol, ok = QInputDialog.getText(self, 'Change Symbol', 'Symbol:', text=self.chart_view.symbol)
        symbol = symbol.strip().upper()
        if ok and symbol:
            self.chart_view.set_symbol(symbol)

    def _open_details(self) -> None:
        payload = self.chart_view.last_payload
        if payload is None:
            self.error_dock.append_error('No chart loaded yet')
            return
        if self._details_dialog is None:
            self._details_dialog = CoinDetailsDialog(payload, self)
        else:
            self._details_dialog.set_payload(payload)
        self._details_dialog.show()
        self._details_dialog.raise_()

    def _export_chart_png(self) -> None:
        default_path = os.path.join(os.path.expanduser('~'), 'coinchart.png')
        path, _ = QFileDialog.getSaveFileName(
            self,
            'Export Chart as PNG',
            default_path,
            'PNG Image (*.png)',
        )
        if not path:
            return
        if not path.lower().endswith('.png'):
            path = f'{path}.png'
        if not self.chart_view.chart.export_png(path):
            self.error_dock.append_error(f'Failed to write {path}')

    def _save_layout(self) -> None:
        self._settings.setValue('geometry', self.saveGeometry())
        self._settings.setValue('windowState', self.saveState())

    def _restore_layout(self) -> None:
        geometry = self._settings.value('geometry')
        window_state = self._settings.value('windowState')
        if geometry is not None:
            self.restoreGeometry(geometry)
        if window_state is not None:
            self.restoreState(window_state)
