from typing import Optional

from PyQt6.QtCore import QSize, Qt, pyqtSignal
from PyQt6.QtGui import QImage, QPainter
from PyQt6.QtWidgets import QSizePolicy, QWidget

from core.chart_config import DEFAULT_LAYOUT, DEFAULT_STYLE, DEFAULT_ZOOM, ChartLayout, ChartStyle, ZoomConfig
from core.chart_data import ChartSeries
from core.formatting import PriceFormatter, format_usd_price
from core.interaction import ChartController, Dragging, RangeArmed

from .ohlc_render import render_controller
from .surface import QPainterSurface


class OhlcChartWidget(QWidget):
    """Mounts a ChartController on a QWidget and repaints it on every state change."""

    state_changed = pyqtSignal()
    range_hint_changed = pyqtSignal(str)

    def __init__(
        self,
        formatter: PriceFormatter = format_usd_price,
        style: ChartStyle = DEFAULT_STYLE,
        layout: ChartLayout = DEFAULT_LAYOUT,
        zoom: ZoomConfig = DEFAULT_ZOOM,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.formatter = formatter
        self.style_config = style
        self.controller = ChartController(
            width=max(1, self.width()),
            height=layout.default_height,
            layout=layout,
            zoom=zoom,
            on_change=self._on_controller_changed,
        )
        self._last_hint = self.controller.range_hint()
        self.setMouseTracking(True)
        self.setMinimumHeight(layout.default_height)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)
        self.setCursor(Qt.CursorShape.CrossCursor)

    def sizeHint(self) -> QSize:
        return QSize(640, self.controller.layout.default_height)

    # Host API

    def set_series(self, series: ChartSeries, current_price: Optional[float] = None) -> None:
        self.controller.set_series(series)
        self.controller.set_current_price(current_price)

    def set_current_price(self, price: Optional[float]) -> None:
        self.controller.set_current_price(price)

    def zoom_in(self) -> None:
        self.controller.zoom_in(self.controller.zoom.button_factor)

    def zoom_out(self) -> None:
        self.controller.zoom_out(self.controller.zoom.button_factor)

    def reset_view(self) -> None:
        self.controller.reset_view()

    def clear_range(self) -> None:
        self.controller.clear_range()

    def has_range(self) -> bool:
        return self.controller.range_summary() is not None or isinstance(self.controller.state, RangeArmed)

    def render_image(self, scale: Optional[float] = None) -> QImage:
        dpr = float(scale if scale is not None else self.devicePixelRatioF())
        width = max(1, self.width())
        height = max(1, self.height())
        image = QImage(int(width * dpr), int(height * dpr), QImage.Format.Format_ARGB32_Premultiplied)
        image.setDevicePixelRatio(dpr)
        image.fill(0)
        painter = QPainter(image)
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing, False)
            surface = QPainterSurface(painter, width, height, background=self.style_config.background)
            render_controller(surface, self.controller, self.formatter, self.style_config)
        finally:
            painter.end()
        return image

    def export_png(self, path: str) -> bool:
        return self.render_image().save(path, 'PNG')

    # Qt events

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        try:
            surface = QPainterSurface(painter, self.width(), self.height(), background=self.style_config.background)
            render_controller(surface, self.controller, self.formatter, self.style_config)
        finally:
            painter.end()

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        size = event.size()
        self.controller.resize(size.width(), size.height())

    def mousePressEvent(self, event) -> None:
        if event.button() != Qt.MouseButton.LeftButton:
            event.ignore()
            return
        pos = event.position()
        shift = bool(event.modifiers() & Qt.KeyboardModifier.ShiftModifier)
        self.controller.pointer_down(pos.x(), pos.y(), range_modifier=shift)
        event.accept()

    def mouseMoveEvent(self, event) -> None:
        pos = event.position()
        self.controller.pointer_move(pos.x(), pos.y())

    def mouseReleaseEvent(self, event) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            self.controller.pointer_up()

    def leaveEvent(self, event) -> None:
        self.controller.pointer_leave()
        super().leaveEvent(event)

    def wheelEvent(self, event) -> None:
        delta = event.angleDelta().y()
        if delta == 0:
            event.ignore()
            return
        self.controller.wheel(delta)
        event.accept()

    def _on_controller_changed(self) -> None:
        state = self.controller.state
        if isinstance(state, RangeArmed):
            self.setCursor(Qt.CursorShape.PointingHandCursor)
        elif isinstance(state, Dragging):
            self.setCursor(Qt.CursorShape.ClosedHandCursor)
        else:
            self.setCursor(Qt.CursorShape.CrossCursor)
        hint = self.controller.range_hint()
        if hint != self._last_hint:
            self._last_hint = hint
            self.range_hint_changed.emit(hint)
        self.state_changed.emit()
        self.update()
