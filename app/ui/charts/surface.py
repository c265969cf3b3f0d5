from typing import Optional, Protocol, Sequence

import pyqtgraph as pg
from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import QColor, QFont, QFontMetricsF, QPainter


class ChartSurface(Protocol):
    """Immediate-mode 2D drawing target in logical (device independent) pixels.

    Text ``y`` is the baseline; ``align`` is one of 'left', 'center', 'right'.
    """

    width: float
    height: float

    def clear(self) -> None:
        ...

    def line(self, x1: float, y1: float, x2: float, y2: float, color, width: float = 1.0, dash: Optional[Sequence[float]] = None) -> None:
        ...

    def fill_rect(self, x: float, y: float, w: float, h: float, color) -> None:
        ...

    def stroke_rect(self, x: float, y: float, w: float, h: float, color) -> None:
        ...

    def text(self, x: float, y: float, text: str, color, size: int = 10, align: str = 'left', bold: bool = False) -> None:
        ...

    def text_width(self, text: str, size: int = 10, bold: bool = False) -> float:
        ...


class QPainterSurface:
    def __init__(self, painter: QPainter, width: float, height: float, background=None) -> None:
        self.painter = painter
        self.width = float(width)
        self.height = float(height)
        self.background = background
        self._pen_cache: dict = {}
        self._brush_cache: dict = {}
        self._font_cache: dict[tuple[int, bool], QFont] = {}

    def _get_pen(self, color, width: float, dash: Optional[Sequence[float]]):
        key = (self._color_key(color), width, tuple(dash) if dash else None)
        pen = self._pen_cache.get(key)
        if pen is None:
            pen = pg.mkPen(pg.mkColor(color), width=width)
            if dash:
                pen.setStyle(Qt.PenStyle.DashLine)
                pen.setDashPattern([float(d) / max(width, 1.0) for d in dash])
            self._pen_cache[key] = pen
        return pen

    def _get_brush(self, color):
        key = self._color_key(color)
        brush = self._brush_cache.get(key)
        if brush is None:
            brush = pg.mkBrush(pg.mkColor(color))
            self._brush_cache[key] = brush
        return brush

    def _get_font(self, size: int, bold: bool) -> QFont:
        key = (int(size), bool(bold))
        font = self._font_cache.get(key)
        if font is None:
            font = QFont('monospace')
            font.setStyleHint(QFont.StyleHint.Monospace)
            font.setPixelSize(max(1, int(size)))
            font.setBold(bool(bold))
            self._font_cache[key] = font
        return font

    @staticmethod
    def _color_key(color):
        if isinstance(color, QColor):
            return color.getRgb()
        if isinstance(color, list):
            return tuple(color)
        return color

    def clear(self) -> None:
        rect = QRectF(0, 0, self.width, self.height)
        if self.background is not None:
            self.painter.fillRect(rect, pg.mkColor(self.background))
            return
        self.painter.save()
        self.painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_Clear)
        self.painter.fillRect(rect, QColor(0, 0, 0, 0))
        self.painter.restore()

    def line(self, x1, y1, x2, y2, color, width=1.0, dash=None) -> None:
        self.painter.setPen(self._get_pen(color, width, dash))
        self.painter.drawLine(QPointF(x1, y1), QPointF(x2, y2))

    def fill_rect(self, x, y, w, h, color) -> None:
        if w <= 0 or h <= 0:
            return
        self.painter.fillRect(QRectF(x, y, w, h), self._get_brush(color))

    def stroke_rect(self, x, y, w, h, color) -> None:
        self.painter.setPen(self._get_pen(color, 1.0, None))
        self.painter.setBrush(Qt.BrushStyle.NoBrush)
        self.painter.drawRect(QRectF(x, y, w, h))

    def text(self, x, y, text, color, size=10, align='left', bold=False) -> None:
        font = self._get_font(size, bold)
        self.painter.setFont(font)
        self.painter.setPen(pg.mkPen(pg.mkColor(color)))
        if align == 'right':
            x -= self.text_width(text, size, bold)
        elif align == 'center':
            x -= self.text_width(text, size, bold) / 2.0
        self.painter.drawText(QPointF(x, y), text)

    def text_width(self, text, size=10, bold=False) -> float:
        return QFontMetricsF(self._get_font(size, bold)).horizontalAdvance(text)
