from __future__ import annotations

import math
from typing import List

from core.chart_config import DEFAULT_ZOOM, ZoomConfig
from core.chart_data import Candle, ChartSeries


class Viewport:
    """Zoom/pan window over a candle series.

    ``zoom_level`` is total/visible, so ``1`` shows the whole series and the
    logical window is independent of the surface size. ``pan_offset`` is the
    index of the left-most visible candle. Both are clamped on every read.
    """

    def __init__(self, total_count: int = 0, config: ZoomConfig = DEFAULT_ZOOM) -> None:
        self.config = config
        self.total_count = max(0, int(total_count))
        self._zoom_level = 1.0
        self._pan_offset = 0
        self.initialize(self.total_count)

    def initialize(self, total_count: int) -> None:
        self.total_count = max(0, int(total_count))
        target = self.config.default_visible
        if self.total_count > target:
            self._zoom_level = self.total_count / target
            self._pan_offset = self.total_count - self.visible_count
        else:
            self._zoom_level = 1.0
            self._pan_offset = 0

    def resize_series(self, total_count: int) -> None:
        """Keep the current zoom/pan for a refreshed series of the same identity."""
        self.total_count = max(0, int(total_count))
        self._zoom_level = self._clamp_zoom(self._zoom_level)
        self._pan_offset = self.pan_offset

    @property
    def max_zoom(self) -> float:
        return max(1.0, self.total_count / self.config.max_zoom_visible)

    @property
    def zoom_level(self) -> float:
        return self._clamp_zoom(self._zoom_level)

    @property
    def visible_count(self) -> int:
        if self.total_count <= 0:
            return 0
        count = max(self.config.min_visible, int(math.floor(self.total_count / self.zoom_level)))
        return min(count, self.total_count)

    @property
    def max_pan(self) -> int:
        return max(0, self.total_count - self.visible_count)

    @property
    def pan_offset(self) -> int:
        return min(max(0, self._pan_offset), self.max_pan)

    def _clamp_zoom(self, zoom: float) -> float:
        return min(max(zoom, 1.0), self.max_zoom)

    def zoom_in(self, factor: float) -> None:
        self._zoom_level = self._clamp_zoom(self.zoom_level * factor)
        self._pan_offset = self.pan_offset

    def zoom_out(self, factor: float) -> None:
        self._zoom_level = self._clamp_zoom(self.zoom_level / factor)
        self._pan_offset = self.pan_offset

    def pan_by(self, candle_delta: int) -> None:
        self.set_pan(self.pan_offset + int(candle_delta))

    def set_pan(self, offset: int) -> None:
        self._pan_offset = int(offset)
        self._pan_offset = self.pan_offset

    def visible_range(self) -> tuple[int, int]:
        start = self.pan_offset
        return start, start + self.visible_count

    def visible_slice(self, series: ChartSeries) -> List[Candle]:
        start, end = self.visible_range()
        return series.slice(start, end)

    def contains(self, index: int) -> bool:
        start, end = self.visible_range()
        return start <= index < end
