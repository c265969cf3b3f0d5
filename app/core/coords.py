from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from core.chart_config import DEFAULT_LAYOUT, ChartLayout
from core.chart_data import ChartSeries
from core.viewport import Viewport


@dataclass(frozen=True)
class CoordinateMapper:
    """Pixel geometry for one frame: a viewport slice on a surface of a given size."""

    width: float
    height: float
    pan_offset: int
    visible_count: int
    price_min: float
    price_max: float
    max_volume: float
    layout: ChartLayout = DEFAULT_LAYOUT

    @classmethod
    def for_viewport(
        cls,
        series: ChartSeries,
        viewport: Viewport,
        width: float,
        height: float,
        layout: ChartLayout = DEFAULT_LAYOUT,
    ) -> Optional['CoordinateMapper']:
        """Return ``None`` when there is nothing to map (empty series or slice)."""
        if series.is_empty():
            return None
        start, end = viewport.visible_range()
        count = end - start
        if count <= 0:
            return None
        low, high = series.price_bounds(start, end)
        span = high - low
        if span == 0:
            span = abs(low) * 0.01 or 1.0
        padded_min = low - span * 0.05
        padded_max = high + span * 0.05
        volumes = [series.volume_at(i) for i in range(start, end)]
        max_volume = max(volumes + [1.0])
        return cls(
            width=float(width),
            height=float(height),
            pan_offset=start,
            visible_count=count,
            price_min=padded_min,
            price_max=padded_max,
            max_volume=max_volume,
            layout=layout,
        )

    # Horizontal

    @property
    def plot_left(self) -> float:
        return self.layout.left_padding

    @property
    def plot_right(self) -> float:
        return self.width - self.layout.right_padding

    @property
    def plot_width(self) -> float:
        return self.width - self.layout.left_padding - self.layout.right_padding

    @property
    def gap(self) -> float:
        return self.plot_width / self.visible_count

    @property
    def body_width(self) -> float:
        return max(self.layout.min_body_width, self.gap * self.layout.body_ratio)

    def x_for_column(self, column: int) -> float:
        return self.plot_left + column * self.gap + self.gap / 2.0

    def x_for_index(self, index: int) -> float:
        return self.x_for_column(index - self.pan_offset)

    def column_left(self, column: int) -> float:
        return self.plot_left + column * self.gap

    def column_at(self, x: float) -> Optional[int]:
        if self.gap <= 0:
            return None
        column = int(math.floor((x - self.plot_left) / self.gap))
        if column < 0 or column >= self.visible_count:
            return None
        return column

    def index_at(self, x: float) -> Optional[int]:
        column = self.column_at(x)
        if column is None:
            return None
        return self.pan_offset + column

    # Vertical

    @property
    def chart_top(self) -> float:
        return self.layout.top_padding

    @property
    def chart_height(self) -> float:
        return self.layout.chart_height(self.height)

    @property
    def chart_bottom(self) -> float:
        return self.chart_top + self.chart_height

    @property
    def price_span(self) -> float:
        return self.price_max - self.price_min

    def y_for_price(self, price: float) -> float:
        return self.chart_top + (self.price_max - price) / self.price_span * self.chart_height

    def price_at(self, y: float) -> float:
        return self.price_max - (y - self.chart_top) / self.chart_height * self.price_span

    def in_price_area(self, y: float) -> bool:
        return self.chart_top <= y <= self.chart_bottom

    def grid_levels(self) -> list[Tuple[float, float]]:
        """(y, price) pairs for evenly spaced horizontal grid lines, top to bottom."""
        levels = self.layout.grid_levels
        out = []
        for i in range(levels + 1):
            ratio = i / levels
            out.append((self.chart_top + ratio * self.chart_height, self.price_max - ratio * self.price_span))
        return out

    # Volume

    @property
    def volume_top(self) -> float:
        return self.chart_bottom + self.layout.volume_gap

    @property
    def volume_bottom(self) -> float:
        return self.volume_top + self.layout.volume_height

    def volume_bar_height(self, volume: float) -> float:
        return volume / self.max_volume * self.layout.volume_height
