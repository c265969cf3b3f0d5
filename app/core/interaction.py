from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

from core.chart_config import DEFAULT_LAYOUT, DEFAULT_ZOOM, ChartLayout, ZoomConfig
from core.chart_data import EMPTY_SERIES, Candle, ChartSeries
from core.coords import CoordinateMapper
from core.viewport import Viewport


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class RangeArmed:
    anchor_index: int


@dataclass(frozen=True)
class RangeSet:
    anchor_index: int
    target_index: int

    @property
    def bounds(self) -> Tuple[int, int]:
        return min(self.anchor_index, self.target_index), max(self.anchor_index, self.target_index)


@dataclass(frozen=True)
class Dragging:
    start_x: float
    start_pan: int
    # Completed measurement to restore when the drag ends.
    retained: Optional[RangeSet] = None


InteractionState = Union[Idle, Dragging, RangeArmed, RangeSet]

IDLE = Idle()


@dataclass(frozen=True)
class Crosshair:
    x: float
    y: float


@dataclass(frozen=True)
class Tooltip:
    index: int
    candle: Candle
    volume: Optional[float]
    x: float
    y: float


@dataclass(frozen=True)
class RangeSummary:
    start_index: int
    end_index: int
    candle_count: int
    start_time: int
    end_time: int
    open: float
    close: float
    change: float
    change_pct: Optional[float]
    high: float
    low: float

    @property
    def is_up(self) -> bool:
        return self.change >= 0


def measured_range(state: InteractionState) -> Optional[RangeSet]:
    if isinstance(state, RangeSet):
        return state
    if isinstance(state, Dragging):
        return state.retained
    return None


def summarize_range(series: ChartSeries, anchor_index: int, target_index: int) -> Optional[RangeSummary]:
    """Change from the open of the earlier candle to the close of the later one."""
    total = len(series)
    lo, hi = min(anchor_index, target_index), max(anchor_index, target_index)
    if lo < 0 or hi >= total:
        return None
    start = series.candles[lo]
    end = series.candles[hi]
    change = end.close - start.open
    change_pct = (change / start.open) * 100.0 if start.open != 0 else None
    high, low = series.price_bounds(lo, hi + 1)
    return RangeSummary(
        start_index=lo,
        end_index=hi,
        candle_count=hi - lo + 1,
        start_time=start.time,
        end_time=end.time,
        open=start.open,
        close=end.close,
        change=change,
        change_pct=change_pct,
        high=high,
        low=low,
    )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ChartController:
    """Pointer/wheel state machine driving a viewport over one chart series.

    All handlers run synchronously on the caller's thread. ``on_change`` is
    invoked after any mutation that requires a repaint.
    """

    def __init__(
        self,
        series: Optional[ChartSeries] = None,
        width: float = 600.0,
        height: Optional[float] = None,
        layout: ChartLayout = DEFAULT_LAYOUT,
        zoom: ZoomConfig = DEFAULT_ZOOM,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self.layout = layout
        self.zoom = zoom
        self.width = float(width)
        self.height = float(height if height is not None else layout.default_height)
        self.on_change = on_change
        self.series: ChartSeries = EMPTY_SERIES
        self.viewport = Viewport(0, zoom)
        self.state: InteractionState = IDLE
        self.crosshair: Optional[Crosshair] = None
        self.tooltip: Optional[Tooltip] = None
        self.current_price: Optional[float] = None
        if series is not None:
            self.set_series(series, notify=False)

    # Data

    def set_series(self, series: ChartSeries, notify: bool = True) -> None:
        previous = self.series
        same_identity = series.identity == previous.identity and not previous.is_empty()
        self.series = series
        if same_identity:
            self.viewport.resize_series(len(series))
            # Anchors are indices, so they only carry over while index 0 is the same candle.
            shifted = series.is_empty() or series.candles[0].time != previous.candles[0].time
            self._drop_stale_range(shifted)
        else:
            self.viewport.initialize(len(series))
            self.state = IDLE
        self._resolve_tooltip()
        if notify:
            self._changed()

    def set_current_price(self, price: Optional[float]) -> None:
        if price == self.current_price:
            return
        self.current_price = price
        self._changed()

    def resize(self, width: float, height: float) -> None:
        self.width = float(width)
        self.height = float(height)
        self._resolve_tooltip()
        self._changed()

    def mapper(self) -> Optional[CoordinateMapper]:
        return CoordinateMapper.for_viewport(self.series, self.viewport, self.width, self.height, self.layout)

    # Viewport commands

    def zoom_in(self, factor: Optional[float] = None) -> None:
        self.viewport.zoom_in(factor or self.zoom.button_factor)
        self._resolve_tooltip()
        self._changed()

    def zoom_out(self, factor: Optional[float] = None) -> None:
        self.viewport.zoom_out(factor or self.zoom.button_factor)
        self._resolve_tooltip()
        self._changed()

    def reset_view(self) -> None:
        self.viewport.initialize(len(self.series))
        self._resolve_tooltip()
        self._changed()

    def clear_range(self) -> None:
        if isinstance(self.state, (RangeArmed, RangeSet)):
            self.state = IDLE
        elif isinstance(self.state, Dragging) and self.state.retained is not None:
            self.state = Dragging(self.state.start_x, self.state.start_pan)
        else:
            return
        self._changed()

    # Pointer input

    def wheel(self, delta: float) -> None:
        """Positive delta (wheel away from the user) zooms in."""
        if delta == 0 or self.series.is_empty():
            return
        if delta > 0:
            self.zoom_in(self.zoom.wheel_factor)
        else:
            self.zoom_out(self.zoom.wheel_factor)

    def pointer_down(self, x: float, y: float, range_modifier: bool = False) -> None:
        if self.series.is_empty():
            return
        state = self.state
        if range_modifier:
            self._range_click(x)
            return
        if isinstance(state, Idle):
            self.state = Dragging(x, self.viewport.pan_offset)
        elif isinstance(state, RangeSet):
            self.state = Dragging(x, self.viewport.pan_offset, retained=state)
        else:
            # Armed measurement or drag already in progress.
            return
        self._changed()

    def pointer_move(self, x: float, y: float) -> None:
        self.crosshair = Crosshair(x, y)
        state = self.state
        if isinstance(state, Dragging):
            mapper = self.mapper()
            if mapper is not None and mapper.gap > 0:
                shift = _round_half_up(-(x - state.start_x) / mapper.gap)
                self.viewport.set_pan(state.start_pan + shift)
        self._resolve_tooltip()
        self._changed()

    def pointer_up(self) -> None:
        state = self.state
        if not isinstance(state, Dragging):
            return
        self.state = state.retained or IDLE
        self._changed()

    def pointer_leave(self) -> None:
        state = self.state
        if isinstance(state, Dragging):
            self.state = state.retained or IDLE
        elif isinstance(state, RangeArmed):
            self.state = IDLE
        self.crosshair = None
        self.tooltip = None
        self._changed()

    # Derived state

    def range_summary(self) -> Optional[RangeSummary]:
        selection = measured_range(self.state)
        if selection is None:
            return None
        return summarize_range(self.series, selection.anchor_index, selection.target_index)

    def range_hint(self) -> str:
        if isinstance(self.state, RangeArmed):
            return 'Shift+click end point'
        return 'Shift+click to measure range'

    def describe(self) -> List[str]:
        state = self.state
        return [
            f'Symbol: {self.series.symbol or "n/a"}',
            f'Timeframe: {self.series.timeframe}',
            f'Candles: {len(self.series)}',
            f'Visible: {self.viewport.visible_count}',
            f'Pan offset: {self.viewport.pan_offset}',
            f'Zoom: {self.viewport.zoom_level:.2f}',
            f'State: {type(state).__name__}',
        ]

    def _range_click(self, x: float) -> None:
        mapper = self.mapper()
        if mapper is None:
            return
        index = mapper.index_at(x)
        if index is None or index < 0 or index >= len(self.series):
            return
        state = self.state
        if isinstance(state, RangeArmed):
            self.state = RangeSet(state.anchor_index, index)
        elif isinstance(state, (Idle, RangeSet)):
            self.state = RangeArmed(index)
        else:
            return
        self._changed()

    def _resolve_tooltip(self) -> None:
        crosshair = self.crosshair
        if crosshair is None:
            self.tooltip = None
            return
        mapper = self.mapper()
        if mapper is None:
            self.tooltip = None
            return
        index = mapper.index_at(crosshair.x)
        if index is None or index >= len(self.series):
            self.tooltip = None
            return
        candle = self.series.candles[index]
        self.tooltip = Tooltip(index, candle, self.series.volume_for_time(candle.time), crosshair.x, crosshair.y)

    def _drop_stale_range(self, shifted: bool = False) -> None:
        total = 0 if shifted else len(self.series)
        state = self.state
        if isinstance(state, RangeArmed) and state.anchor_index >= total:
            self.state = IDLE
            return
        selection = measured_range(state)
        if selection is not None and max(selection.anchor_index, selection.target_index) >= total:
            if isinstance(state, Dragging):
                self.state = Dragging(state.start_x, state.start_pan)
            else:
                self.state = IDLE

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()
