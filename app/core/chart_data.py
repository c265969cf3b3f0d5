from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np


TIMEFRAMES = ('1m', '5m', '15m', '1h', '4h', '1d')
DEFAULT_TIMEFRAME = '1m'


def timeframe_to_seconds(timeframe: str) -> int:
    if not timeframe:
        return 60
    unit = timeframe[-1].lower()
    try:
        mult = int(timeframe[:-1])
    except (ValueError, TypeError):
        return 60
    if unit == 'm':
        return mult * 60
    if unit == 'h':
        return mult * 3_600
    if unit == 'd':
        return mult * 86_400
    return 60


@dataclass(frozen=True)
class Candle:
    time: int
    open: float
    high: float
    low: float
    close: float

    @property
    def is_up(self) -> bool:
        return self.close >= self.open


@dataclass(frozen=True)
class VolumeSample:
    time: int
    volume: float


@dataclass(frozen=True)
class ChartSeries:
    """One symbol/timeframe worth of candles with their volume lookup.

    The series is never mutated once built; a refresh produces a new instance.
    """

    symbol: str
    timeframe: str
    candles: Tuple[Candle, ...] = ()
    volumes: Tuple[VolumeSample, ...] = ()
    _volume_map: Dict[int, float] = field(default_factory=dict, init=False, repr=False, compare=False)
    _highs: np.ndarray = field(default=None, init=False, repr=False, compare=False)
    _lows: np.ndarray = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, 'candles', tuple(self.candles))
        object.__setattr__(self, 'volumes', tuple(self.volumes))
        # Later samples win on duplicate timestamps.
        object.__setattr__(self, '_volume_map', {v.time: v.volume for v in self.volumes})
        object.__setattr__(self, '_highs', np.asarray([c.high for c in self.candles], dtype=np.float64))
        object.__setattr__(self, '_lows', np.asarray([c.low for c in self.candles], dtype=np.float64))

    @classmethod
    def from_rows(
        cls,
        symbol: str,
        timeframe: str,
        rows: Iterable[Sequence[float]],
        volumes: Optional[Iterable[Sequence[float]]] = None,
    ) -> 'ChartSeries':
        # rows: time, open, high, low, close
        candles = [Candle(int(r[0]), float(r[1]), float(r[2]), float(r[3]), float(r[4])) for r in rows]
        samples = [VolumeSample(int(v[0]), float(v[1])) for v in (volumes or [])]
        return cls(symbol, timeframe, tuple(candles), tuple(samples))

    @property
    def identity(self) -> Tuple[str, str]:
        return (self.symbol, self.timeframe)

    def __len__(self) -> int:
        return len(self.candles)

    def is_empty(self) -> bool:
        return not self.candles

    def volume_for_time(self, time: int) -> Optional[float]:
        return self._volume_map.get(time)

    def volume_at(self, index: int) -> float:
        if index < 0 or index >= len(self.candles):
            return 0.0
        return self._volume_map.get(self.candles[index].time, 0.0)

    def price_bounds(self, start: int, end: int) -> Tuple[float, float]:
        """Lowest low and highest high over candles[start:end]."""
        lows = self._lows[start:end]
        highs = self._highs[start:end]
        if lows.size == 0:
            return 0.0, 0.0
        return float(np.min(lows)), float(np.max(highs))

    def slice(self, start: int, end: int) -> List[Candle]:
        return list(self.candles[start:end])


EMPTY_SERIES = ChartSeries('', DEFAULT_TIMEFRAME)
