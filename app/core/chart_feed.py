from __future__ import annotations

import math
import time
import zlib
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol

import numpy as np

from core.chart_data import Candle, ChartSeries, DEFAULT_TIMEFRAME, TIMEFRAMES, VolumeSample, timeframe_to_seconds


class ChartPayloadError(ValueError):
    pass


@dataclass(frozen=True)
class ChartPayload:
    symbol: str
    timeframe: str
    series: ChartSeries
    current_price: Optional[float] = None


class ChartFeed(Protocol):
    def load_chart(self, symbol: str, timeframe: str) -> ChartPayload:
        ...


def _finite(value: Any) -> Optional[float]:
    try:
        out = float(value)
    except (ValueError, TypeError):
        return None
    if not math.isfinite(out):
        return None
    return out


def _timestamp(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (ValueError, TypeError, OverflowError):
        return None


def _rows(value: Any) -> List[Any]:
    # A section that is not a list carries no rows.
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def parse_candles(rows: Iterable[Any]) -> List[Candle]:
    candles: List[Candle] = []
    last_time: Optional[int] = None
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        ts = _timestamp(row.get('time'))
        if ts is None:
            continue
        o = _finite(row.get('open'))
        h = _finite(row.get('high'))
        l = _finite(row.get('low'))
        c = _finite(row.get('close'))
        if o is None or h is None or l is None or c is None:
            continue
        # Time must stay strictly increasing; a repeated bucket replaces the previous one.
        if last_time is not None and ts <= last_time:
            if ts == last_time:
                candles[-1] = Candle(ts, o, h, l, c)
            continue
        candles.append(Candle(ts, o, h, l, c))
        last_time = ts
    return candles


def parse_volumes(rows: Iterable[Any]) -> List[VolumeSample]:
    samples: List[VolumeSample] = []
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        ts = _timestamp(row.get('time'))
        if ts is None:
            continue
        vol = _finite(row.get('volume'))
        if vol is None or vol < 0:
            continue
        samples.append(VolumeSample(ts, vol))
    return samples


def parse_chart_payload(data: Dict[str, Any], symbol: Optional[str] = None, timeframe: Optional[str] = None) -> ChartPayload:
    """Build a payload from the backend's coin-with-chart response.

    Expected shape: ``{"coin": {"symbol", "currentPrice"}, "candlestickData": [...],
    "volumeData": [...], "timeframe": "1m"}``. Malformed rows are dropped.
    """
    if not isinstance(data, dict):
        raise ChartPayloadError(f'Chart payload must be a mapping, got {type(data).__name__}')
    coin = data.get('coin') or {}
    if not isinstance(coin, dict):
        coin = {}
    sym = symbol or str(coin.get('symbol') or '')
    tf = data.get('timeframe') or timeframe or DEFAULT_TIMEFRAME
    if tf not in TIMEFRAMES:
        tf = timeframe or DEFAULT_TIMEFRAME
    candles = parse_candles(_rows(data.get('candlestickData')))
    volumes = parse_volumes(_rows(data.get('volumeData')))
    current_price = _finite(coin.get('currentPrice'))
    series = ChartSeries(sym, tf, tuple(candles), tuple(volumes))
    return ChartPayload(sym, tf, series, current_price)


class FakeChartFeed:
    """Offline feed producing a deterministic random walk per symbol/timeframe."""

    def __init__(self, bar_count: int = 200, start_price: float = 1.0, now: Optional[int] = None) -> None:
        self.bar_count = bar_count
        self.start_price = start_price
        self.now = now

    def load_chart(self, symbol: str, timeframe: str) -> ChartPayload:
        return parse_chart_payload(self.build_response(symbol, timeframe), symbol, timeframe)

    def build_response(self, symbol: str, timeframe: str) -> Dict[str, Any]:
        step = timeframe_to_seconds(timeframe)
        now = int(self.now if self.now is not None else time.time())
        end = now - (now % step)
        seed = zlib.crc32(f'{symbol}:{timeframe}'.encode('utf-8'))
        rng = np.random.default_rng(seed)
        n = max(0, int(self.bar_count))
        returns = rng.normal(0.0, 0.02, size=n)
        closes = self.start_price * np.exp(np.cumsum(returns))
        opens = np.concatenate(([self.start_price], closes[:-1])) if n else closes
        spread = np.abs(rng.normal(0.0, 0.01, size=n))
        highs = np.maximum(opens, closes) * (1.0 + spread)
        lows = np.minimum(opens, closes) * (1.0 - spread)
        volumes = np.abs(rng.normal(500.0, 250.0, size=n))
        times = [end - (n - 1 - i) * step for i in range(n)]
        candles = [
            {
                'time': times[i],
                'open': float(opens[i]),
                'high': float(highs[i]),
                'low': float(lows[i]),
                'close': float(closes[i]),
            }
            for i in range(n)
        ]
        volume_data = [{'time': times[i], 'volume': float(volumes[i])} for i in range(n)]
        current = float(closes[-1]) if n else None
        return {
            'coin': {'symbol': symbol, 'currentPrice': current},
            'candlestickData': candles,
            'volumeData': volume_data,
            'timeframe': timeframe,
        }
