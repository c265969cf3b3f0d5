from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional


PriceFormatter = Callable[[float], str]


def format_usd_price(price: float) -> str:
    if price < 0.0001:
        return f'${price:.2e}'
    if price < 0.01:
        return f'${price:.6f}'
    if price < 1:
        return f'${price:.4f}'
    return f'${price:,.2f}'


def format_plain_price(price: float) -> str:
    if price < 0.0001:
        return f'{price:.4e}'
    if price < 0.01:
        return f'{price:.6f}'
    if price < 1:
        return f'{price:.4f}'
    return f'{price:,.2f}'


def format_signed_price(delta: float, fmt: PriceFormatter) -> str:
    # Formatters are magnitude based, so the sign is applied outside.
    sign = '+' if delta >= 0 else '-'
    return f'{sign}{fmt(abs(delta))}'


def format_percent(pct: Optional[float]) -> str:
    if pct is None:
        return 'n/a'
    sign = '+' if pct >= 0 else ''
    return f'{sign}{pct:.2f}%'


def format_volume(volume: float) -> str:
    return f'${volume:,.2f}'


def format_candle_time(ts: int) -> str:
    try:
        return datetime.fromtimestamp(ts).strftime('%Y-%m-%d %H:%M')
    except (OverflowError, OSError, ValueError):
        return str(ts)
