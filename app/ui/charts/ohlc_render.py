from typing import List, Optional

from core.chart_config import DEFAULT_STYLE, ChartStyle
from core.chart_data import ChartSeries
from core.coords import CoordinateMapper
from core.formatting import (
    PriceFormatter,
    format_candle_time,
    format_percent,
    format_signed_price,
    format_usd_price,
    format_volume,
)
from core.interaction import (
    ChartController,
    Crosshair,
    InteractionState,
    RangeSummary,
    Tooltip,
    measured_range,
    summarize_range,
)

from .surface import ChartSurface


PLACEHOLDER_TEXT = 'No chart data available'


def render_controller(
    surface: ChartSurface,
    controller: ChartController,
    formatter: PriceFormatter = format_usd_price,
    style: ChartStyle = DEFAULT_STYLE,
) -> None:
    mapper = CoordinateMapper.for_viewport(
        controller.series,
        controller.viewport,
        surface.width,
        surface.height,
        controller.layout,
    )
    render_chart(
        surface,
        controller.series,
        mapper,
        controller.state,
        controller.crosshair,
        controller.tooltip,
        controller.current_price,
        formatter=formatter,
        style=style,
    )


def render_chart(
    surface: ChartSurface,
    series: ChartSeries,
    mapper: Optional[CoordinateMapper],
    state: InteractionState,
    crosshair: Optional[Crosshair],
    tooltip: Optional[Tooltip],
    current_price: Optional[float],
    formatter: PriceFormatter = format_usd_price,
    style: ChartStyle = DEFAULT_STYLE,
) -> None:
    """Clear the surface and repaint one full frame.

    Later layers occlude earlier ones: grid, candles, current price, volume,
    crosshair, measured range, then the tooltip and range summary panels.
    """
    surface.clear()
    if mapper is None or series.is_empty():
        _draw_placeholder(surface, style)
        return
    _draw_grid(surface, mapper, formatter, style)
    _draw_candles(surface, series, mapper, style)
    if current_price is not None:
        _draw_current_price(surface, mapper, current_price, formatter, style)
    _draw_volume(surface, series, mapper, style)
    if crosshair is not None:
        _draw_crosshair(surface, mapper, crosshair, formatter, style)
    summary = None
    selection = measured_range(state)
    if selection is not None:
        summary = summarize_range(series, selection.anchor_index, selection.target_index)
    if summary is not None:
        _draw_range(surface, mapper, summary, formatter, style)
    if tooltip is not None:
        _draw_tooltip(surface, tooltip, formatter, style)
    if summary is not None:
        _draw_range_summary(surface, summary, formatter, style)


def range_label(summary: RangeSummary, formatter: PriceFormatter) -> str:
    return (
        f'{summary.candle_count} candles | '
        f'{format_signed_price(summary.change, formatter)} ({format_percent(summary.change_pct)})'
    )


def _draw_placeholder(surface: ChartSurface, style: ChartStyle) -> None:
    surface.text(
        surface.width / 2.0,
        surface.height / 2.0,
        PLACEHOLDER_TEXT,
        style.placeholder_text,
        size=style.font_size + 2,
        align='center',
    )


def _draw_grid(surface: ChartSurface, mapper: CoordinateMapper, formatter: PriceFormatter, style: ChartStyle) -> None:
    for y, price in mapper.grid_levels():
        surface.line(mapper.plot_left, y, mapper.plot_right, y, style.grid)
        surface.text(mapper.plot_left - 5, y + 3, formatter(price), style.axis_text, size=style.font_size, align='right')


def _draw_candles(surface: ChartSurface, series: ChartSeries, mapper: CoordinateMapper, style: ChartStyle) -> None:
    body_w = mapper.body_width
    start = mapper.pan_offset
    for column in range(mapper.visible_count):
        candle = series.candles[start + column]
        x = mapper.x_for_column(column)
        color = style.up if candle.is_up else style.down
        high_y = mapper.y_for_price(candle.high)
        low_y = mapper.y_for_price(candle.low)
        open_y = mapper.y_for_price(candle.open)
        close_y = mapper.y_for_price(candle.close)
        body_top = min(open_y, close_y)
        body_h = max(1.0, abs(close_y - open_y))
        surface.line(x, high_y, x, low_y, color)
        surface.fill_rect(x - body_w / 2.0, body_top, body_w, body_h, color)


def _draw_current_price(
    surface: ChartSurface,
    mapper: CoordinateMapper,
    price: float,
    formatter: PriceFormatter,
    style: ChartStyle,
) -> None:
    y = mapper.y_for_price(price)
    if not mapper.in_price_area(y):
        return
    surface.line(mapper.plot_left, y, mapper.plot_right, y, style.price_line, dash=(4, 3))
    badge_w = 60.0
    surface.fill_rect(mapper.plot_right - badge_w, y - 8, badge_w, 16, style.price_line)
    surface.text(
        mapper.plot_right - badge_w / 2.0,
        y + 3,
        formatter(price),
        style.badge_text,
        size=style.small_font_size,
        align='center',
        bold=True,
    )


def _draw_volume(surface: ChartSurface, series: ChartSeries, mapper: CoordinateMapper, style: ChartStyle) -> None:
    body_w = mapper.body_width
    start = mapper.pan_offset
    bottom = mapper.volume_bottom
    for column in range(mapper.visible_count):
        candle = series.candles[start + column]
        volume = series.volume_for_time(candle.time) or 0.0
        if volume <= 0:
            continue
        bar_h = mapper.volume_bar_height(volume)
        x = mapper.x_for_column(column)
        color = style.volume_up if candle.is_up else style.volume_down
        surface.fill_rect(x - body_w / 2.0, bottom - bar_h, body_w, bar_h, color)
    surface.text(mapper.plot_left - 5, mapper.volume_top + 10, 'Vol', style.muted_text, size=style.small_font_size, align='right')


def _draw_crosshair(
    surface: ChartSurface,
    mapper: CoordinateMapper,
    crosshair: Crosshair,
    formatter: PriceFormatter,
    style: ChartStyle,
) -> None:
    x, y = crosshair.x, crosshair.y
    surface.line(x, mapper.chart_top, x, mapper.volume_bottom, style.crosshair, dash=(2, 2))
    surface.line(mapper.plot_left, y, mapper.plot_right, y, style.crosshair, dash=(2, 2))
    if not mapper.in_price_area(y):
        return
    price = mapper.price_at(y)
    surface.fill_rect(0, y - 8, mapper.plot_left - 2, 16, style.crosshair_badge)
    surface.text(mapper.plot_left - 5, y + 3, formatter(price), style.crosshair_text, size=style.small_font_size, align='right')


def _draw_range(
    surface: ChartSurface,
    mapper: CoordinateMapper,
    summary: RangeSummary,
    formatter: PriceFormatter,
    style: ChartStyle,
) -> None:
    vis_start = summary.start_index - mapper.pan_offset
    vis_end = summary.end_index - mapper.pan_offset
    if vis_end < 0 or vis_start >= mapper.visible_count:
        return
    draw_start = max(0, vis_start)
    draw_end = min(mapper.visible_count - 1, vis_end)
    x1 = mapper.column_left(draw_start)
    x2 = mapper.column_left(draw_end + 1)
    top = mapper.chart_top
    bottom = mapper.chart_bottom

    surface.fill_rect(x1, top, x2 - x1, mapper.chart_height, style.range_fill)
    surface.line(x1, top, x1, bottom, style.range_edge, dash=(3, 3))
    surface.line(x2, top, x2, bottom, style.range_edge, dash=(3, 3))

    text = range_label(summary, formatter)
    text_w = surface.text_width(text, size=style.font_size, bold=True)
    label_x = (x1 + x2) / 2.0
    label_y = top + 14
    surface.fill_rect(label_x - text_w / 2.0 - 6, label_y - 10, text_w + 12, 16, style.label_bg)
    color = style.up if summary.is_up else style.down
    surface.text(label_x, label_y, text, color, size=style.font_size, align='center', bold=True)


def _draw_panel(surface: ChartSurface, x: float, y: float, rows: List[tuple], style: ChartStyle, min_width: float = 0.0) -> None:
    line_h = 14.0
    pad = 8.0
    size = style.small_font_size
    width = max([surface.text_width(text, size=size) for text, _ in rows] + [min_width]) + pad * 2
    height = line_h * len(rows) + pad * 2 - 4
    x = max(0.0, min(x, surface.width - width))
    y = max(0.0, min(y, surface.height - height))
    surface.fill_rect(x, y, width, height, style.panel_bg)
    surface.stroke_rect(x, y, width, height, style.panel_border)
    for row, (text, color) in enumerate(rows):
        surface.text(x + pad, y + pad + 9 + row * line_h, text, color, size=size)


def _draw_tooltip(surface: ChartSurface, tooltip: Tooltip, formatter: PriceFormatter, style: ChartStyle) -> None:
    candle = tooltip.candle
    rows = [
        (format_candle_time(candle.time), style.placeholder_text),
        (f'O: {formatter(candle.open)}', style.panel_text),
        (f'H: {formatter(candle.high)}', style.up),
        (f'L: {formatter(candle.low)}', style.down),
        (f'C: {formatter(candle.close)}', style.panel_text),
    ]
    if tooltip.volume is not None:
        rows.append((f'Vol: {format_volume(tooltip.volume)}', style.panel_text))
    _draw_panel(surface, min(tooltip.x + 10, surface.width - 160), max(tooltip.y - 80, 0), rows, style)


def _draw_range_summary(surface: ChartSurface, summary: RangeSummary, formatter: PriceFormatter, style: ChartStyle) -> None:
    change_color = style.up if summary.is_up else style.down
    rows = [
        (f'Period  {format_candle_time(summary.start_time)} -> {format_candle_time(summary.end_time)}', style.panel_text),
        (
            f'Change  {format_signed_price(summary.change, formatter)} ({format_percent(summary.change_pct)})',
            change_color,
        ),
        (f'Open -> Close  {formatter(summary.open)} -> {formatter(summary.close)}', style.panel_text),
        (f'High / Low  {formatter(summary.high)} / {formatter(summary.low)}', style.panel_text),
    ]
    min_width = 264.0
    width_guess = max([surface.text_width(text, size=style.small_font_size) for text, _ in rows] + [min_width]) + 16
    x = surface.width / 2.0 - width_guess / 2.0
    y = surface.height - 8 - (14.0 * len(rows) + 12)
    _draw_panel(surface, x, y, rows, style, min_width=min_width)
