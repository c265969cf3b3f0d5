from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ZoomConfig:
    wheel_factor: float = 1.3
    button_factor: float = 1.5
    # Auto-fit on load shows the most recent candles.
    default_visible: int = 10
    min_visible: int = 5
    # Zoom ceiling keeps at least this many candles on screen.
    max_zoom_visible: int = 3


@dataclass(frozen=True)
class ChartLayout:
    left_padding: float = 70.0
    right_padding: float = 10.0
    top_padding: float = 10.0
    bottom_padding: float = 10.0
    volume_height: float = 60.0
    volume_gap: float = 10.0
    body_ratio: float = 0.7
    min_body_width: float = 2.0
    grid_levels: int = 5
    default_height: int = 390

    def chart_height(self, surface_height: float) -> float:
        return max(
            1.0,
            surface_height - self.top_padding - self.volume_gap - self.volume_height - self.bottom_padding,
        )


@dataclass(frozen=True)
class ChartStyle:
    up: str = '#10b981'
    down: str = '#ef4444'
    volume_up: tuple = (16, 185, 129, 77)
    volume_down: tuple = (239, 68, 68, 77)
    grid: tuple = (255, 255, 255, 15)
    axis_text: tuple = (255, 255, 255, 102)
    muted_text: tuple = (255, 255, 255, 77)
    price_line: str = '#3b82f6'
    badge_text: str = '#ffffff'
    crosshair: tuple = (255, 255, 255, 51)
    crosshair_badge: tuple = (255, 255, 255, 179)
    crosshair_text: str = '#000000'
    range_fill: tuple = (59, 130, 246, 20)
    range_edge: tuple = (59, 130, 246, 128)
    label_bg: tuple = (0, 0, 0, 204)
    background: str = '#131722'
    panel_bg: str = '#1E222D'
    panel_border: str = '#2A2E39'
    panel_text: str = '#B2B5BE'
    placeholder_text: str = '#6B7280'
    font_size: int = 10
    small_font_size: int = 9


DEFAULT_ZOOM = ZoomConfig()
DEFAULT_LAYOUT = ChartLayout()
DEFAULT_STYLE = ChartStyle()
