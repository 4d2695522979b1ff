"""Chart hosts: the drawing surface the trade overlays are sent to."""

from .base import (
    CAP_BACKGROUND_COLOR,
    CAP_BACKGROUND_IMAGE,
    CAP_CANDLE_COLORS,
    CAP_GRID,
    ChartHost,
    SymbolInfo,
    apply_theme,
    chart_context,
    draw_command,
)
from .registry import get_host, load_default_hosts, register_host

__all__ = [
    "CAP_BACKGROUND_COLOR",
    "CAP_BACKGROUND_IMAGE",
    "CAP_CANDLE_COLORS",
    "CAP_GRID",
    "ChartHost",
    "SymbolInfo",
    "apply_theme",
    "chart_context",
    "draw_command",
    "get_host",
    "load_default_hosts",
    "register_host",
]
