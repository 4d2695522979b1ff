from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable

from histplot.core.config import ChartTheme
from histplot.core.planner import ArtifactKind, ChartContext, DrawCommand, IconType, LineStyle
from histplot.errors import HostBindingUnavailable
from histplot.io.colors import Color

log = logging.getLogger(__name__)

# Optional cosmetic effects a host may or may not support.
CAP_BACKGROUND_COLOR = "background_color"
CAP_CANDLE_COLORS = "candle_colors"
CAP_GRID = "grid_visibility"
CAP_BACKGROUND_IMAGE = "background_image_visibility"


@dataclass(frozen=True)
class SymbolInfo:
    name: str
    pip_size: float


@runtime_checkable
class ChartHost(Protocol):
    """
    The chart the overlays are drawn on.

    Objects are keyed by string id; drawing with an id that already exists
    replaces that object. `remove_object` raises ArtifactNotFound for ids the
    host does not know.
    """

    @property
    def symbol(self) -> SymbolInfo: ...

    def now(self) -> datetime: ...

    def current_price(self) -> float | None: ...

    def draw_icon(self, artifact_id: str, icon: IconType, time: datetime, price: float, color: Color) -> None: ...

    def draw_trend_line(
        self,
        artifact_id: str,
        time1: datetime,
        price1: float,
        time2: datetime,
        price2: float,
        color: Color,
        line_style: LineStyle = LineStyle.SOLID,
    ) -> None: ...

    def draw_text(self, artifact_id: str, text: str, time: datetime, price: float, color: Color) -> None: ...

    def remove_object(self, artifact_id: str) -> None: ...

    def supports(self, capability: str) -> bool: ...

    def set_background_color(self, color: Color) -> None: ...

    def set_candle_colors(self, bullish: Color, bearish: Color) -> None: ...

    def set_grid_visible(self, visible: bool) -> None: ...

    def set_background_image_visible(self, visible: bool) -> None: ...


def chart_context(host: ChartHost) -> ChartContext:
    sym = host.symbol
    return ChartContext(
        symbol=sym.name,
        pip_size=sym.pip_size,
        now=host.now(),
        current_price=host.current_price(),
    )


def draw_command(host: ChartHost, cmd: DrawCommand) -> None:
    if cmd.kind == ArtifactKind.ICON:
        host.draw_icon(cmd.artifact_id, cmd.icon, cmd.time1, cmd.price1, cmd.color)
    elif cmd.kind == ArtifactKind.LABEL:
        host.draw_text(cmd.artifact_id, cmd.text or "", cmd.time1, cmd.price1, cmd.color)
    else:
        host.draw_trend_line(
            cmd.artifact_id,
            cmd.time1,
            cmd.price1,
            cmd.time2,
            cmd.price2,
            cmd.color,
            line_style=cmd.line_style,
        )


def _apply_optional(host: ChartHost, capability: str, fn, *args) -> bool:
    try:
        if not host.supports(capability):
            raise HostBindingUnavailable(capability)
        fn(*args)
    except HostBindingUnavailable as exc:
        log.info("Could not apply chart setting (%s); continuing without it", exc)
        return False
    return True


def apply_theme(host: ChartHost, theme: ChartTheme) -> dict[str, bool]:
    """
    Applies each cosmetic setting the host supports and skips the rest.
    Returns capability -> applied.
    """
    applied = {
        CAP_BACKGROUND_COLOR: _apply_optional(
            host, CAP_BACKGROUND_COLOR, host.set_background_color, theme.background
        ),
        CAP_CANDLE_COLORS: _apply_optional(
            host, CAP_CANDLE_COLORS, host.set_candle_colors, theme.bullish, theme.bearish
        ),
    }
    # grid and background image are only touched when they should be hidden
    if not theme.show_grid:
        applied[CAP_GRID] = _apply_optional(host, CAP_GRID, host.set_grid_visible, False)
    if not theme.show_background_image:
        applied[CAP_BACKGROUND_IMAGE] = _apply_optional(
            host, CAP_BACKGROUND_IMAGE, host.set_background_image_visible, False
        )
    return applied
