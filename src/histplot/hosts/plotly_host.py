"""
Chart host backed by a pandas OHLC frame and rendered with plotly.

Draw calls only record keyed objects; `figure()` builds the candlestick chart
with every live object on top, so removing or replacing an id before render
leaves no trace of the old object.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Callable

import pandas as pd
import plotly.graph_objects as go

from histplot.core.planner import IconType, LineStyle
from histplot.errors import ArtifactNotFound, HostBindingUnavailable
from histplot.hosts.base import (
    CAP_BACKGROUND_COLOR,
    CAP_BACKGROUND_IMAGE,
    CAP_CANDLE_COLORS,
    CAP_GRID,
    SymbolInfo,
)
from histplot.hosts.registry import register_host
from histplot.io.colors import Color

SUPPORTED_CAPABILITIES = frozenset({CAP_BACKGROUND_COLOR, CAP_CANDLE_COLORS, CAP_GRID})

ICON_SYMBOLS = {
    IconType.UP_ARROW: "triangle-up",
    IconType.DOWN_ARROW: "triangle-down",
}
LINE_DASH = {
    LineStyle.SOLID: "solid",
    LineStyle.DOTS_RARE: "dot",
}


def _naive(ts: pd.Timestamp) -> datetime:
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts.to_pydatetime()


class PlotlyChartHost:
    def __init__(
        self,
        bars: pd.DataFrame,
        *,
        symbol: str,
        pip_size: float,
        clock: Callable[[], datetime] | None = None,
        title: str | None = None,
    ) -> None:
        self.bars = bars.sort_index() if not bars.empty else bars
        self._symbol = SymbolInfo(name=symbol, pip_size=float(pip_size))
        self._clock = clock
        self.title = title or f"{symbol} trade history"
        self._objects: dict[str, dict[str, Any]] = {}

        self.background: str | None = None
        self.bullish = "#26a69a"
        self.bearish = "#ef5350"
        self.show_grid = True

    # ---- chart state ----
    @property
    def symbol(self) -> SymbolInfo:
        return self._symbol

    def now(self) -> datetime:
        """Latest bar time (the chart is static); wall clock when there are no bars."""
        if self._clock is not None:
            return self._clock()
        if not self.bars.empty:
            return _naive(pd.Timestamp(self.bars.index.max()))
        return datetime.now()

    def current_price(self) -> float | None:
        if self.bars.empty or "close" not in self.bars.columns:
            return None
        return float(self.bars["close"].iloc[-1])

    # ---- keyed objects ----
    def _put(self, artifact_id: str, obj: dict[str, Any]) -> None:
        self._objects.pop(artifact_id, None)
        self._objects[artifact_id] = obj

    def draw_icon(self, artifact_id: str, icon: IconType, time: datetime, price: float, color: Color) -> None:
        self._put(artifact_id, {"type": "icon", "icon": icon, "time": time, "price": price, "color": color})

    def draw_trend_line(
        self,
        artifact_id: str,
        time1: datetime,
        price1: float,
        time2: datetime,
        price2: float,
        color: Color,
        line_style: LineStyle = LineStyle.SOLID,
    ) -> None:
        self._put(
            artifact_id,
            {
                "type": "line",
                "time1": time1,
                "price1": price1,
                "time2": time2,
                "price2": price2,
                "color": color,
                "line_style": line_style,
            },
        )

    def draw_text(self, artifact_id: str, text: str, time: datetime, price: float, color: Color) -> None:
        self._put(artifact_id, {"type": "text", "text": text, "time": time, "price": price, "color": color})

    def remove_object(self, artifact_id: str) -> None:
        if artifact_id not in self._objects:
            raise ArtifactNotFound(artifact_id)
        del self._objects[artifact_id]

    def object_ids(self) -> list[str]:
        return list(self._objects)

    def get_object(self, artifact_id: str) -> dict[str, Any]:
        try:
            return self._objects[artifact_id]
        except KeyError as exc:
            raise ArtifactNotFound(artifact_id) from exc

    # ---- cosmetics ----
    def supports(self, capability: str) -> bool:
        return capability in SUPPORTED_CAPABILITIES

    def set_background_color(self, color: Color) -> None:
        self.background = color.to_css()

    def set_candle_colors(self, bullish: Color, bearish: Color) -> None:
        self.bullish = bullish.to_css()
        self.bearish = bearish.to_css()

    def set_grid_visible(self, visible: bool) -> None:
        self.show_grid = bool(visible)

    def set_background_image_visible(self, visible: bool) -> None:
        raise HostBindingUnavailable(CAP_BACKGROUND_IMAGE)

    # ---- rendering ----
    def figure(self) -> go.Figure:
        fig = go.Figure()

        if not self.bars.empty:
            fig.add_trace(
                go.Candlestick(
                    x=self.bars.index,
                    open=self.bars["open"],
                    high=self.bars["high"],
                    low=self.bars["low"],
                    close=self.bars["close"],
                    increasing={"line": {"color": self.bullish}, "fillcolor": self.bullish},
                    decreasing={"line": {"color": self.bearish}, "fillcolor": self.bearish},
                    name=self._symbol.name,
                )
            )

        for artifact_id, obj in self._objects.items():
            kind = obj["type"]
            if kind == "icon":
                fig.add_trace(
                    go.Scatter(
                        x=[obj["time"]],
                        y=[obj["price"]],
                        mode="markers",
                        marker={
                            "color": obj["color"].to_css(),
                            "size": 11,
                            "symbol": ICON_SYMBOLS[obj["icon"]],
                        },
                        name=artifact_id,
                        showlegend=False,
                        hovertemplate="Entry<br>%{x}<br>Px=%{y:.5f}<extra></extra>",
                    )
                )
            elif kind == "line":
                dashed = obj["line_style"] != LineStyle.SOLID
                fig.add_shape(
                    type="line",
                    x0=obj["time1"],
                    x1=obj["time2"],
                    y0=obj["price1"],
                    y1=obj["price2"],
                    line={
                        "color": obj["color"].to_css(),
                        "width": 1 if dashed else 2,
                        "dash": LINE_DASH[obj["line_style"]],
                    },
                    name=artifact_id,
                )
            elif kind == "text":
                fig.add_annotation(
                    x=obj["time"],
                    y=obj["price"],
                    text=obj["text"].replace("\n", "<br>"),
                    showarrow=False,
                    font={"color": obj["color"].to_css(), "size": 11},
                    name=artifact_id,
                )

        layout: dict[str, Any] = {
            "template": "plotly_dark",
            "title": self.title,
            "hovermode": "x unified",
            "xaxis": {"title": "Time", "showgrid": self.show_grid, "rangeslider": {"visible": False}},
            "yaxis": {"title": "Price", "showgrid": self.show_grid},
            "margin": {"l": 70, "r": 30, "t": 80, "b": 60},
        }
        if self.background is not None:
            layout["plot_bgcolor"] = self.background
            layout["paper_bgcolor"] = self.background
        fig.update_layout(**layout)
        return fig

    def write_html(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.figure().write_html(path, include_plotlyjs="cdn", full_html=True)
        return path


@register_host("plotly")
def make_plotly_host(
    *,
    bars: pd.DataFrame,
    symbol: str,
    pip_size: float,
    **kwargs: Any,
) -> PlotlyChartHost:
    return PlotlyChartHost(bars, symbol=symbol, pip_size=pip_size, **kwargs)
