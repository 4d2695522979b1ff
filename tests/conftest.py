from __future__ import annotations

from datetime import datetime

import pytest

from histplot.errors import ArtifactNotFound, HostBindingUnavailable
from histplot.hosts.base import (
    CAP_BACKGROUND_COLOR,
    CAP_BACKGROUND_IMAGE,
    CAP_CANDLE_COLORS,
    CAP_GRID,
    SymbolInfo,
)

HEADER = (
    "OpenTime,OrderType,Symbol,Setup,Lots,CloseTime,OpenPrice,ClosePrice,"
    "Swap,Commission,Profit,StopLoss,TakeProfit"
)
BUY_ROW = (
    "2024-01-05 09:00:00,Buy,EURUSD,Breakout,1.0,2024-01-05 10:00:00,"
    "1.1000,1.1050,0,0,50,1.0950,1.1100"
)
SELL_ROW = (
    "2024-01-05 12:00:00,Sell,EURUSD,Fade,0.5,2024-01-05 14:00:00,"
    "1.1050,1.1080,-0.2,-3.5,-15,1.1100,1.1000"
)
OPEN_ROW = "2024-01-06 08:00:00,Buy,EURUSD,Trend,2,,1.0900,,,,,,"
OTHER_SYMBOL_ROW = (
    "2024-01-05 09:30:00,Sell,GBPUSD,Range,1.0,2024-01-05 11:00:00,"
    "1.2700,1.2650,0,0,50"
)

ALL_CAPABILITIES = frozenset(
    {CAP_BACKGROUND_COLOR, CAP_CANDLE_COLORS, CAP_GRID, CAP_BACKGROUND_IMAGE}
)


def make_csv(*rows: str) -> str:
    return "\n".join([HEADER, *rows]) + "\n"


class FakeClock:
    def __init__(self, t: float = 1000.0) -> None:
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


class RecordingHost:
    """In-memory chart host that records every call."""

    def __init__(
        self,
        symbol: str = "EURUSD",
        pip_size: float = 0.0001,
        *,
        now: datetime = datetime(2024, 1, 6, 12, 0, 0),
        price: float | None = None,
        capabilities=ALL_CAPABILITIES,
    ) -> None:
        self._symbol = SymbolInfo(symbol, pip_size)
        self._now = now
        self.price = price
        self.capabilities = frozenset(capabilities)
        self.objects: dict[str, tuple] = {}
        self.draw_calls: list[str] = []
        self.remove_calls: list[str] = []
        self.settings: dict[str, object] = {}

    @property
    def symbol(self) -> SymbolInfo:
        return self._symbol

    def now(self) -> datetime:
        return self._now

    def current_price(self) -> float | None:
        return self.price

    def draw_icon(self, artifact_id, icon, time, price, color) -> None:
        self.draw_calls.append(artifact_id)
        self.objects[artifact_id] = ("icon", icon, time, price, color)

    def draw_trend_line(self, artifact_id, time1, price1, time2, price2, color, line_style=None) -> None:
        self.draw_calls.append(artifact_id)
        self.objects[artifact_id] = ("line", time1, price1, time2, price2, color, line_style)

    def draw_text(self, artifact_id, text, time, price, color) -> None:
        self.draw_calls.append(artifact_id)
        self.objects[artifact_id] = ("text", text, time, price, color)

    def remove_object(self, artifact_id) -> None:
        self.remove_calls.append(artifact_id)
        if artifact_id not in self.objects:
            raise ArtifactNotFound(artifact_id)
        del self.objects[artifact_id]

    def supports(self, capability: str) -> bool:
        return capability in self.capabilities

    def _require(self, capability: str) -> None:
        if capability not in self.capabilities:
            raise HostBindingUnavailable(capability)

    def set_background_color(self, color) -> None:
        self._require(CAP_BACKGROUND_COLOR)
        self.settings["background"] = color

    def set_candle_colors(self, bullish, bearish) -> None:
        self._require(CAP_CANDLE_COLORS)
        self.settings["candles"] = (bullish, bearish)

    def set_grid_visible(self, visible) -> None:
        self._require(CAP_GRID)
        self.settings["grid"] = visible

    def set_background_image_visible(self, visible) -> None:
        self._require(CAP_BACKGROUND_IMAGE)
        self.settings["background_image"] = visible


@pytest.fixture
def host() -> RecordingHost:
    return RecordingHost()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def trades_csv(tmp_path):
    path = tmp_path / "trades.csv"
    path.write_text(make_csv(BUY_ROW, SELL_ROW, OPEN_ROW, OTHER_SYMBOL_ROW), encoding="utf-8")
    return path
