from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable

from histplot.core.config import PlotterConfig
from histplot.core.metrics import format_pips, format_profit, pip_delta
from histplot.core.naming import arrow_id, label_id, stop_loss_id, take_profit_id, unique_trade_key
from histplot.core.records import TradeRecord
from histplot.io.colors import GREEN, RED, Color

LEVEL_ALPHA = 128
STOP_LOSS_COLOR = RED.with_alpha(LEVEL_ALPHA)
TAKE_PROFIT_COLOR = GREEN.with_alpha(LEVEL_ALPHA)


class ArtifactKind(str, Enum):
    ICON = "icon"
    ORDER = "order"
    LABEL = "label"
    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"


class IconType(str, Enum):
    UP_ARROW = "up_arrow"
    DOWN_ARROW = "down_arrow"


class LineStyle(str, Enum):
    SOLID = "solid"
    DOTS_RARE = "dots_rare"


@dataclass(frozen=True)
class ChartContext:
    """What the planner needs to know about the chart it draws on."""

    symbol: str
    pip_size: float
    now: datetime
    current_price: float | None = None


@dataclass(frozen=True)
class DrawCommand:
    kind: ArtifactKind
    artifact_id: str
    trade_key: str
    color: Color
    time1: datetime
    price1: float
    time2: datetime | None = None
    price2: float | None = None
    text: str | None = None
    icon: IconType | None = None
    line_style: LineStyle = LineStyle.SOLID


@dataclass(frozen=True)
class PlotPlan:
    commands: tuple[DrawCommand, ...] = ()
    artifact_ids: dict[ArtifactKind, dict[str, str]] = field(
        default_factory=lambda: {k: {} for k in ArtifactKind}
    )

    def ids(self) -> list[str]:
        return [c.artifact_id for c in self.commands]


def _label_text(rec: TradeRecord, *, pips: float, with_profit: bool) -> str:
    lines = [f"{rec.order_type} {rec.lots:g} lot"]
    if with_profit:
        lines.append(format_profit(rec.profit))
    lines.append(f"{format_pips(pips)} pips")
    return "\n".join(lines)


def _plan_one(
    rec: TradeRecord,
    key: str,
    *,
    config: PlotterConfig,
    chart: ChartContext,
    buy_color: Color,
    sell_color: Color,
) -> list[DrawCommand]:
    is_buy = rec.is_buy
    color = buy_color if is_buy else sell_color
    entry_time = rec.open_time
    entry_price = rec.open_price
    out: list[DrawCommand] = []

    # entry arrow sits below price for buys, above for sells
    buffer = config.arrow_buffer_pips * chart.pip_size
    out.append(
        DrawCommand(
            kind=ArtifactKind.ICON,
            artifact_id=arrow_id(key),
            trade_key=key,
            color=color,
            time1=entry_time,
            price1=entry_price - buffer if is_buy else entry_price + buffer,
            icon=IconType.UP_ARROW if is_buy else IconType.DOWN_ARROW,
        )
    )

    if rec.is_closed:
        end_time = rec.close_time
        end_price = rec.close_price
        pips = pip_delta(entry=entry_price, exit=end_price, is_buy=is_buy, pip_size=chart.pip_size)
        label_price = (entry_price + end_price) / 2
        text = _label_text(rec, pips=pips, with_profit=True)
    else:
        # open trades run flat at the entry price up to "now"
        end_time = max(chart.now, entry_time)
        end_price = entry_price
        current = chart.current_price if chart.current_price is not None else entry_price
        pips = pip_delta(entry=entry_price, exit=current, is_buy=is_buy, pip_size=chart.pip_size)
        label_price = entry_price
        text = _label_text(rec, pips=pips, with_profit=False)

    out.append(
        DrawCommand(
            kind=ArtifactKind.ORDER,
            artifact_id=key,
            trade_key=key,
            color=color,
            time1=entry_time,
            price1=entry_price,
            time2=end_time,
            price2=end_price,
        )
    )

    if config.show_labels:
        out.append(
            DrawCommand(
                kind=ArtifactKind.LABEL,
                artifact_id=label_id(key),
                trade_key=key,
                color=color,
                time1=entry_time + (end_time - entry_time) / 2,
                price1=label_price,
                text=text,
            )
        )

    # level lines end at the close time even when the close price is missing
    level_end = rec.close_time if rec.close_time is not None else max(chart.now, entry_time)
    if config.show_sl_tp and rec.stop_loss is not None:
        out.append(
            DrawCommand(
                kind=ArtifactKind.STOP_LOSS,
                artifact_id=stop_loss_id(key),
                trade_key=key,
                color=STOP_LOSS_COLOR,
                time1=entry_time,
                price1=rec.stop_loss,
                time2=level_end,
                price2=rec.stop_loss,
                line_style=LineStyle.DOTS_RARE,
            )
        )
    if config.show_sl_tp and rec.take_profit is not None:
        out.append(
            DrawCommand(
                kind=ArtifactKind.TAKE_PROFIT,
                artifact_id=take_profit_id(key),
                trade_key=key,
                color=TAKE_PROFIT_COLOR,
                time1=entry_time,
                price1=rec.take_profit,
                time2=level_end,
                price2=rec.take_profit,
                line_style=LineStyle.DOTS_RARE,
            )
        )
    return out


def plan_trades(
    records: Iterable[TradeRecord],
    *,
    config: PlotterConfig,
    chart: ChartContext,
) -> PlotPlan:
    """
    Maps trades to draw commands, in record order.

    Per trade: entry icon, order line, label (optional), stop-loss and
    take-profit lines (optional, only when the level is present). Every
    artifact id is rooted at the trade key, so a trade can be removed as a
    unit and a redraw of the same file produces the same ids.
    """
    if not chart.pip_size > 0:
        raise ValueError(f"pip_size must be > 0 for {chart.symbol}, got {chart.pip_size}")

    buy_color = config.buy()
    sell_color = config.sell()
    seen: dict[str, int] = {}
    commands: list[DrawCommand] = []
    artifact_ids: dict[ArtifactKind, dict[str, str]] = {k: {} for k in ArtifactKind}

    for rec in records:
        key = unique_trade_key(rec.trade_key, seen)
        for cmd in _plan_one(rec, key, config=config, chart=chart, buy_color=buy_color, sell_color=sell_color):
            commands.append(cmd)
            artifact_ids[cmd.kind][key] = cmd.artifact_id

    return PlotPlan(commands=tuple(commands), artifact_ids=artifact_ids)
