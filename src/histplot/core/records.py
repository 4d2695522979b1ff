from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from histplot.core.naming import trade_key

BUY_MARKER = "Buy"


@dataclass(frozen=True)
class TradeRecord:
    open_time: datetime
    order_type: str
    symbol: str
    lots: float
    open_price: float
    close_time: datetime | None = None
    close_price: float | None = None
    stop_loss: float | None = None
    take_profit: float | None = None
    swap: float = 0.0
    commission: float = 0.0
    profit: float = 0.0
    comment: str = ""          # "Setup" column
    line_no: int = 0

    @property
    def is_buy(self) -> bool:
        return BUY_MARKER in self.order_type

    @property
    def is_closed(self) -> bool:
        # a close time without a close price (or the reverse) still plots as open
        return self.close_time is not None and self.close_price is not None

    @property
    def net_profit(self) -> float:
        # the Profit column is the broker's net figure; swap and commission are already in it
        return self.profit

    @property
    def trade_key(self) -> str:
        return trade_key(open_time=self.open_time, order_type=self.order_type, lots=self.lots)
