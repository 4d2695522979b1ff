from __future__ import annotations

from dataclasses import asdict
from typing import Iterable, Iterator

import pandas as pd

from histplot.core.records import TradeRecord

FRAME_COLUMNS = [f for f in TradeRecord.__dataclass_fields__]
DERIVED_COLUMNS = ["is_buy", "is_closed", "net_profit"]


class TradeRepository:
    """
    Parsed trades for the instrument currently on the chart.

    The record set is only ever swapped wholesale via `replace`; there is no
    per-record add/remove, so a reload can never leave stale or duplicated
    rows behind.
    """

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        self._records: tuple[TradeRecord, ...] = ()

    def replace(self, records: Iterable[TradeRecord]) -> None:
        new = tuple(records)
        foreign = [r for r in new if r.symbol != self.symbol]
        if foreign:
            raise ValueError(
                f"repository holds {self.symbol} only; got {len(foreign)} record(s) "
                f"for {sorted({r.symbol for r in foreign})}"
            )
        self._records = new

    def clear(self) -> None:
        self._records = ()

    def all(self) -> tuple[TradeRecord, ...]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TradeRecord]:
        return iter(self._records)

    def to_frame(self) -> pd.DataFrame:
        if not self._records:
            return pd.DataFrame(columns=FRAME_COLUMNS + DERIVED_COLUMNS)
        df = pd.DataFrame([asdict(r) for r in self._records], columns=FRAME_COLUMNS)
        df["is_buy"] = [r.is_buy for r in self._records]
        df["is_closed"] = [r.is_closed for r in self._records]
        df["net_profit"] = [r.net_profit for r in self._records]
        return df
