from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from histplot.io.colors import Color, color_from_hex, parse_color


@dataclass(frozen=True)
class ChartTheme:
    background: Color
    bullish: Color
    bearish: Color
    show_grid: bool = False
    show_background_image: bool = False


@dataclass(frozen=True)
class PlotterConfig:
    # --- chart cosmetics ---
    background_color: str = "#FF161A25"
    bullish_color: str = "#26A69A"
    bearish_color: str = "#EF5350"
    show_grid: bool = False
    show_background_image: bool = False

    # --- input ---
    csv_path: str = "trades.csv"
    date_format: str = "yyyy-MM-dd HH:mm:ss"
    decimal_separator: str = "."
    time_offset_hours: int = 0         # applied to open and close times

    # --- overlays ---
    show_labels: bool = True
    show_sl_tp: bool = True
    buy_color: str = "Green"
    sell_color: str = "Red"
    arrow_buffer_pips: float = 5.0

    # --- refresh ---
    refresh_interval_minutes: int = 5  # 0 disables timer and file watch
    cooldown_seconds: float = 5.0

    debug: bool = False

    def __post_init__(self) -> None:
        if not -12 <= int(self.time_offset_hours) <= 12:
            raise ValueError(f"time_offset_hours must be in -12..12, got {self.time_offset_hours}")
        if float(self.arrow_buffer_pips) < 0:
            raise ValueError(f"arrow_buffer_pips must be >= 0, got {self.arrow_buffer_pips}")
        if len(self.decimal_separator) != 1:
            raise ValueError(f"decimal_separator must be a single character, got {self.decimal_separator!r}")
        if int(self.refresh_interval_minutes) < 0:
            raise ValueError(f"refresh_interval_minutes must be >= 0, got {self.refresh_interval_minutes}")
        if float(self.cooldown_seconds) <= 0:
            raise ValueError(f"cooldown_seconds must be > 0, got {self.cooldown_seconds}")
        if not str(self.date_format).strip():
            raise ValueError("date_format must not be empty")
        # fail fast on unparseable colors
        self.theme()
        self.buy()
        self.sell()

    def buy(self) -> Color:
        return parse_color(self.buy_color)

    def sell(self) -> Color:
        return parse_color(self.sell_color)

    def theme(self) -> ChartTheme:
        return ChartTheme(
            background=color_from_hex(self.background_color),
            bullish=color_from_hex(self.bullish_color),
            bearish=color_from_hex(self.bearish_color),
            show_grid=bool(self.show_grid),
            show_background_image=bool(self.show_background_image),
        )

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "PlotterConfig":
        valid_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in raw.items() if k in valid_fields}
        return cls(**filtered)


def load_config(path: str | Path, **overrides: Any) -> PlotterConfig:
    """Reads a JSON config file; keyword overrides that are not None win."""
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"{path} must contain a JSON object")
    raw.update({k: v for k, v in overrides.items() if v is not None})
    return PlotterConfig.from_dict(raw)
