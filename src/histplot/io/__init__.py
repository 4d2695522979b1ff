"""CSV readers and color parsing."""

from .colors import Color, color_from_hex, color_from_name, parse_color
from .dataio import load_ohlc_csv
from .trades_csv import (
    Diagnostic,
    DiagnosticKind,
    ParseResult,
    load_trades_csv,
    parse_trades_csv,
    to_strftime,
)

__all__ = [
    "Color",
    "Diagnostic",
    "DiagnosticKind",
    "ParseResult",
    "color_from_hex",
    "color_from_name",
    "load_ohlc_csv",
    "load_trades_csv",
    "parse_color",
    "parse_trades_csv",
    "to_strftime",
]
