"""
Trade-history CSV ingestion.

Expected columns, in this order (header row is ignored):
  OpenTime, OrderType, Symbol, Setup, Lots, CloseTime, OpenPrice, ClosePrice,
  Swap, Commission, Profit[, StopLoss][, TakeProfit]

Each line is handled on its own. A bad required field drops that row, a bad
optional field drops only the field; neither stops the load.
"""

from __future__ import annotations

import csv
import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path

import pandas as pd

from histplot.core.records import TradeRecord
from histplot.errors import CsvFileNotFound

log = logging.getLogger(__name__)

MIN_COLUMNS = 11

COL_OPEN_TIME = 0
COL_ORDER_TYPE = 1
COL_SYMBOL = 2
COL_SETUP = 3
COL_LOTS = 4
COL_CLOSE_TIME = 5
COL_OPEN_PRICE = 6
COL_CLOSE_PRICE = 7
COL_SWAP = 8
COL_COMMISSION = 9
COL_PROFIT = 10
COL_STOP_LOSS = 11
COL_TAKE_PROFIT = 12

DEFAULT_DATE_FORMAT = "yyyy-MM-dd HH:mm:ss"

_DOTNET_TOKENS = {
    "yyyy": "%Y",
    "yy": "%y",
    "MM": "%m",
    "dd": "%d",
    "HH": "%H",
    "hh": "%I",
    "mm": "%M",
    "ss": "%S",
    "fff": "%f",
    "tt": "%p",
}
_DOTNET_RE = re.compile("|".join(sorted(_DOTNET_TOKENS, key=len, reverse=True)))


class DiagnosticKind(str, Enum):
    MALFORMED_ROW = "malformed_row"
    DEGRADED_FIELD = "degraded_field"


@dataclass(frozen=True)
class Diagnostic:
    line_no: int
    kind: DiagnosticKind
    message: str


@dataclass(frozen=True)
class ParseResult:
    records: tuple[TradeRecord, ...]
    diagnostics: tuple[Diagnostic, ...]
    rows_read: int
    rejected: int
    skipped_symbol: int


def to_strftime(date_format: str) -> str:
    """
    Converts a .NET style pattern ('yyyy-MM-dd HH:mm:ss') to strftime.
    Patterns that already contain '%' are returned unchanged.
    """
    if "%" in date_format:
        return date_format
    return _DOTNET_RE.sub(lambda m: _DOTNET_TOKENS[m.group(0)], date_format)


def _parse_time(text: str, fmt: str, offset: timedelta) -> datetime | None:
    ts = pd.to_datetime(text, format=fmt, errors="coerce")
    if pd.isna(ts):
        return None
    return ts.to_pydatetime() + offset


def _parse_number(text: str, decimal_separator: str) -> float | None:
    raw = text.replace(decimal_separator, ".") if decimal_separator != "." else text
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def _split(line: str) -> list[str]:
    return [p.strip() for p in next(csv.reader([line]))]


class _RowParser:
    def __init__(self, *, fmt: str, shown_format: str, decimal_separator: str, offset: timedelta) -> None:
        self.fmt = fmt
        self.shown_format = shown_format
        self.decimal_separator = decimal_separator
        self.offset = offset
        self.diagnostics: list[Diagnostic] = []

    def _emit(self, line_no: int, kind: DiagnosticKind, message: str) -> None:
        msg = f"Line {line_no}: {message}"
        self.diagnostics.append(Diagnostic(line_no, kind, msg))
        log.warning(msg)

    def reject(self, line_no: int, message: str) -> None:
        self._emit(line_no, DiagnosticKind.MALFORMED_ROW, message)

    def degrade(self, line_no: int, message: str) -> None:
        self._emit(line_no, DiagnosticKind.DEGRADED_FIELD, message)

    def _optional_number(self, line_no: int, parts: list[str], col: int, label: str) -> float | None:
        if len(parts) <= col or not parts[col]:
            return None
        value = _parse_number(parts[col], self.decimal_separator)
        if value is None:
            self.degrade(line_no, f"Invalid {label} value '{parts[col]}'")
        return value

    def parse(self, line_no: int, parts: list[str]) -> TradeRecord | None:
        if len(parts) < MIN_COLUMNS:
            self.reject(
                line_no,
                f"Invalid CSV format, not enough columns. Found {len(parts)}, expected at least {MIN_COLUMNS}",
            )
            return None

        # required fields first so a rejected row yields a single diagnostic
        open_time = _parse_time(parts[COL_OPEN_TIME], self.fmt, self.offset) if parts[COL_OPEN_TIME] else None
        if open_time is None:
            self.reject(
                line_no,
                f"Invalid Opening Time format '{parts[COL_OPEN_TIME]}'. Expected format: {self.shown_format}",
            )
            return None

        lots = _parse_number(parts[COL_LOTS], self.decimal_separator)
        if lots is None or lots <= 0:
            self.reject(line_no, f"Invalid Size / Quantity value '{parts[COL_LOTS]}'")
            return None

        open_price = _parse_number(parts[COL_OPEN_PRICE], self.decimal_separator)
        if open_price is None:
            self.reject(line_no, f"Invalid Entry Price value '{parts[COL_OPEN_PRICE]}'")
            return None

        close_time = None
        if parts[COL_CLOSE_TIME]:
            close_time = _parse_time(parts[COL_CLOSE_TIME], self.fmt, self.offset)
            if close_time is None:
                self.degrade(line_no, f"Invalid Closing Time format '{parts[COL_CLOSE_TIME]}'")

        close_price = self._optional_number(line_no, parts, COL_CLOSE_PRICE, "Closing Price")
        swap = self._optional_number(line_no, parts, COL_SWAP, "Swap")
        commission = self._optional_number(line_no, parts, COL_COMMISSION, "Commission")
        profit = self._optional_number(line_no, parts, COL_PROFIT, "Net Profit")
        stop_loss = self._optional_number(line_no, parts, COL_STOP_LOSS, "Stop Loss")
        take_profit = self._optional_number(line_no, parts, COL_TAKE_PROFIT, "Take Profit")

        return TradeRecord(
            open_time=open_time,
            order_type=parts[COL_ORDER_TYPE],
            symbol=parts[COL_SYMBOL],
            lots=lots,
            open_price=open_price,
            close_time=close_time,
            close_price=close_price,
            stop_loss=stop_loss,
            take_profit=take_profit,
            swap=swap or 0.0,
            commission=commission or 0.0,
            profit=profit or 0.0,
            comment=parts[COL_SETUP],
            line_no=line_no,
        )


def parse_trades_csv(
    text: str,
    *,
    active_symbol: str,
    date_format: str = DEFAULT_DATE_FORMAT,
    decimal_separator: str = ".",
    time_offset_hours: int = 0,
    debug: bool = False,
) -> ParseResult:
    """
    Parses trade-history CSV text and keeps the rows for `active_symbol`.

    Rows for other symbols are parsed and then dropped (counted in
    `skipped_symbol`, not as errors). The function is pure: the same text and
    options always give an equal ParseResult.
    """
    lines = text.splitlines()
    if len(lines) < 2:
        log.info("CSV file is empty or has no data rows")
        return ParseResult(records=(), diagnostics=(), rows_read=0, rejected=0, skipped_symbol=0)

    row_parser = _RowParser(
        fmt=to_strftime(date_format),
        shown_format=date_format,
        decimal_separator=decimal_separator,
        offset=timedelta(hours=int(time_offset_hours)),
    )
    records: list[TradeRecord] = []
    rows_read = 0
    rejected = 0
    skipped_symbol = 0

    for i, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        rows_read += 1
        if debug:
            log.debug("Processing line %d: %s", i, line)

        try:
            rec = row_parser.parse(i, _split(line))
        except Exception as exc:
            row_parser.reject(i, f"Error parsing line: {exc}")
            if debug:
                log.debug("Line %d traceback", i, exc_info=True)
            rec = None

        if rec is None:
            rejected += 1
            continue
        if rec.symbol != active_symbol:
            skipped_symbol += 1
            continue

        records.append(rec)
        if debug:
            log.debug("Added trade: %s %s %g @ %s", rec.symbol, rec.order_type, rec.lots, rec.open_price)

    log.info("Loaded %d trades for %s", len(records), active_symbol)
    return ParseResult(
        records=tuple(records),
        diagnostics=tuple(row_parser.diagnostics),
        rows_read=rows_read,
        rejected=rejected,
        skipped_symbol=skipped_symbol,
    )


def load_trades_csv(path: str | Path, **kwargs) -> ParseResult:
    """Reads `path` as UTF-8 (BOM tolerated) and parses it with `parse_trades_csv`."""
    path = Path(path)
    if not path.is_file():
        raise CsvFileNotFound(path)
    return parse_trades_csv(path.read_text(encoding="utf-8-sig"), **kwargs)
