"""
Overlay a trade-history CSV on a candlestick chart and write it as HTML.

Example:
python3 scripts/plot_history.py \
  --csv data/trades.csv \
  --bars data/eurusd_1h.csv \
  --symbol EURUSD --pip-size 0.0001 \
  --output charts/eurusd_history.html

With --watch the script keeps running and rewrites the chart whenever the CSV
changes (file watcher) or the refresh interval elapses.
"""

from __future__ import annotations

import argparse
import logging
import math
import time
from dataclasses import replace
from pathlib import Path

from histplot.core.config import PlotterConfig, load_config
from histplot.core.metrics import history_summary
from histplot.hosts.registry import get_host, load_default_hosts
from histplot.io.dataio import load_ohlc_csv
from histplot.refresh.controller import RefreshController
from histplot.utils.logger import setup_logger


def _fmt(v) -> str:
    if isinstance(v, float):
        return "nan" if math.isnan(v) else f"{v:.2f}"
    return str(v)


def _build_config(args: argparse.Namespace) -> PlotterConfig:
    overrides = {
        "csv_path": args.csv,
        "date_format": args.date_format,
        "decimal_separator": args.decimal_separator,
        "time_offset_hours": args.time_offset,
        "arrow_buffer_pips": args.arrow_buffer,
        "refresh_interval_minutes": args.refresh_minutes,
        "buy_color": args.buy_color,
        "sell_color": args.sell_color,
    }
    if args.no_labels:
        overrides["show_labels"] = False
    if args.no_sl_tp:
        overrides["show_sl_tp"] = False
    if args.debug:
        overrides["debug"] = True

    if args.config:
        return load_config(args.config, **overrides)
    return replace(PlotterConfig(), **{k: v for k, v in overrides.items() if v is not None})


def _print_summary(controller: RefreshController) -> None:
    summary = history_summary(controller.repository.to_frame())
    result = controller.last_result
    skipped = (
        f" | rejected {result.rejected} | other symbols {result.skipped_symbol}"
        if result is not None
        else ""
    )
    print(
        f"{controller.repository.symbol}: "
        f"trades {summary['trades']} "
        f"(closed {summary['closed']}, open {summary['open']}) | "
        f"net {_fmt(summary['net_profit'])} | "
        f"win {_fmt(summary['win_rate_%'])}%"
        f"{skipped}",
        flush=True,
    )


def main() -> None:
    parser = argparse.ArgumentParser("Plot trade history from a CSV over price bars.")
    parser.add_argument("--csv", default=None, help="Trade-history CSV path.")
    parser.add_argument("--bars", required=True, help="OHLC CSV (timestamp, open, high, low, close).")
    parser.add_argument("--ts-col", default="timestamp", help="Timestamp column in the bars CSV.")
    parser.add_argument("--symbol", required=True, help="Chart instrument; other symbols are ignored.")
    parser.add_argument("--pip-size", type=float, default=0.0001, help="Price increment of one pip.")
    parser.add_argument("--config", default=None, help="Optional JSON config file.")
    parser.add_argument("--host", default="plotly", help="Chart host backend.")
    parser.add_argument("--output", default=None, help="Output HTML path. Default: <csv stem>_<symbol>.html")
    parser.add_argument("--date-format", default=None)
    parser.add_argument("--decimal-separator", default=None)
    parser.add_argument("--time-offset", type=int, default=None, help="Hours added to every trade time.")
    parser.add_argument("--arrow-buffer", type=float, default=None, help="Entry arrow distance in pips.")
    parser.add_argument("--refresh-minutes", type=int, default=None, help="Auto refresh interval, 0 disables.")
    parser.add_argument("--buy-color", default=None)
    parser.add_argument("--sell-color", default=None)
    parser.add_argument("--no-labels", action="store_true")
    parser.add_argument("--no-sl-tp", action="store_true")
    parser.add_argument("--watch", action="store_true", help="Keep running and re-render on changes.")
    parser.add_argument("--poll-seconds", type=float, default=1.0, help="Loop period when watching.")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    try:
        cfg = _build_config(args)
    except ValueError as exc:
        parser.error(str(exc))
    setup_logger(level=logging.DEBUG if cfg.debug else logging.INFO)

    bars = load_ohlc_csv(args.bars, ts_col=args.ts_col)
    load_default_hosts()
    host = get_host(args.host)(bars=bars, symbol=args.symbol, pip_size=args.pip_size)

    out_path = Path(args.output) if args.output else Path(cfg.csv_path).with_name(
        f"{Path(cfg.csv_path).stem}_{args.symbol.lower()}.html"
    )

    controller = RefreshController(host, cfg)
    controller.start()
    _print_summary(controller)
    host.write_html(out_path)
    print(f"Saved chart: {out_path}")

    if not args.watch:
        controller.stop()
        return

    print("Watching for changes (Ctrl+C to stop)...", flush=True)
    try:
        while True:
            time.sleep(max(args.poll_seconds, 0.1))
            if controller.on_bar():
                _print_summary(controller)
                host.write_html(out_path)
                print(f"Saved chart: {out_path}", flush=True)
    except KeyboardInterrupt:
        pass
    finally:
        controller.stop()


if __name__ == "__main__":
    main()
