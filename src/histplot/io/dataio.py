from __future__ import annotations

from pathlib import Path

import pandas as pd

REQUIRED_COLS = ["open", "high", "low", "close"]


def load_ohlc_csv(
    path: str | Path,
    ts_col: str = "timestamp",
) -> pd.DataFrame:
    """
    Loads the price bars a chart is drawn over, indexed by timestamp.
    Expected cols: timestamp, open, high, low, close (plus any extras).
    Rows with an unparseable timestamp or price are dropped.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Price bars file not found: {path}")

    df = pd.read_csv(path)
    df.columns = [str(c).strip().lower() for c in df.columns]
    ts_col = ts_col.lower()
    if ts_col not in df.columns:
        raise ValueError(f"Timestamp column '{ts_col}' not found. Columns: {list(df.columns)}")

    missing = [c for c in REQUIRED_COLS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required OHLC columns: {missing}. Columns: {list(df.columns)}")

    df[ts_col] = pd.to_datetime(df[ts_col], errors="coerce")
    for c in REQUIRED_COLS:
        df[c] = pd.to_numeric(df[c], errors="coerce")

    df = df.dropna(subset=[ts_col, *REQUIRED_COLS])
    return df.set_index(ts_col).sort_index()
