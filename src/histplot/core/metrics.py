from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd


def pip_delta(*, entry: float, exit: float, is_buy: bool, pip_size: float) -> float:
    """Signed move in pips, positive when the move favours the position."""
    diff = (exit - entry) if is_buy else (entry - exit)
    return diff / pip_size


def format_profit(profit: float) -> str:
    if profit >= 0:
        return f"+${profit:.2f}"
    return f"-${abs(profit):.2f}"


def format_pips(pips: float) -> str:
    if pips >= 0:
        return f"+{pips:.1f}"
    return f"-{abs(pips):.1f}"


def profit_factor(trades: pd.DataFrame) -> float:
    if trades is None or trades.empty or "net_profit" not in trades.columns:
        return np.nan
    pnl = pd.to_numeric(trades["net_profit"], errors="coerce")
    gains = pnl[pnl > 0].sum()
    losses = -pnl[pnl < 0].sum()
    return float(gains / losses) if losses > 0 else np.inf


def history_summary(trades: pd.DataFrame) -> dict[str, Any]:
    """Headline numbers for a repository frame (see TradeRepository.to_frame)."""
    if trades is None or trades.empty:
        return {
            "trades": 0,
            "closed": 0,
            "open": 0,
            "net_profit": 0.0,
            "win_rate_%": np.nan,
            "profit_factor": np.nan,
        }

    closed = trades.loc[trades["is_closed"].astype(bool)]
    pnl = pd.to_numeric(closed["net_profit"], errors="coerce").dropna()
    win_rate = float((pnl > 0).mean() * 100.0) if not pnl.empty else np.nan

    return {
        "trades": int(len(trades)),
        "closed": int(len(closed)),
        "open": int(len(trades) - len(closed)),
        "net_profit": float(pnl.sum()),
        "win_rate_%": win_rate,
        "profit_factor": profit_factor(closed),
    }
