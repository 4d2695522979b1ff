from __future__ import annotations

from datetime import datetime

ARROW_SUFFIX = "_arrow"
LABEL_SUFFIX = "_label"
SL_SUFFIX = "_sl"
TP_SUFFIX = "_tp"


def trade_key(*, open_time: datetime, order_type: str, lots: float) -> str:
    """Chart object key shared by every artifact of one trade."""
    t = open_time.strftime("%Y%m%d%H%M%S")
    return f"{t}|{order_type}|{lots:g}"


def unique_trade_key(key: str, seen: dict[str, int]) -> str:
    """
    Returns `key` the first time it is seen, then `key#2`, `key#3`, ...
    `seen` is updated in place; feed rows in file order to keep keys stable.
    """
    n = seen.get(key, 0) + 1
    seen[key] = n
    return key if n == 1 else f"{key}#{n}"


def arrow_id(key: str) -> str:
    return f"{key}{ARROW_SUFFIX}"


def label_id(key: str) -> str:
    return f"{key}{LABEL_SUFFIX}"


def stop_loss_id(key: str) -> str:
    return f"{key}{SL_SUFFIX}"


def take_profit_id(key: str) -> str:
    return f"{key}{TP_SUFFIX}"
