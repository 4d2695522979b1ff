"""Trade records, repository, configuration and the plot planner."""

from .config import ChartTheme, PlotterConfig, load_config
from .metrics import format_pips, format_profit, history_summary, pip_delta, profit_factor
from .planner import (
    ArtifactKind,
    ChartContext,
    DrawCommand,
    IconType,
    LineStyle,
    PlotPlan,
    plan_trades,
)
from .records import TradeRecord
from .repository import TradeRepository

__all__ = [
    "ArtifactKind",
    "ChartContext",
    "ChartTheme",
    "DrawCommand",
    "IconType",
    "LineStyle",
    "PlotPlan",
    "PlotterConfig",
    "TradeRecord",
    "TradeRepository",
    "format_pips",
    "format_profit",
    "history_summary",
    "load_config",
    "pip_delta",
    "plan_trades",
    "profit_factor",
]
