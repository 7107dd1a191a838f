"""
Performance metrics from a trade log and equity curve: profit/loss %, win rate,
trade count, plus drawdown, profit factor and expectancy.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from strategy_architect.core.types import Trade


@dataclass
class PerformanceMetrics:
    """Aggregate performance metrics. Percentages are on a 0-100 scale, rounded to 2 dp."""
    profit_loss_pct: float
    win_rate_pct: float
    total_trades: int
    winning_trades: int
    losing_trades: int
    avg_win: float
    avg_loss: float
    profit_factor: float
    expectancy: float
    max_drawdown_pct: float


def profit_loss_pct(initial_equity: float, final_equity: float) -> float:
    """100 * (final - initial) / initial."""
    if initial_equity == 0:
        return 0.0
    return round((final_equity - initial_equity) / initial_equity * 100.0, 2)


def win_rate(pnls: Sequence[float]) -> float:
    """Percent of trades with positive PnL (0 with no trades)."""
    if not pnls:
        return 0.0
    return round(sum(1 for p in pnls if p > 0) / len(pnls) * 100.0, 2)


def profit_factor(pnls: Sequence[float]) -> float:
    """Gross profit / gross loss. inf with wins and no losses, 0 with neither."""
    wins = sum(p for p in pnls if p > 0)
    losses = sum(-p for p in pnls if p < 0)
    if losses <= 0:
        return float("inf") if wins > 0 else 0.0
    return wins / losses


def expectancy(pnls: Sequence[float]) -> float:
    """Average PnL per trade."""
    if not pnls:
        return 0.0
    return sum(pnls) / len(pnls)


def max_drawdown(equity_curve: Sequence[float]) -> float:
    """Max drawdown in percent of the running peak (e.g. -15.0 = 15% drop)."""
    if not equity_curve:
        return 0.0
    arr = np.asarray(equity_curve, dtype=float)
    peak = np.maximum.accumulate(arr)
    dd = (arr - peak) / np.where(peak != 0, peak, 1)
    return round(float(np.min(dd)) * 100.0, 2)


def compute_metrics(
    trades: List[Trade],
    initial_equity: float,
    final_equity: float,
    equity_curve: Optional[Sequence[float]] = None,
) -> PerformanceMetrics:
    """
    Summarize a trade log. profit/loss is measured on realized equity, so an
    open position does not count until it is closed.
    """
    pnls = [t.pnl for t in trades]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]
    return PerformanceMetrics(
        profit_loss_pct=profit_loss_pct(initial_equity, final_equity),
        win_rate_pct=win_rate(pnls),
        total_trades=len(pnls),
        winning_trades=len(wins),
        losing_trades=len(losses),
        avg_win=sum(wins) / len(wins) if wins else 0.0,
        avg_loss=sum(losses) / len(losses) if losses else 0.0,
        profit_factor=profit_factor(pnls),
        expectancy=expectancy(pnls),
        max_drawdown_pct=max_drawdown(list(equity_curve or [])),
    )
