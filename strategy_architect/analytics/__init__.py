"""Analytics: profit/loss, win rate, trade count, drawdown, profit factor, expectancy."""

from strategy_architect.analytics.metrics import (
    PerformanceMetrics,
    compute_metrics,
    profit_loss_pct,
    max_drawdown,
    win_rate,
    profit_factor,
    expectancy,
)

__all__ = [
    "PerformanceMetrics",
    "compute_metrics",
    "profit_loss_pct",
    "max_drawdown",
    "win_rate",
    "profit_factor",
    "expectancy",
]
