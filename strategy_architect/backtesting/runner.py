"""
Batch backtest entry point: fetch bars from a data source, run the engine,
report coarse progress stages. Callers get a full result or a BacktestError.
"""

from __future__ import annotations
import logging
from typing import Callable, List, Optional

from strategy_architect.backtesting.engine import BacktestResult, StrategyEngine
from strategy_architect.core.constants import INITIAL_EQUITY
from strategy_architect.core.errors import BacktestError
from strategy_architect.core.types import Bar, Strategy
from strategy_architect.data.generators import generate_bars

logger = logging.getLogger("strategy_architect.backtest")

ProgressCallback = Callable[[str], None]
BarSource = Callable[[str], List[Bar]]


def run_backtest(
    strategy: Strategy,
    mode: str = "historical",
    progress: Optional[ProgressCallback] = None,
    source: Optional[BarSource] = None,
    initial_equity: float = INITIAL_EQUITY,
    seed: Optional[int] = None,
    count: Optional[int] = None,
) -> BacktestResult:
    """
    Run a full backtest. `source(mode)` supplies bars; by default synthetic bars
    in the strategy's timeframe. Any failure becomes BacktestError.
    """
    report = progress or (lambda message: None)
    try:
        report(f"Generating {mode} kline data...")
        if source is not None:
            bars = source(mode)
        else:
            bars = generate_bars(mode, count=count, seed=seed, timeframe=strategy.timeframe)
        report("Initializing strategy engine...")
        engine = StrategyEngine(strategy, bars, initial_equity=initial_equity)
        report("Simulating trades...")
        result = engine.run()
    except Exception as e:
        logger.exception("Backtest failed for %r", strategy.name)
        raise BacktestError(f"Failed to run backtest: {e}") from e
    logger.info(
        "Backtest %r (%s): %d trades, P/L %.2f%%, win rate %.2f%%",
        strategy.name, mode, result.total_trades, result.profit_loss_pct, result.win_rate_pct,
    )
    return result
