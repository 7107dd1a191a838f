"""Backtesting: bar-by-bar strategy engine (batch and streaming) and runner."""

from strategy_architect.backtesting.engine import BacktestResult, SimulationState, StrategyEngine
from strategy_architect.backtesting.runner import run_backtest

__all__ = ["BacktestResult", "SimulationState", "StrategyEngine", "run_backtest"]
