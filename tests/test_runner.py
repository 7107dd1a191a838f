"""Unit tests for backtesting.runner."""

import pytest
from strategy_architect.backtesting.runner import run_backtest
from strategy_architect.core.errors import BacktestError
from strategy_architect.core.types import (
    Bar,
    Condition,
    ConditionGroup,
    IndicatorName,
    IndicatorParams,
    IndicatorSpec,
    Constant,
    Operator,
    Strategy,
)


def _strategy():
    rsi = IndicatorSpec(IndicatorName.RSI, IndicatorParams(period=14))
    return Strategy(
        name="runner",
        entry_conditions=[ConditionGroup([Condition(rsi, Operator.LESS_THAN, Constant(40))])],
        exit_conditions=[ConditionGroup([Condition(rsi, Operator.GREATER_THAN, Constant(60))])],
    )


def test_run_backtest_reports_stages():
    messages = []
    result = run_backtest(_strategy(), "random", progress=messages.append, seed=4, count=120)
    assert messages == [
        "Generating random kline data...",
        "Initializing strategy engine...",
        "Simulating trades...",
    ]
    assert len(result.bars) == 120
    assert len(result.performance_data) == 120


def test_run_backtest_seeded_is_deterministic():
    a = run_backtest(_strategy(), "historical", seed=9, count=200, source=None)
    b = run_backtest(_strategy(), "historical", seed=9, count=200)
    assert a.total_trades == b.total_trades
    assert a.profit_loss_pct == b.profit_loss_pct


def test_run_backtest_custom_source():
    bars = [Bar(i * 60_000, 100.0, 101.0, 99.0, 100.0, 1.0) for i in range(30)]
    result = run_backtest(_strategy(), "historical", source=lambda mode: bars)
    assert result.bars == bars
    assert result.total_trades == 0


def test_run_backtest_wraps_failures():
    def broken(mode):
        raise RuntimeError("feed offline")

    with pytest.raises(BacktestError, match="Failed to run backtest: feed offline"):
        run_backtest(_strategy(), source=broken)

    with pytest.raises(BacktestError):
        run_backtest(_strategy(), "sideways")
