"""Unit tests for analytics.metrics."""

import pytest
from strategy_architect.analytics.metrics import (
    compute_metrics,
    expectancy,
    max_drawdown,
    profit_factor,
    profit_loss_pct,
    win_rate,
)
from strategy_architect.core.types import Trade


def test_profit_loss_pct():
    assert profit_loss_pct(10000.0, 11000.0) == 10.0
    assert profit_loss_pct(10000.0, 9876.543) == -1.23
    assert profit_loss_pct(0.0, 100.0) == 0.0


def test_win_rate():
    assert win_rate([1, -1, 1, 1]) == 75.0
    assert win_rate([1, -1, -1]) == 33.33
    assert win_rate([]) == 0.0


def test_win_rate_breakeven_is_not_a_win():
    assert win_rate([0.0, 5.0]) == 50.0


def test_profit_factor():
    assert profit_factor([10, -5, 10, -5]) == 2.0
    assert profit_factor([10, 10]) == float("inf")
    assert profit_factor([-5, -5]) == 0.0
    assert profit_factor([]) == 0.0


def test_expectancy():
    assert expectancy([10, -5, 5]) == pytest.approx(10 / 3)
    assert expectancy([]) == 0.0


def test_max_drawdown():
    # peak 12000, trough 10000 => -16.67%
    assert max_drawdown([10000.0, 12000.0, 10000.0, 11000.0]) == -16.67
    assert max_drawdown([100.0, 101.0, 102.0]) == 0.0
    assert max_drawdown([]) == 0.0


def test_compute_metrics():
    trades = [Trade(100, 110, 10.0), Trade(100, 95, -5.0), Trade(100, 115, 15.0), Trade(100, 97, -3.0)]
    m = compute_metrics(trades, 10000.0, 10017.0, equity_curve=[10000.0, 10010.0, 10005.0, 10020.0, 10017.0])
    assert m.total_trades == 4
    assert m.winning_trades == 2
    assert m.losing_trades == 2
    assert m.win_rate_pct == 50.0
    assert m.profit_loss_pct == 0.17
    assert m.expectancy == pytest.approx(4.25)
    assert m.avg_win == pytest.approx(12.5)
    assert m.avg_loss == pytest.approx(-4.0)
    assert m.profit_factor == pytest.approx(25 / 8)
    assert m.max_drawdown_pct == -0.05


def test_compute_metrics_no_trades():
    m = compute_metrics([], 10000.0, 10000.0)
    assert m.total_trades == 0
    assert m.win_rate_pct == 0.0
    assert m.profit_loss_pct == 0.0
    assert m.max_drawdown_pct == 0.0
