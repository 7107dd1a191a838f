"""
Strategy engine: bar-by-bar position simulation with stop-loss, take-profit,
trailing stops and pyramiding. Batch (run) and streaming (process_bar) share
one per-bar transition so both produce identical results for identical bars.
"""

from __future__ import annotations
import logging
from dataclasses import asdict, dataclass, field
from typing import Iterable, List, Optional

from strategy_architect.analytics.metrics import PerformanceMetrics, compute_metrics
from strategy_architect.core.constants import INITIAL_EQUITY
from strategy_architect.core.errors import InvalidBarError
from strategy_architect.core.types import (
    Bar,
    EquitySample,
    PositionSide,
    PyramidingStrategy,
    Strategy,
    Trade,
    TradeMarker,
)
from strategy_architect.risk.manager import RiskManager
from strategy_architect.strategies.base import BaseStrategy
from strategy_architect.strategies.rule_based import RuleBasedStrategy

logger = logging.getLogger("strategy_architect.engine")


@dataclass
class SimulationState:
    """Mutable run state. Owned by one StrategyEngine, changed only by its methods."""
    equity: float
    in_position: bool = False
    entry_price: float = 0.0
    position_size: float = 0.0
    stop_loss_price: Optional[float] = None
    take_profit_price: Optional[float] = None
    entry_time: int = 0
    adds: int = 0
    trades: List[Trade] = field(default_factory=list)
    trade_markers: List[TradeMarker] = field(default_factory=list)
    performance: List[EquitySample] = field(default_factory=list)


@dataclass
class BacktestResult:
    """Snapshot of a run: headline stats, equity curve, bars and trade markers."""
    profit_loss_pct: float
    win_rate_pct: float
    total_trades: int
    performance_data: List[EquitySample] = field(default_factory=list)
    bars: List[Bar] = field(default_factory=list)
    trade_markers: List[TradeMarker] = field(default_factory=list)
    trades: List[Trade] = field(default_factory=list)
    final_equity: float = 0.0
    in_position: bool = False
    metrics: Optional[PerformanceMetrics] = None

    def to_dict(self) -> dict:
        """Interchange shape used by the UI layer."""
        return {
            "profitLoss": self.profit_loss_pct,
            "winRate": self.win_rate_pct,
            "totalTrades": self.total_trades,
            "performanceData": [asdict(s) for s in self.performance_data],
            "klines": [asdict(b) for b in self.bars],
            "tradeMarkers": [
                {"timestamp": m.timestamp, "price": m.price, "type": m.type, "side": m.side.value}
                for m in self.trade_markers
            ],
        }


class StrategyEngine:
    """
    Simulates one strategy over a growing bar sequence.

    Bar 0 only seeds history (its equity sample is the initial equity). For
    every later bar, in order: trailing stop ratchet, stop-loss, take-profit,
    exit rules at the bar's open; then entry rules when flat (also right after
    an exit on the same bar) or pyramiding adds when still in position; then an
    equity sample marked to the bar's close.

    Not reentrant: one caller drives one instance.
    """

    def __init__(
        self,
        strategy: Strategy,
        bars: Iterable[Bar] = (),
        initial_equity: float = INITIAL_EQUITY,
        signals: Optional[BaseStrategy] = None,
    ):
        self.strategy = strategy
        self.initial_equity = initial_equity
        self.signals = signals or RuleBasedStrategy(strategy)
        self.risk = RiskManager(
            side=strategy.side,
            sizing=strategy.position_sizing,
            stop_loss=strategy.stop_loss,
            take_profit=strategy.take_profit,
        )
        self.bars: List[Bar] = []
        for bar in bars:
            self._append(bar)
        self.state = SimulationState(equity=initial_equity)
        self._next_index = 0
        self._busy = False

    @property
    def side(self) -> PositionSide:
        return self.strategy.side

    def reset(self) -> None:
        """Fresh state over the same bars."""
        self.state = SimulationState(equity=self.initial_equity)
        self._next_index = 0
        self.signals.reset()

    def run(self) -> "BacktestResult":
        """Batch-process every bar from scratch. Safe to call more than once."""
        self.reset()
        self._advance()
        logger.info(
            "Run complete: %d bars, %d trades, equity %.2f",
            len(self.bars), len(self.state.trades), self.state.equity,
        )
        return self.get_results()

    def process_bar(self, bar: Bar) -> None:
        """Append one bar (e.g. from a live feed) and process it immediately."""
        self._append(bar)
        self._advance()

    def _append(self, bar: Bar) -> None:
        if not isinstance(bar, Bar):
            raise InvalidBarError(f"expected Bar, got {type(bar).__name__}")
        if self.bars and bar.timestamp <= self.bars[-1].timestamp:
            raise InvalidBarError(
                f"bar timestamp {bar.timestamp} not after previous {self.bars[-1].timestamp}"
            )
        self.bars.append(bar)

    def _advance(self) -> None:
        if self._busy:
            raise RuntimeError("StrategyEngine is not reentrant")
        if self._next_index >= len(self.bars):
            return
        self._busy = True
        try:
            self.signals.compute_indicators(self.bars)
            while self._next_index < len(self.bars):
                self._step(self._next_index)
                self._next_index += 1
        finally:
            self._busy = False

    def _step(self, i: int) -> None:
        bar = self.bars[i]
        if i == 0:
            self._sample(bar)
            return
        st = self.state
        if st.in_position:
            self._manage_position(bar, i)
        if not st.in_position:
            if self.signals.should_enter(i):
                self._enter(bar)
        else:
            self._maybe_add(bar, i)
        self._sample(bar)

    def _manage_position(self, bar: Bar, i: int) -> None:
        st = self.state
        st.stop_loss_price = self.risk.trail_stop(st.stop_loss_price, bar.close)
        exit_price, reason = self.risk.check_exit(bar, st.stop_loss_price, st.take_profit_price)
        if exit_price is None and self.signals.should_exit(i):
            # Signal exits fill at this bar's open.
            exit_price, reason = bar.open, "signal"
        if exit_price is not None:
            self._close(bar, exit_price, reason)

    def _enter(self, bar: Bar) -> None:
        st = self.state
        sized = self.risk.position_size(st.equity, bar.open)
        if not sized.allowed:
            logger.warning("Entry skipped at %d: %s", bar.timestamp, sized.reason)
            return
        st.in_position = True
        st.entry_price = bar.open
        st.position_size = sized.quantity
        st.entry_time = bar.timestamp
        st.adds = 0
        st.stop_loss_price, st.take_profit_price = self.risk.initial_targets(bar.open)
        st.trade_markers.append(TradeMarker(bar.timestamp, bar.open, "entry", self.side))
        logger.debug(
            "Entry %s size=%.6f @ %.4f stop=%s tp=%s",
            self.side.value, st.position_size, bar.open, st.stop_loss_price, st.take_profit_price,
        )

    def _pyramid_allowed(self, style: PyramidingStrategy, price: float) -> bool:
        entry = self.state.entry_price
        in_profit = price > entry if self.side == PositionSide.LONG else price < entry
        at_loss = price < entry if self.side == PositionSide.LONG else price > entry
        if style == PyramidingStrategy.COMPOUNDING_UP:
            return in_profit
        if style == PyramidingStrategy.AVERAGING_DOWN:
            return at_loss
        return True

    def _maybe_add(self, bar: Bar, i: int) -> None:
        pyramiding = self.strategy.pyramiding
        st = self.state
        if not pyramiding or st.adds >= pyramiding.max_entries:
            return
        if not self.signals.should_add(i):
            return
        if not self._pyramid_allowed(pyramiding.strategy, bar.open):
            return
        sized = self.risk.position_size(st.equity, bar.open)
        if not sized.allowed:
            logger.warning("Pyramid add skipped at %d: %s", bar.timestamp, sized.reason)
            return
        new_size = st.position_size + sized.quantity
        st.entry_price = (st.entry_price * st.position_size + bar.open * sized.quantity) / new_size
        st.position_size = new_size
        st.adds += 1
        stop, tp = self.risk.initial_targets(st.entry_price)
        st.stop_loss_price = self.risk.tighter_stop(st.stop_loss_price, stop)
        st.take_profit_price = tp
        st.trade_markers.append(TradeMarker(bar.timestamp, bar.open, "entry", self.side))
        logger.debug("Pyramid add %d/%d @ %.4f avg=%.4f", st.adds, pyramiding.max_entries, bar.open, st.entry_price)

    def _close(self, bar: Bar, price: float, reason: str) -> None:
        st = self.state
        pnl = self.risk.pnl(st.entry_price, price, st.position_size)
        st.equity += pnl
        st.trades.append(Trade(
            entry=st.entry_price,
            exit=price,
            pnl=pnl,
            size=st.position_size,
            entry_time=st.entry_time,
            exit_time=bar.timestamp,
            exit_reason=reason,
        ))
        st.trade_markers.append(TradeMarker(bar.timestamp, price, "exit", self.side))
        logger.debug("Exit %s @ %.4f (%s) pnl=%.2f", self.side.value, price, reason, pnl)
        st.in_position = False
        st.entry_price = 0.0
        st.position_size = 0.0
        st.stop_loss_price = None
        st.take_profit_price = None
        st.adds = 0

    def _sample(self, bar: Bar) -> None:
        st = self.state
        equity = st.equity
        if st.in_position:
            equity += self.risk.pnl(st.entry_price, bar.close, st.position_size)
        st.performance.append(EquitySample(bar.timestamp, round(equity, 2)))

    def get_results(self) -> BacktestResult:
        """Snapshot of the current state. An open position is not closed."""
        st = self.state
        metrics = compute_metrics(
            st.trades,
            self.initial_equity,
            st.equity,
            equity_curve=[s.equity for s in st.performance],
        )
        return BacktestResult(
            profit_loss_pct=metrics.profit_loss_pct,
            win_rate_pct=metrics.win_rate_pct,
            total_trades=metrics.total_trades,
            performance_data=list(st.performance),
            bars=list(self.bars),
            trade_markers=list(st.trade_markers),
            trades=list(st.trades),
            final_equity=round(st.equity, 2),
            in_position=st.in_position,
            metrics=metrics,
        )
