"""
Risk manager: position sizing off current equity, stop-loss / take-profit targets,
trailing stop ratchet and intrabar exit detection.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from strategy_architect.core.types import (
    AmountUnit,
    Bar,
    OffsetUnit,
    PositionSide,
    PositionSizing,
    StopLoss,
    TakeProfit,
)

logger = logging.getLogger("strategy_architect.risk")


@dataclass
class RiskResult:
    """Result of a sizing check: allowed or rejected + reason."""
    allowed: bool
    quantity: float = 0.0
    reason: str = ""


def offset_amount(price: float, value: float, unit: OffsetUnit) -> float:
    """Distance from price: percent of price or a fixed price offset."""
    if unit == OffsetUnit.PERCENT:
        return price * (value / 100.0)
    return value


class RiskManager:
    """
    Sizes entries and tracks protective price levels for one strategy side.
    Missing stop_loss / take_profit means the feature is disabled.
    """

    def __init__(
        self,
        side: PositionSide,
        sizing: PositionSizing,
        stop_loss: Optional[StopLoss] = None,
        take_profit: Optional[TakeProfit] = None,
    ):
        self.side = side
        self.sizing = sizing
        self.stop_loss = stop_loss
        self.take_profit = take_profit

    @property
    def is_long(self) -> bool:
        return self.side == PositionSide.LONG

    @property
    def trailing(self) -> bool:
        return bool(self.stop_loss and self.stop_loss.trailing)

    def position_size(self, equity: float, entry_price: float) -> RiskResult:
        """
        Units of the base asset to buy/sell at entry_price.
        PERCENT: equity * amount% / price. FIXED: amount (quote notional) / price.
        """
        if not math.isfinite(entry_price) or entry_price <= 0:
            return RiskResult(allowed=False, reason=f"invalid entry price {entry_price}")
        if self.sizing.unit == AmountUnit.FIXED:
            notional = self.sizing.amount
        else:
            notional = equity * (self.sizing.amount / 100.0)
        qty = notional / entry_price
        if not math.isfinite(qty) or qty <= 0:
            return RiskResult(allowed=False, reason=f"position size {qty} not tradable")
        return RiskResult(allowed=True, quantity=qty)

    def initial_targets(self, entry_price: float) -> Tuple[Optional[float], Optional[float]]:
        """(stop price, take-profit price) measured from entry_price."""
        stop = tp = None
        if self.stop_loss:
            amount = offset_amount(entry_price, self.stop_loss.value, self.stop_loss.unit)
            stop = entry_price - amount if self.is_long else entry_price + amount
        if self.take_profit:
            amount = offset_amount(entry_price, self.take_profit.value, self.take_profit.unit)
            tp = entry_price + amount if self.is_long else entry_price - amount
        return stop, tp

    def trail_stop(self, stop: Optional[float], close: float) -> Optional[float]:
        """Move a trailing stop toward price only (never loosen it)."""
        if stop is None or not self.trailing:
            return stop
        amount = offset_amount(close, self.stop_loss.value, self.stop_loss.unit)
        if self.is_long:
            return max(stop, close - amount)
        return min(stop, close + amount)

    def tighter_stop(self, current: Optional[float], candidate: Optional[float]) -> Optional[float]:
        """For trailing stops keep whichever level is more protective."""
        if current is None or not self.trailing:
            return candidate
        if candidate is None:
            return current
        return max(current, candidate) if self.is_long else min(current, candidate)

    def check_exit(
        self,
        bar: Bar,
        stop: Optional[float],
        take_profit: Optional[float],
    ) -> Tuple[Optional[float], str]:
        """
        Exit price and reason if the bar's range touches a level. Stop-loss wins
        over take-profit when both are touched in the same bar.
        """
        if stop is not None:
            if (self.is_long and bar.low <= stop) or (not self.is_long and bar.high >= stop):
                return stop, "stop_loss"
        if take_profit is not None:
            if (self.is_long and bar.high >= take_profit) or (not self.is_long and bar.low <= take_profit):
                return take_profit, "take_profit"
        return None, ""

    def pnl(self, entry_price: float, exit_price: float, size: float) -> float:
        if self.is_long:
            return (exit_price - entry_price) * size
        return (entry_price - exit_price) * size
