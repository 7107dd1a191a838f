"""Risk management: position sizing, stop-loss, take-profit, trailing stop."""

from strategy_architect.risk.manager import RiskManager, RiskResult, offset_amount

__all__ = ["RiskManager", "RiskResult", "offset_amount"]
