"""
Strategy driven by user-defined rule sets (entry, exit, pyramiding).
"""

from __future__ import annotations
from typing import Sequence

from strategy_architect.core.types import Bar, Strategy
from strategy_architect.strategies.base import BaseStrategy
from strategy_architect.strategies.rules import IndicatorCache, evaluate_rule_set


class RuleBasedStrategy(BaseStrategy):
    """
    Entry/exit/add decisions are OR-of-AND rule sets over cached indicator series.
    Empty rule sets never fire: an empty exit set leaves exits to stop-loss/take-profit.
    """

    def __init__(self, config: Strategy):
        self.config = config
        pyramiding = config.pyramiding.conditions if config.pyramiding else []
        self._pyramiding_rules = pyramiding
        self.cache = IndicatorCache(
            [config.entry_conditions, config.exit_conditions, pyramiding]
        )

    def compute_indicators(self, bars: Sequence[Bar]) -> None:
        self.cache.refresh(bars)

    def reset(self) -> None:
        self.cache.invalidate()

    def should_enter(self, index: int) -> bool:
        return evaluate_rule_set(self.cache, self.config.entry_conditions, index)

    def should_exit(self, index: int) -> bool:
        return evaluate_rule_set(self.cache, self.config.exit_conditions, index)

    def should_add(self, index: int) -> bool:
        return evaluate_rule_set(self.cache, self._pyramiding_rules, index)
