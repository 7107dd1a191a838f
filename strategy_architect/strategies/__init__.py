"""Strategies: indicators, rule evaluation, rule-based strategy, JSON interchange."""

from strategy_architect.strategies.base import BaseStrategy
from strategy_architect.strategies.rule_based import RuleBasedStrategy
from strategy_architect.strategies.rules import (
    IndicatorCache,
    evaluate_condition,
    evaluate_rule_set,
)
from strategy_architect.strategies.serialization import (
    dump_strategy,
    load_strategy,
    strategy_from_dict,
    strategy_to_dict,
    upgrade_strategy,
)

__all__ = [
    "BaseStrategy",
    "RuleBasedStrategy",
    "IndicatorCache",
    "evaluate_condition",
    "evaluate_rule_set",
    "dump_strategy",
    "load_strategy",
    "strategy_from_dict",
    "strategy_to_dict",
    "upgrade_strategy",
]
