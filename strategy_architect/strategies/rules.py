"""
Rule evaluation: indicator cache, single conditions and OR-of-AND rule sets.
"""

from __future__ import annotations
import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from strategy_architect.core.types import (
    Bar,
    Condition,
    ConditionGroup,
    IndicatorName,
    IndicatorSpec,
    Constant,
    Operand,
    Operator,
)
from strategy_architect.strategies.indicators import bars_to_frame, compute_indicator, price_value

logger = logging.getLogger("strategy_architect.rules")


def _specs_in(rule_sets: Iterable[Sequence[ConditionGroup]]) -> List[IndicatorSpec]:
    specs = []
    for groups in rule_sets:
        for group in groups or []:
            for cond in group.conditions:
                specs.append(cond.left)
                if isinstance(cond.right, IndicatorSpec):
                    specs.append(cond.right)
    return specs


class IndicatorCache:
    """
    Full indicator series keyed by name + params, aligned index-for-index with
    the bar history. PRICE is never cached; it is read from the frame on demand.
    """

    def __init__(self, rule_sets: Iterable[Sequence[ConditionGroup]]):
        self._specs: Dict[str, IndicatorSpec] = {}
        for spec in _specs_in(rule_sets):
            if spec.name != IndicatorName.PRICE:
                self._specs.setdefault(spec.cache_key, spec)
        self._series: Dict[str, pd.Series] = {}
        self._frame: pd.DataFrame = bars_to_frame([])

    @property
    def keys(self) -> List[str]:
        return list(self._specs)

    def __len__(self) -> int:
        return len(self._frame)

    def refresh(self, bars: Sequence[Bar]) -> None:
        """Recompute every series over the full history when the bar count changed."""
        if len(bars) == len(self._frame) and self._series.keys() == self._specs.keys():
            return
        self._frame = bars_to_frame(bars)
        self._series = {key: compute_indicator(spec, self._frame) for key, spec in self._specs.items()}
        logger.debug("Indicator cache refreshed: %d series over %d bars", len(self._series), len(bars))

    def invalidate(self) -> None:
        self._series = {}
        self._frame = bars_to_frame([])

    def series(self, spec: IndicatorSpec) -> Optional[pd.Series]:
        return self._series.get(spec.cache_key)

    def value(self, operand: Operand, index: int) -> Optional[float]:
        """Operand value at a bar index, or None when undefined."""
        if isinstance(operand, Constant):
            value = float(operand.value)
            return value if math.isfinite(value) else None
        if index < 0 or index >= len(self._frame):
            return None
        if operand.name == IndicatorName.PRICE:
            return price_value(self._frame, operand, index)
        series = self._series.get(operand.cache_key)
        if series is None or index >= len(series):
            return None
        value = float(series.iat[index])
        return value if math.isfinite(value) else None


def evaluate_condition(cache: IndicatorCache, condition: Condition, index: int) -> bool:
    """
    True when the comparison holds at `index`. Undefined current values never
    fire; crossovers also need both values at index - 1.
    """
    cur1 = cache.value(condition.left, index)
    cur2 = cache.value(condition.right, index)
    if cur1 is None or cur2 is None:
        return False
    op = condition.operator
    if op == Operator.GREATER_THAN:
        return cur1 > cur2
    if op == Operator.LESS_THAN:
        return cur1 < cur2
    if index < 1:
        return False
    prev1 = cache.value(condition.left, index - 1)
    prev2 = cache.value(condition.right, index - 1)
    if prev1 is None or prev2 is None:
        return False
    if op == Operator.CROSSES_ABOVE:
        return prev1 <= prev2 and cur1 > cur2
    if op == Operator.CROSSES_BELOW:
        return prev1 >= prev2 and cur1 < cur2
    return False


def evaluate_group(cache: IndicatorCache, group: ConditionGroup, index: int) -> bool:
    if not group.conditions:
        return False
    return all(evaluate_condition(cache, cond, index) for cond in group.conditions)


def evaluate_rule_set(cache: IndicatorCache, groups: Optional[Sequence[ConditionGroup]], index: int) -> bool:
    """Any group fires. An empty rule set never fires."""
    if not groups:
        return False
    return any(evaluate_group(cache, group, index) for group in groups)
