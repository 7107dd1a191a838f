"""Core: config, types, errors, logging."""

from strategy_architect.core.config import load_config, Config
from strategy_architect.core.errors import (
    StrategyArchitectError,
    StrategyFormatError,
    InvalidBarError,
    BacktestError,
    StrategyGenerationError,
)
from strategy_architect.core.types import (
    Bar,
    Condition,
    ConditionGroup,
    IndicatorName,
    IndicatorParams,
    IndicatorSource,
    IndicatorSpec,
    Constant,
    Operator,
    PositionSide,
    Strategy,
    Trade,
    TradeMarker,
)
from strategy_architect.core.logger import setup_logging

__all__ = [
    "load_config",
    "Config",
    "StrategyArchitectError",
    "StrategyFormatError",
    "InvalidBarError",
    "BacktestError",
    "StrategyGenerationError",
    "Bar",
    "Condition",
    "ConditionGroup",
    "IndicatorName",
    "IndicatorParams",
    "IndicatorSource",
    "IndicatorSpec",
    "Constant",
    "Operator",
    "PositionSide",
    "Strategy",
    "Trade",
    "TradeMarker",
    "setup_logging",
]
