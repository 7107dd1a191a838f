"""
Core data types: bars, strategy configuration, rule operands, trades and markers.
"""

from __future__ import annotations
import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Union

from strategy_architect.core.constants import INDICATOR_DEFAULTS


class IndicatorName(str, Enum):
    RSI = "RSI"
    MACD = "MACD"
    SMA = "SMA"
    EMA = "EMA"
    PRICE = "PRICE"
    ATR = "ATR"
    MOMENTUM = "MOMENTUM"


class Operator(str, Enum):
    GREATER_THAN = "GREATER_THAN"
    LESS_THAN = "LESS_THAN"
    CROSSES_ABOVE = "CROSSES_ABOVE"
    CROSSES_BELOW = "CROSSES_BELOW"


class IndicatorSource(str, Enum):
    CLOSE = "Close"
    OPEN = "Open"
    HIGH = "High"
    LOW = "Low"

    @property
    def column(self) -> str:
        return self.value.lower()


class PositionSide(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


class AmountUnit(str, Enum):
    PERCENT = "PERCENT"
    FIXED = "FIXED"


class OffsetUnit(str, Enum):
    """Unit of stop-loss / take-profit / limit offsets."""
    PERCENT = "PERCENT"
    PRICE_OFFSET = "PRICE_OFFSET"


class OrderType(str, Enum):
    MARKET = "MARKET"
    LIMIT = "LIMIT"


class PyramidingStrategy(str, Enum):
    COMPOUNDING_UP = "COMPOUNDING_UP"
    AVERAGING_DOWN = "AVERAGING_DOWN"
    SIDEWAYS = "SIDEWAYS"


class AssetType(str, Enum):
    SPOT = "SPOT"
    OPTIONS = "OPTIONS"


class OptionContractType(str, Enum):
    CALL = "CALL"
    PUT = "PUT"


class OptionMoneyness(str, Enum):
    ITM = "ITM"
    ATM = "ATM"
    OTM = "OTM"


@dataclass(frozen=True)
class Bar:
    """OHLCV candle. timestamp is epoch milliseconds."""
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    @property
    def time(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp / 1000.0, tz=timezone.utc)


@dataclass
class IndicatorParams:
    source: Optional[IndicatorSource] = None
    period: Optional[int] = None
    fast: Optional[int] = None
    slow: Optional[int] = None
    signal: Optional[int] = None
    output: Optional[str] = None  # MACD only: "macd" | "signal" | "histogram"


@dataclass
class IndicatorSpec:
    """An indicator reference: name plus (possibly partial) parameters."""
    name: IndicatorName
    params: IndicatorParams = field(default_factory=IndicatorParams)

    def resolved(self) -> "IndicatorSpec":
        """Copy with unset parameters filled from the per-indicator defaults."""
        defaults = INDICATOR_DEFAULTS.get(self.name.value, {})
        updates = {}
        for key, default in defaults.items():
            if getattr(self.params, key) is None:
                updates[key] = IndicatorSource(default) if key == "source" else default
        return IndicatorSpec(self.name, replace(self.params, **updates))

    @property
    def cache_key(self) -> str:
        params = self.resolved().params
        payload = {
            k: (v.value if isinstance(v, Enum) else v)
            for k, v in vars(params).items()
            if v is not None
        }
        return f"{self.name.value}-{json.dumps(payload, sort_keys=True)}"


@dataclass(frozen=True)
class Constant:
    """Fixed numeric right-hand operand of a condition."""
    value: float


Operand = Union[IndicatorSpec, Constant]


@dataclass
class Condition:
    left: IndicatorSpec
    operator: Operator
    right: Operand
    id: str = ""


@dataclass
class ConditionGroup:
    """Conditions combined with AND."""
    conditions: List[Condition] = field(default_factory=list)
    id: str = ""


# Condition groups combined with OR.
RuleSet = List[ConditionGroup]


@dataclass
class PositionSizing:
    amount: float = 100.0
    unit: AmountUnit = AmountUnit.PERCENT


@dataclass
class PriceOffset:
    value: float
    unit: OffsetUnit = OffsetUnit.PERCENT


@dataclass
class OrderSettings:
    type: OrderType = OrderType.MARKET
    limit_price: Optional[PriceOffset] = None


@dataclass
class StopLoss:
    value: float
    unit: OffsetUnit = OffsetUnit.PERCENT
    trailing: bool = False


@dataclass
class TakeProfit:
    value: float
    unit: OffsetUnit = OffsetUnit.PERCENT


@dataclass
class Pyramiding:
    max_entries: int
    strategy: PyramidingStrategy = PyramidingStrategy.COMPOUNDING_UP
    conditions: RuleSet = field(default_factory=list)


@dataclass
class OptionParams:
    """Stored with OPTIONS strategies; not used by the simulation."""
    contract_type: OptionContractType = OptionContractType.CALL
    moneyness: OptionMoneyness = OptionMoneyness.ATM
    expiration_days: int = 30


@dataclass
class Strategy:
    """Full strategy configuration consumed by the engine."""
    name: str = "Untitled Strategy"
    description: str = ""
    market: str = "BTC/USD"
    timeframe: str = "1h"
    data_source: str = "Binance"
    asset_type: AssetType = AssetType.SPOT
    option_params: Optional[OptionParams] = None
    side: PositionSide = PositionSide.LONG
    position_sizing: PositionSizing = field(default_factory=PositionSizing)
    order_settings: OrderSettings = field(default_factory=OrderSettings)
    entry_conditions: RuleSet = field(default_factory=list)
    exit_conditions: RuleSet = field(default_factory=list)
    pyramiding: Optional[Pyramiding] = None
    stop_loss: Optional[StopLoss] = None
    take_profit: Optional[TakeProfit] = None
    id: str = ""


@dataclass
class TradeMarker:
    timestamp: int
    price: float
    type: str  # "entry" | "exit"
    side: PositionSide


@dataclass
class Trade:
    """Closed round trip."""
    entry: float
    exit: float
    pnl: float
    size: float = 0.0
    entry_time: int = 0
    exit_time: int = 0
    exit_reason: str = ""  # "stop_loss" | "take_profit" | "signal"


@dataclass
class EquitySample:
    timestamp: int
    equity: float
