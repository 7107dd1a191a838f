"""
Strategy JSON interchange. Field names and enum strings match previously
exported strategies (camelCase keys, e.g. entryConditions / indicator1Params).

Legacy documents go through upgrade_strategy() once at load time:
- a flat "conditions" list becomes a single entry condition group
- a stop loss without "trailing" gets trailing = false
- a missing "assetType" means SPOT
"""

from __future__ import annotations
import copy
import json
import logging
import math
import uuid
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

from strategy_architect.core.errors import StrategyFormatError
from strategy_architect.core.types import (
    AmountUnit,
    AssetType,
    Condition,
    ConditionGroup,
    IndicatorName,
    IndicatorParams,
    IndicatorSource,
    IndicatorSpec,
    Constant,
    OffsetUnit,
    OptionContractType,
    OptionMoneyness,
    OptionParams,
    Operator,
    OrderSettings,
    OrderType,
    PositionSide,
    PositionSizing,
    PriceOffset,
    Pyramiding,
    PyramidingStrategy,
    RuleSet,
    StopLoss,
    Strategy,
    TakeProfit,
)

logger = logging.getLogger("strategy_architect.serialization")

E = TypeVar("E", bound=Enum)

_PARAM_INTS = ("period", "fast", "slow", "signal")
_INDICATOR_NAMES = {name.value for name in IndicatorName}


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def upgrade_strategy(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of a strategy document migrated to the current schema."""
    doc = copy.deepcopy(data)
    legacy = doc.pop("conditions", None)
    if legacy is not None and not doc.get("entryConditions"):
        legacy = _array(legacy, "conditions")
        doc["entryConditions"] = [{"id": new_id("group"), "conditions": legacy}] if legacy else []
        logger.info("Migrated %d legacy flat conditions into one entry group", len(legacy))
    elif legacy:
        logger.warning("Discarded legacy flat conditions: document already has entryConditions")
    doc.setdefault("entryConditions", [])
    doc.setdefault("exitConditions", [])
    if doc["entryConditions"] is None:
        doc["entryConditions"] = []
    if doc["exitConditions"] is None:
        doc["exitConditions"] = []
    stop_loss = doc.get("stopLoss")
    if isinstance(stop_loss, dict) and stop_loss.get("trailing") is None:
        stop_loss["trailing"] = False
    if not doc.get("assetType"):
        doc["assetType"] = AssetType.SPOT.value
    return doc


def _object(value: Any, field_name: str) -> Dict[str, Any]:
    """A JSON object field; null or missing reads as empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise StrategyFormatError(f"{field_name}: expected an object, got {type(value).__name__}")
    return value


def _array(value: Any, field_name: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise StrategyFormatError(f"{field_name}: expected a list, got {type(value).__name__}")
    return value


def _enum(cls: Type[E], value: Any, field_name: str) -> E:
    try:
        return cls(value)
    except (TypeError, ValueError):
        raise StrategyFormatError(f"{field_name}: unknown value {value!r}") from None


def _number(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise StrategyFormatError(f"{field_name}: expected a number, got {value!r}")
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise StrategyFormatError(f"{field_name}: expected a number, got {value!r}") from None
    if not math.isfinite(result):
        raise StrategyFormatError(f"{field_name}: expected a finite number, got {value!r}")
    return result


def _int(value: Any, field_name: str) -> int:
    number = _number(value, field_name)
    if number != int(number):
        raise StrategyFormatError(f"{field_name}: expected an integer, got {value!r}")
    return int(number)


def params_from_dict(data: Optional[Dict[str, Any]], field_name: str = "params") -> IndicatorParams:
    data = _object(data, field_name)
    params = IndicatorParams()
    if data.get("source") is not None:
        params.source = _enum(IndicatorSource, data["source"], "source")
    for key in _PARAM_INTS:
        if data.get(key) is not None:
            setattr(params, key, _int(data[key], key))
    if data.get("output") is not None:
        params.output = str(data["output"]).lower()
    return params


def params_to_dict(params: IndicatorParams) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if params.source is not None:
        out["source"] = params.source.value
    for key in _PARAM_INTS + ("output",):
        value = getattr(params, key)
        if value is not None:
            out[key] = value
    return out


def _operand_from(value: Any, params: Optional[Dict[str, Any]]):
    if isinstance(value, str) and value in _INDICATOR_NAMES:
        return IndicatorSpec(IndicatorName(value), params_from_dict(params, "indicator2Params"))
    return Constant(_number(value, "indicator2"))


def condition_from_dict(data: Dict[str, Any]) -> Condition:
    data = _object(data, "condition")
    try:
        left_name = data["indicator1"]
        operator = data["operator"]
        right = data["indicator2"]
    except KeyError as e:
        raise StrategyFormatError(f"condition missing field {e.args[0]!r}") from None
    return Condition(
        left=IndicatorSpec(_enum(IndicatorName, left_name, "indicator1"), params_from_dict(data.get("indicator1Params"), "indicator1Params")),
        operator=_enum(Operator, operator, "operator"),
        right=_operand_from(right, data.get("indicator2Params")),
        id=data.get("id") or new_id("cond"),
    )


def condition_to_dict(cond: Condition) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": cond.id,
        "indicator1": cond.left.name.value,
        "indicator1Params": params_to_dict(cond.left.params),
        "operator": cond.operator.value,
    }
    if isinstance(cond.right, Constant):
        out["indicator2"] = cond.right.value
    else:
        out["indicator2"] = cond.right.name.value
        out["indicator2Params"] = params_to_dict(cond.right.params)
    return out


def groups_from_list(data: Optional[List[Dict[str, Any]]], field_name: str = "conditions") -> RuleSet:
    groups = []
    for item in _array(data, field_name):
        g = _object(item, f"{field_name}[]")
        groups.append(ConditionGroup(
            conditions=[condition_from_dict(c) for c in _array(g.get("conditions"), f"{field_name}[].conditions")],
            id=g.get("id") or new_id("group"),
        ))
    return groups


def groups_to_list(groups: RuleSet) -> List[Dict[str, Any]]:
    return [{"id": g.id, "conditions": [condition_to_dict(c) for c in g.conditions]} for g in groups]


def _offset(data: Dict[str, Any], name: str) -> OffsetUnit:
    return _enum(OffsetUnit, data.get("unit", OffsetUnit.PERCENT.value), f"{name}.unit")


def strategy_from_dict(data: Dict[str, Any]) -> Strategy:
    """Build a Strategy from an exported (or generated) document. Missing fields take defaults."""
    doc = upgrade_strategy(_object(data, "strategy"))
    defaults = Strategy()

    sizing = _object(doc.get("positionSizing"), "positionSizing")
    order = _object(doc.get("orderSettings"), "orderSettings")
    limit = _object(order.get("limitPrice"), "orderSettings.limitPrice")
    sl = _object(doc.get("stopLoss"), "stopLoss")
    tp = _object(doc.get("takeProfit"), "takeProfit")
    pyr = _object(doc.get("pyramiding"), "pyramiding")
    opt = _object(doc.get("optionParams"), "optionParams")

    asset_type = _enum(AssetType, doc["assetType"], "assetType")
    option_params = None
    if asset_type == AssetType.OPTIONS and opt:
        option_params = OptionParams(
            contract_type=_enum(OptionContractType, opt.get("contractType", "CALL"), "optionParams.contractType"),
            moneyness=_enum(OptionMoneyness, opt.get("moneyness", "ATM"), "optionParams.moneyness"),
            expiration_days=_int(opt.get("expirationDays", 30), "optionParams.expirationDays"),
        )

    return Strategy(
        id=doc.get("id") or "",
        name=doc.get("name") or defaults.name,
        description=doc.get("description") or "",
        market=doc.get("market") or defaults.market,
        timeframe=doc.get("timeframe") or defaults.timeframe,
        data_source=doc.get("dataSource") or defaults.data_source,
        asset_type=asset_type,
        option_params=option_params,
        side=_enum(PositionSide, doc.get("side", "LONG"), "side"),
        position_sizing=PositionSizing(
            amount=_number(sizing.get("amount", 100), "positionSizing.amount"),
            unit=_enum(AmountUnit, sizing.get("unit", "PERCENT"), "positionSizing.unit"),
        ),
        order_settings=OrderSettings(
            type=_enum(OrderType, order.get("type", "MARKET"), "orderSettings.type"),
            limit_price=PriceOffset(
                value=_number(limit.get("value", 0), "orderSettings.limitPrice.value"),
                unit=_offset(limit, "orderSettings.limitPrice"),
            ) if limit else None,
        ),
        entry_conditions=groups_from_list(doc["entryConditions"], "entryConditions"),
        exit_conditions=groups_from_list(doc["exitConditions"], "exitConditions"),
        pyramiding=Pyramiding(
            max_entries=_int(pyr.get("maxEntries", 0), "pyramiding.maxEntries"),
            strategy=_enum(PyramidingStrategy, pyr.get("strategy", "COMPOUNDING_UP"), "pyramiding.strategy"),
            conditions=groups_from_list(pyr.get("conditions"), "pyramiding.conditions"),
        ) if pyr else None,
        stop_loss=StopLoss(
            value=_number(sl.get("value", 0), "stopLoss.value"),
            unit=_offset(sl, "stopLoss"),
            trailing=bool(sl.get("trailing", False)),
        ) if sl else None,
        take_profit=TakeProfit(
            value=_number(tp.get("value", 0), "takeProfit.value"),
            unit=_offset(tp, "takeProfit"),
        ) if tp else None,
    )


def strategy_to_dict(strategy: Strategy, include_id: bool = False) -> Dict[str, Any]:
    """Export document; the internal id is left out unless asked for."""
    out: Dict[str, Any] = {
        "name": strategy.name,
        "description": strategy.description,
        "market": strategy.market,
        "timeframe": strategy.timeframe,
        "dataSource": strategy.data_source,
        "assetType": strategy.asset_type.value,
        "side": strategy.side.value,
        "positionSizing": {
            "amount": strategy.position_sizing.amount,
            "unit": strategy.position_sizing.unit.value,
        },
        "orderSettings": {"type": strategy.order_settings.type.value},
        "entryConditions": groups_to_list(strategy.entry_conditions),
        "exitConditions": groups_to_list(strategy.exit_conditions),
        "pyramiding": None,
        "stopLoss": None,
        "takeProfit": None,
    }
    if include_id and strategy.id:
        out["id"] = strategy.id
    limit = strategy.order_settings.limit_price
    if limit:
        out["orderSettings"]["limitPrice"] = {"value": limit.value, "unit": limit.unit.value}
    if strategy.option_params:
        opt = strategy.option_params
        out["optionParams"] = {
            "contractType": opt.contract_type.value,
            "moneyness": opt.moneyness.value,
            "expirationDays": opt.expiration_days,
        }
    if strategy.pyramiding:
        pyr = strategy.pyramiding
        out["pyramiding"] = {
            "maxEntries": pyr.max_entries,
            "strategy": pyr.strategy.value,
            "conditions": groups_to_list(pyr.conditions),
        }
    if strategy.stop_loss:
        sl = strategy.stop_loss
        out["stopLoss"] = {"value": sl.value, "unit": sl.unit.value, "trailing": sl.trailing}
    if strategy.take_profit:
        tp = strategy.take_profit
        out["takeProfit"] = {"value": tp.value, "unit": tp.unit.value}
    return out


def load_strategy(path: Path) -> Strategy:
    """Read a strategy JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise StrategyFormatError(f"{path}: invalid JSON ({e})") from e
    if not isinstance(data, dict):
        raise StrategyFormatError(f"{path}: expected a JSON object")
    return strategy_from_dict(data)


def dump_strategy(strategy: Strategy, path: Path) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(strategy_to_dict(strategy), f, indent=2)
