"""Unit tests for strategies.serialization (JSON interchange and migration)."""

import json
import logging

import pytest
from strategy_architect.core.errors import StrategyFormatError
from strategy_architect.core.types import (
    AssetType,
    IndicatorName,
    IndicatorSource,
    IndicatorSpec,
    Constant,
    Operator,
    OrderType,
    PositionSide,
    PyramidingStrategy,
)
from strategy_architect.strategies.serialization import (
    dump_strategy,
    load_strategy,
    strategy_from_dict,
    strategy_to_dict,
    upgrade_strategy,
)

RSI_BELOW_30 = {
    "id": "cond-1",
    "indicator1": "RSI",
    "indicator1Params": {"period": 14, "source": "Close"},
    "operator": "LESS_THAN",
    "indicator2": 30,
}

SMA_CROSS = {
    "id": "cond-2",
    "indicator1": "EMA",
    "indicator1Params": {"period": 9},
    "operator": "CROSSES_ABOVE",
    "indicator2": "SMA",
    "indicator2Params": {"period": 21, "source": "High"},
}


def _doc(**overrides):
    doc = {
        "name": "Sample",
        "description": "d",
        "market": "ETH/USD",
        "timeframe": "4h",
        "dataSource": "Kraken",
        "assetType": "SPOT",
        "side": "SHORT",
        "positionSizing": {"amount": 50, "unit": "PERCENT"},
        "orderSettings": {"type": "LIMIT", "limitPrice": {"value": 1, "unit": "PERCENT"}},
        "entryConditions": [{"id": "group-1", "conditions": [RSI_BELOW_30, SMA_CROSS]}],
        "exitConditions": [],
        "pyramiding": {"maxEntries": 2, "strategy": "SIDEWAYS", "conditions": [{"conditions": [RSI_BELOW_30]}]},
        "stopLoss": {"value": 2, "unit": "PERCENT", "trailing": True},
        "takeProfit": {"value": 50, "unit": "PRICE_OFFSET"},
    }
    doc.update(overrides)
    return doc


def test_strategy_from_dict():
    s = strategy_from_dict(_doc())
    assert s.market == "ETH/USD"
    assert s.side == PositionSide.SHORT
    assert s.order_settings.type == OrderType.LIMIT
    assert s.order_settings.limit_price.value == 1.0
    assert len(s.entry_conditions) == 1
    first, second = s.entry_conditions[0].conditions
    assert first.left.name == IndicatorName.RSI
    assert first.operator == Operator.LESS_THAN
    assert first.right == Constant(30.0)
    assert isinstance(second.right, IndicatorSpec)
    assert second.right.params.source == IndicatorSource.HIGH
    assert s.pyramiding.strategy == PyramidingStrategy.SIDEWAYS
    assert s.pyramiding.max_entries == 2
    assert s.stop_loss.trailing is True
    assert s.take_profit.value == 50.0


def test_numeric_string_operand_is_constant():
    cond = dict(RSI_BELOW_30, indicator2="70.5")
    s = strategy_from_dict(_doc(entryConditions=[{"conditions": [cond]}]))
    assert s.entry_conditions[0].conditions[0].right == Constant(70.5)


def test_legacy_flat_conditions_become_one_group():
    doc = _doc()
    del doc["entryConditions"]
    del doc["exitConditions"]
    del doc["assetType"]
    doc["conditions"] = [RSI_BELOW_30]
    doc["stopLoss"] = {"value": 3, "unit": "PERCENT"}
    upgraded = upgrade_strategy(doc)
    assert "conditions" not in upgraded
    assert len(upgraded["entryConditions"]) == 1
    assert upgraded["entryConditions"][0]["conditions"] == [RSI_BELOW_30]
    assert upgraded["exitConditions"] == []
    assert upgraded["stopLoss"]["trailing"] is False
    assert upgraded["assetType"] == "SPOT"
    # input is not modified
    assert "conditions" in doc

    s = strategy_from_dict(doc)
    assert s.asset_type == AssetType.SPOT
    assert s.stop_loss.trailing is False


def test_missing_ids_are_generated():
    s = strategy_from_dict(_doc(entryConditions=[{"conditions": [dict(RSI_BELOW_30, id=None)]}]))
    group = s.entry_conditions[0]
    assert group.id.startswith("group-")
    assert group.conditions[0].id.startswith("cond-")


@pytest.mark.parametrize(
    "overrides",
    [
        {"side": "SIDEWAYS"},
        {"entryConditions": [{"conditions": [dict(RSI_BELOW_30, operator="EQUALS")]}]},
        {"entryConditions": [{"conditions": [dict(RSI_BELOW_30, indicator2="abc")]}]},
        {"entryConditions": [{"conditions": [{"indicator1": "RSI", "operator": "LESS_THAN"}]}]},
        {"stopLoss": {"value": "lots", "unit": "PERCENT"}},
        {"positionSizing": {"amount": 100, "unit": "SHARES"}},
        {"entryConditions": ["not-a-group"]},
        {"entryConditions": {"conditions": [RSI_BELOW_30]}},
        {"entryConditions": [{"conditions": "RSI < 30"}]},
        {"entryConditions": [{"conditions": [dict(RSI_BELOW_30, indicator1Params="period 14")]}]},
        {"entryConditions": [{"conditions": [dict(SMA_CROSS, indicator2Params=[21])]}]},
        {"stopLoss": "2%"},
        {"positionSizing": [100, "PERCENT"]},
        {"orderSettings": {"type": "LIMIT", "limitPrice": 1.5}},
        {"pyramiding": {"maxEntries": 2, "conditions": "always"}},
        {"side": ["LONG"]},
    ],
)
def test_invalid_documents(overrides):
    with pytest.raises(StrategyFormatError):
        strategy_from_dict(_doc(**overrides))


def test_to_dict_round_trip_fields():
    s = strategy_from_dict(_doc())
    s.id = "strat-1"
    out = strategy_to_dict(s)
    assert "id" not in out
    assert strategy_to_dict(s, include_id=True)["id"] == "strat-1"
    assert out["entryConditions"][0]["conditions"][0] == {
        "id": "cond-1",
        "indicator1": "RSI",
        "indicator1Params": {"source": "Close", "period": 14},
        "operator": "LESS_THAN",
        "indicator2": 30.0,
    }
    assert out["orderSettings"] == {"type": "LIMIT", "limitPrice": {"value": 1.0, "unit": "PERCENT"}}
    assert out["stopLoss"] == {"value": 2.0, "unit": "PERCENT", "trailing": True}
    assert strategy_to_dict(strategy_from_dict(out)) == out


def test_options_params_kept_only_for_options():
    opt = {"contractType": "PUT", "moneyness": "OTM", "expirationDays": 7}
    spot = strategy_from_dict(_doc(optionParams=opt))
    assert spot.option_params is None
    options = strategy_from_dict(_doc(assetType="OPTIONS", optionParams=opt))
    assert options.option_params.expiration_days == 7
    assert strategy_to_dict(options)["optionParams"]["contractType"] == "PUT"


def test_load_and_dump(tmp_path):
    path = tmp_path / "strategy.json"
    path.write_text(json.dumps(_doc()), encoding="utf-8")
    s = load_strategy(path)
    out = tmp_path / "copy.json"
    dump_strategy(s, out)
    assert load_strategy(out).name == "Sample"

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(StrategyFormatError):
        load_strategy(bad)
    bad.write_text("[]", encoding="utf-8")
    with pytest.raises(StrategyFormatError):
        load_strategy(bad)


def test_non_object_document_is_rejected():
    with pytest.raises(StrategyFormatError):
        strategy_from_dict(["not", "a", "strategy"])


def test_legacy_conditions_dropped_with_warning(caplog):
    doc = _doc(conditions=[dict(RSI_BELOW_30, indicator2=10)])
    with caplog.at_level(logging.WARNING, logger="strategy_architect.serialization"):
        upgraded = upgrade_strategy(doc)
    assert "conditions" not in upgraded
    assert upgraded["entryConditions"] == doc["entryConditions"]
    assert any("legacy" in r.getMessage() for r in caplog.records)
