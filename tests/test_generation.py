"""Unit tests for generation.gemini (HTTP layer replaced by a fake session)."""

import json

import pytest
import requests
from strategy_architect.core.errors import StrategyGenerationError
from strategy_architect.core.types import AssetType, PositionSide
from strategy_architect.generation.gemini import GeminiStrategyGenerator, draft_to_strategy

DRAFT = {
    "name": "RSI dip",
    "description": "Buy oversold RSI",
    "market": "BTC/USD",
    "timeframe": "1h",
    "dataSource": "Binance",
    "assetType": "OPTIONS",
    "optionParams": {"contractType": "CALL", "moneyness": "ATM", "expirationDays": 30},
    "side": "LONG",
    "positionSizing": {"amount": 100, "unit": "PERCENT"},
    "orderSettings": {"type": "MARKET"},
    "entryConditions": [
        {"conditions": [{
            "indicator1": "RSI",
            "indicator1Params": {"period": 14, "source": "Close"},
            "operator": "CROSSES_ABOVE",
            "indicator2": 30,
        }]},
    ],
    "exitConditions": [],
    "stopLoss": {"value": 2, "unit": "PERCENT", "trailing": True},
}


class _Response:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class _Session:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def _ok(draft_text):
    return _Response(payload={"candidates": [{"content": {"parts": [{"text": draft_text}]}}]})


def test_generate_builds_strategy():
    session = _Session(_ok(json.dumps(DRAFT)))
    gen = GeminiStrategyGenerator("key-123", model="gemini-test", timeout=5.0, session=session)
    s = gen.generate("  buy when RSI recovers  ")

    assert s.name == "RSI dip"
    assert s.side == PositionSide.LONG
    assert s.asset_type == AssetType.SPOT
    assert s.option_params is None
    assert s.id.startswith("strat-")
    assert s.entry_conditions[0].id.startswith("group-")
    assert s.entry_conditions[0].conditions[0].id.startswith("cond-")
    assert s.stop_loss.trailing is True

    call = session.calls[0]
    assert call["url"].endswith("/models/gemini-test:generateContent")
    assert call["headers"] == {"x-goog-api-key": "key-123"}
    assert call["timeout"] == 5.0
    assert "buy when RSI recovers" in call["json"]["contents"][0]["parts"][0]["text"]
    assert call["json"]["generationConfig"]["responseMimeType"] == "application/json"


def test_missing_key_and_empty_prompt_are_not_retryable():
    session = _Session(_ok(json.dumps(DRAFT)))
    with pytest.raises(StrategyGenerationError) as exc:
        GeminiStrategyGenerator("", session=session).generate("buy")
    assert exc.value.retryable is False
    with pytest.raises(StrategyGenerationError) as exc:
        GeminiStrategyGenerator("key", session=session).generate("   ")
    assert exc.value.retryable is False
    assert session.calls == []


@pytest.mark.parametrize(
    "session",
    [
        _Session(error=requests.ConnectionError("down")),
        _Session(_Response(status_code=500, text="boom")),
        _Session(_Response(payload={"candidates": []})),
        _Session(_ok("not json")),
        _Session(_ok("[1, 2]")),
        _Session(_ok(json.dumps(dict(DRAFT, side="UP")))),
        _Session(_ok(json.dumps(dict(DRAFT, entryConditions=[{"conditions": [
            dict(DRAFT["entryConditions"][0]["conditions"][0], indicator1Params="period 14"),
        ]}])))),
        _Session(_ok(json.dumps(dict(DRAFT, stopLoss="2%")))),
    ],
    ids=["network", "http-500", "no-candidates", "bad-json", "not-object", "bad-enum", "params-not-object", "stop-not-object"],
)
def test_generation_failures_are_retryable(session):
    with pytest.raises(StrategyGenerationError) as exc:
        GeminiStrategyGenerator("key", session=session).generate("buy the dip")
    assert exc.value.retryable is True


def test_draft_to_strategy_replaces_ids():
    draft = dict(DRAFT, entryConditions=[{"id": "g", "conditions": [dict(DRAFT["entryConditions"][0]["conditions"][0], id="c")]}])
    s = draft_to_strategy(draft)
    assert s.entry_conditions[0].id != "g"
    assert s.entry_conditions[0].conditions[0].id != "c"
    assert draft["entryConditions"][0]["id"] == "g"
