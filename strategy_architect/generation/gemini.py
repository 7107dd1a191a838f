"""
Natural-language strategy drafts from the Gemini generateContent REST API.
Runs before any engine exists; failures never touch simulation state.
"""

from __future__ import annotations
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from strategy_architect.core.constants import AVAILABLE_DATA_SOURCES, AVAILABLE_MARKETS, AVAILABLE_TIMEFRAMES
from strategy_architect.core.errors import StrategyFormatError, StrategyGenerationError
from strategy_architect.core.types import (
    AssetType,
    IndicatorName,
    IndicatorSource,
    Operator,
    OptionContractType,
    OptionMoneyness,
    OrderType,
    PositionSide,
    PyramidingStrategy,
    Strategy,
)
from strategy_architect.strategies.serialization import new_id, strategy_from_dict

logger = logging.getLogger("strategy_architect.generation")

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

_OFFSET_UNITS = ["PERCENT", "PRICE_OFFSET"]


def _values(enum_cls) -> list:
    return [e.value for e in enum_cls]


_PARAMS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "source": {"type": "STRING", "enum": _values(IndicatorSource)},
        "period": {
            "type": "INTEGER",
            "description": "Lookback period. For PRICE, period > 1 on High/Low means highest/lowest "
                           "over N periods; on Close/Open it means the value N periods ago.",
        },
        "fast": {"type": "INTEGER", "description": "MACD fast period."},
        "slow": {"type": "INTEGER", "description": "MACD slow period."},
        "signal": {"type": "INTEGER", "description": "MACD signal period."},
    },
}

_CONDITION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "indicator1": {"type": "STRING", "enum": _values(IndicatorName)},
        "indicator1Params": _PARAMS_SCHEMA,
        "operator": {"type": "STRING", "enum": _values(Operator)},
        "indicator2": {
            "anyOf": [{"type": "STRING", "enum": _values(IndicatorName)}, {"type": "NUMBER"}],
            "description": "Second indicator or a fixed numeric value.",
        },
        "indicator2Params": _PARAMS_SCHEMA,
    },
    "required": ["indicator1", "indicator1Params", "operator", "indicator2"],
}

_GROUPS_SCHEMA = {
    "type": "ARRAY",
    "description": "Condition groups; fires if ANY group has ALL its conditions true.",
    "items": {
        "type": "OBJECT",
        "properties": {"conditions": {"type": "ARRAY", "items": _CONDITION_SCHEMA}},
        "required": ["conditions"],
    },
}

STRATEGY_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING"},
        "description": {"type": "STRING"},
        "market": {"type": "STRING", "enum": AVAILABLE_MARKETS},
        "timeframe": {"type": "STRING", "enum": AVAILABLE_TIMEFRAMES},
        "dataSource": {"type": "STRING", "enum": AVAILABLE_DATA_SOURCES},
        "assetType": {"type": "STRING", "enum": _values(AssetType)},
        "optionParams": {
            "type": "OBJECT",
            "nullable": True,
            "properties": {
                "contractType": {"type": "STRING", "enum": _values(OptionContractType)},
                "moneyness": {"type": "STRING", "enum": _values(OptionMoneyness)},
                "expirationDays": {"type": "INTEGER"},
            },
        },
        "side": {"type": "STRING", "enum": _values(PositionSide)},
        "positionSizing": {
            "type": "OBJECT",
            "properties": {
                "amount": {"type": "INTEGER"},
                "unit": {"type": "STRING", "enum": ["PERCENT"]},
            },
            "required": ["amount", "unit"],
        },
        "orderSettings": {
            "type": "OBJECT",
            "properties": {
                "type": {"type": "STRING", "enum": _values(OrderType)},
                "limitPrice": {
                    "type": "OBJECT",
                    "nullable": True,
                    "properties": {
                        "value": {"type": "NUMBER"},
                        "unit": {"type": "STRING", "enum": _OFFSET_UNITS},
                    },
                },
            },
            "required": ["type"],
        },
        "entryConditions": _GROUPS_SCHEMA,
        "exitConditions": _GROUPS_SCHEMA,
        "pyramiding": {
            "type": "OBJECT",
            "nullable": True,
            "properties": {
                "maxEntries": {"type": "INTEGER"},
                "strategy": {"type": "STRING", "enum": _values(PyramidingStrategy)},
                "conditions": _GROUPS_SCHEMA,
            },
            "required": ["maxEntries", "strategy", "conditions"],
        },
        "stopLoss": {
            "type": "OBJECT",
            "nullable": True,
            "properties": {
                "value": {"type": "NUMBER"},
                "unit": {"type": "STRING", "enum": _OFFSET_UNITS},
                "trailing": {"type": "BOOLEAN"},
            },
        },
        "takeProfit": {
            "type": "OBJECT",
            "nullable": True,
            "properties": {
                "value": {"type": "NUMBER"},
                "unit": {"type": "STRING", "enum": _OFFSET_UNITS},
            },
        },
    },
    "required": [
        "name", "description", "market", "timeframe", "dataSource", "assetType",
        "side", "positionSizing", "orderSettings", "entryConditions", "exitConditions",
    ],
}

PROMPT_TEMPLATE = """You are an expert trading strategy assistant. Based on the user's request, create a complete trading strategy configuration. The user wants: "{prompt}".

- Your response MUST be a valid JSON object that conforms to the provided schema.
- For all conditions, define complete parameters for each indicator, including candle 'source' and 'period'.
- For the PRICE indicator, a period of 1 means the current price. A period > 1 for High/Low source means the highest high or lowest low over that period. For Close/Open it means the value N candles ago.
- Create at least one entry condition group. If the user describes exit logic, create at least one exit condition group. Otherwise, provide an empty array for exitConditions.
- Set position sizing to 100% of the portfolio.
- Set the 'dataSource' to the most appropriate one, default to 'Binance' if unsure.
- Default to a MARKET order unless a LIMIT order is specified.
- If the user mentions adding to a position, averaging down, or compounding, configure the 'pyramiding' object with appropriate conditions.
- If the prompt implies risk management (e.g., "get out if it drops 2%"), set a 'stopLoss'. If they mention a "trailing stop", set the 'trailing' flag to true.
- A 'buy' or 'long' prompt implies side: LONG. A 'sell' or 'short' prompt implies side: SHORT.
"""


class StrategyGenerator(ABC):
    """Turns a prompt into a strategy draft."""

    @abstractmethod
    def generate(self, prompt: str) -> Strategy:
        pass


def _assign_ids(groups: Any) -> list:
    if not isinstance(groups, list):
        return []
    out = []
    for g in groups:
        if not isinstance(g, dict):
            continue
        conditions = [dict(c, id=new_id("cond")) for c in g.get("conditions") or [] if isinstance(c, dict)]
        out.append(dict(g, id=new_id("group"), conditions=conditions))
    return out


def draft_to_strategy(draft: Dict[str, Any]) -> Strategy:
    """Normalize a generated draft: fresh ids, schema upgrade, SPOT asset type."""
    doc = dict(draft)
    doc["entryConditions"] = _assign_ids(doc.get("entryConditions"))
    doc["exitConditions"] = _assign_ids(doc.get("exitConditions"))
    if isinstance(doc.get("pyramiding"), dict):
        doc["pyramiding"] = dict(doc["pyramiding"], conditions=_assign_ids(doc["pyramiding"].get("conditions")))
    doc["assetType"] = AssetType.SPOT.value
    doc.pop("optionParams", None)
    strategy = strategy_from_dict(doc)
    strategy.id = new_id("strat")
    return strategy


class GeminiStrategyGenerator(StrategyGenerator):
    """Gemini REST client with a JSON response schema."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def url(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def _payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": PROMPT_TEMPLATE.format(prompt=prompt)}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": STRATEGY_SCHEMA,
            },
        }

    def generate(self, prompt: str) -> Strategy:
        if not self.api_key:
            raise StrategyGenerationError("Strategy generation is not configured (missing API key).", retryable=False)
        if not prompt or not prompt.strip():
            raise StrategyGenerationError("Describe the strategy you want to build.", retryable=False)
        try:
            r = self.session.post(
                self.url,
                json=self._payload(prompt.strip()),
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("Strategy generation request failed: %s", e)
            raise StrategyGenerationError(
                "Failed to generate strategy. The AI model might be unavailable or the request was invalid."
            ) from e
        if r.status_code != 200:
            logger.warning("Strategy generation failed: %s %s", r.status_code, r.text[:200])
            raise StrategyGenerationError(
                "Failed to generate strategy. The AI model might be unavailable or the request was invalid."
            )
        try:
            text = r.json()["candidates"][0]["content"]["parts"][0]["text"]
            draft = json.loads(text.strip())
            if not isinstance(draft, dict):
                raise ValueError("draft is not a JSON object")
            return draft_to_strategy(draft)
        except (KeyError, IndexError, TypeError, ValueError, StrategyFormatError) as e:
            logger.warning("Strategy generation returned an unusable draft: %s", e)
            raise StrategyGenerationError(
                "Failed to generate strategy. The AI model returned an invalid strategy."
            ) from e
