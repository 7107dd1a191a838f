"""Strategy generation from natural-language prompts (external AI service)."""

from strategy_architect.generation.gemini import (
    GeminiStrategyGenerator,
    StrategyGenerator,
    draft_to_strategy,
)

__all__ = ["GeminiStrategyGenerator", "StrategyGenerator", "draft_to_strategy"]
