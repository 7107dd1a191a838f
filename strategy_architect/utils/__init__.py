"""Utils: timeframes."""

from strategy_architect.utils.timeframes import timeframe_minutes, timeframe_ms, is_supported

__all__ = ["timeframe_minutes", "timeframe_ms", "is_supported"]
