"""Timeframe string helpers ('1m', '15m', '4h', '1d')."""

from strategy_architect.core.constants import AVAILABLE_TIMEFRAMES


def timeframe_minutes(tf: str) -> int:
    """Convert a timeframe such as '5m', '1h' or '1d' to minutes."""
    tf = tf.strip().lower()
    try:
        if tf.endswith("m"):
            value = int(tf[:-1])
        elif tf.endswith("h"):
            value = int(tf[:-1]) * 60
        elif tf.endswith("d"):
            value = int(tf[:-1]) * 60 * 24
        else:
            raise ValueError(tf)
    except ValueError:
        raise ValueError(f"Unsupported timeframe: {tf}") from None
    if value <= 0:
        raise ValueError(f"Unsupported timeframe: {tf}")
    return value


def timeframe_ms(tf: str) -> int:
    """Bar spacing in epoch milliseconds."""
    return timeframe_minutes(tf) * 60_000


def is_supported(tf: str) -> bool:
    """True for the timeframes offered by the strategy builder."""
    return tf.strip().lower() in AVAILABLE_TIMEFRAMES
