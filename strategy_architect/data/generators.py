"""
Synthetic bar generators used as the backtest data source.
'historical' is a trending walk with regime flips, 'random' a noisier walk.
"""

from __future__ import annotations
import time
from typing import List, Optional

import numpy as np

from strategy_architect.core.types import Bar
from strategy_architect.utils.timeframes import timeframe_ms

MODES = ("historical", "random", "live")

DEFAULT_COUNTS = {"historical": 1000, "random": 500, "live": 100}


def _now_ms() -> int:
    return int(time.time() * 1000)


def generate_random_bars(
    count: int,
    rng: np.random.Generator,
    end_ms: int,
    interval_ms: int,
) -> List[Bar]:
    """Random walk starting near 50k, up to ~5% move per bar."""
    bars: List[Bar] = []
    last_close = 50000.0 + (rng.random() - 0.5) * 10000.0
    for i in range(count):
        open_ = last_close
        close = open_ + (rng.random() - 0.49) * open_ * 0.05
        high = max(open_, close) + rng.random() * open_ * 0.02
        low = min(open_, close) - rng.random() * open_ * 0.02
        bars.append(Bar(
            timestamp=end_ms - (count - i) * interval_ms,
            open=open_, high=high, low=low, close=close,
            volume=rng.random() * 1000.0,
        ))
        last_close = close
    return bars


def generate_historical_bars(
    count: int,
    rng: np.random.Generator,
    end_ms: int,
    interval_ms: int,
) -> List[Bar]:
    """Trend + noise from 40k; the trend may flip every count/5 bars."""
    bars: List[Bar] = []
    last_close = 40000.0
    trend = 1 if rng.random() > 0.5 else -1
    segment = max(1, count // 5)
    for i in range(count):
        if i > 0 and i % segment == 0:
            trend = -trend if rng.random() > 0.4 else trend
        open_ = last_close
        close = open_ + trend * rng.random() * open_ * 0.01 + (rng.random() - 0.5) * open_ * 0.03
        high = max(open_, close) + rng.random() * open_ * 0.015
        low = min(open_, close) - rng.random() * open_ * 0.015
        bars.append(Bar(
            timestamp=end_ms - (count - i) * interval_ms,
            open=open_, high=high, low=low, close=close,
            volume=rng.random() * 1500.0 + 500.0,
        ))
        last_close = close
    return bars


def generate_bars(
    mode: str = "historical",
    count: Optional[int] = None,
    seed: Optional[int] = None,
    timeframe: str = "1h",
    end_ms: Optional[int] = None,
) -> List[Bar]:
    """
    Bars with strictly increasing timestamps ending before end_ms (default: now).
    'live' returns a short historical series for an animated replay.
    """
    mode = mode.lower()
    if mode not in MODES:
        raise ValueError(f"Unknown data mode: {mode!r} (expected one of {', '.join(MODES)})")
    count = DEFAULT_COUNTS[mode] if count is None else count
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")
    rng = np.random.default_rng(seed)
    end_ms = _now_ms() if end_ms is None else end_ms
    interval_ms = timeframe_ms(timeframe)
    if mode == "random":
        return generate_random_bars(count, rng, end_ms, interval_ms)
    return generate_historical_bars(count, rng, end_ms, interval_ms)
