"""
Technical indicators over OHLCV frames. NaN marks "undefined" (not enough lookback).

Every function is causal: the value at index i only depends on inputs 0..i, so
recomputing over a longer history never changes earlier values. Nothing here
raises on short data or bad periods; the result is simply all-NaN.
"""

from __future__ import annotations
import math
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from strategy_architect.core.constants import MACD_OUTPUTS
from strategy_architect.core.types import Bar, IndicatorName, IndicatorSource, IndicatorSpec

BAR_COLUMNS = ["timestamp", "open", "high", "low", "close", "volume"]


def bars_to_frame(bars: Sequence[Bar]) -> pd.DataFrame:
    """OHLCV DataFrame with columns: timestamp, open, high, low, close, volume."""
    if not bars:
        return pd.DataFrame(columns=BAR_COLUMNS, dtype=float)
    return pd.DataFrame(
        [(b.timestamp, b.open, b.high, b.low, b.close, b.volume) for b in bars],
        columns=BAR_COLUMNS,
    )


def _valid_period(period) -> bool:
    if isinstance(period, bool) or not isinstance(period, (int, np.integer)):
        return False
    return period >= 1


def _undefined(length: int, index=None) -> pd.Series:
    return pd.Series(np.full(length, np.nan), index=index, dtype=float)


def source_series(frame: pd.DataFrame, source: Optional[IndicatorSource] = None) -> pd.Series:
    """Bar field selected by source (close when unset)."""
    column = (source or IndicatorSource.CLOSE).column
    return frame[column].astype(float)


def sma(values: pd.Series, period: int) -> pd.Series:
    """Simple moving average of the trailing `period` values."""
    if not _valid_period(period):
        return _undefined(len(values), values.index)
    return values.astype(float).rolling(window=period, min_periods=period).mean()


def ema(values: pd.Series, period: int) -> pd.Series:
    """
    Exponential moving average seeded with the SMA of the first `period` values
    at index period-1; multiplier 2 / (period + 1).
    """
    x = np.asarray(values, dtype=float)
    out = np.full(len(x), np.nan)
    if not _valid_period(period) or len(x) < period:
        return pd.Series(out, index=values.index)
    prev = float(x[:period].mean())
    out[period - 1] = prev
    k = 2.0 / (period + 1)
    for i in range(period, len(x)):
        prev = (x[i] - prev) * k + prev
        out[i] = prev
    return pd.Series(out, index=values.index)


def rsi(values: pd.Series, period: int) -> pd.Series:
    """
    Wilder RSI. Averages are seeded with the mean of the first period-1 changes,
    then smoothed as (avg * (period-1) + sample) / period. First value at index period.
    """
    x = np.asarray(values, dtype=float)
    out = np.full(len(x), np.nan)
    if not _valid_period(period) or len(x) < period:
        return pd.Series(out, index=values.index)
    deltas = np.diff(x)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)
    seed_n = period - 1
    avg_gain = float(gains[:seed_n].mean()) if seed_n else 0.0
    avg_loss = float(losses[:seed_n].mean()) if seed_n else 0.0
    for i in range(seed_n, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        if avg_loss == 0:
            out[i + 1] = 100.0
        else:
            out[i + 1] = 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)
    return pd.Series(out, index=values.index)


def macd(values: pd.Series, fast: int, slow: int, signal: int) -> pd.DataFrame:
    """
    MACD line = EMA(fast) - EMA(slow); signal = EMA(signal) of the defined macd
    values with gaps removed, realigned by position; histogram = macd - signal.
    A row is defined only once the signal line is.
    """
    index = values.index
    result = pd.DataFrame(
        {name: np.full(len(values), np.nan) for name in MACD_OUTPUTS}, index=index
    )
    if not (_valid_period(fast) and _valid_period(slow) and _valid_period(signal)):
        return result
    line = ema(values, fast) - ema(values, slow)
    defined = line.dropna()
    if defined.empty:
        return result
    sig = ema(defined.reset_index(drop=True), signal)
    sig.index = defined.index
    ready = sig.notna()
    rows = sig.index[ready]
    result.loc[rows, "macd"] = line.loc[rows]
    result.loc[rows, "signal"] = sig.loc[rows]
    result.loc[rows, "histogram"] = line.loc[rows] - sig.loc[rows]
    return result


def true_range(frame: pd.DataFrame) -> pd.Series:
    """max(high-low, |high-prev close|, |low-prev close|); high-low on the first bar."""
    high = frame["high"].astype(float)
    low = frame["low"].astype(float)
    prev_close = frame["close"].astype(float).shift()
    ranges = pd.concat(
        [high - low, (high - prev_close).abs(), (low - prev_close).abs()], axis=1
    )
    return ranges.max(axis=1, skipna=True)


def atr(frame: pd.DataFrame, period: int) -> pd.Series:
    """Average true range: EMA of the true-range series."""
    if len(frame) == 0:
        return _undefined(0, frame.index)
    return ema(true_range(frame), period)


def momentum(values: pd.Series, period: int) -> pd.Series:
    """x[i] - x[i - period]."""
    if not _valid_period(period):
        return _undefined(len(values), values.index)
    values = values.astype(float)
    return values - values.shift(period)


def price_value(frame: pd.DataFrame, spec: IndicatorSpec, index: int) -> Optional[float]:
    """
    Raw price lookup (never cached).
    period 1: source value at index. period > 1: rolling max of highs / min of lows
    over the trailing window, or the open/close exactly period-1 bars back.
    """
    params = spec.resolved().params
    period, source = params.period, params.source
    if not _valid_period(period) or index < 0 or index >= len(frame):
        return None
    if period == 1:
        return _finite(frame[source.column].iat[index])
    if index < period - 1:
        return None
    if source == IndicatorSource.HIGH:
        return _finite(frame["high"].iloc[index - period + 1 : index + 1].max())
    if source == IndicatorSource.LOW:
        return _finite(frame["low"].iloc[index - period + 1 : index + 1].min())
    return _finite(frame[source.column].iat[index - (period - 1)])


def _finite(value) -> Optional[float]:
    value = float(value)
    return value if math.isfinite(value) else None


def compute_indicator(spec: IndicatorSpec, frame: pd.DataFrame) -> pd.Series:
    """
    Full series for a cacheable indicator, aligned with the frame's rows.
    MACD returns the column picked by params.output.
    """
    resolved = spec.resolved()
    params = resolved.params
    name = resolved.name
    if name == IndicatorName.PRICE:
        raise ValueError("PRICE is evaluated on demand, not as a series")
    if name == IndicatorName.ATR:
        return atr(frame, params.period)
    values = source_series(frame, params.source)
    if name == IndicatorName.SMA:
        return sma(values, params.period)
    if name == IndicatorName.EMA:
        return ema(values, params.period)
    if name == IndicatorName.RSI:
        return rsi(values, params.period)
    if name == IndicatorName.MOMENTUM:
        return momentum(values, params.period)
    if name == IndicatorName.MACD:
        output = params.output if params.output in MACD_OUTPUTS else "macd"
        return macd(values, params.fast, params.slow, params.signal)[output]
    return _undefined(len(frame), frame.index)
