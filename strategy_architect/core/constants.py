"""Static lists and indicator defaults shared by the builder boundary and the engine."""

INITIAL_EQUITY = 10000.0

AVAILABLE_MARKETS = ["BTC/USD", "ETH/USD", "SOL/USD", "DOGE/USD", "ADA/USD"]
AVAILABLE_TIMEFRAMES = ["1m", "5m", "15m", "1h", "4h", "1d"]
AVAILABLE_DATA_SOURCES = ["Binance", "Coinbase Pro", "Kraken", "Bybit"]

# Keyed by IndicatorName value; "source" holds an IndicatorSource value.
INDICATOR_DEFAULTS = {
    "RSI": {"period": 14, "source": "Close"},
    "MACD": {"fast": 12, "slow": 26, "signal": 9, "source": "Close", "output": "macd"},
    "SMA": {"period": 50, "source": "Close"},
    "EMA": {"period": 20, "source": "Close"},
    "PRICE": {"period": 1, "source": "Close"},
    "ATR": {"period": 14},
    "MOMENTUM": {"period": 10, "source": "Close"},
}

MACD_OUTPUTS = ("macd", "signal", "histogram")
