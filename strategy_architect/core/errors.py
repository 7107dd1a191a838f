"""Exception hierarchy. Insufficient indicator data is never an error."""

from __future__ import annotations


class StrategyArchitectError(Exception):
    """Base class for all project errors."""


class StrategyFormatError(StrategyArchitectError):
    """Strategy JSON could not be turned into a Strategy (unknown enum, bad number)."""


class InvalidBarError(StrategyArchitectError, ValueError):
    """Bar sequence defect from a data source (e.g. non-increasing timestamp)."""


class BacktestError(StrategyArchitectError):
    """Backtest failed; message is safe to show to the user."""


class StrategyGenerationError(StrategyArchitectError):
    """External strategy generation failed. Callers may retry."""

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable
