"""Abstract strategy: indicators + entry/exit/add signals per bar index."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Sequence

from strategy_architect.core.types import Bar


class BaseStrategy(ABC):
    """Strategy computes indicators over the bar history and answers per-bar signal queries."""

    @abstractmethod
    def compute_indicators(self, bars: Sequence[Bar]) -> None:
        """Bring indicator state up to date with the full bar history. No lookahead."""
        pass

    @abstractmethod
    def should_enter(self, index: int) -> bool:
        """Entry signal at bar index."""
        pass

    @abstractmethod
    def should_exit(self, index: int) -> bool:
        """Signal-based exit at bar index (stops are handled by the risk manager)."""
        pass

    def should_add(self, index: int) -> bool:
        """Pyramiding trigger. Default: never add."""
        return False

    def reset(self) -> None:
        """Drop cached indicator state (start of a new run)."""
