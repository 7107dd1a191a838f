"""Data sources: synthetic historical/random bars and a simulated live feed."""

from strategy_architect.data.feed import SimulatedLiveFeed
from strategy_architect.data.generators import MODES, generate_bars

__all__ = ["SimulatedLiveFeed", "MODES", "generate_bars"]
