"""
Simulated live market feed: one new bar per tick, delivered to a callback.
Stopping the feed only stops delivery; whatever consumed the bars keeps its state.
"""

from __future__ import annotations
import logging
import threading
import time
from collections import deque
from typing import Callable, Deque, List, Optional

import numpy as np

from strategy_architect.core.types import Bar

logger = logging.getLogger("strategy_architect.data.feed")

BarCallback = Callable[[Bar], None]


class SimulatedLiveFeed:
    """
    Generates bars on a fixed wall-clock cadence. Callbacks run serially on the
    feed thread (connect) or the caller's thread (run), never concurrently.
    """

    def __init__(
        self,
        tick_interval_s: float = 2.0,
        seed: Optional[int] = None,
        history_limit: int = 200,
        clock: Callable[[], float] = time.time,
    ):
        self.tick_interval_s = tick_interval_s
        self._rng = np.random.default_rng(seed)
        self._last_close = 50000.0 + (self._rng.random() - 0.5) * 10000.0
        self._trend = 1 if self._rng.random() > 0.5 else -1
        self._history: Deque[Bar] = deque(maxlen=history_limit)
        self._clock = clock
        self._callback: Optional[BarCallback] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def history(self) -> List[Bar]:
        return list(self._history)

    @property
    def connected(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def on_message(self, callback: BarCallback) -> None:
        self._callback = callback

    def next_bar(self) -> Bar:
        """Build the next bar. 5% chance per bar of a trend flip."""
        rng = self._rng
        if rng.random() < 0.05:
            self._trend = -self._trend
        open_ = self._last_close
        close = open_ + self._trend * rng.random() * open_ * 0.005 + (rng.random() - 0.5) * open_ * 0.01
        high = max(open_, close) + rng.random() * open_ * 0.005
        low = min(open_, close) - rng.random() * open_ * 0.005
        timestamp = int(self._clock() * 1000)
        if self._history and timestamp <= self._history[-1].timestamp:
            timestamp = self._history[-1].timestamp + 1
        bar = Bar(timestamp, open_, high, low, close, rng.random() * 200.0 + 50.0)
        self._last_close = close
        self._history.append(bar)
        return bar

    def _deliver(self) -> None:
        bar = self.next_bar()
        if self._callback is not None:
            self._callback(bar)

    def run(self, max_bars: Optional[int] = None) -> int:
        """Blocking loop; returns the number of bars delivered."""
        self._stop.clear()
        delivered = 0
        while not self._stop.is_set() and (max_bars is None or delivered < max_bars):
            self._deliver()
            delivered += 1
            if max_bars is not None and delivered >= max_bars:
                break
            self._stop.wait(self.tick_interval_s)
        return delivered

    def connect(self, max_bars: Optional[int] = None) -> None:
        """Start delivering bars on a background thread."""
        if self.connected:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run_safe, args=(max_bars,), daemon=True)
        self._thread.start()
        logger.info("Live feed connected (tick %.2fs)", self.tick_interval_s)

    def _run_safe(self, max_bars: Optional[int]) -> None:
        try:
            self.run(max_bars)
        except Exception:
            logger.exception("Live feed stopped on callback error")

    def disconnect(self, timeout: Optional[float] = None) -> None:
        """Stop delivering bars."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
            logger.info("Live feed disconnected")
