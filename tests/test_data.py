"""Unit tests for data.generators and data.feed."""

import threading

import pytest
from strategy_architect.data.feed import SimulatedLiveFeed
from strategy_architect.data.generators import DEFAULT_COUNTS, generate_bars

END_MS = 1_700_000_000_000


@pytest.mark.parametrize("mode", ["historical", "random", "live"])
def test_generate_bars_shape(mode):
    bars = generate_bars(mode, seed=1, timeframe="15m", end_ms=END_MS)
    assert len(bars) == DEFAULT_COUNTS[mode]
    assert all(b.timestamp < END_MS for b in bars)
    assert all(b2.timestamp - b1.timestamp == 15 * 60_000 for b1, b2 in zip(bars, bars[1:]))
    for b in bars:
        assert b.low <= min(b.open, b.close)
        assert b.high >= max(b.open, b.close)
        assert b.volume >= 0


def test_generate_bars_is_continuous():
    bars = generate_bars("random", count=50, seed=2, end_ms=END_MS)
    assert all(b2.open == b1.close for b1, b2 in zip(bars, bars[1:]))


def test_generate_bars_seeded():
    a = generate_bars("historical", count=100, seed=5, end_ms=END_MS)
    b = generate_bars("historical", count=100, seed=5, end_ms=END_MS)
    assert a == b
    assert a[0].open == 40000.0


def test_generate_bars_errors():
    with pytest.raises(ValueError):
        generate_bars("replay")
    with pytest.raises(ValueError):
        generate_bars("random", count=-1)
    assert generate_bars("random", count=0) == []


def test_feed_timestamps_strictly_increase():
    feed = SimulatedLiveFeed(seed=1, clock=lambda: 1_700_000_000.0)
    bars = [feed.next_bar() for _ in range(5)]
    assert [b.timestamp for b in bars] == [1_700_000_000_000 + i for i in range(5)]
    assert all(b2.open == b1.close for b1, b2 in zip(bars, bars[1:]))


def test_feed_history_is_bounded():
    feed = SimulatedLiveFeed(seed=1, history_limit=3)
    for _ in range(5):
        feed.next_bar()
    assert len(feed.history) == 3


def test_feed_run_delivers_to_callback():
    received = []
    feed = SimulatedLiveFeed(tick_interval_s=0.0, seed=2)
    feed.on_message(received.append)
    assert feed.run(max_bars=4) == 4
    assert len(received) == 4
    assert received == feed.history


def test_feed_connect_and_disconnect():
    got_bar = threading.Event()
    feed = SimulatedLiveFeed(tick_interval_s=0.01, seed=3)
    feed.on_message(lambda bar: got_bar.set())
    feed.connect()
    assert got_bar.wait(2.0)
    feed.disconnect(timeout=2.0)
    assert not feed.connected
