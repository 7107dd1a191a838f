#!/usr/bin/env python3
"""
Strategy Architect CLI: backtest | live | generate
Usage:
  python main.py backtest --strategy strategy.json [--data historical|random|live] [--config config.yaml]
  python main.py live --strategy strategy.json [--bars 50]
  python main.py generate "Buy BTC when RSI crosses above 30 ..." [--out strategy.json]
"""

from __future__ import annotations
import argparse
import logging
from pathlib import Path
from typing import Optional

from strategy_architect.backtesting.engine import BacktestResult, StrategyEngine
from strategy_architect.backtesting.runner import run_backtest
from strategy_architect.core.config import Config, load_config
from strategy_architect.core.errors import BacktestError, StrategyFormatError, StrategyGenerationError
from strategy_architect.core.logger import setup_logging
from strategy_architect.core.types import Bar
from strategy_architect.data.feed import SimulatedLiveFeed
from strategy_architect.generation.gemini import GeminiStrategyGenerator
from strategy_architect.strategies.serialization import dump_strategy, load_strategy

ROOT = Path(__file__).resolve().parent

logger = logging.getLogger("strategy_architect")


def _setup(config_path: Optional[Path]) -> Config:
    config = load_config(config_path, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file, json_logs=config.json_logs)
    return config


def print_results(result: BacktestResult) -> None:
    m = result.metrics
    print("\n--- Backtest Results ---")
    print(f"Bars processed: {len(result.bars)}")
    print(f"Total trades: {result.total_trades}", end="")
    if m:
        print(f" (wins: {m.winning_trades}, losses: {m.losing_trades})")
    else:
        print()
    print(f"Profit/Loss: {result.profit_loss_pct:.2f}%")
    print(f"Win rate: {result.win_rate_pct:.2f}%")
    print(f"Final equity: {result.final_equity:.2f}{' (position open)' if result.in_position else ''}")
    if m:
        print(f"Max drawdown: {m.max_drawdown_pct:.2f}%")
        print(f"Profit factor: {m.profit_factor:.2f}")
        print(f"Expectancy: {m.expectancy:.2f} per trade")


def run_backtest_cmd(config_path: Optional[Path], strategy_path: Path, mode: Optional[str]) -> int:
    """Run a batch backtest on synthetic bars."""
    config = _setup(config_path)
    try:
        strategy = load_strategy(strategy_path)
    except (OSError, StrategyFormatError) as e:
        logger.error("Could not load strategy %s: %s", strategy_path, e)
        return 1
    try:
        result = run_backtest(
            strategy,
            mode or config.data_mode,
            progress=lambda message: logger.info(message),
            initial_equity=config.initial_equity,
            seed=config.seed,
            count=config.bar_count,
        )
    except BacktestError as e:
        logger.error("%s", e)
        return 1
    print_results(result)
    return 0


def run_live_cmd(config_path: Optional[Path], strategy_path: Path, max_bars: Optional[int]) -> int:
    """Stream simulated live bars into a fresh engine until max_bars or Ctrl+C."""
    config = _setup(config_path)
    try:
        strategy = load_strategy(strategy_path)
    except (OSError, StrategyFormatError) as e:
        logger.error("Could not load strategy %s: %s", strategy_path, e)
        return 1
    engine = StrategyEngine(strategy, [], initial_equity=config.initial_equity)
    feed = SimulatedLiveFeed(tick_interval_s=config.tick_interval_s, seed=config.seed)

    def on_bar(bar: Bar) -> None:
        engine.process_bar(bar)
        snap = engine.get_results()
        logger.info(
            "Bar %s close=%.2f equity=%.2f trades=%d%s",
            bar.time.strftime("%H:%M:%S"), bar.close, snap.performance_data[-1].equity,
            snap.total_trades, " [in position]" if snap.in_position else "",
        )

    feed.on_message(on_bar)
    logger.info("Live simulation for %r (%s %s)", strategy.name, strategy.market, strategy.timeframe)
    try:
        feed.run(max_bars or config.live_max_bars)
    except KeyboardInterrupt:
        logger.info("Shutdown by user")
    print_results(engine.get_results())
    return 0


def run_generate_cmd(config_path: Optional[Path], prompt: str, out: Optional[Path]) -> int:
    """Ask the AI service for a strategy draft and save it as JSON."""
    config = _setup(config_path)
    generator = GeminiStrategyGenerator(
        config.gemini_api_key,
        model=config.gemini_model,
        base_url=config.gemini_base_url,
        timeout=config.generator_timeout_s,
    )
    try:
        strategy = generator.generate(prompt)
    except StrategyGenerationError as e:
        logger.error("%s%s", e, " Please try again." if e.retryable else "")
        return 1
    path = out or ROOT / "generated_strategy.json"
    dump_strategy(strategy, path)
    print(f"Saved '{strategy.name}' to {path}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Strategy Architect CLI")
    parser.add_argument("mode", choices=["backtest", "live", "generate"], help="What to run")
    parser.add_argument("prompt", nargs="?", default=None, help="Strategy description (generate only)")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--strategy", type=Path, default=None, help="Strategy JSON file")
    parser.add_argument("--data", choices=["historical", "random", "live"], default=None, help="Backtest data mode")
    parser.add_argument("--bars", type=int, default=None, help="Bars to stream in live mode")
    parser.add_argument("--out", type=Path, default=None, help="Output file for generate")
    args = parser.parse_args()
    if args.mode == "generate":
        if not args.prompt:
            parser.error("generate needs a prompt")
        return run_generate_cmd(args.config, args.prompt, args.out)
    if args.strategy is None:
        parser.error(f"{args.mode} needs --strategy")
    if args.mode == "backtest":
        return run_backtest_cmd(args.config, args.strategy, args.data)
    return run_live_cmd(args.config, args.strategy, args.bars)


if __name__ == "__main__":
    exit(main())
