"""
Load configuration from config.yaml and .env. API keys only from env.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from strategy_architect.core.constants import INITIAL_EQUITY


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns Config."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    engine = data.get("engine", {})
    feed = data.get("data", {})
    generator = data.get("generator", {})
    logging_cfg = data.get("logging", {})

    seed = feed.get("seed")
    seed_env = env("DATA_SEED")
    if seed_env:
        try:
            seed = int(seed_env)
        except ValueError:
            pass

    return Config(
        initial_equity=env_float("INITIAL_EQUITY", engine.get("initial_equity", INITIAL_EQUITY)),
        # Data source
        data_mode=env("DATA_MODE", feed.get("mode", "historical")).lower(),
        bar_count=env_int("BAR_COUNT", feed.get("bar_count", 0)) or None,
        timeframe=env("TIMEFRAME", feed.get("timeframe", "1h")),
        seed=seed,
        tick_interval_s=env_float("TICK_INTERVAL_S", feed.get("tick_interval_s", 2.0)),
        live_max_bars=env_int("LIVE_MAX_BARS", feed.get("live_max_bars", 50)),
        # Strategy generator (key never read from config.yaml)
        gemini_api_key=env("GEMINI_API_KEY") or env("API_KEY"),
        gemini_model=env("GEMINI_MODEL", generator.get("model", "gemini-2.5-flash")),
        gemini_base_url=generator.get("base_url", "https://generativelanguage.googleapis.com/v1beta"),
        generator_timeout_s=env_float("GENERATOR_TIMEOUT_S", generator.get("timeout_s", 30.0)),
        # Logging
        log_level=env("LOG_LEVEL", logging_cfg.get("level", "INFO")),
        log_dir=Path(logging_cfg.get("log_dir", "logs")),
        log_file=logging_cfg.get("log_file", "strategy_architect.log"),
        json_logs=env("LOG_JSON", str(logging_cfg.get("json", False))).lower() in ("1", "true", "yes"),
    )


class Config:
    """Unified configuration. Immutable after load."""

    __slots__ = (
        "initial_equity",
        "data_mode", "bar_count", "timeframe", "seed", "tick_interval_s", "live_max_bars",
        "gemini_api_key", "gemini_model", "gemini_base_url", "generator_timeout_s",
        "log_level", "log_dir", "log_file", "json_logs",
    )

    def __init__(
        self,
        initial_equity: float = INITIAL_EQUITY,
        data_mode: str = "historical",
        bar_count: Optional[int] = None,
        timeframe: str = "1h",
        seed: Optional[int] = None,
        tick_interval_s: float = 2.0,
        live_max_bars: int = 50,
        gemini_api_key: str = "",
        gemini_model: str = "gemini-2.5-flash",
        gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        generator_timeout_s: float = 30.0,
        log_level: str = "INFO",
        log_dir: Path = None,
        log_file: str = "strategy_architect.log",
        json_logs: bool = False,
    ):
        self.initial_equity = initial_equity
        self.data_mode = data_mode
        self.bar_count = bar_count
        self.timeframe = timeframe
        self.seed = seed
        self.tick_interval_s = tick_interval_s
        self.live_max_bars = live_max_bars
        self.gemini_api_key = gemini_api_key
        self.gemini_model = gemini_model
        self.gemini_base_url = gemini_base_url
        self.generator_timeout_s = generator_timeout_s
        self.log_level = log_level
        self.log_dir = Path(log_dir) if log_dir else Path("logs")
        self.log_file = log_file
        self.json_logs = json_logs
