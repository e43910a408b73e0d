"""
Load configuration from config.yaml and .env. Secrets (Telegram) only from env.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from signal_engine.core.exceptions import ConfigError


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
    path = Path(config_path) if config_path else root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")

    def env(key: str, default: Any = "") -> str:
        value = os.getenv(key)
        if value is None:
            return "" if default is None else str(default).strip()
        return value.strip()

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_optional_float(key: str, default: Optional[float] = None) -> Optional[float]:
        raw = os.getenv(key)
        if raw is None or not raw.strip():
            return None if default is None else float(default)
        try:
            return float(raw)
        except ValueError:
            return None if default is None else float(default)

    data_section = data.get("data") or {}
    strategy = data.get("strategy") or {}
    backtest = data.get("backtest") or {}
    alerts = data.get("alerts") or {}
    telegram = data.get("telegram") or {}
    logging_section = data.get("logging") or {}

    symbols = alerts.get("symbols") or []
    if isinstance(symbols, str):
        symbols = symbols.split(",")
    env_symbols = env("ALERT_SYMBOLS")
    if env_symbols:
        symbols = env_symbols.split(",")

    return Config(
        symbol=env("SYMBOL", data_section.get("symbol", "")).upper(),
        data_path=env("DATA_PATH", data_section.get("path", "")) or None,
        # Strategy: formulas win over the preset when both are given
        strategy_preset=env("STRATEGY_PRESET", strategy.get("preset", "golden_cross")),
        buy_formula=env("BUY_FORMULA", strategy.get("buy_formula", "")) or None,
        sell_formula=env("SELL_FORMULA", strategy.get("sell_formula", "")) or None,
        # Backtest
        backtest_start=env("BACKTEST_START", backtest.get("start_date")) or None,
        backtest_end=env("BACKTEST_END", backtest.get("end_date")) or None,
        initial_capital=env_float("INITIAL_CAPITAL", backtest.get("initial_capital", 10_000_000.0)),
        commission_pct=env_float("COMMISSION_PCT", backtest.get("commission_pct", 0.015)),
        slippage_pct=env_float("SLIPPAGE_PCT", backtest.get("slippage_pct", 0.1)),
        position_sizing=env("POSITION_SIZING", backtest.get("position_sizing", "percent")),
        position_size=env_float("POSITION_SIZE", backtest.get("position_size", 100.0)),
        risk_free_rate_pct=env_float("RISK_FREE_RATE_PCT", backtest.get("risk_free_rate_pct", 3.0)),
        # Alerts
        alert_symbols=[s.strip().upper() for s in symbols if str(s).strip()],
        alert_min_price=env_optional_float("ALERT_MIN_PRICE", alerts.get("min_price")),
        alert_max_price=env_optional_float("ALERT_MAX_PRICE", alerts.get("max_price")),
        # Telegram
        telegram_bot_token=env("TELEGRAM_BOT_TOKEN", telegram.get("bot_token", "")),
        telegram_chat_id=env("TELEGRAM_CHAT_ID", telegram.get("chat_id", "")),
        # Logging
        log_level=env("LOG_LEVEL", logging_section.get("level", "INFO")),
        log_dir=Path(logging_section.get("log_dir", "logs")),
        log_file=logging_section.get("log_file", "signal_engine.log"),
        log_modules=logging_section.get("modules") or {},
    )


class Config:
    """Unified configuration loaded from config.yaml and env."""

    __slots__ = (
        "symbol", "data_path",
        "strategy_preset", "buy_formula", "sell_formula",
        "backtest_start", "backtest_end", "initial_capital", "commission_pct", "slippage_pct",
        "position_sizing", "position_size", "risk_free_rate_pct",
        "alert_symbols", "alert_min_price", "alert_max_price",
        "telegram_bot_token", "telegram_chat_id",
        "log_level", "log_dir", "log_file", "log_modules",
    )

    def __init__(
        self,
        symbol: str = "",
        data_path: Optional[str] = None,
        strategy_preset: str = "golden_cross",
        buy_formula: Optional[str] = None,
        sell_formula: Optional[str] = None,
        backtest_start: Optional[str] = None,
        backtest_end: Optional[str] = None,
        initial_capital: float = 10_000_000.0,
        commission_pct: float = 0.015,
        slippage_pct: float = 0.1,
        position_sizing: str = "percent",
        position_size: float = 100.0,
        risk_free_rate_pct: float = 3.0,
        alert_symbols: Optional[List[str]] = None,
        alert_min_price: Optional[float] = None,
        alert_max_price: Optional[float] = None,
        telegram_bot_token: str = "",
        telegram_chat_id: str = "",
        log_level: str = "INFO",
        log_dir: Path = None,
        log_file: str = "signal_engine.log",
        log_modules: Optional[Dict[str, str]] = None,
    ):
        self.symbol = symbol
        self.data_path = data_path
        self.strategy_preset = strategy_preset
        self.buy_formula = buy_formula
        self.sell_formula = sell_formula
        self.backtest_start = backtest_start
        self.backtest_end = backtest_end
        self.initial_capital = initial_capital
        self.commission_pct = commission_pct
        self.slippage_pct = slippage_pct
        self.position_sizing = position_sizing
        self.position_size = position_size
        self.risk_free_rate_pct = risk_free_rate_pct
        self.alert_symbols = list(alert_symbols or [])
        self.alert_min_price = alert_min_price
        self.alert_max_price = alert_max_price
        self.telegram_bot_token = telegram_bot_token
        self.telegram_chat_id = telegram_chat_id
        self.log_level = log_level
        self.log_dir = Path(log_dir) if log_dir else Path("logs")
        self.log_file = log_file
        self.log_modules = dict(log_modules or {})

    def backtest_config(self):
        """BacktestConfig from these settings. Raises ConfigError on invalid values."""
        from signal_engine.backtesting.engine import BacktestConfig

        return BacktestConfig(
            symbol=self.symbol,
            start_date=self.backtest_start,
            end_date=self.backtest_end,
            initial_capital=self.initial_capital,
            commission_pct=self.commission_pct,
            slippage_pct=self.slippage_pct,
            position_sizing=self.position_sizing,
            position_size=self.position_size,
            risk_free_rate_pct=self.risk_free_rate_pct,
        )

    def strategy(self):
        """Custom strategy from buy/sell formulas, else the configured preset."""
        from signal_engine.signals.conditions import TradingStrategy
        from signal_engine.signals.formula import parse_formula
        from signal_engine.signals.presets import get_preset_strategy

        if self.buy_formula and self.sell_formula:
            return TradingStrategy(
                id="custom",
                name="Custom",
                description=f"{self.buy_formula} / {self.sell_formula}",
                buy_condition=parse_formula(self.buy_formula),
                sell_condition=parse_formula(self.sell_formula),
            )
        if self.buy_formula or self.sell_formula:
            raise ConfigError("buy_formula and sell_formula must be set together")
        preset = get_preset_strategy(self.strategy_preset)
        if preset is None:
            raise ConfigError(f"Unknown strategy preset: {self.strategy_preset!r}")
        return preset
