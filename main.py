#!/usr/bin/env python3
"""
Signal Engine CLI: backtest | signals | formula
Usage:
  python main.py backtest [--config config.yaml] [--data bars.csv] [--json]
  python main.py signals [--config config.yaml] [--data bars.csv] [--alert]
  python main.py formula "SMA(5) cross_above SMA(20)"
"""

from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from signal_engine.alerts import AlertNotifier, AlertRule
from signal_engine.backtesting.engine import run_backtest
from signal_engine.core.config import Config, load_config
from signal_engine.core.exceptions import SignalEngineError
from signal_engine.core.logger import setup_logging
from signal_engine.data.loader import load_bars_csv
from signal_engine.signals.engine import generate_signals
from signal_engine.signals.formula import condition_to_formula, parse_formula, validate_formula

logger = logging.getLogger("signal_engine")


def _load(args: argparse.Namespace) -> Config:
    config = load_config(args.config, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file, config.log_modules)
    if args.data:
        config.data_path = str(args.data)
    if args.buy_formula:
        config.buy_formula = args.buy_formula
    if args.sell_formula:
        config.sell_formula = args.sell_formula
    if args.preset:
        config.strategy_preset = args.preset
    return config


def _bars(config: Config):
    if not config.data_path:
        raise SignalEngineError("No bar data: set data.path in config.yaml, DATA_PATH or --data")
    return load_bars_csv(config.data_path)


def run_backtest_cmd(args: argparse.Namespace) -> int:
    """Backtest the configured strategy over the CSV bars and print metrics."""
    config = _load(args)
    strategy = config.strategy()
    result = run_backtest(strategy, _bars(config), config.backtest_config())
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0
    m = result.metrics
    print(f"\n--- Backtest Results: {strategy.name} {config.symbol} ---")
    print(f"Total trades: {m.total_trades} (wins: {m.winning_trades}, losses: {m.losing_trades})")
    print(f"Final equity: {result.final_equity:,.2f}")
    print(f"Total return: {m.total_return_pct:.2f}%")
    print(f"Annualized return: {m.annualized_return_pct:.2f}%")
    print(f"Sharpe ratio: {m.sharpe_ratio:.2f}")
    print(f"Sortino ratio: {m.sortino_ratio:.2f}")
    print(f"Max drawdown: {m.max_drawdown_pct:.2f}% ({m.max_drawdown_duration_days} days)")
    print(f"Win rate: {m.win_rate*100:.1f}%")
    print(f"Profit factor: {m.profit_factor:.2f}")
    print(f"Expectancy: {m.expectancy:.2f}% per trade")
    return 0


def run_signals_cmd(args: argparse.Namespace) -> int:
    """Print buy/sell signals; with --alert, push them through the alert rules."""
    config = _load(args)
    strategy = config.strategy()
    result = generate_signals(strategy, _bars(config))
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(f"{strategy.name}: {result.buy_count} buys, {result.sell_count} sells")
        for s in result.signals:
            print(f"{s.time}\t{s.type.value.upper()}\t{s.price:.2f}\t{s.reason}")
    if args.alert:
        rule = AlertRule(
            id="config",
            symbols=tuple(config.alert_symbols),
            min_price=config.alert_min_price,
            max_price=config.alert_max_price,
        )
        notifier = AlertNotifier([rule], config.telegram_bot_token, config.telegram_chat_id)
        # Only the latest signal is fresh enough to alert on
        latest = result.signals[-1:]
        sent = notifier.process_signals(latest, config.symbol or "-", strategy.name)
        logger.info("Alerts matched: %d", len(sent))
    return 0


def run_formula_cmd(args: argparse.Namespace) -> int:
    ok, error = validate_formula(args.text)
    if not ok:
        print(f"Invalid formula: {error}")
        return 1
    print(condition_to_formula(parse_formula(args.text)))
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Signal Engine CLI")
    sub = parser.add_subparsers(dest="mode", required=True)
    for name, help_text in (("backtest", "Run a backtest"), ("signals", "Generate signals")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
        p.add_argument("--data", type=Path, default=None, help="OHLCV CSV file")
        p.add_argument("--preset", default=None, help="Preset strategy id")
        p.add_argument("--buy-formula", default=None, help="Buy rule, e.g. 'RSI(14) < 30'")
        p.add_argument("--sell-formula", default=None, help="Sell rule")
        p.add_argument("--json", action="store_true", help="Print JSON instead of text")
        if name == "signals":
            p.add_argument("--alert", action="store_true", help="Send the latest signal to Telegram")
    p = sub.add_parser("formula", help="Validate and normalize a formula")
    p.add_argument("text")
    args = parser.parse_args()
    if args.mode == "formula":
        return run_formula_cmd(args)
    try:
        if args.mode == "backtest":
            return run_backtest_cmd(args)
        return run_signals_cmd(args)
    except (SignalEngineError, FileNotFoundError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
