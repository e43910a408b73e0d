"""Backtesting engine: signal replay with slippage and commission."""

from signal_engine.backtesting.engine import (
    BacktestConfig,
    BacktestEngine,
    BacktestResult,
    PERIOD_END_REASON,
    run_backtest,
)

__all__ = ["BacktestConfig", "BacktestEngine", "BacktestResult", "PERIOD_END_REASON", "run_backtest"]
