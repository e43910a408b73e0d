"""Core: config, types, exceptions, logging."""

from signal_engine.core.config import load_config, Config
from signal_engine.core.types import Bar, Signal, SignalType, Trade, TradeStatus, CurvePoint
from signal_engine.core.exceptions import (
    SignalEngineError,
    ConfigError,
    DataValidationError,
    InsufficientDataError,
    ConditionError,
    FormulaError,
)
from signal_engine.core.logger import setup_logging

__all__ = [
    "load_config",
    "Config",
    "Bar",
    "Signal",
    "SignalType",
    "Trade",
    "TradeStatus",
    "CurvePoint",
    "SignalEngineError",
    "ConfigError",
    "DataValidationError",
    "InsufficientDataError",
    "ConditionError",
    "FormulaError",
    "setup_logging",
]
