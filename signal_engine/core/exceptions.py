"""
Exception hierarchy. Everything raised on purpose derives from SignalEngineError.
"""

from __future__ import annotations


class SignalEngineError(Exception):
    """Base class for signal engine errors."""


class ConfigError(SignalEngineError):
    """Raised when configuration files or values are invalid."""


class DataValidationError(SignalEngineError):
    """Raised when bar data breaks the OHLCV invariants."""


class InsufficientDataError(SignalEngineError):
    """Raised when a series is too short for signal generation or backtesting."""


class ConditionError(SignalEngineError):
    """Raised when a condition tree or indicator reference is malformed."""


class FormulaError(ConditionError):
    """Raised when a textual rule cannot be parsed."""


__all__ = [
    "SignalEngineError",
    "ConfigError",
    "DataValidationError",
    "InsufficientDataError",
    "ConditionError",
    "FormulaError",
]
