"""Condition language, evaluator and signal generator."""

from signal_engine.signals.conditions import (
    IndicatorKind,
    IndicatorFamily,
    ComparisonOperator,
    ArithmeticOperator,
    CrossDirection,
    LogicalOperator,
    DEFAULT_PARAMS,
    IndicatorRef,
    ArithmeticExpression,
    SingleCondition,
    CrossoverCondition,
    LogicalCondition,
    Condition,
    TradingStrategy,
    all_of,
    any_of,
)
from signal_engine.signals.cache import IndicatorCache
from signal_engine.signals.evaluator import evaluate, compare, detect_crossover, operand_value
from signal_engine.signals.engine import (
    WARMUP_BARS,
    PositionState,
    SignalResult,
    transition,
    generate_signals,
    describe_condition,
)
from signal_engine.signals.serialization import (
    condition_to_dict,
    condition_from_dict,
    strategy_to_dict,
    strategy_from_dict,
)
from signal_engine.signals.formula import parse_formula, condition_to_formula, validate_formula
from signal_engine.signals.presets import PRESET_STRATEGIES, get_preset_strategies, get_preset_strategy

__all__ = [
    "IndicatorKind",
    "IndicatorFamily",
    "ComparisonOperator",
    "ArithmeticOperator",
    "CrossDirection",
    "LogicalOperator",
    "DEFAULT_PARAMS",
    "IndicatorRef",
    "ArithmeticExpression",
    "SingleCondition",
    "CrossoverCondition",
    "LogicalCondition",
    "Condition",
    "TradingStrategy",
    "all_of",
    "any_of",
    "IndicatorCache",
    "evaluate",
    "compare",
    "detect_crossover",
    "operand_value",
    "WARMUP_BARS",
    "PositionState",
    "SignalResult",
    "transition",
    "generate_signals",
    "describe_condition",
    "condition_to_dict",
    "condition_from_dict",
    "strategy_to_dict",
    "strategy_from_dict",
    "parse_formula",
    "condition_to_formula",
    "validate_formula",
    "PRESET_STRATEGIES",
    "get_preset_strategies",
    "get_preset_strategy",
]
