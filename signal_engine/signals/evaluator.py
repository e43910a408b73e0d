"""
Condition evaluation at a single bar index. Undefined operands never raise:
a comparison or crossover with a missing value is simply not met.
"""

from __future__ import annotations
from typing import Optional, Sequence, Union

import numpy as np

from signal_engine.core.types import Bar
from signal_engine.indicators import value_at
from signal_engine.signals.cache import IndicatorCache
from signal_engine.signals.conditions import (
    ArithmeticExpression,
    ArithmeticOperator,
    ComparisonOperator,
    Condition,
    CrossDirection,
    CrossoverCondition,
    IndicatorRef,
    LogicalCondition,
    LogicalOperator,
    Operand,
    SingleCondition,
)


def compare(a: Optional[float], op: Union[ComparisonOperator, str], b: Optional[float]) -> bool:
    if a is None or b is None:
        return False
    op = ComparisonOperator(op)
    if op is ComparisonOperator.GT:
        return a > b
    if op is ComparisonOperator.GTE:
        return a >= b
    if op is ComparisonOperator.LT:
        return a < b
    if op is ComparisonOperator.LTE:
        return a <= b
    return a == b


def apply_arithmetic(
    left: Optional[float], op: ArithmeticOperator, right: Optional[float]
) -> Optional[float]:
    """None when an operand is undefined or on division by zero."""
    if left is None or right is None:
        return None
    if op is ArithmeticOperator.ADD:
        return left + right
    if op is ArithmeticOperator.SUB:
        return left - right
    if op is ArithmeticOperator.MUL:
        return left * right
    if right == 0:
        return None
    return left / right


def crossed(
    prev_first: Optional[float],
    prev_second: Optional[float],
    first: Optional[float],
    second: Optional[float],
    direction: Union[CrossDirection, str],
) -> bool:
    if prev_first is None or prev_second is None or first is None or second is None:
        return False
    if CrossDirection(direction) is CrossDirection.UP:
        return prev_first <= prev_second and first > second
    return prev_first >= prev_second and first < second


def detect_crossover(
    first: Sequence[float], second: Sequence[float], direction: Union[CrossDirection, str]
) -> np.ndarray:
    """Boolean array: True at i where `first` crossed `second` between i-1 and i."""
    a = np.asarray(first, dtype=float)
    b = np.asarray(second, dtype=float)
    if a.shape != b.shape:
        raise ValueError(f"Series length mismatch: {a.shape} vs {b.shape}")
    out = np.zeros(len(a), dtype=bool)
    if len(a) < 2:
        return out
    defined = ~(np.isnan(a[:-1]) | np.isnan(b[:-1]) | np.isnan(a[1:]) | np.isnan(b[1:]))
    if CrossDirection(direction) is CrossDirection.UP:
        flipped = (a[:-1] <= b[:-1]) & (a[1:] > b[1:])
    else:
        flipped = (a[:-1] >= b[:-1]) & (a[1:] < b[1:])
    out[1:] = defined & flipped
    return out


def operand_value(operand: Operand, index: int, cache: IndicatorCache) -> Optional[float]:
    """Value of a literal, indicator or arithmetic expression at index."""
    if isinstance(operand, IndicatorRef):
        return value_at(cache.values(operand), index)
    if isinstance(operand, ArithmeticExpression):
        return apply_arithmetic(
            operand_value(operand.left, index, cache),
            operand.operator,
            operand_value(operand.right, index, cache),
        )
    if isinstance(operand, (int, float)):
        return float(operand)
    raise TypeError(f"Unknown operand type: {type(operand).__name__}")


def evaluate(
    condition: Condition,
    bars: Sequence[Bar],
    index: int,
    cache: Optional[IndicatorCache] = None,
) -> bool:
    """Whether condition holds at bars[index]."""
    if cache is None:
        cache = IndicatorCache(bars)
    elif cache.bars is not bars:
        raise ValueError("IndicatorCache is bound to a different bar series")
    return _evaluate(condition, index, cache)


def _evaluate(condition: Condition, index: int, cache: IndicatorCache) -> bool:
    if isinstance(condition, SingleCondition):
        return compare(
            operand_value(condition.indicator, index, cache),
            condition.operator,
            operand_value(condition.value, index, cache),
        )
    if isinstance(condition, CrossoverCondition):
        if index < 1:
            return False
        first = cache.values(condition.first)
        second = cache.values(condition.second)
        return crossed(
            value_at(first, index - 1),
            value_at(second, index - 1),
            value_at(first, index),
            value_at(second, index),
            condition.direction,
        )
    if isinstance(condition, LogicalCondition):
        if condition.operator is LogicalOperator.AND:
            return all(_evaluate(c, index, cache) for c in condition.conditions)
        return any(_evaluate(c, index, cache) for c in condition.conditions)
    raise TypeError(f"Unknown condition type: {type(condition).__name__}")
