"""Unit tests for signals.evaluator."""

import numpy as np
import pytest

from signal_engine.core.types import Bar
from signal_engine.signals.cache import IndicatorCache
from signal_engine.signals.conditions import (
    ArithmeticExpression,
    ArithmeticOperator,
    CrossoverCondition,
    IndicatorRef,
    SingleCondition,
    all_of,
    any_of,
)
from signal_engine.signals.evaluator import (
    apply_arithmetic,
    compare,
    crossed,
    detect_crossover,
    evaluate,
)

PRICE = IndicatorRef.of("price")


def test_compare_undefined_is_false():
    assert compare(None, "gt", 1.0) is False
    assert compare(1.0, "lt", None) is False
    assert compare(2.0, "gte", 2.0) is True
    assert compare(2.0, "eq", 2.0) is True


def test_apply_arithmetic():
    assert apply_arithmetic(6.0, ArithmeticOperator.DIV, 3.0) == 2.0
    assert apply_arithmetic(6.0, ArithmeticOperator.DIV, 0.0) is None
    assert apply_arithmetic(None, ArithmeticOperator.ADD, 1.0) is None
    assert apply_arithmetic(2.0, ArithmeticOperator.SUB, 5.0) == -3.0


def test_crossed_symmetry():
    assert crossed(1.0, 2.0, 3.0, 2.0, "up")
    assert not crossed(1.0, 2.0, 3.0, 2.0, "down")
    assert crossed(3.0, 2.0, 1.0, 2.0, "down")
    # touching then leaving counts as a cross
    assert crossed(2.0, 2.0, 2.5, 2.0, "up")
    assert not crossed(None, 2.0, 3.0, 2.0, "up")


def test_detect_crossover_series():
    a = [np.nan, 1.0, 3.0, 3.0, 1.0]
    b = [2.0, 2.0, 2.0, 2.0, 2.0]
    assert list(detect_crossover(a, b, "up")) == [False, False, True, False, False]
    assert list(detect_crossover(a, b, "down")) == [False, False, False, False, True]


def test_detect_crossover_length_mismatch():
    with pytest.raises(ValueError):
        detect_crossover([1.0], [1.0, 2.0], "up")


def test_evaluate_single_and_expression(make_bars):
    bars = make_bars([100.0, 110.0, 120.0])
    assert evaluate(SingleCondition(PRICE, "gt", 105), bars, 1)
    assert not evaluate(SingleCondition(PRICE, "gt", 105), bars, 0)
    doubled = ArithmeticExpression(PRICE, "mul", 2)
    assert evaluate(SingleCondition(doubled, "eq", 240), bars, 2)


def test_undefined_indicator_is_not_met(make_bars):
    bars = make_bars([100.0] * 10)
    sma20 = IndicatorRef.of("sma", period=20)
    assert not evaluate(SingleCondition(PRICE, "gt", sma20), bars, 9)
    assert not evaluate(SingleCondition(PRICE, "lte", sma20), bars, 9)


def test_logical_conditions(make_bars):
    bars = make_bars([100.0, 101.0])
    yes = SingleCondition(PRICE, "gt", 50)
    no = SingleCondition(PRICE, "lt", 50)
    assert evaluate(all_of(yes, yes), bars, 1)
    assert not evaluate(all_of(yes, no), bars, 1)
    assert evaluate(any_of(no, yes), bars, 1)
    assert not evaluate(any_of(no, no), bars, 1)


def test_crossover_condition(trend_bars):
    cond = CrossoverCondition(IndicatorRef.of("sma", period=5), IndicatorRef.of("sma", period=20), "up")
    cache = IndicatorCache(trend_bars)
    hits = [i for i in range(len(trend_bars)) if evaluate(cond, trend_bars, i, cache)]
    assert len(hits) == 1
    assert not evaluate(cond, trend_bars, 0, cache)


def test_cache_bound_to_other_bars(flat_bars, make_bars):
    cache = IndicatorCache(make_bars([1.0, 2.0]))
    with pytest.raises(ValueError):
        evaluate(SingleCondition(PRICE, "gt", 1), flat_bars, 0, cache)
