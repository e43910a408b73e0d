"""Unit tests for signals.serialization."""

import pytest

from signal_engine.core.exceptions import ConditionError
from signal_engine.signals.conditions import (
    ArithmeticExpression,
    CrossoverCondition,
    IndicatorRef,
    SingleCondition,
    all_of,
    any_of,
)
from signal_engine.signals.presets import get_preset_strategies
from signal_engine.signals.serialization import (
    condition_from_dict,
    condition_to_dict,
    strategy_from_dict,
    strategy_to_dict,
)


def test_single_condition_shape():
    cond = SingleCondition(IndicatorRef.of("rsi", period=14), "lte", 30)
    assert condition_to_dict(cond) == {
        "type": "single",
        "indicator": "rsi",
        "params": {"period": 14},
        "operator": "lte",
        "value": 30.0,
    }


def test_crossover_shape_and_camel_case_params():
    cond = CrossoverCondition(
        IndicatorRef.of("stochastic_k", k_period=5), IndicatorRef.of("stochastic_d", k_period=5), "up"
    )
    data = condition_to_dict(cond)
    assert data["type"] == "crossover"
    assert data["params1"] == {"dPeriod": 3, "kPeriod": 5, "smoothK": 3}
    assert condition_from_dict(data) == cond


def test_nested_and_expression_survive():
    cond = any_of(
        all_of(
            SingleCondition(IndicatorRef.of("price"), "gt", IndicatorRef.of("sma", period=200)),
            SingleCondition(
                IndicatorRef.of("volume"), "gt",
                ArithmeticExpression(IndicatorRef.of("volume_ma", period=20), "mul", 2),
            ),
        ),
        CrossoverCondition(IndicatorRef.of("macd"), IndicatorRef.of("macd_signal"), "up"),
    )
    assert condition_from_dict(condition_to_dict(cond)) == cond


def test_stored_params_shared_between_sides():
    data = {
        "type": "single",
        "indicator": "price",
        "operator": "gte",
        "value": "bollinger_upper",
        "params": {"period": 10, "stdDev": 2.5},
    }
    cond = condition_from_dict(data)
    assert cond.indicator == IndicatorRef.of("price")
    assert cond.value == IndicatorRef.of("bollinger_upper", period=10, std_dev=2.5)


@pytest.mark.parametrize("data", [
    {"type": "xor", "conditions": []},
    {"type": "single", "indicator": "rsi", "operator": "lt"},
    {"type": "single", "indicator": "vwap", "operator": "lt", "value": 1},
    {"type": "and", "conditions": []},
    {"type": "and", "conditions": "nope"},
    {"type": "single", "indicator": "sma", "operator": "gt", "value": 1, "params": {"period": float("nan")}},
    {"type": "single", "indicator": "sma", "operator": "gt", "value": 1, "params": {"period": float("inf")}},
    "not a dict",
])
def test_malformed_conditions(data):
    with pytest.raises(ConditionError):
        condition_from_dict(data)


def test_presets_round_trip():
    for strategy in get_preset_strategies():
        data = strategy_to_dict(strategy)
        assert data["buyCondition"]["type"] in ("single", "crossover")
        assert strategy_from_dict(data) == strategy


def test_strategy_missing_field():
    with pytest.raises(ConditionError):
        strategy_from_dict({"id": "x", "name": "X"})
