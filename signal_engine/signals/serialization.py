"""
Dict form of conditions and strategies, in the JSON shape the strategy store uses:

    {"type": "single", "indicator": "rsi", "operator": "lte", "value": 30, "params": {"period": 14}}
    {"type": "crossover", "indicator1": "sma", "indicator2": "sma", "direction": "up",
     "params1": {"period": 20}, "params2": {"period": 60}}
    {"type": "and", "conditions": [...]}
"""

from __future__ import annotations
from typing import Any, Dict, Mapping, Optional

from signal_engine.core.exceptions import ConditionError
from signal_engine.signals.conditions import (
    DEFAULT_PARAMS,
    KIND_FAMILY,
    ArithmeticExpression,
    Condition,
    CrossoverCondition,
    IndicatorKind,
    IndicatorRef,
    LogicalCondition,
    SingleCondition,
    TradingStrategy,
)

# Python param name <-> stored param name
_TO_STORED = {"k_period": "kPeriod", "d_period": "dPeriod", "smooth_k": "smoothK", "std_dev": "stdDev"}
_FROM_STORED = {v: k for k, v in _TO_STORED.items()}


def _params_to_dict(ref: IndicatorRef) -> Dict[str, float]:
    return {_TO_STORED.get(name, name): value for name, value in ref.params}


def _ref_from(kind: Any, params: Optional[Mapping[str, Any]]) -> IndicatorRef:
    """
    Build a ref from stored data. Stored params are shared loosely between sides
    (e.g. price with bollinger params), so names the kind does not take are dropped.
    """
    try:
        kind = IndicatorKind(kind)
    except ValueError:
        raise ConditionError(f"Unknown indicator: {kind!r}") from None
    accepted = DEFAULT_PARAMS[KIND_FAMILY[kind][0]]
    picked = {}
    for name, value in (params or {}).items():
        name = _FROM_STORED.get(name, name)
        if name in accepted:
            picked[name] = value
    return IndicatorRef(kind, tuple(picked.items()))


def _term_to_dict(term):
    if isinstance(term, IndicatorRef):
        return term.kind.value
    return term


def _expression_to_dict(expr: ArithmeticExpression) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "type": "arithmetic",
        "left": _term_to_dict(expr.left),
        "operator": expr.operator.value,
        "right": _term_to_dict(expr.right),
    }
    if isinstance(expr.left, IndicatorRef):
        out["leftParams"] = _params_to_dict(expr.left)
    if isinstance(expr.right, IndicatorRef):
        out["rightParams"] = _params_to_dict(expr.right)
    return out


def _term_from(raw: Any, params: Optional[Mapping[str, Any]]):
    if isinstance(raw, bool):
        raise ConditionError(f"Invalid operand: {raw!r}")
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        return _ref_from(raw, params)
    raise ConditionError(f"Invalid operand: {raw!r}")


def _expression_from(data: Mapping[str, Any]) -> ArithmeticExpression:
    try:
        return ArithmeticExpression(
            _term_from(data["left"], data.get("leftParams")),
            data["operator"],
            _term_from(data["right"], data.get("rightParams")),
        )
    except KeyError as e:
        raise ConditionError(f"Arithmetic expression missing field {e}") from None


def _is_expression(raw: Any) -> bool:
    return isinstance(raw, Mapping) and raw.get("type") == "arithmetic"


def condition_to_dict(condition: Condition) -> Dict[str, Any]:
    if isinstance(condition, SingleCondition):
        out: Dict[str, Any] = {"type": "single"}
        if isinstance(condition.indicator, ArithmeticExpression):
            out["indicator"] = _expression_to_dict(condition.indicator)
        else:
            out["indicator"] = condition.indicator.kind.value
            out["params"] = _params_to_dict(condition.indicator)
        out["operator"] = condition.operator.value
        if isinstance(condition.value, ArithmeticExpression):
            out["value"] = _expression_to_dict(condition.value)
        elif isinstance(condition.value, IndicatorRef):
            out["value"] = condition.value.kind.value
            out["valueParams"] = _params_to_dict(condition.value)
        else:
            out["value"] = condition.value
        return out
    if isinstance(condition, CrossoverCondition):
        return {
            "type": "crossover",
            "indicator1": condition.first.kind.value,
            "indicator2": condition.second.kind.value,
            "direction": condition.direction.value,
            "params1": _params_to_dict(condition.first),
            "params2": _params_to_dict(condition.second),
        }
    if isinstance(condition, LogicalCondition):
        return {
            "type": condition.operator.value,
            "conditions": [condition_to_dict(c) for c in condition.conditions],
        }
    raise TypeError(f"Unknown condition type: {type(condition).__name__}")


def condition_from_dict(data: Mapping[str, Any]) -> Condition:
    """Inverse of condition_to_dict. Raises ConditionError on malformed data."""
    if not isinstance(data, Mapping):
        raise ConditionError(f"Condition must be a mapping, got {type(data).__name__}")
    ctype = data.get("type")
    try:
        if ctype == "single":
            params = data.get("params")
            raw_indicator = data["indicator"]
            if _is_expression(raw_indicator):
                indicator = _expression_from(raw_indicator)
            else:
                indicator = _ref_from(raw_indicator, params)
            raw_value = data["value"]
            if _is_expression(raw_value):
                value = _expression_from(raw_value)
            else:
                # a compared indicator falls back to the left side's params
                value_params = data.get("valueParams")
                value = _term_from(raw_value, value_params if value_params is not None else params)
            return SingleCondition(indicator, data["operator"], value)
        if ctype == "crossover":
            return CrossoverCondition(
                _ref_from(data["indicator1"], data.get("params1")),
                _ref_from(data["indicator2"], data.get("params2")),
                data["direction"],
            )
        if ctype in ("and", "or"):
            children = data["conditions"]
            if not isinstance(children, (list, tuple)):
                raise ConditionError(f"'conditions' must be a list, got {type(children).__name__}")
            return LogicalCondition(ctype, tuple(condition_from_dict(c) for c in children))
    except KeyError as e:
        raise ConditionError(f"{ctype} condition missing field {e}") from None
    raise ConditionError(f"Unknown condition type: {ctype!r}")


def strategy_to_dict(strategy: TradingStrategy) -> Dict[str, Any]:
    out = {
        "id": strategy.id,
        "name": strategy.name,
        "buyCondition": condition_to_dict(strategy.buy_condition),
        "sellCondition": condition_to_dict(strategy.sell_condition),
    }
    if strategy.description is not None:
        out["description"] = strategy.description
    return out


def strategy_from_dict(data: Mapping[str, Any]) -> TradingStrategy:
    try:
        return TradingStrategy(
            id=str(data["id"]),
            name=str(data["name"]),
            buy_condition=condition_from_dict(data["buyCondition"]),
            sell_condition=condition_from_dict(data["sellCondition"]),
            description=data.get("description"),
        )
    except KeyError as e:
        raise ConditionError(f"Strategy missing field {e}") from None
