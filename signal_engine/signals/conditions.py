"""
Condition model: indicator references, comparisons, crossovers, AND/OR trees
and arithmetic operands. All nodes are immutable and validated on construction.
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

from signal_engine.core.exceptions import ConditionError


class IndicatorKind(str, Enum):
    PRICE = "price"
    VOLUME = "volume"
    VOLUME_MA = "volume_ma"
    HIGH_N = "high_n"
    LOW_N = "low_n"
    SMA = "sma"
    EMA = "ema"
    RSI = "rsi"
    MACD = "macd"
    MACD_SIGNAL = "macd_signal"
    MACD_HISTOGRAM = "macd_histogram"
    STOCHASTIC_K = "stochastic_k"
    STOCHASTIC_D = "stochastic_d"
    BOLLINGER_UPPER = "bollinger_upper"
    BOLLINGER_MIDDLE = "bollinger_middle"
    BOLLINGER_LOWER = "bollinger_lower"
    OBV = "obv"
    ATR = "atr"


class IndicatorFamily(str, Enum):
    """One computation; multi-output families serve several kinds."""
    CLOSE = "close"
    VOLUME = "volume"
    VOLUME_MA = "volume_ma"
    HIGH_N = "high_n"
    LOW_N = "low_n"
    SMA = "sma"
    EMA = "ema"
    RSI = "rsi"
    MACD = "macd"
    STOCHASTIC = "stochastic"
    BOLLINGER = "bollinger"
    OBV = "obv"
    ATR = "atr"


class ComparisonOperator(str, Enum):
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    EQ = "eq"

    @property
    def symbol(self) -> str:
        return _COMPARISON_SYMBOLS[self]


_COMPARISON_SYMBOLS = {
    ComparisonOperator.GT: ">",
    ComparisonOperator.GTE: ">=",
    ComparisonOperator.LT: "<",
    ComparisonOperator.LTE: "<=",
    ComparisonOperator.EQ: "==",
}


class ArithmeticOperator(str, Enum):
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"

    @property
    def symbol(self) -> str:
        return _ARITHMETIC_SYMBOLS[self]


_ARITHMETIC_SYMBOLS = {
    ArithmeticOperator.ADD: "+",
    ArithmeticOperator.SUB: "-",
    ArithmeticOperator.MUL: "*",
    ArithmeticOperator.DIV: "/",
}


class CrossDirection(str, Enum):
    UP = "up"
    DOWN = "down"


class LogicalOperator(str, Enum):
    AND = "and"
    OR = "or"


# kind -> (family, output component of a multi-output family)
KIND_FAMILY: Dict[IndicatorKind, Tuple[IndicatorFamily, Optional[str]]] = {
    IndicatorKind.PRICE: (IndicatorFamily.CLOSE, None),
    IndicatorKind.VOLUME: (IndicatorFamily.VOLUME, None),
    IndicatorKind.VOLUME_MA: (IndicatorFamily.VOLUME_MA, None),
    IndicatorKind.HIGH_N: (IndicatorFamily.HIGH_N, None),
    IndicatorKind.LOW_N: (IndicatorFamily.LOW_N, None),
    IndicatorKind.SMA: (IndicatorFamily.SMA, None),
    IndicatorKind.EMA: (IndicatorFamily.EMA, None),
    IndicatorKind.RSI: (IndicatorFamily.RSI, None),
    IndicatorKind.MACD: (IndicatorFamily.MACD, "macd"),
    IndicatorKind.MACD_SIGNAL: (IndicatorFamily.MACD, "signal"),
    IndicatorKind.MACD_HISTOGRAM: (IndicatorFamily.MACD, "histogram"),
    IndicatorKind.STOCHASTIC_K: (IndicatorFamily.STOCHASTIC, "k"),
    IndicatorKind.STOCHASTIC_D: (IndicatorFamily.STOCHASTIC, "d"),
    IndicatorKind.BOLLINGER_UPPER: (IndicatorFamily.BOLLINGER, "upper"),
    IndicatorKind.BOLLINGER_MIDDLE: (IndicatorFamily.BOLLINGER, "middle"),
    IndicatorKind.BOLLINGER_LOWER: (IndicatorFamily.BOLLINGER, "lower"),
    IndicatorKind.OBV: (IndicatorFamily.OBV, None),
    IndicatorKind.ATR: (IndicatorFamily.ATR, None),
}

# Documented defaults, merged into every IndicatorRef.
DEFAULT_PARAMS: Dict[IndicatorFamily, Dict[str, float]] = {
    IndicatorFamily.CLOSE: {},
    IndicatorFamily.VOLUME: {},
    IndicatorFamily.VOLUME_MA: {"period": 20},
    IndicatorFamily.HIGH_N: {"period": 20},
    IndicatorFamily.LOW_N: {"period": 20},
    IndicatorFamily.SMA: {"period": 20},
    IndicatorFamily.EMA: {"period": 20},
    IndicatorFamily.RSI: {"period": 14},
    IndicatorFamily.MACD: {"fast": 12, "slow": 26, "signal": 9},
    IndicatorFamily.STOCHASTIC: {"k_period": 14, "d_period": 3, "smooth_k": 3},
    IndicatorFamily.BOLLINGER: {"period": 20, "std_dev": 2.0},
    IndicatorFamily.OBV: {},
    IndicatorFamily.ATR: {"period": 14},
}

# Real-valued params; everything else is a positive integer window length.
_FLOAT_PARAMS = {"std_dev"}

Params = Tuple[Tuple[str, float], ...]


def format_number(value: float) -> str:
    """Literal rendering: 30.0 -> '30', 1.3 -> '1.3'."""
    value = float(value)
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def canonical_params(kind: IndicatorKind, params: Optional[Mapping[str, float]] = None) -> Params:
    """Merge defaults, validate domains and return a sorted (name, value) tuple."""
    family = KIND_FAMILY[kind][0]
    merged = dict(DEFAULT_PARAMS[family])
    for name, value in (params or {}).items():
        if name not in merged:
            raise ConditionError(f"Unknown parameter {name!r} for indicator {kind.value!r}")
        merged[name] = value

    out = []
    for name, value in sorted(merged.items()):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConditionError(f"Parameter {name!r} of {kind.value!r} must be a number, got {value!r}")
        if not math.isfinite(value):
            raise ConditionError(f"Parameter {name!r} of {kind.value!r} must be finite, got {value!r}")
        if name in _FLOAT_PARAMS:
            if value < 0:
                raise ConditionError(f"Parameter {name!r} of {kind.value!r} must be >= 0, got {value!r}")
            out.append((name, float(value)))
        else:
            if float(value) != int(value) or int(value) <= 0:
                raise ConditionError(
                    f"Parameter {name!r} of {kind.value!r} must be a positive integer, got {value!r}"
                )
            out.append((name, int(value)))
    return tuple(out)


@dataclass(frozen=True)
class IndicatorRef:
    """
    Reference to one indicator output with canonical params.

    IndicatorRef("sma", {"period": 5}) == IndicatorRef(IndicatorKind.SMA, (("period", 5),))
    """
    kind: IndicatorKind
    params: Params = ()

    def __post_init__(self):
        try:
            kind = IndicatorKind(self.kind)
        except ValueError:
            raise ConditionError(f"Unknown indicator: {self.kind!r}") from None
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "params", canonical_params(kind, dict(self.params)))

    @classmethod
    def of(cls, kind: Union[IndicatorKind, str], **params: float) -> "IndicatorRef":
        return cls(kind, tuple(params.items()))

    @property
    def family(self) -> IndicatorFamily:
        return KIND_FAMILY[self.kind][0]

    @property
    def component(self) -> Optional[str]:
        return KIND_FAMILY[self.kind][1]

    @property
    def param_dict(self) -> Dict[str, float]:
        return dict(self.params)

    def param(self, name: str) -> Optional[float]:
        return self.param_dict.get(name)


Term = Union[float, IndicatorRef]


def _coerce_term(term, where: str) -> Term:
    if isinstance(term, IndicatorRef):
        return term
    if isinstance(term, bool) or not isinstance(term, (int, float)):
        raise ConditionError(f"{where} must be a number or IndicatorRef, got {term!r}")
    return float(term)


@dataclass(frozen=True)
class ArithmeticExpression:
    """left (+|-|*|/) right, each side a literal or an indicator."""
    left: Term
    operator: ArithmeticOperator
    right: Term

    def __post_init__(self):
        object.__setattr__(self, "left", _coerce_term(self.left, "Arithmetic left operand"))
        object.__setattr__(self, "right", _coerce_term(self.right, "Arithmetic right operand"))
        try:
            object.__setattr__(self, "operator", ArithmeticOperator(self.operator))
        except ValueError:
            raise ConditionError(f"Unknown arithmetic operator: {self.operator!r}") from None


Operand = Union[float, IndicatorRef, ArithmeticExpression]


@dataclass(frozen=True)
class SingleCondition:
    """indicator (op) value, where value is a literal, an indicator or an expression."""
    indicator: Union[IndicatorRef, ArithmeticExpression]
    operator: ComparisonOperator
    value: Operand

    def __post_init__(self):
        if not isinstance(self.indicator, (IndicatorRef, ArithmeticExpression)):
            raise ConditionError(f"Left side must be an indicator or expression, got {self.indicator!r}")
        if not isinstance(self.value, ArithmeticExpression):
            object.__setattr__(self, "value", _coerce_term(self.value, "Comparison value"))
        try:
            object.__setattr__(self, "operator", ComparisonOperator(self.operator))
        except ValueError:
            raise ConditionError(f"Unknown comparison operator: {self.operator!r}") from None


@dataclass(frozen=True)
class CrossoverCondition:
    """True at i when `first` crosses `second` between i-1 and i in `direction`."""
    first: IndicatorRef
    second: IndicatorRef
    direction: CrossDirection

    def __post_init__(self):
        if not isinstance(self.first, IndicatorRef) or not isinstance(self.second, IndicatorRef):
            raise ConditionError("Crossover sides must both be IndicatorRef")
        try:
            object.__setattr__(self, "direction", CrossDirection(self.direction))
        except ValueError:
            raise ConditionError(f"Unknown crossover direction: {self.direction!r}") from None


@dataclass(frozen=True)
class LogicalCondition:
    operator: LogicalOperator
    conditions: Tuple["Condition", ...]

    def __post_init__(self):
        try:
            object.__setattr__(self, "operator", LogicalOperator(self.operator))
        except ValueError:
            raise ConditionError(f"Unknown logical operator: {self.operator!r}") from None
        children = tuple(self.conditions)
        if not children:
            raise ConditionError(f"{self.operator.value.upper()} condition needs at least one child")
        for child in children:
            if not isinstance(child, CONDITION_TYPES):
                raise ConditionError(f"Not a condition: {child!r}")
        object.__setattr__(self, "conditions", children)


Condition = Union[SingleCondition, CrossoverCondition, LogicalCondition]
CONDITION_TYPES = (SingleCondition, CrossoverCondition, LogicalCondition)


def all_of(*conditions: Condition) -> LogicalCondition:
    return LogicalCondition(LogicalOperator.AND, conditions)


def any_of(*conditions: Condition) -> LogicalCondition:
    return LogicalCondition(LogicalOperator.OR, conditions)


def iter_refs(node) -> Iterable[IndicatorRef]:
    """Every IndicatorRef in a condition or operand tree, depth first."""
    if isinstance(node, IndicatorRef):
        yield node
    elif isinstance(node, ArithmeticExpression):
        yield from iter_refs(node.left)
        yield from iter_refs(node.right)
    elif isinstance(node, SingleCondition):
        yield from iter_refs(node.indicator)
        yield from iter_refs(node.value)
    elif isinstance(node, CrossoverCondition):
        yield node.first
        yield node.second
    elif isinstance(node, LogicalCondition):
        for child in node.conditions:
            yield from iter_refs(child)


@dataclass(frozen=True)
class TradingStrategy:
    id: str
    name: str
    buy_condition: Condition
    sell_condition: Condition
    description: Optional[str] = None

    def __post_init__(self):
        for label, cond in (("buy_condition", self.buy_condition), ("sell_condition", self.sell_condition)):
            if not isinstance(cond, CONDITION_TYPES):
                raise ConditionError(f"{label} is not a condition: {cond!r}")
