"""
Signal generator: a FLAT/LONG state machine folded over the bar series.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from signal_engine.core.exceptions import InsufficientDataError
from signal_engine.core.types import Bar, Signal, SignalType
from signal_engine.indicators import value_at
from signal_engine.signals.cache import IndicatorCache
from signal_engine.signals.conditions import (
    ArithmeticExpression,
    Condition,
    CrossDirection,
    CrossoverCondition,
    IndicatorKind,
    IndicatorRef,
    LogicalCondition,
    LogicalOperator,
    Operand,
    SingleCondition,
    format_number,
)
from signal_engine.signals.evaluator import evaluate, operand_value

logger = logging.getLogger("signal_engine.signals")

# Bars skipped before the first evaluation so slow indicators can become defined.
WARMUP_BARS = 30


class PositionState(str, Enum):
    FLAT = "flat"
    LONG = "long"


@dataclass(frozen=True)
class SignalResult:
    signals: Tuple[Signal, ...]
    buy_count: int
    sell_count: int

    def to_dict(self) -> dict:
        return {
            "signals": [s.to_dict() for s in self.signals],
            "buyCount": self.buy_count,
            "sellCount": self.sell_count,
        }


def transition(
    state: PositionState, buy_met: bool, sell_met: bool
) -> Tuple[PositionState, Optional[SignalType]]:
    """
    One step of the single-position machine. Same-bar buy and sell cancel out;
    a buy while LONG or a sell while FLAT is ignored.
    """
    if buy_met and sell_met:
        return state, None
    if state is PositionState.FLAT and buy_met:
        return PositionState.LONG, SignalType.BUY
    if state is PositionState.LONG and sell_met:
        return PositionState.FLAT, SignalType.SELL
    return state, None


def generate_signals(
    strategy,
    bars: Sequence[Bar],
    cache: Optional[IndicatorCache] = None,
) -> SignalResult:
    """
    Evaluate the strategy's buy/sell conditions from bar WARMUP_BARS onward and
    emit alternating buy/sell signals at bar closes.
    """
    if len(bars) < WARMUP_BARS:
        raise InsufficientDataError(
            f"Signal generation needs at least {WARMUP_BARS} bars, got {len(bars)}"
        )
    if cache is None:
        cache = IndicatorCache(bars)

    state = PositionState.FLAT
    signals: List[Signal] = []
    for i in range(WARMUP_BARS, len(bars)):
        buy_met = evaluate(strategy.buy_condition, bars, i, cache)
        sell_met = evaluate(strategy.sell_condition, bars, i, cache)
        state, emitted = transition(state, buy_met, sell_met)
        if emitted is None:
            continue
        fired = strategy.buy_condition if emitted is SignalType.BUY else strategy.sell_condition
        signals.append(Signal(
            type=emitted,
            time=bars[i].time,
            price=bars[i].close,
            reason=describe_condition_with_values(fired, bars, i, cache),
        ))

    buy_count = sum(1 for s in signals if s.type is SignalType.BUY)
    logger.debug(
        "Strategy %s: %d signals over %d bars (%d cached series)",
        getattr(strategy, "id", "?"), len(signals), len(bars), len(cache),
    )
    return SignalResult(signals=tuple(signals), buy_count=buy_count, sell_count=len(signals) - buy_count)


# --- descriptions ---

_DIRECTION_TEXT = {CrossDirection.UP: "crossed above", CrossDirection.DOWN: "crossed below"}


def indicator_label(ref: IndicatorRef) -> str:
    """Display name, e.g. 'SMA(20)', '52W High', 'BB Upper'."""
    kind = ref.kind
    period = ref.param("period")
    if kind is IndicatorKind.PRICE:
        return "Close"
    if kind is IndicatorKind.VOLUME:
        return "Volume"
    if kind is IndicatorKind.VOLUME_MA:
        return f"Volume MA({period})"
    if kind is IndicatorKind.HIGH_N:
        return "52W High" if period == 252 else f"{period}D High"
    if kind is IndicatorKind.LOW_N:
        return "52W Low" if period == 252 else f"{period}D Low"
    if kind in (IndicatorKind.SMA, IndicatorKind.EMA, IndicatorKind.RSI, IndicatorKind.ATR):
        return f"{kind.value.upper()}({period})"
    return {
        IndicatorKind.MACD: "MACD",
        IndicatorKind.MACD_SIGNAL: "MACD Signal",
        IndicatorKind.MACD_HISTOGRAM: "MACD Histogram",
        IndicatorKind.STOCHASTIC_K: "%K",
        IndicatorKind.STOCHASTIC_D: "%D",
        IndicatorKind.BOLLINGER_UPPER: "BB Upper",
        IndicatorKind.BOLLINGER_MIDDLE: "BB Middle",
        IndicatorKind.BOLLINGER_LOWER: "BB Lower",
        IndicatorKind.OBV: "OBV",
    }[kind]


def _arith_symbol(expr: ArithmeticExpression) -> str:
    return {"mul": "×", "div": "÷"}.get(expr.operator.value, expr.operator.symbol)


def operand_label(operand: Operand) -> str:
    if isinstance(operand, IndicatorRef):
        return indicator_label(operand)
    if isinstance(operand, ArithmeticExpression):
        return f"{operand_label(operand.left)} {_arith_symbol(operand)} {operand_label(operand.right)}"
    return format_number(operand)


def format_observed(value: Optional[float]) -> str:
    """Thousands separators above 1000, otherwise at most two decimals."""
    if value is None:
        return "N/A"
    if abs(value) >= 1000:
        return f"{value:,.0f}"
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def describe_condition(condition: Condition) -> str:
    """Static rendering, e.g. 'RSI(14) <= 30 AND Close >= BB Upper'."""
    if isinstance(condition, SingleCondition):
        return f"{operand_label(condition.indicator)} {condition.operator.symbol} {operand_label(condition.value)}"
    if isinstance(condition, CrossoverCondition):
        return (
            f"{indicator_label(condition.first)} {_DIRECTION_TEXT[condition.direction]} "
            f"{indicator_label(condition.second)}"
        )
    if isinstance(condition, LogicalCondition):
        joiner = f" {condition.operator.value.upper()} "
        return joiner.join(describe_condition(c) for c in condition.conditions)
    raise TypeError(f"Unknown condition type: {type(condition).__name__}")


def describe_condition_with_values(
    condition: Condition, bars: Sequence[Bar], index: int, cache: IndicatorCache
) -> str:
    """
    Rendering with the values observed at index, e.g. 'RSI(14)(28.4) <= 30'.
    For OR only the children that held are listed (all of them if none did).
    """
    if isinstance(condition, SingleCondition):
        left = f"{operand_label(condition.indicator)}({format_observed(operand_value(condition.indicator, index, cache))})"
        right = operand_label(condition.value)
        if not isinstance(condition.value, float):
            right = f"{right}({format_observed(operand_value(condition.value, index, cache))})"
        return f"{left} {condition.operator.symbol} {right}"
    if isinstance(condition, CrossoverCondition):
        first = value_at(cache.values(condition.first), index)
        second = value_at(cache.values(condition.second), index)
        return (
            f"{indicator_label(condition.first)}({format_observed(first)}) "
            f"{_DIRECTION_TEXT[condition.direction]} "
            f"{indicator_label(condition.second)}({format_observed(second)})"
        )
    if isinstance(condition, LogicalCondition):
        children = condition.conditions
        if condition.operator is LogicalOperator.OR:
            held = [c for c in children if evaluate(c, bars, index, cache)]
            children = held or children
        joiner = f" {condition.operator.value.upper()} "
        return joiner.join(describe_condition_with_values(c, bars, index, cache) for c in children)
    raise TypeError(f"Unknown condition type: {type(condition).__name__}")
