"""Built-in strategies."""

from __future__ import annotations
from typing import Dict, List, Optional

from signal_engine.signals.conditions import (
    ComparisonOperator,
    CrossDirection,
    CrossoverCondition,
    IndicatorKind,
    IndicatorRef,
    SingleCondition,
    TradingStrategy,
)

_SMA_20 = IndicatorRef.of(IndicatorKind.SMA, period=20)
_SMA_60 = IndicatorRef.of(IndicatorKind.SMA, period=60)
_RSI_14 = IndicatorRef.of(IndicatorKind.RSI, period=14)
_MACD = IndicatorRef.of(IndicatorKind.MACD)
_MACD_SIGNAL = IndicatorRef.of(IndicatorKind.MACD_SIGNAL)
_PRICE = IndicatorRef.of(IndicatorKind.PRICE)


def _sma_cross(strategy_id: str, name: str, description: str) -> TradingStrategy:
    return TradingStrategy(
        id=strategy_id,
        name=name,
        description=description,
        buy_condition=CrossoverCondition(_SMA_20, _SMA_60, CrossDirection.UP),
        sell_condition=CrossoverCondition(_SMA_20, _SMA_60, CrossDirection.DOWN),
    )


def _rsi_band(strategy_id: str, name: str, description: str) -> TradingStrategy:
    return TradingStrategy(
        id=strategy_id,
        name=name,
        description=description,
        buy_condition=SingleCondition(_RSI_14, ComparisonOperator.LTE, 30),
        sell_condition=SingleCondition(_RSI_14, ComparisonOperator.GTE, 70),
    )


PRESET_STRATEGIES: Dict[str, TradingStrategy] = {
    "golden_cross": _sma_cross(
        "golden_cross", "Golden Cross",
        "Buy when SMA(20) crosses above SMA(60), sell when it crosses below",
    ),
    "death_cross": _sma_cross(
        "death_cross", "Death Cross",
        "Sell when SMA(20) crosses below SMA(60), buy back when it crosses above",
    ),
    "rsi_oversold": _rsi_band(
        "rsi_oversold", "RSI Oversold",
        "Buy when RSI(14) is at or below 30, sell at or above 70",
    ),
    "rsi_overbought": _rsi_band(
        "rsi_overbought", "RSI Overbought",
        "Sell when RSI(14) is at or above 70, buy at or below 30",
    ),
    "macd_crossover": TradingStrategy(
        id="macd_crossover",
        name="MACD Crossover",
        description="Buy when MACD crosses above its signal line, sell when it crosses below",
        buy_condition=CrossoverCondition(_MACD, _MACD_SIGNAL, CrossDirection.UP),
        sell_condition=CrossoverCondition(_MACD, _MACD_SIGNAL, CrossDirection.DOWN),
    ),
    "bollinger_breakout": TradingStrategy(
        id="bollinger_breakout",
        name="Bollinger Breakout",
        description="Buy at or below the lower band, sell at or above the upper band",
        buy_condition=SingleCondition(
            _PRICE, ComparisonOperator.LTE, IndicatorRef.of(IndicatorKind.BOLLINGER_LOWER, period=20, std_dev=2)
        ),
        sell_condition=SingleCondition(
            _PRICE, ComparisonOperator.GTE, IndicatorRef.of(IndicatorKind.BOLLINGER_UPPER, period=20, std_dev=2)
        ),
    ),
}


def get_preset_strategies() -> List[TradingStrategy]:
    return list(PRESET_STRATEGIES.values())


def get_preset_strategy(strategy_id: str) -> Optional[TradingStrategy]:
    return PRESET_STRATEGIES.get(strategy_id)
