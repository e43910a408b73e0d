"""Indicators: pure functions from bars to float64 series (NaN = warm-up)."""

from signal_engine.indicators._series import is_defined, value_at
from signal_engine.indicators.moving_average import sma, ema, sma_values, ema_values
from signal_engine.indicators.rsi import rsi
from signal_engine.indicators.macd import macd, MACDResult
from signal_engine.indicators.bollinger import bollinger_bands, BollingerBandsResult
from signal_engine.indicators.stochastic import stochastic, raw_k, StochasticResult
from signal_engine.indicators.obv import obv
from signal_engine.indicators.atr import atr, true_range
from signal_engine.indicators.extremes import volume_ma, highest_high, lowest_low, WEEKS_52

__all__ = [
    "is_defined",
    "value_at",
    "sma",
    "ema",
    "sma_values",
    "ema_values",
    "rsi",
    "macd",
    "MACDResult",
    "bollinger_bands",
    "BollingerBandsResult",
    "stochastic",
    "raw_k",
    "StochasticResult",
    "obv",
    "atr",
    "true_range",
    "volume_ma",
    "highest_high",
    "lowest_low",
    "WEEKS_52",
]
