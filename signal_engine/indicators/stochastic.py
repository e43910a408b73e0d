"""Slow stochastic oscillator."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from signal_engine.core.types import Bar
from signal_engine.indicators._series import check_period, closes, highs, lows, realign, undefined
from signal_engine.indicators.moving_average import sma_values


@dataclass(frozen=True)
class StochasticResult:
    k: np.ndarray
    d: np.ndarray


def raw_k(bars: Sequence[Bar], k_period: int = 14) -> np.ndarray:
    """Fast %K. A flat high/low range yields 50."""
    k_period = check_period(k_period, "k_period")
    h, l, c = highs(bars), lows(bars), closes(bars)
    out = undefined(len(c))
    for i in range(k_period - 1, len(c)):
        highest = h[i - k_period + 1:i + 1].max()
        lowest = l[i - k_period + 1:i + 1].min()
        rng = highest - lowest
        out[i] = 50.0 if rng == 0 else (c[i] - lowest) / rng * 100.0
    return out


def stochastic(
    bars: Sequence[Bar],
    k_period: int = 14,
    d_period: int = 3,
    smooth_k: int = 3,
) -> StochasticResult:
    """
    Slow %K = SMA(smooth_k) of raw %K; %D = SMA(d_period) of slow %K.
    Each smoothing runs over the defined subsequence of its input.
    """
    d_period = check_period(d_period, "d_period")
    smooth_k = check_period(smooth_k, "smooth_k")
    fast = raw_k(bars, k_period)
    slow_k = realign(fast, lambda v: sma_values(v, smooth_k))
    slow_d = realign(slow_k, lambda v: sma_values(v, d_period))
    return StochasticResult(k=slow_k, d=slow_d)
