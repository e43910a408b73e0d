"""Simple and exponential moving averages."""

from __future__ import annotations
from typing import Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from signal_engine.core.types import Bar
from signal_engine.indicators._series import check_period, closes, undefined


def sma_values(values: Sequence[float], period: int) -> np.ndarray:
    """Arithmetic mean of the last `period` values; first period-1 slots undefined."""
    period = check_period(period)
    arr = np.asarray(values, dtype=float)
    out = undefined(len(arr))
    if len(arr) < period:
        return out
    out[period - 1:] = sliding_window_view(arr, period).sum(axis=1) / period
    return out


def ema_values(values: Sequence[float], period: int) -> np.ndarray:
    """
    EMA seeded with the SMA at index period-1, then
    EMA_i = v_i * k + EMA_{i-1} * (1 - k) with k = 2 / (period + 1).
    """
    period = check_period(period)
    arr = np.asarray(values, dtype=float)
    out = undefined(len(arr))
    if len(arr) < period:
        return out
    k = 2.0 / (period + 1)
    prev = arr[:period].sum() / period
    out[period - 1] = prev
    for i in range(period, len(arr)):
        prev = arr[i] * k + prev * (1 - k)
        out[i] = prev
    return out


def sma(bars: Sequence[Bar], period: int) -> np.ndarray:
    return sma_values(closes(bars), period)


def ema(bars: Sequence[Bar], period: int) -> np.ndarray:
    return ema_values(closes(bars), period)
