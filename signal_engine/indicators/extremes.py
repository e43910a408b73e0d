"""Rolling volume average and price extremes (N-bar / 52-week high and low)."""

from __future__ import annotations
from typing import Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from signal_engine.core.types import Bar
from signal_engine.indicators._series import check_period, highs, lows, undefined, volumes
from signal_engine.indicators.moving_average import sma_values

WEEKS_52 = 252


def volume_ma(bars: Sequence[Bar], period: int = 20) -> np.ndarray:
    return sma_values(volumes(bars), period)


def highest_high(bars: Sequence[Bar], period: int = 20) -> np.ndarray:
    period = check_period(period)
    h = highs(bars)
    out = undefined(len(h))
    if len(h) >= period:
        out[period - 1:] = sliding_window_view(h, period).max(axis=1)
    return out


def lowest_low(bars: Sequence[Bar], period: int = 20) -> np.ndarray:
    period = check_period(period)
    l = lows(bars)
    out = undefined(len(l))
    if len(l) >= period:
        out[period - 1:] = sliding_window_view(l, period).min(axis=1)
    return out
