"""Average True Range."""

from __future__ import annotations
from typing import Sequence

import numpy as np

from signal_engine.core.types import Bar
from signal_engine.indicators._series import check_period, closes, highs, lows, undefined


def true_range(bars: Sequence[Bar]) -> np.ndarray:
    """max(h-l, |h-prev_close|, |l-prev_close|); the first bar uses h-l."""
    h, l, c = highs(bars), lows(bars), closes(bars)
    tr = h - l
    if len(c) > 1:
        prev = c[:-1]
        tr[1:] = np.maximum.reduce([h[1:] - l[1:], np.abs(h[1:] - prev), np.abs(l[1:] - prev)])
    return tr


def atr(bars: Sequence[Bar], period: int = 14) -> np.ndarray:
    """First value is the mean of the first `period` true ranges, then Wilder smoothing."""
    period = check_period(period)
    tr = true_range(bars)
    out = undefined(len(tr))
    if len(tr) < period:
        return out
    value = tr[:period].sum() / period
    out[period - 1] = value
    for i in range(period, len(tr)):
        value = (value * (period - 1) + tr[i]) / period
        out[i] = value
    return out
