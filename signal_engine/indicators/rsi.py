"""Relative Strength Index with Wilder smoothing."""

from __future__ import annotations
from typing import Sequence

import numpy as np

from signal_engine.core.types import Bar
from signal_engine.indicators._series import check_period, closes, undefined


def _rsi(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def rsi(bars: Sequence[Bar], period: int = 14) -> np.ndarray:
    """
    First `period` slots are undefined: one bar is spent forming the first delta.
    Zero average loss yields exactly 100.
    """
    period = check_period(period)
    c = closes(bars)
    out = undefined(len(c))
    if len(c) <= period:
        return out

    delta = np.diff(c)
    gains = np.where(delta > 0, delta, 0.0)
    losses = np.where(delta < 0, -delta, 0.0)

    avg_gain = gains[:period].sum() / period
    avg_loss = losses[:period].sum() / period
    out[period] = _rsi(avg_gain, avg_loss)

    for i in range(period, len(delta)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        out[i + 1] = _rsi(avg_gain, avg_loss)
    return out
