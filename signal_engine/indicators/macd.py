"""MACD line, signal line and histogram."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from signal_engine.core.types import Bar
from signal_engine.indicators._series import check_period, closes, realign
from signal_engine.indicators.moving_average import ema_values


@dataclass(frozen=True)
class MACDResult:
    macd: np.ndarray
    signal: np.ndarray
    histogram: np.ndarray


def macd(bars: Sequence[Bar], fast: int = 12, slow: int = 26, signal: int = 9) -> MACDResult:
    """
    macd = EMA(fast) - EMA(slow). The signal EMA runs over the defined part of the
    MACD line only and is re-aligned to the original indices.
    """
    signal = check_period(signal, "signal")
    c = closes(bars)
    macd_line = ema_values(c, check_period(fast, "fast")) - ema_values(c, check_period(slow, "slow"))
    signal_line = realign(macd_line, lambda v: ema_values(v, signal))
    return MACDResult(macd=macd_line, signal=signal_line, histogram=macd_line - signal_line)
