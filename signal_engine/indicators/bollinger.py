"""Bollinger Bands."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from signal_engine.core.types import Bar
from signal_engine.indicators._series import check_period, closes, undefined
from signal_engine.indicators.moving_average import sma_values


@dataclass(frozen=True)
class BollingerBandsResult:
    upper: np.ndarray
    middle: np.ndarray
    lower: np.ndarray


def bollinger_bands(bars: Sequence[Bar], period: int = 20, std_dev: float = 2.0) -> BollingerBandsResult:
    """Middle = SMA(period); bands at middle +/- std_dev * population std of the window."""
    period = check_period(period)
    if std_dev < 0:
        raise ValueError(f"std_dev must be >= 0, got {std_dev!r}")
    c = closes(bars)
    middle = sma_values(c, period)
    sd = undefined(len(c))
    if len(c) >= period:
        sd[period - 1:] = sliding_window_view(c, period).std(axis=1, ddof=0)
    return BollingerBandsResult(
        upper=middle + std_dev * sd,
        middle=middle,
        lower=middle - std_dev * sd,
    )
