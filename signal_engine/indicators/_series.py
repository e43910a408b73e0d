"""Shared helpers for indicator series. NaN is the undefined (warm-up) marker."""

from __future__ import annotations
import math
from typing import Callable, Optional, Sequence

import numpy as np

from signal_engine.core.types import Bar


def check_period(period: float, name: str = "period") -> int:
    """Return period as int; reject non-integral or non-positive values."""
    if isinstance(period, bool) or period is None:
        raise ValueError(f"{name} must be a positive integer, got {period!r}")
    if float(period) != int(period) or int(period) <= 0:
        raise ValueError(f"{name} must be a positive integer, got {period!r}")
    return int(period)


def undefined(length: int) -> np.ndarray:
    return np.full(length, np.nan, dtype=float)


def closes(bars: Sequence[Bar]) -> np.ndarray:
    return np.fromiter((b.close for b in bars), dtype=float, count=len(bars))


def highs(bars: Sequence[Bar]) -> np.ndarray:
    return np.fromiter((b.high for b in bars), dtype=float, count=len(bars))


def lows(bars: Sequence[Bar]) -> np.ndarray:
    return np.fromiter((b.low for b in bars), dtype=float, count=len(bars))


def volumes(bars: Sequence[Bar]) -> np.ndarray:
    return np.fromiter((b.volume for b in bars), dtype=float, count=len(bars))


def realign(source: np.ndarray, derive: Callable[[np.ndarray], np.ndarray]) -> np.ndarray:
    """
    Apply derive() to the defined subsequence of source and put the results back
    at the original indices. Warm-up gaps are skipped, never zero-filled.
    """
    out = undefined(len(source))
    mask = ~np.isnan(source)
    if mask.any():
        out[mask] = derive(source[mask])
    return out


def is_defined(value: Optional[float]) -> bool:
    return value is not None and not math.isnan(value)


def value_at(series: np.ndarray, index: int) -> Optional[float]:
    """Series value at index as a float, or None when undefined or out of range."""
    if index < 0 or index >= len(series):
        return None
    v = float(series[index])
    return None if math.isnan(v) else v
