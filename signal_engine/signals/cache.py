"""
Per-call indicator memo. One cache is bound to one bar series and lives for one
generate_signals / run_backtest call.
"""

from __future__ import annotations
import logging
from typing import Any, Callable, Dict, List, Sequence, Tuple

import numpy as np

from signal_engine.core.types import Bar
from signal_engine.indicators import (
    atr,
    bollinger_bands,
    ema,
    highest_high,
    lowest_low,
    macd,
    obv,
    rsi,
    sma,
    stochastic,
    volume_ma,
)
from signal_engine.indicators._series import closes, volumes
from signal_engine.signals.conditions import IndicatorFamily, IndicatorRef, Params

logger = logging.getLogger("signal_engine.signals.cache")

CacheKey = Tuple[IndicatorFamily, Params]

_COMPUTE: Dict[IndicatorFamily, Callable[..., Any]] = {
    IndicatorFamily.CLOSE: lambda bars: closes(bars),
    IndicatorFamily.VOLUME: lambda bars: volumes(bars),
    IndicatorFamily.VOLUME_MA: lambda bars, period: volume_ma(bars, period),
    IndicatorFamily.HIGH_N: lambda bars, period: highest_high(bars, period),
    IndicatorFamily.LOW_N: lambda bars, period: lowest_low(bars, period),
    IndicatorFamily.SMA: lambda bars, period: sma(bars, period),
    IndicatorFamily.EMA: lambda bars, period: ema(bars, period),
    IndicatorFamily.RSI: lambda bars, period: rsi(bars, period),
    IndicatorFamily.MACD: lambda bars, fast, slow, signal: macd(bars, fast, slow, signal),
    IndicatorFamily.STOCHASTIC: lambda bars, k_period, d_period, smooth_k: stochastic(
        bars, k_period, d_period, smooth_k
    ),
    IndicatorFamily.BOLLINGER: lambda bars, period, std_dev: bollinger_bands(bars, period, std_dev),
    IndicatorFamily.OBV: lambda bars: obv(bars),
    IndicatorFamily.ATR: lambda bars, period: atr(bars, period),
}


class IndicatorCache:
    """Computes each (family, params) pair at most once for its bar series."""

    def __init__(self, bars: Sequence[Bar]):
        self.bars = bars
        self._store: Dict[CacheKey, Any] = {}

    def values(self, ref: IndicatorRef) -> np.ndarray:
        """Series for ref; multi-output families return the requested component."""
        key: CacheKey = (ref.family, ref.params)
        result = self._store.get(key)
        if result is None:
            result = _COMPUTE[ref.family](self.bars, **dict(ref.params))
            self._store[key] = result
            logger.debug("Computed %s%s over %d bars", ref.family.value, dict(ref.params), len(self.bars))
        if ref.component is None:
            return result
        return getattr(result, ref.component)

    @property
    def computed_keys(self) -> List[CacheKey]:
        return list(self._store)

    def __contains__(self, ref: IndicatorRef) -> bool:
        return (ref.family, ref.params) in self._store

    def __len__(self) -> int:
        return len(self._store)
