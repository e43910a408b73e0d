"""On-Balance Volume."""

from __future__ import annotations
from typing import Sequence

import numpy as np

from signal_engine.core.types import Bar
from signal_engine.indicators._series import closes, volumes


def obv(bars: Sequence[Bar]) -> np.ndarray:
    """Running volume sum seeded at 0: +volume on an up close, -volume on a down close."""
    c, v = closes(bars), volumes(bars)
    if len(c) == 0:
        return np.empty(0, dtype=float)
    direction = np.sign(np.diff(c))
    return np.concatenate(([0.0], np.cumsum(direction * v[1:])))
