"""Shared bar factories."""

import pytest

from signal_engine.core.types import Bar

DAY_MS = 24 * 60 * 60 * 1000
START_MS = 1_704_067_200_000  # 2024-01-01 UTC


def bars_from_closes(closes, volume=1000.0, start=START_MS, step=DAY_MS):
    """One bar per close; high/low sit 1% around the close."""
    out = []
    prev = closes[0]
    for i, c in enumerate(closes):
        o = prev
        out.append(Bar(
            time=start + i * step,
            open=o,
            high=max(o, c) * 1.01,
            low=min(o, c) * 0.99,
            close=c,
            volume=volume,
        ))
        prev = c
    return out


@pytest.fixture
def make_bars():
    return bars_from_closes


@pytest.fixture
def flat_bars():
    return bars_from_closes([100.0] * 60)


@pytest.fixture
def trend_bars():
    # 40 bars down, 40 bars up: SMA(5) crosses SMA(20) upward once
    closes = [200.0 - 2 * i for i in range(40)] + [122.0 + 3 * i for i in range(40)]
    return bars_from_closes(closes)
