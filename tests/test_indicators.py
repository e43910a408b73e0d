"""Unit tests for indicators."""

import math

import numpy as np
import pytest

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
    true_range,
    value_at,
    volume_ma,
)

SCENARIO = [
    Bar(0, 10, 12, 9, 10, 100),
    Bar(1, 10, 14, 9, 12, 100),
    Bar(2, 12, 14, 11, 14, 100),
    Bar(3, 14, 15, 13, 13, 100),
    Bar(4, 13, 14, 12, 11, 100),
]


def test_sma_scenario():
    s = sma(SCENARIO, 3)
    assert math.isnan(s[0]) and math.isnan(s[1])
    assert s[2] == pytest.approx(12.0)
    assert s[3] == pytest.approx(13.0)
    assert s[4] == pytest.approx(38 / 3)


def test_sma_shorter_than_period():
    assert np.isnan(sma(SCENARIO, 10)).all()


def test_invalid_period():
    with pytest.raises(ValueError):
        sma(SCENARIO, 0)
    with pytest.raises(ValueError):
        rsi(SCENARIO, 2.5)


def test_ema_seeded_with_sma():
    e = ema(SCENARIO, 3)
    assert math.isnan(e[1])
    assert e[2] == pytest.approx(12.0)
    assert e[3] == pytest.approx(13 * 0.5 + 12 * 0.5)
    assert e[4] == pytest.approx(11 * 0.5 + 12.5 * 0.5)


def test_rsi_flat_series_is_100(flat_bars):
    r = rsi(flat_bars, 14)
    assert np.isnan(r[:14]).all()
    assert r[14] == 100.0


def test_rsi_bounds(make_bars):
    closes = [100 + 10 * math.sin(i / 3) for i in range(80)]
    r = rsi(make_bars(closes), 14)
    defined = r[~np.isnan(r)]
    assert len(defined) == 80 - 14
    assert (defined >= 0).all() and (defined <= 100).all()


def test_rsi_falling_series_is_zero(make_bars):
    r = rsi(make_bars([100 - i for i in range(30)]), 14)
    assert r[-1] == pytest.approx(0.0)


def test_macd_components(trend_bars):
    m = macd(trend_bars)
    # macd defined from slow-1, signal another signal-1 bars later
    assert math.isnan(m.macd[24]) and not math.isnan(m.macd[25])
    assert math.isnan(m.signal[32]) and not math.isnan(m.signal[33])
    np.testing.assert_allclose(m.histogram[33:], m.macd[33:] - m.signal[33:])


def test_bollinger_ordering(make_bars):
    closes = [100 + (i % 7) for i in range(50)]
    bb = bollinger_bands(make_bars(closes), 20, 2)
    idx = ~np.isnan(bb.middle)
    assert (bb.upper[idx] >= bb.middle[idx]).all()
    assert (bb.middle[idx] >= bb.lower[idx]).all()
    window = np.array(closes[-20:], dtype=float)
    assert bb.upper[-1] == pytest.approx(window.mean() + 2 * window.std())


def test_bollinger_negative_std_dev(flat_bars):
    with pytest.raises(ValueError):
        bollinger_bands(flat_bars, 20, -1)


def test_stochastic_flat_range_is_50():
    bars = [Bar(i, 10, 10, 10, 10, 1) for i in range(30)]
    st = stochastic(bars, 14, 3, 3)
    # raw %K from 13, slow %K from 15, %D from 17
    assert math.isnan(st.k[14]) and st.k[15] == pytest.approx(50.0)
    assert math.isnan(st.d[16]) and st.d[17] == pytest.approx(50.0)


def test_stochastic_bounds(make_bars):
    closes = [100 + 10 * math.sin(i / 4) for i in range(60)]
    st = stochastic(make_bars(closes))
    for series in (st.k, st.d):
        defined = series[~np.isnan(series)]
        assert (defined >= 0).all() and (defined <= 100).all()


def test_obv_running_sum():
    bars = [
        Bar(0, 10, 10, 10, 10, 100),
        Bar(1, 10, 11, 10, 11, 50),
        Bar(2, 11, 11, 9, 9, 30),
        Bar(3, 9, 9, 9, 9, 70),
    ]
    assert list(obv(bars)) == [0.0, 50.0, 20.0, 20.0]


def test_true_range_uses_previous_close():
    bars = [Bar(0, 10, 11, 9, 10, 1), Bar(1, 14, 15, 13, 14, 1)]
    assert list(true_range(bars)) == [2.0, 5.0]


def test_atr_wilder(make_bars):
    bars = make_bars([100.0 + i for i in range(20)])
    a = atr(bars, 14)
    tr = true_range(bars)
    assert math.isnan(a[12])
    assert a[13] == pytest.approx(tr[:14].mean())
    assert a[14] == pytest.approx((a[13] * 13 + tr[14]) / 14)


def test_extremes_and_volume_ma():
    hh = highest_high(SCENARIO, 3)
    ll = lowest_low(SCENARIO, 3)
    assert list(hh[2:]) == [14.0, 15.0, 15.0]
    assert list(ll[2:]) == [9.0, 9.0, 11.0]
    assert volume_ma(SCENARIO, 5)[4] == pytest.approx(100.0)


def test_value_at():
    s = sma(SCENARIO, 3)
    assert value_at(s, 0) is None
    assert value_at(s, 2) == 12.0
    assert value_at(s, 99) is None
    assert value_at(s, -1) is None
