"""Unit tests for signals.cache."""

import numpy as np

from signal_engine.indicators import macd, sma
from signal_engine.signals.cache import IndicatorCache
from signal_engine.signals.conditions import IndicatorRef


def test_same_ref_computed_once(trend_bars):
    cache = IndicatorCache(trend_bars)
    ref = IndicatorRef.of("sma", period=5)
    first = cache.values(ref)
    second = cache.values(IndicatorRef.of("sma", period=5))
    assert first is second
    assert len(cache) == 1
    np.testing.assert_array_equal(first, sma(trend_bars, 5))


def test_multi_output_family_shares_entry(trend_bars):
    cache = IndicatorCache(trend_bars)
    line = cache.values(IndicatorRef.of("macd"))
    signal = cache.values(IndicatorRef.of("macd_signal"))
    cache.values(IndicatorRef.of("macd_histogram"))
    assert len(cache) == 1
    expected = macd(trend_bars)
    np.testing.assert_array_equal(line, expected.macd)
    np.testing.assert_array_equal(signal, expected.signal)


def test_different_params_are_separate(trend_bars):
    cache = IndicatorCache(trend_bars)
    cache.values(IndicatorRef.of("sma", period=5))
    cache.values(IndicatorRef.of("sma", period=20))
    assert len(cache) == 2
    assert IndicatorRef.of("sma", period=5) in cache
    assert IndicatorRef.of("ema", period=5) not in cache


def test_price_and_volume_series(flat_bars):
    cache = IndicatorCache(flat_bars)
    assert (cache.values(IndicatorRef.of("price")) == 100.0).all()
    assert (cache.values(IndicatorRef.of("volume")) == 1000.0).all()


def test_computed_keys_in_insertion_order(trend_bars):
    cache = IndicatorCache(trend_bars)
    rsi = IndicatorRef.of("rsi")
    cache.values(rsi)
    cache.values(IndicatorRef.of("bollinger_lower", period=10))
    cache.values(rsi)
    keys = cache.computed_keys
    assert keys[0] == (rsi.family, rsi.params)
    assert [family.value for family, _ in keys] == ["rsi", "bollinger"]
