"""Screener: quote + history filters and momentum scoring."""

from signal_engine.screener.filters import (
    StockInfo,
    Quote,
    ScreenerSignal,
    ScreenerResult,
    ScreenerFilter,
    ScreenerSortBy,
    SignalStrength,
    filter_by_volume_surge,
    filter_by_price_change,
    filter_by_new_high,
    calculate_volume_ratio,
    calculate_52_week_high,
    calculate_avg_volume,
    screener_signals,
    calculate_score,
    create_screener_result,
    apply_filters,
    sort_results,
)

__all__ = [
    "StockInfo",
    "Quote",
    "ScreenerSignal",
    "ScreenerResult",
    "ScreenerFilter",
    "ScreenerSortBy",
    "SignalStrength",
    "filter_by_volume_surge",
    "filter_by_price_change",
    "filter_by_new_high",
    "calculate_volume_ratio",
    "calculate_52_week_high",
    "calculate_avg_volume",
    "screener_signals",
    "calculate_score",
    "create_screener_result",
    "apply_filters",
    "sort_results",
]
