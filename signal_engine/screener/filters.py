"""
Point-in-time screener: volume surge, price-change band and 52-week-high checks
on a quote plus its daily history, with a 0-100 momentum score.
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from signal_engine.core.types import Bar
from signal_engine.indicators.extremes import WEEKS_52


@dataclass(frozen=True)
class StockInfo:
    symbol: str
    name: str
    market: str
    sector: Optional[str] = None


@dataclass(frozen=True)
class Quote:
    symbol: str
    price: float
    change_percent: float
    volume: float
    change: float = 0.0
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    prev_close: float = 0.0
    timestamp: int = 0


class SignalStrength(str, Enum):
    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"


@dataclass(frozen=True)
class ScreenerSignal:
    type: str  # volume | price | high
    message: str
    strength: SignalStrength


@dataclass(frozen=True)
class ScreenerResult:
    stock: StockInfo
    quote: Quote
    score: int
    volume_ratio: float
    is_new_high: bool
    price_change_52w: float
    signals: Tuple[ScreenerSignal, ...] = ()


@dataclass(frozen=True)
class ScreenerFilter:
    """Unset fields do not filter. market 'all' matches every market."""
    market: Optional[str] = None
    sector: Optional[str] = None
    min_volume_ratio: Optional[float] = None
    min_change_percent: Optional[float] = None
    max_change_percent: Optional[float] = None
    only_new_high: bool = False


class ScreenerSortBy(str, Enum):
    SCORE = "score"
    CHANGE_PERCENT = "change_percent"
    VOLUME_RATIO = "volume_ratio"


def _round_half_up(value: float, digits: int = 0) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def filter_by_volume_surge(quote: Quote, avg_volume: float, threshold: float = 2.0) -> bool:
    if avg_volume <= 0:
        return False
    return quote.volume / avg_volume >= threshold


def filter_by_price_change(quote: Quote, min_change: float = 0.0, max_change: float = 30.0) -> bool:
    return min_change <= quote.change_percent <= max_change


def filter_by_new_high(quote: Quote, high_52w: float) -> bool:
    return quote.price >= high_52w


def calculate_volume_ratio(current_volume: float, avg_volume: float) -> float:
    """current / average, rounded to 2 decimals; 0 without an average."""
    if avg_volume <= 0:
        return 0.0
    return _round_half_up(current_volume / avg_volume, 2)


def calculate_52_week_high(bars: Sequence[Bar]) -> float:
    """Highest high over the trailing 252 bars (0 for no data)."""
    if not bars:
        return 0.0
    return max(b.high for b in bars[-WEEKS_52:])


def calculate_avg_volume(bars: Sequence[Bar], days: int = 20) -> float:
    """Mean volume of the last `days` bars, rounded to a whole number."""
    if not bars:
        return 0.0
    recent = bars[-days:]
    return _round_half_up(sum(b.volume for b in recent) / len(recent))


def screener_signals(quote: Quote, volume_ratio: float, is_new_high: bool) -> List[ScreenerSignal]:
    signals: List[ScreenerSignal] = []

    if volume_ratio >= 5:
        signals.append(ScreenerSignal("volume", f"Volume surge {volume_ratio:.1f}x", SignalStrength.STRONG))
    elif volume_ratio >= 3:
        signals.append(ScreenerSignal("volume", f"Volume up {volume_ratio:.1f}x", SignalStrength.MEDIUM))
    elif volume_ratio >= 2:
        signals.append(ScreenerSignal("volume", f"Volume {volume_ratio:.1f}x", SignalStrength.WEAK))

    change = quote.change_percent
    if change >= 10:
        signals.append(ScreenerSignal("price", f"Jumped {change:.1f}%", SignalStrength.STRONG))
    elif change >= 5:
        signals.append(ScreenerSignal("price", f"Up {change:.1f}%", SignalStrength.MEDIUM))
    elif change >= 3:
        signals.append(ScreenerSignal("price", f"Up {change:.1f}%", SignalStrength.WEAK))

    if is_new_high:
        signals.append(ScreenerSignal("high", "New 52-week high", SignalStrength.STRONG))
    return signals


def calculate_score(quote: Quote, volume_ratio: float, is_new_high: bool, price_change_52w: float) -> int:
    """
    Volume (max 30) + daily change (max 30, -10 for a down day) + new high (20)
    + 52-week performance (max 20), clamped to [0, 100].
    """
    score = 0

    if volume_ratio >= 5:
        score += 30
    elif volume_ratio >= 3:
        score += 20
    elif volume_ratio >= 2:
        score += 15
    elif volume_ratio >= 1.5:
        score += 10

    change = quote.change_percent
    if change >= 10:
        score += 30
    elif change >= 5:
        score += 20
    elif change >= 3:
        score += 15
    elif change >= 1:
        score += 10
    elif change < 0:
        score -= 10

    if is_new_high:
        score += 20

    if price_change_52w >= 100:
        score += 20
    elif price_change_52w >= 50:
        score += 15
    elif price_change_52w >= 20:
        score += 10
    elif price_change_52w >= 0:
        score += 5

    return max(0, min(100, score))


def create_screener_result(stock: StockInfo, quote: Quote, bars: Sequence[Bar]) -> ScreenerResult:
    avg_volume = calculate_avg_volume(bars, 20)
    volume_ratio = calculate_volume_ratio(quote.volume, avg_volume)
    high_52w = calculate_52_week_high(bars)
    is_new_high = quote.price >= high_52w

    year = bars[-WEEKS_52:]
    base = year[0].close if year else quote.price
    price_change_52w = (quote.price - base) / base * 100.0 if base > 0 else 0.0

    return ScreenerResult(
        stock=stock,
        quote=quote,
        score=calculate_score(quote, volume_ratio, is_new_high, price_change_52w),
        volume_ratio=volume_ratio,
        is_new_high=is_new_high,
        price_change_52w=price_change_52w,
        signals=tuple(screener_signals(quote, volume_ratio, is_new_high)),
    )


def apply_filters(results: Sequence[ScreenerResult], flt: ScreenerFilter) -> List[ScreenerResult]:
    out = []
    for r in results:
        if flt.market and flt.market.lower() != "all" and r.stock.market != flt.market:
            continue
        if flt.sector and r.stock.sector != flt.sector:
            continue
        if flt.min_volume_ratio and r.volume_ratio < flt.min_volume_ratio:
            continue
        if flt.min_change_percent is not None and r.quote.change_percent < flt.min_change_percent:
            continue
        if flt.max_change_percent is not None and r.quote.change_percent > flt.max_change_percent:
            continue
        if flt.only_new_high and not r.is_new_high:
            continue
        out.append(r)
    return out


def sort_results(
    results: Sequence[ScreenerResult], sort_by: ScreenerSortBy = ScreenerSortBy.SCORE
) -> List[ScreenerResult]:
    """Descending by the chosen key; ties keep input order."""
    sort_by = ScreenerSortBy(sort_by)
    if sort_by is ScreenerSortBy.CHANGE_PERCENT:
        return sorted(results, key=lambda r: r.quote.change_percent, reverse=True)
    if sort_by is ScreenerSortBy.VOLUME_RATIO:
        return sorted(results, key=lambda r: r.volume_ratio, reverse=True)
    return sorted(results, key=lambda r: r.score, reverse=True)
