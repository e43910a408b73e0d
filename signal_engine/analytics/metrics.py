"""
Performance metrics from closed trades and the equity curve.
Per-trade returns are percentages (5.0 == 5%). Sharpe/Sortino annualize with
min(trade_count, 20) as a trades-per-year proxy and subtract a risk-free rate in percent.
"""

from __future__ import annotations
from collections import OrderedDict
from dataclasses import asdict, dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from signal_engine.core.types import CurvePoint, Trade
from signal_engine.utils.timeutils import MS_PER_DAY, ceil_days, month_key, year_of

RISK_FREE_RATE_PCT = 3.0
MAX_TRADES_PER_YEAR = 20
# Stand-in for an unbounded ratio (no losing trades).
RATIO_SENTINEL = 999.0


@dataclass(frozen=True)
class MonthlyReturn:
    month: str
    pnl: float
    return_pct: float


@dataclass(frozen=True)
class YearlyReturn:
    year: int
    pnl: float
    return_pct: float


@dataclass(frozen=True)
class DrawdownStats:
    curve: Tuple[CurvePoint, ...]
    max_drawdown_pct: float
    max_drawdown_duration_days: int


@dataclass(frozen=True)
class StreakStats:
    max_consecutive_wins: int
    max_consecutive_losses: int
    avg_win_streak: float
    avg_loss_streak: float


@dataclass(frozen=True)
class PerformanceMetrics:
    """Aggregate performance metrics."""
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    total_return_pct: float
    annualized_return_pct: float
    max_drawdown_pct: float
    max_drawdown_duration_days: int
    sharpe_ratio: float
    sortino_ratio: float
    calmar_ratio: float
    omega_ratio: float
    volatility: float
    downside_volatility: float
    profit_factor: float
    expectancy: float
    avg_win_pct: float
    avg_loss_pct: float
    avg_risk_reward: float
    avg_holding_days: float
    max_consecutive_wins: int
    max_consecutive_losses: int
    avg_win_streak: float
    avg_loss_streak: float
    monthly_returns: Tuple[MonthlyReturn, ...] = ()
    yearly_returns: Tuple[YearlyReturn, ...] = ()

    def to_dict(self) -> dict:
        return asdict(self)


def _returns(trades: Sequence[Trade]) -> List[float]:
    return [t.return_pct or 0.0 for t in trades]


def _annualization(n: int) -> int:
    return min(n, MAX_TRADES_PER_YEAR)


def sharpe_ratio(returns: Sequence[float], risk_free_pct: float = RISK_FREE_RATE_PCT) -> float:
    """(mean*f - rf) / (sample std * sqrt(f)), f = min(n, 20). 0 below two returns or with zero std."""
    if len(returns) < 2:
        return 0.0
    arr = np.asarray(returns, dtype=float)
    std = arr.std(ddof=1)
    if std <= 1e-12:
        return 0.0
    f = _annualization(len(arr))
    return float((arr.mean() * f - risk_free_pct) / (std * np.sqrt(f)))


def sortino_ratio(returns: Sequence[float], risk_free_pct: float = RISK_FREE_RATE_PCT) -> float:
    """Like sharpe_ratio with downside deviation sqrt(mean(r^2 for r < 0)). 0 with no losing returns."""
    if len(returns) < 2:
        return 0.0
    arr = np.asarray(returns, dtype=float)
    downside = arr[arr < 0]
    if len(downside) == 0:
        return 0.0
    dd = float(np.sqrt(np.mean(downside ** 2)))
    if dd <= 1e-12:
        return 0.0
    f = _annualization(len(arr))
    return float((arr.mean() * f - risk_free_pct) / (dd * np.sqrt(f)))


def volatility(returns: Sequence[float]) -> float:
    """Sample standard deviation of per-trade returns."""
    if len(returns) < 2:
        return 0.0
    return float(np.asarray(returns, dtype=float).std(ddof=1))


def downside_volatility(returns: Sequence[float]) -> float:
    arr = np.asarray(returns, dtype=float)
    downside = arr[arr < 0]
    if len(downside) < 2:
        return 0.0
    return float(np.sqrt(np.mean(downside ** 2)))


def omega_ratio(returns: Sequence[float], threshold: float = 0.0) -> float:
    arr = np.asarray(returns, dtype=float)
    gains = float(np.sum(arr[arr > threshold] - threshold))
    losses = float(np.sum(threshold - arr[arr <= threshold]))
    if losses <= 0:
        return RATIO_SENTINEL if gains > 0 else 1.0
    return gains / losses


def win_rate(returns: Sequence[float]) -> float:
    """Fraction of trades with positive return."""
    if not returns:
        return 0.0
    return sum(1 for r in returns if r > 0) / len(returns)


def profit_factor(trades: Sequence[Trade]) -> float:
    """Gross PnL of winners / gross PnL of losers; RATIO_SENTINEL when there are no losses."""
    wins = sum(t.pnl or 0.0 for t in trades if t.is_win)
    losses = abs(sum(t.pnl or 0.0 for t in trades if not t.is_win))
    if losses <= 0:
        return RATIO_SENTINEL if wins > 0 else 0.0
    return wins / losses


def expectancy(returns: Sequence[float]) -> float:
    """win_rate * avg_win + (1 - win_rate) * avg_loss, in percent per trade."""
    if not returns:
        return 0.0
    wins = [r for r in returns if r > 0]
    losses = [r for r in returns if r <= 0]
    rate = len(wins) / len(returns)
    avg_win = sum(wins) / len(wins) if wins else 0.0
    avg_loss = sum(losses) / len(losses) if losses else 0.0
    return rate * avg_win + (1 - rate) * avg_loss


def risk_reward(returns: Sequence[float]) -> float:
    """Average win / |average loss|; 0 unless there are both winners and losers."""
    wins = [r for r in returns if r > 0]
    losses = [r for r in returns if r < 0]
    if not wins or not losses:
        return 0.0
    return (sum(wins) / len(wins)) / abs(sum(losses) / len(losses))


def streaks(returns: Sequence[float]) -> StreakStats:
    win_runs: List[int] = []
    loss_runs: List[int] = []
    run, winning = 0, None
    for r in returns:
        is_win = r > 0
        if winning is None or is_win == winning:
            run += 1
        else:
            (win_runs if winning else loss_runs).append(run)
            run = 1
        winning = is_win
    if winning is not None:
        (win_runs if winning else loss_runs).append(run)
    return StreakStats(
        max_consecutive_wins=max(win_runs, default=0),
        max_consecutive_losses=max(loss_runs, default=0),
        avg_win_streak=sum(win_runs) / len(win_runs) if win_runs else 0.0,
        avg_loss_streak=sum(loss_runs) / len(loss_runs) if loss_runs else 0.0,
    )


def avg_holding_days(trades: Sequence[Trade]) -> float:
    spans = [(t.exit_time - t.entry_time) / MS_PER_DAY for t in trades if t.exit_time is not None]
    if not spans:
        return 0.0
    return sum(spans) / len(spans)


def monthly_returns(trades: Sequence[Trade], initial_capital: float) -> Tuple[MonthlyReturn, ...]:
    """PnL bucketed by exit month (UTC), as % of initial capital, sorted by month."""
    buckets: "OrderedDict[str, float]" = OrderedDict()
    for t in trades:
        if t.exit_time is None or t.pnl is None:
            continue
        key = month_key(t.exit_time)
        buckets[key] = buckets.get(key, 0.0) + t.pnl
    return tuple(
        MonthlyReturn(month=k, pnl=v, return_pct=v / initial_capital * 100.0)
        for k, v in sorted(buckets.items())
    )


def yearly_returns(trades: Sequence[Trade], initial_capital: float) -> Tuple[YearlyReturn, ...]:
    buckets = {}
    for t in trades:
        if t.exit_time is None or t.pnl is None:
            continue
        year = year_of(t.exit_time)
        buckets[year] = buckets.get(year, 0.0) + t.pnl
    return tuple(
        YearlyReturn(year=k, pnl=v, return_pct=v / initial_capital * 100.0)
        for k, v in sorted(buckets.items())
    )


def total_return_pct(trades: Sequence[Trade], initial_capital: float) -> float:
    realized = sum(t.pnl or 0.0 for t in trades)
    return realized / initial_capital * 100.0


def annualized_return_pct(total_pct: float, days: float) -> float:
    """(1 + R)^(365/days) - 1 in percent; total return itself for spans under a day."""
    if days < 1:
        return total_pct
    growth = 1.0 + total_pct / 100.0
    if growth <= 0:
        return -100.0
    return (growth ** (365.0 / days) - 1.0) * 100.0


def drawdown(equity_curve: Sequence[CurvePoint]) -> DrawdownStats:
    """
    Percent decline from the running peak at each point (<= 0 in the curve).
    A drawdown lasts from its peak until equity regains that peak, or until the
    last point if it never does.
    """
    if not equity_curve:
        return DrawdownStats(curve=(), max_drawdown_pct=0.0, max_drawdown_duration_days=0)
    peak = equity_curve[0].value
    peak_time = equity_curve[0].time
    in_drawdown = False
    max_dd = 0.0
    longest = 0
    curve: List[CurvePoint] = []
    for point in equity_curve:
        if point.value >= peak:
            if in_drawdown:
                longest = max(longest, point.time - peak_time)
            peak, peak_time, in_drawdown = point.value, point.time, False
            curve.append(CurvePoint(point.time, 0.0))
        else:
            dd = (peak - point.value) / peak * 100.0 if peak > 0 else 0.0
            max_dd = max(max_dd, dd)
            in_drawdown = True
            curve.append(CurvePoint(point.time, -dd))
    if in_drawdown:
        longest = max(longest, equity_curve[-1].time - peak_time)
    return DrawdownStats(curve=tuple(curve), max_drawdown_pct=max_dd, max_drawdown_duration_days=ceil_days(longest))


def compute_metrics(
    trades: Sequence[Trade],
    equity_curve: Sequence[CurvePoint],
    initial_capital: float,
    period_days: float,
    risk_free_pct: float = RISK_FREE_RATE_PCT,
    dd: Optional[DrawdownStats] = None,
) -> PerformanceMetrics:
    """Full metrics from closed trades, the equity curve and the span of the test in days."""
    returns = _returns(trades)
    wins = [r for r in returns if r > 0]
    losses = [r for r in returns if r <= 0]
    total = total_return_pct(trades, initial_capital)
    annual = annualized_return_pct(total, period_days)
    if dd is None:
        dd = drawdown(equity_curve)
    streak = streaks(returns)
    return PerformanceMetrics(
        total_trades=len(trades),
        winning_trades=len(wins),
        losing_trades=len(losses),
        win_rate=win_rate(returns),
        total_return_pct=total,
        annualized_return_pct=annual,
        max_drawdown_pct=dd.max_drawdown_pct,
        max_drawdown_duration_days=dd.max_drawdown_duration_days,
        sharpe_ratio=sharpe_ratio(returns, risk_free_pct),
        sortino_ratio=sortino_ratio(returns, risk_free_pct),
        calmar_ratio=annual / abs(dd.max_drawdown_pct) if dd.max_drawdown_pct else 0.0,
        omega_ratio=omega_ratio(returns),
        volatility=volatility(returns),
        downside_volatility=downside_volatility(returns),
        profit_factor=profit_factor(trades),
        expectancy=expectancy(returns),
        avg_win_pct=sum(wins) / len(wins) if wins else 0.0,
        avg_loss_pct=sum(losses) / len(losses) if losses else 0.0,
        avg_risk_reward=risk_reward(returns),
        avg_holding_days=avg_holding_days(trades),
        max_consecutive_wins=streak.max_consecutive_wins,
        max_consecutive_losses=streak.max_consecutive_losses,
        avg_win_streak=streak.avg_win_streak,
        avg_loss_streak=streak.avg_loss_streak,
        monthly_returns=monthly_returns(trades, initial_capital),
        yearly_returns=yearly_returns(trades, initial_capital),
    )
