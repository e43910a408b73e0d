"""Unit tests for analytics.metrics."""

import math

import numpy as np
import pytest

from signal_engine.analytics.metrics import (
    RATIO_SENTINEL,
    annualized_return_pct,
    compute_metrics,
    drawdown,
    expectancy,
    monthly_returns,
    omega_ratio,
    profit_factor,
    risk_reward,
    sharpe_ratio,
    sortino_ratio,
    streaks,
    win_rate,
    yearly_returns,
)
from signal_engine.core.types import CurvePoint, Trade, TradeStatus
from signal_engine.utils.timeutils import MS_PER_DAY, to_millis


def _trade(return_pct, pnl=None, entry="2024-01-01", exit="2024-01-05"):
    return Trade(
        id="t",
        entry_time=to_millis(entry),
        entry_price=100.0,
        quantity=1,
        status=TradeStatus.CLOSED,
        exit_time=to_millis(exit),
        exit_price=100.0 + return_pct,
        pnl=return_pct if pnl is None else pnl,
        return_pct=return_pct,
    )


def test_sharpe_ratio_empty():
    assert sharpe_ratio([]) == 0.0
    assert sharpe_ratio([5.0]) == 0.0


def test_sharpe_ratio_constant():
    assert sharpe_ratio([1.0] * 10) == 0.0  # zero std


def test_sharpe_ratio_value():
    returns = [10.0, -5.0, 15.0, -3.0]
    std = np.std(returns, ddof=1)
    assert sharpe_ratio(returns) == pytest.approx((4.25 * 4 - 3) / (std * 2))


def test_sharpe_factor_capped_at_20():
    returns = [1.0, 3.0] * 20
    std = np.std(returns, ddof=1)
    assert sharpe_ratio(returns, 0) == pytest.approx(2.0 * 20 / (std * math.sqrt(20)))


def test_sortino_ratio():
    returns = [10.0, -5.0, 15.0, -3.0]
    assert sortino_ratio(returns) == pytest.approx((17 - 3) / (math.sqrt(17) * 2))
    assert sortino_ratio([1.0, 2.0]) == 0.0


def test_win_rate():
    assert win_rate([1, -1, 1, 1]) == 0.75
    assert win_rate([0.0, -1]) == 0.0
    assert win_rate([]) == 0.0


def test_profit_factor():
    assert profit_factor([_trade(10), _trade(-5), _trade(10), _trade(-5)]) == 2.0
    assert profit_factor([_trade(10), _trade(10)]) == RATIO_SENTINEL
    assert profit_factor([_trade(-5), _trade(-5)]) == 0.0
    assert profit_factor([]) == 0.0


def test_expectancy_and_risk_reward():
    assert expectancy([10, -5, 5]) == pytest.approx(10 / 3)
    assert expectancy([]) == 0.0
    assert risk_reward([10, -5, 20]) == pytest.approx(3.0)
    assert risk_reward([10, 20]) == 0.0


def test_omega_ratio():
    assert omega_ratio([10, -5]) == 2.0
    assert omega_ratio([10]) == RATIO_SENTINEL


def test_streaks():
    s = streaks([1, 2, -1, 3, 4, 5, -2, -3])
    assert s.max_consecutive_wins == 3
    assert s.max_consecutive_losses == 2
    assert s.avg_win_streak == pytest.approx(2.5)
    assert s.avg_loss_streak == pytest.approx(1.5)


def test_annualized_return():
    assert annualized_return_pct(10.0, 0.5) == 10.0
    assert annualized_return_pct(10.0, 365) == pytest.approx(10.0)
    assert annualized_return_pct(21.0, 730) == pytest.approx(10.0)
    assert annualized_return_pct(-100.0, 100) == -100.0


def _curve(values):
    return [CurvePoint(i * MS_PER_DAY, v) for i, v in enumerate(values)]


def test_drawdown_recovered():
    dd = drawdown(_curve([100, 120, 100, 110, 130]))
    assert dd.max_drawdown_pct == pytest.approx(100 / 6)
    assert [p.value for p in dd.curve][2] == pytest.approx(-100 / 6)
    assert dd.max_drawdown_duration_days == 3


def test_drawdown_never_recovered():
    dd = drawdown(_curve([100, 90, 95, 80]))
    assert dd.max_drawdown_pct == pytest.approx(20.0)
    assert dd.max_drawdown_duration_days == 3
    assert drawdown([]).max_drawdown_pct == 0.0


def test_monthly_and_yearly_returns():
    trades = [
        _trade(5, pnl=500, exit="2024-01-10"),
        _trade(-2, pnl=-200, exit="2024-01-20"),
        _trade(3, pnl=300, exit="2025-03-01"),
    ]
    months = monthly_returns(trades, 10_000)
    assert [(m.month, m.pnl) for m in months] == [("2024-01", 300), ("2025-03", 300)]
    assert months[0].return_pct == pytest.approx(3.0)
    years = yearly_returns(trades, 10_000)
    assert [(y.year, y.pnl) for y in years] == [(2024, 300), (2025, 300)]


def test_compute_metrics():
    trades = [_trade(10), _trade(-5), _trade(15), _trade(-3)]
    m = compute_metrics(trades, _curve([100, 110, 105]), initial_capital=100.0, period_days=0.5)
    assert m.total_trades == 4
    assert m.winning_trades == 2
    assert m.losing_trades == 2
    assert m.win_rate == 0.5
    assert m.total_return_pct == pytest.approx(17.0)
    assert m.annualized_return_pct == pytest.approx(17.0)
    assert m.expectancy == pytest.approx(4.25)
    assert m.avg_holding_days == pytest.approx(4.0)
    assert m.to_dict()["total_trades"] == 4


def test_compute_metrics_no_trades():
    m = compute_metrics([], [], initial_capital=1000.0, period_days=30)
    assert m.total_trades == 0
    assert m.sharpe_ratio == 0.0
    assert m.profit_factor == 0.0
