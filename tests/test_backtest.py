"""Unit tests for backtesting.engine."""

import pytest

from signal_engine.backtesting.engine import (
    PERIOD_END_REASON,
    BacktestConfig,
    BacktestEngine,
    run_backtest,
)
from signal_engine.core.exceptions import ConfigError, InsufficientDataError
from signal_engine.core.types import TradeStatus
from signal_engine.risk.sizing import PositionSizing
from signal_engine.signals.conditions import TradingStrategy
from signal_engine.signals.engine import WARMUP_BARS
from signal_engine.signals.formula import parse_formula


def _strategy(buy, sell):
    return TradingStrategy("t", "T", buy_condition=parse_formula(buy), sell_condition=parse_formula(sell))


NO_COSTS = dict(initial_capital=10_000.0, commission_pct=0.0, slippage_pct=0.0)


def test_single_ten_percent_trade(make_bars):
    bars = make_bars([100.0] * 35 + [110.0] * 5)
    result = run_backtest(_strategy("Price <= 100", "Price >= 110"), bars, **NO_COSTS)
    assert len(result.trades) == 1
    trade = result.trades[0]
    assert trade.quantity == 100
    assert trade.return_pct == pytest.approx(10.0)
    assert trade.pnl == pytest.approx(1000.0)
    assert result.final_equity == pytest.approx(11_000.0)
    assert result.metrics.total_return_pct == pytest.approx(10.0)
    assert result.metrics.win_rate == 1.0


def test_costs_applied_per_leg(make_bars):
    bars = make_bars([100.0] * 35 + [110.0] * 5)
    result = run_backtest(
        _strategy("Price <= 100", "Price >= 110"), bars,
        initial_capital=10_000.0, commission_pct=0.1, slippage_pct=1.0,
    )
    trade = result.trades[0]
    assert trade.entry_price == pytest.approx(101.0)
    assert trade.exit_price == pytest.approx(108.9)
    assert trade.quantity == 99
    assert trade.return_pct == pytest.approx((108.9 - 101.0) / 101.0 * 100 - 0.2)
    assert trade.pnl == pytest.approx(99 * 7.9 * (1 - 0.002))


def test_open_trade_closed_at_period_end(trend_bars):
    result = run_backtest(_strategy("SMA(5) cross_above SMA(20)", "SMA(5) cross_below SMA(20)"), trend_bars)
    assert len(result.trades) == 1
    trade = result.trades[0]
    assert trade.status is TradeStatus.CLOSED
    assert trade.exit_reason == PERIOD_END_REASON
    assert trade.exit_time == trend_bars[-1].time
    assert trade.exit_price == pytest.approx(trend_bars[-1].close * (1 - 0.1 / 100))


def test_capital_conservation(make_bars):
    closes = [100.0] * WARMUP_BARS + [90.0, 100.0, 110.0, 90.0, 85.0, 110.0, 92.0, 99.0]
    bars = make_bars(closes)
    result = run_backtest(_strategy("Price < 95", "Price > 105"), bars, initial_capital=1_000_000.0)
    realized = sum(t.pnl for t in result.trades)
    assert len(result.trades) == 3
    assert result.final_equity == pytest.approx(1_000_000.0 + realized)


def test_equity_and_drawdown_curves(make_bars):
    bars = make_bars([100.0] * 31 + [80.0, 120.0])
    result = run_backtest(_strategy("Price <= 100", "Price >= 120"), bars, **NO_COSTS)
    assert len(result.equity_curve) == len(bars)
    values = [p.value for p in result.equity_curve]
    assert values[30] == pytest.approx(10_000.0)
    assert values[31] == pytest.approx(10_000.0 - 100 * 20)
    assert values[32] == pytest.approx(12_000.0)
    dd = [p.value for p in result.drawdown_curve]
    assert all(v <= 0 for v in dd)
    assert result.metrics.max_drawdown_pct == pytest.approx(20.0)
    assert result.metrics.max_drawdown_duration_days == 2


def test_unaffordable_buy_is_skipped(make_bars):
    bars = make_bars([100.0] * 40)
    result = run_backtest(
        _strategy("Price > 0", "Price < 0"), bars,
        position_sizing=PositionSizing.FIXED, position_size=50.0, **NO_COSTS,
    )
    assert result.trades == ()
    assert result.final_equity == 10_000.0
    assert len(result.signals) == 1


def test_date_range_limits_trading(make_bars):
    closes = [100.0] * WARMUP_BARS + [90.0, 110.0, 90.0, 110.0]
    bars = make_bars(closes)
    config = BacktestConfig(start_date=bars[WARMUP_BARS + 2].time, **NO_COSTS)
    result = BacktestEngine(config, _strategy("Price < 95", "Price > 105")).run(bars)
    assert len(result.trades) == 1
    assert result.trades[0].entry_time == bars[WARMUP_BARS + 2].time
    assert result.equity_curve[0].time == bars[WARMUP_BARS + 2].time


def test_short_range_backed_by_earlier_history(make_bars):
    bars = make_bars([100.0] * (WARMUP_BARS + 2))
    config = BacktestConfig(start_date=bars[-2].time, **NO_COSTS)
    result = BacktestEngine(config, _strategy("Price > 200", "Price < 0")).run(bars)
    assert len(result.equity_curve) == 2
    # the same two bars without the earlier history are rejected
    with pytest.raises(InsufficientDataError):
        BacktestEngine(BacktestConfig(**NO_COSTS), _strategy("Price > 200", "Price < 0")).run(bars[-2:])


def test_insufficient_data(make_bars):
    with pytest.raises(InsufficientDataError):
        run_backtest(_strategy("Price > 0", "Price < 0"), make_bars([100.0] * 10))
    with pytest.raises(InsufficientDataError):
        run_backtest(_strategy("Price > 0", "Price < 0"), [])


@pytest.mark.parametrize("overrides", [
    {"initial_capital": 0},
    {"commission_pct": -1},
    {"position_size": 0},
    {"position_sizing": "bogus"},
    {"start_date": "2024-02-01", "end_date": "2024-01-01"},
])
def test_invalid_config(overrides):
    with pytest.raises(ConfigError):
        BacktestConfig(**overrides)


def test_config_accepts_aliases():
    cfg = BacktestConfig(position_sizing="percentOfCapital", start_date="2024-01-01")
    assert cfg.position_sizing is PositionSizing.PERCENT
    assert cfg.start_date == 1_704_067_200_000


def test_result_to_dict(make_bars):
    bars = make_bars([100.0] * 35 + [110.0] * 5)
    data = run_backtest(_strategy("Price <= 100", "Price >= 110"), bars, **NO_COSTS).to_dict()
    assert set(data) == {"config", "strategy", "trades", "signals", "equityCurve", "drawdownCurve", "metrics"}
    assert data["trades"][0]["exitReason"] == "Close(110) >= 110"
    assert data["metrics"]["total_return_pct"] == pytest.approx(10.0)
