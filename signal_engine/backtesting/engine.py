"""
Backtest engine: replays strategy signals against capital, commission and
slippage assumptions. Long only, one position at a time.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from signal_engine.analytics.metrics import PerformanceMetrics, compute_metrics, drawdown
from signal_engine.core.exceptions import ConfigError, InsufficientDataError
from signal_engine.core.types import Bar, CurvePoint, Signal, SignalType, Trade, TradeStatus
from signal_engine.risk.sizing import PositionSizing, size_position
from signal_engine.signals.conditions import TradingStrategy
from signal_engine.signals.engine import WARMUP_BARS, generate_signals
from signal_engine.signals.serialization import strategy_to_dict
from signal_engine.utils.timeutils import MS_PER_DAY, TimeLike, to_millis

logger = logging.getLogger("signal_engine.backtest")

PERIOD_END_REASON = "period end"


@dataclass(frozen=True)
class BacktestConfig:
    """
    Dates are ms since epoch (anything to_millis accepts is converted); None means
    the first / last bar. Commission and slippage are percentages per leg.
    """
    symbol: str = ""
    start_date: Optional[TimeLike] = None
    end_date: Optional[TimeLike] = None
    initial_capital: float = 10_000_000.0
    commission_pct: float = 0.015
    slippage_pct: float = 0.1
    position_sizing: PositionSizing = PositionSizing.PERCENT
    position_size: float = 100.0
    risk_free_rate_pct: float = 3.0

    def __post_init__(self):
        for name in ("start_date", "end_date"):
            raw = getattr(self, name)
            if raw is not None:
                try:
                    object.__setattr__(self, name, to_millis(raw))
                except ValueError as e:
                    raise ConfigError(f"{name}: {e}") from None
        try:
            object.__setattr__(self, "position_sizing", PositionSizing(self.position_sizing))
        except ValueError:
            raise ConfigError(f"position_sizing must be 'fixed' or 'percent', got {self.position_sizing!r}") from None
        if self.initial_capital <= 0:
            raise ConfigError(f"initial_capital must be > 0, got {self.initial_capital}")
        if self.commission_pct < 0 or self.slippage_pct < 0:
            raise ConfigError("commission_pct and slippage_pct must be >= 0")
        if self.position_size <= 0:
            raise ConfigError(f"position_size must be > 0, got {self.position_size}")
        if self.start_date is not None and self.end_date is not None and self.start_date > self.end_date:
            raise ConfigError("start_date is after end_date")

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "initialCapital": self.initial_capital,
            "commission": self.commission_pct,
            "slippage": self.slippage_pct,
            "positionSizing": self.position_sizing.value,
            "positionSize": self.position_size,
        }


@dataclass(frozen=True)
class BacktestResult:
    """Backtest output: trades, curves and metrics."""
    config: BacktestConfig
    strategy: TradingStrategy
    trades: Tuple[Trade, ...] = ()
    signals: Tuple[Signal, ...] = ()
    equity_curve: Tuple[CurvePoint, ...] = ()
    drawdown_curve: Tuple[CurvePoint, ...] = ()
    metrics: Optional[PerformanceMetrics] = None

    @property
    def final_equity(self) -> float:
        return self.equity_curve[-1].value if self.equity_curve else self.config.initial_capital

    def to_dict(self) -> dict:
        out = {
            "config": self.config.to_dict(),
            "strategy": strategy_to_dict(self.strategy),
            "trades": [t.to_dict() for t in self.trades],
            "signals": [s.to_dict() for s in self.signals],
            "equityCurve": [{"time": p.time, "value": p.value} for p in self.equity_curve],
            "drawdownCurve": [{"time": p.time, "value": p.value} for p in self.drawdown_curve],
        }
        if self.metrics is not None:
            out["metrics"] = self.metrics.to_dict()
        return out


class BacktestEngine:
    """
    Signals come from all bars up to end_date (earlier history warms the
    indicators); only signals inside [start_date, end_date] are traded.
    The 30-bar minimum applies to that history, so a short range is fine as
    long as enough earlier bars precede it.
    """

    def __init__(self, config: BacktestConfig, strategy: TradingStrategy):
        self.config = config
        self.strategy = strategy

    def run(self, bars: Sequence[Bar]) -> BacktestResult:
        cfg = self.config
        if not bars:
            raise InsufficientDataError("No bars supplied")
        start = cfg.start_date if cfg.start_date is not None else bars[0].time
        end = cfg.end_date if cfg.end_date is not None else bars[-1].time

        history = [b for b in bars if b.time <= end]
        if len(history) < WARMUP_BARS:
            raise InsufficientDataError(
                f"Backtest needs at least {WARMUP_BARS} bars up to end_date, got {len(history)}"
            )
        in_range = [b for b in history if b.time >= start]
        if not in_range:
            raise InsufficientDataError("No bars between start_date and end_date")

        generated = generate_signals(self.strategy, history)
        signals = tuple(s for s in generated.signals if start <= s.time <= end)

        trades = self._simulate_trades(signals, in_range[-1])
        equity = self._equity_curve(trades, in_range)
        dd = drawdown(equity)
        period_days = (in_range[-1].time - in_range[0].time) / MS_PER_DAY
        metrics = compute_metrics(
            trades, equity, cfg.initial_capital, period_days, cfg.risk_free_rate_pct, dd=dd
        )
        logger.info(
            "Backtest %s [%s]: %d bars, %d signals, %d trades, return %.2f%%, max DD %.2f%%",
            cfg.symbol or "-", self.strategy.id, len(in_range), len(signals), len(trades),
            metrics.total_return_pct, metrics.max_drawdown_pct,
        )
        return BacktestResult(
            config=cfg,
            strategy=self.strategy,
            trades=tuple(trades),
            signals=signals,
            equity_curve=tuple(equity),
            drawdown_curve=dd.curve,
            metrics=metrics,
        )

    def _close(self, trade: Trade, time: int, price: float, reason: str) -> Trade:
        cfg = self.config
        exit_price = price * (1 - cfg.slippage_pct / 100.0)
        gross_pct = (exit_price - trade.entry_price) / trade.entry_price * 100.0
        return replace(
            trade,
            status=TradeStatus.CLOSED,
            exit_time=time,
            exit_price=exit_price,
            return_pct=gross_pct - 2 * cfg.commission_pct,
            pnl=trade.quantity * (exit_price - trade.entry_price) * (1 - 2 * cfg.commission_pct / 100.0),
            exit_reason=reason,
        )

    def _simulate_trades(self, signals: Sequence[Signal], last_bar: Bar) -> List[Trade]:
        cfg = self.config
        trades: List[Trade] = []
        open_trade: Optional[Trade] = None
        for sig in signals:
            if sig.type is SignalType.BUY and open_trade is None:
                entry_price = sig.price * (1 + cfg.slippage_pct / 100.0)
                sizing = size_position(entry_price, cfg.position_sizing, cfg.position_size, cfg.initial_capital)
                if not sizing.allowed:
                    logger.debug("Skipping buy at %d: %s", sig.time, sizing.reason)
                    continue
                open_trade = Trade(
                    id=f"trade-{len(trades) + 1}",
                    entry_time=sig.time,
                    entry_price=entry_price,
                    quantity=sizing.quantity,
                    entry_reason=sig.reason,
                )
            elif sig.type is SignalType.SELL and open_trade is not None:
                trades.append(self._close(open_trade, sig.time, sig.price, sig.reason))
                open_trade = None
        if open_trade is not None:
            trades.append(self._close(open_trade, last_bar.time, last_bar.close, PERIOD_END_REASON))
        return trades

    def _equity_curve(self, trades: Sequence[Trade], bars: Sequence[Bar]) -> List[CurvePoint]:
        """initial + realized PnL + mark-to-close of the open position, per bar."""
        curve: List[CurvePoint] = []
        realized = 0.0
        idx = 0
        for bar in bars:
            while idx < len(trades) and trades[idx].exit_time <= bar.time:
                realized += trades[idx].pnl
                idx += 1
            value = self.config.initial_capital + realized
            if idx < len(trades) and trades[idx].entry_time <= bar.time:
                t = trades[idx]
                value += t.quantity * (bar.close - t.entry_price)
            curve.append(CurvePoint(bar.time, value))
        return curve


def run_backtest(
    strategy: TradingStrategy,
    bars: Sequence[Bar],
    config: Optional[BacktestConfig] = None,
    **overrides,
) -> BacktestResult:
    """Run with defaults (whole series, 100% sizing), optionally overriding config fields."""
    if config is None:
        config = BacktestConfig(**overrides)
    elif overrides:
        config = replace(config, **overrides)
    return BacktestEngine(config, strategy).run(bars)
