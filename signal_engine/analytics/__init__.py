"""Analytics: performance metrics (Sharpe, Sortino, MDD, win rate, etc.)."""

from signal_engine.analytics.metrics import (
    PerformanceMetrics,
    DrawdownStats,
    MonthlyReturn,
    YearlyReturn,
    compute_metrics,
    sharpe_ratio,
    sortino_ratio,
    drawdown,
    win_rate,
    profit_factor,
    expectancy,
)

__all__ = [
    "PerformanceMetrics",
    "DrawdownStats",
    "MonthlyReturn",
    "YearlyReturn",
    "compute_metrics",
    "sharpe_ratio",
    "sortino_ratio",
    "drawdown",
    "win_rate",
    "profit_factor",
    "expectancy",
]
