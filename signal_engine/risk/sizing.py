"""
Position sizing for the long-only backtest.
Quantity = floor(allocated capital / entry price); allocation is a fixed amount
or a percentage of initial capital.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("signal_engine.risk")


class PositionSizing(str, Enum):
    FIXED = "fixed"
    PERCENT = "percent"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str) and value.replace("_", "").lower() in ("percentofcapital", "pct"):
            return cls.PERCENT
        return None


@dataclass(frozen=True)
class SizingResult:
    """Result of sizing: allowed or rejected + reason."""
    allowed: bool
    quantity: int = 0
    reason: str = ""


def allocated_capital(sizing: PositionSizing, position_size: float, initial_capital: float) -> float:
    """Cash committed to one trade."""
    if PositionSizing(sizing) is PositionSizing.FIXED:
        return float(position_size)
    return initial_capital * (position_size / 100.0)


def size_position(
    entry_price: float,
    sizing: PositionSizing,
    position_size: float,
    initial_capital: float,
) -> SizingResult:
    """
    Whole units affordable at entry_price (slippage already applied).
    A zero quantity is a skip, not an error.
    """
    if entry_price <= 0:
        return SizingResult(allowed=False, reason="non-positive entry price")
    amount = allocated_capital(sizing, position_size, initial_capital)
    qty = int(math.floor(amount / entry_price))
    if qty <= 0:
        logger.debug("Allocation %.2f cannot buy one unit at %.4f", amount, entry_price)
        return SizingResult(allowed=False, reason=f"allocation {amount:.2f} < price {entry_price:.4f}")
    return SizingResult(allowed=True, quantity=qty)
