"""
Core data types for bars, signals, trades and curve points.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SignalType(str, Enum):
    BUY = "buy"
    SELL = "sell"


class TradeStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class Bar:
    """OHLCV candle. time is milliseconds since epoch."""
    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class Signal:
    """Buy or sell event emitted at a bar's close."""
    type: SignalType
    time: int
    price: float
    reason: str = ""

    def to_dict(self) -> dict:
        return {"type": self.type.value, "time": self.time, "price": self.price, "reason": self.reason}


@dataclass(frozen=True)
class Trade:
    """Long round trip. Exit fields stay None while the trade is open."""
    id: str
    entry_time: int
    entry_price: float
    quantity: int
    status: TradeStatus = TradeStatus.OPEN
    exit_time: Optional[int] = None
    exit_price: Optional[float] = None
    pnl: Optional[float] = None
    return_pct: Optional[float] = None
    entry_reason: str = ""
    exit_reason: str = ""

    @property
    def is_win(self) -> bool:
        return (self.return_pct or 0.0) > 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "entryTime": self.entry_time,
            "entryPrice": self.entry_price,
            "exitTime": self.exit_time,
            "exitPrice": self.exit_price,
            "quantity": self.quantity,
            "status": self.status.value,
            "pnl": self.pnl,
            "returnPct": self.return_pct,
            "entryReason": self.entry_reason,
            "exitReason": self.exit_reason,
        }


@dataclass(frozen=True)
class CurvePoint:
    """One (time, value) sample of an equity or drawdown curve."""
    time: int
    value: float
