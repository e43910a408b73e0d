"""
Signal alerts: match a signal against alert rules (symbols, price band) and
deliver the formatted message through Telegram.
"""

from __future__ import annotations
import html
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from signal_engine.core.types import Signal, SignalType
from signal_engine.utils.telegram import send_telegram

logger = logging.getLogger("signal_engine.alerts")


@dataclass(frozen=True)
class AlertRule:
    """Empty symbols means every symbol. Price bounds are inclusive."""
    id: str
    symbols: Tuple[str, ...] = ()
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    active: bool = True
    telegram_enabled: bool = True

    def __post_init__(self):
        object.__setattr__(self, "symbols", tuple(s.upper() for s in self.symbols))
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError(f"Alert {self.id}: min_price {self.min_price} > max_price {self.max_price}")

    def matches(self, symbol: str, signal: Signal) -> bool:
        if not self.active:
            return False
        if self.symbols and symbol.upper() not in self.symbols:
            return False
        if self.min_price is not None and signal.price < self.min_price:
            return False
        if self.max_price is not None and signal.price > self.max_price:
            return False
        return True


@dataclass(frozen=True)
class AlertMessage:
    rule_id: str
    symbol: str
    signal_type: SignalType
    price: float
    text: str
    html: str
    delivered: bool = False


def format_alert(signal: Signal, symbol: str, name: str, strategy_name: str) -> Tuple[str, str]:
    """(plain text, HTML) renderings of a signal."""
    label = "BUY" if signal.type is SignalType.BUY else "SELL"
    arrow = "▲" if signal.type is SignalType.BUY else "▼"
    price = f"{signal.price:,.2f}"
    text = f"[{label}] {name}({symbol}) {arrow} {price} - {strategy_name}"
    body = (
        f"<b>{arrow} {label} signal</b>\n"
        f"<b>{html.escape(name)}</b> ({html.escape(symbol)})\n"
        f"Price: {price}\n"
        f"Strategy: {html.escape(strategy_name)}\n"
        f"Reason: {html.escape(signal.reason)}"
    )
    return text, body


class AlertNotifier:
    """Fan a signal out to matching rules. Delivery is skipped when Telegram is unconfigured."""

    def __init__(self, rules: Iterable[AlertRule], bot_token: str = "", chat_id: str = ""):
        self.rules: List[AlertRule] = list(rules)
        self._bot_token = bot_token
        self._chat_id = chat_id

    def process_signal(
        self,
        signal: Signal,
        symbol: str,
        strategy_name: str,
        name: Optional[str] = None,
    ) -> List[AlertMessage]:
        """One message per matching rule, in rule order."""
        text, body = format_alert(signal, symbol, name or symbol, strategy_name)
        out: List[AlertMessage] = []
        for rule in self.rules:
            if not rule.matches(symbol, signal):
                continue
            delivered = False
            if rule.telegram_enabled:
                delivered = send_telegram(body, self._bot_token, self._chat_id, parse_mode="HTML")
            logger.info("Alert %s: %s (delivered=%s)", rule.id, text, delivered)
            out.append(AlertMessage(
                rule_id=rule.id,
                symbol=symbol,
                signal_type=signal.type,
                price=signal.price,
                text=text,
                html=body,
                delivered=delivered,
            ))
        return out

    def process_signals(
        self, signals: Sequence[Signal], symbol: str, strategy_name: str, name: Optional[str] = None
    ) -> List[AlertMessage]:
        out: List[AlertMessage] = []
        for signal in signals:
            out.extend(self.process_signal(signal, symbol, strategy_name, name))
        return out
