"""Signal alerts delivered over Telegram."""

from signal_engine.alerts.notifier import AlertRule, AlertMessage, AlertNotifier, format_alert

__all__ = ["AlertRule", "AlertMessage", "AlertNotifier", "format_alert"]
