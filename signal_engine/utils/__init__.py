"""Utils: Telegram delivery, time conversion."""

from signal_engine.utils.telegram import send_telegram
from signal_engine.utils.timeutils import to_millis, millis_to_datetime, MS_PER_DAY

__all__ = ["send_telegram", "to_millis", "millis_to_datetime", "MS_PER_DAY"]
