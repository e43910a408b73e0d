"""Millisecond timestamp helpers. All calendar math is done in UTC."""

from __future__ import annotations
import math
from datetime import date, datetime, timezone
from typing import Union

import pandas as pd

MS_PER_DAY = 24 * 60 * 60 * 1000

TimeLike = Union[int, float, str, date, datetime, pd.Timestamp]


def to_millis(value: TimeLike) -> int:
    """
    Convert an int (already ms), datetime, date, pandas Timestamp or ISO string to ms since epoch.
    A string of digits (as env vars and config values arrive) is already ms.
    Naive datetimes and strings are taken as UTC.
    """
    if isinstance(value, bool):
        raise ValueError(f"Unsupported time value: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, datetime) or isinstance(value, pd.Timestamp):
        ts = pd.Timestamp(value)
    elif isinstance(value, date):
        ts = pd.Timestamp(datetime(value.year, value.month, value.day))
    elif isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return int(text)
        ts = pd.Timestamp(text)
    else:
        raise ValueError(f"Unsupported time value: {value!r}")
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return int(ts.value // 1_000_000)


def millis_to_datetime(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc)


def days_between(start_ms: int, end_ms: int) -> float:
    return (end_ms - start_ms) / MS_PER_DAY


def ceil_days(duration_ms: int) -> int:
    """Whole days covering a duration (a partial day counts as one)."""
    if duration_ms <= 0:
        return 0
    return int(math.ceil(duration_ms / MS_PER_DAY))


def month_key(ms: int) -> str:
    """'YYYY-MM' of the timestamp."""
    dt = millis_to_datetime(ms)
    return f"{dt.year}-{dt.month:02d}"


def year_of(ms: int) -> int:
    return millis_to_datetime(ms).year
