"""
Bars from pandas: DataFrame/CSV -> List[Bar] with OHLCV validation, and back.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Sequence, Union

import numpy as np
import pandas as pd

from signal_engine.core.exceptions import DataValidationError
from signal_engine.core.types import Bar

logger = logging.getLogger("signal_engine.data")

OHLCV_COLUMNS = ["open", "high", "low", "close", "volume"]
_TIME_ALIASES = ("time", "open_time", "timestamp", "date", "datetime")


def _time_column(df: pd.DataFrame) -> str:
    for name in _TIME_ALIASES:
        if name in df.columns:
            return name
    raise DataValidationError(f"No time column; expected one of {', '.join(_TIME_ALIASES)}")


def _to_millis(col: pd.Series) -> np.ndarray:
    """Numeric columns are taken as ms already; anything else is parsed as dates (naive = UTC)."""
    if pd.api.types.is_numeric_dtype(col) and not pd.api.types.is_bool_dtype(col):
        return col.astype("int64").to_numpy()
    try:
        ts = pd.to_datetime(col, utc=True)
    except (ValueError, TypeError) as e:
        raise DataValidationError(f"Unparseable time values: {e}") from e
    epoch = pd.Timestamp(0, tz="UTC")
    return ((ts - epoch) // pd.Timedelta(milliseconds=1)).astype("int64").to_numpy()


def _first_bad(mask: np.ndarray) -> int:
    return int(np.flatnonzero(mask)[0])


def validate_ohlcv(times: np.ndarray, o: np.ndarray, h: np.ndarray, l: np.ndarray, c: np.ndarray, v: np.ndarray) -> None:
    """Raise DataValidationError naming the first offending row."""
    checks = [
        (np.isnan(o) | np.isnan(h) | np.isnan(l) | np.isnan(c) | np.isnan(v), "missing OHLCV value"),
        ((o <= 0) | (h <= 0) | (l <= 0) | (c <= 0), "non-positive price"),
        (h < np.maximum(o, c), "high below open/close"),
        (l > np.minimum(o, c), "low above open/close"),
        (v < 0, "negative volume"),
    ]
    for mask, message in checks:
        if mask.any():
            raise DataValidationError(f"Row {_first_bad(mask)}: {message}")
    if len(times) > 1:
        not_increasing = np.diff(times) <= 0
        if not_increasing.any():
            raise DataValidationError(f"Row {_first_bad(not_increasing) + 1}: time not strictly increasing")


def bars_from_dataframe(df: pd.DataFrame) -> List[Bar]:
    """Columns: a time column (see _TIME_ALIASES) plus open, high, low, close, volume."""
    df = df.rename(columns=lambda c: str(c).strip().lower())
    missing = [c for c in OHLCV_COLUMNS if c not in df.columns]
    if missing:
        raise DataValidationError(f"Missing columns: {', '.join(missing)}")
    times = _to_millis(df[_time_column(df)])
    try:
        o, h, l, c, v = (df[name].astype(float).to_numpy() for name in OHLCV_COLUMNS)
    except (ValueError, TypeError) as e:
        raise DataValidationError(f"Non-numeric OHLCV data: {e}") from e
    validate_ohlcv(times, o, h, l, c, v)
    return [
        Bar(time=int(times[i]), open=float(o[i]), high=float(h[i]), low=float(l[i]), close=float(c[i]), volume=float(v[i]))
        for i in range(len(times))
    ]


def load_bars_csv(path: Union[str, Path]) -> List[Bar]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Bar file not found: {path}")
    df = pd.read_csv(path)
    bars = bars_from_dataframe(df)
    logger.info("Loaded %d bars from %s", len(bars), path)
    return bars


def bars_to_dataframe(bars: Sequence[Bar]) -> pd.DataFrame:
    """time stays in ms; a UTC datetime index is added for convenience."""
    df = pd.DataFrame(
        [(b.time, b.open, b.high, b.low, b.close, b.volume) for b in bars],
        columns=["time"] + OHLCV_COLUMNS,
    )
    df.index = pd.to_datetime(df["time"], unit="ms", utc=True)
    df.index.name = "datetime"
    return df
