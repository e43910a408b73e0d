"""Unit tests for data.loader."""

import io

import pandas as pd
import pytest

from signal_engine.core.exceptions import DataValidationError
from signal_engine.data.loader import bars_from_dataframe, bars_to_dataframe, load_bars_csv

CSV = """date,open,high,low,close,volume
2024-01-01,100,105,99,104,1000
2024-01-02,104,106,101,102,1500
2024-01-03,102,103,98,99,1200
"""


def test_load_csv(tmp_path):
    path = tmp_path / "bars.csv"
    path.write_text(CSV)
    bars = load_bars_csv(path)
    assert len(bars) == 3
    assert bars[0].time == 1_704_067_200_000
    assert bars[1].time - bars[0].time == 24 * 60 * 60 * 1000
    assert (bars[2].open, bars[2].high, bars[2].low, bars[2].close, bars[2].volume) == (102, 103, 98, 99, 1200)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_bars_csv(tmp_path / "nope.csv")


def test_numeric_time_is_millis():
    df = pd.DataFrame({
        "Time": [1000, 2000],
        "Open": [1.0, 1.0],
        "High": [2.0, 2.0],
        "Low": [0.5, 0.5],
        "Close": [1.5, 1.5],
        "Volume": [10, 10],
    })
    bars = bars_from_dataframe(df)
    assert [b.time for b in bars] == [1000, 2000]


@pytest.mark.parametrize("column,values,message", [
    ("high", [105, 100, 103], "Row 1"),
    ("low", [99, 101, 100], "Row 2"),
    ("volume", [1000, -1, 1200], "negative volume"),
    ("close", [104, 0, 99], "non-positive"),
])
def test_invalid_rows(column, values, message):
    df = pd.read_csv(io.StringIO(CSV))
    df[column] = values
    with pytest.raises(DataValidationError, match=message):
        bars_from_dataframe(df)


def test_time_must_increase():
    df = pd.read_csv(io.StringIO(CSV))
    df["date"] = ["2024-01-01", "2024-01-03", "2024-01-02"]
    with pytest.raises(DataValidationError, match="Row 2"):
        bars_from_dataframe(df)


def test_missing_columns():
    with pytest.raises(DataValidationError, match="volume"):
        bars_from_dataframe(pd.DataFrame({"time": [1], "open": [1], "high": [1], "low": [1], "close": [1]}))
    with pytest.raises(DataValidationError, match="time column"):
        bars_from_dataframe(pd.DataFrame({"open": [1], "high": [1], "low": [1], "close": [1], "volume": [1]}))


def test_to_dataframe_round_trip(tmp_path):
    path = tmp_path / "bars.csv"
    path.write_text(CSV)
    bars = load_bars_csv(path)
    df = bars_to_dataframe(bars)
    assert str(df.index.tz) == "UTC"
    assert list(df.columns) == ["time", "open", "high", "low", "close", "volume"]
    assert bars_from_dataframe(df.reset_index(drop=True)) == bars
