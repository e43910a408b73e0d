"""Bar loading from pandas DataFrames and CSV files."""

from signal_engine.data.loader import bars_from_dataframe, bars_to_dataframe, load_bars_csv, validate_ohlcv

__all__ = ["bars_from_dataframe", "bars_to_dataframe", "load_bars_csv", "validate_ohlcv"]
