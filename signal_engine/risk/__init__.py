from signal_engine.risk.sizing import PositionSizing, SizingResult, allocated_capital, size_position

__all__ = ["PositionSizing", "SizingResult", "allocated_capital", "size_position"]
