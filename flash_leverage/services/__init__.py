"""Service modules"""
from .leverage import LeverageContract
from .sizing import PositionSizer
from .slippage import max_amount_in, min_amount_out

__all__ = ["LeverageContract", "PositionSizer", "max_amount_in", "min_amount_out"]
