"""Protocol interfaces for the flash-loan leverage engine."""
from .authorizer import Authorizer
from .pool import LendingPool
from .router import SwapRouter
from .token import TokenClient

__all__ = ["Authorizer", "LendingPool", "SwapRouter", "TokenClient"]
