"""In-process stand-ins for the pool, router, tokens and flash lender."""
from .environment import CONTRACT_ADDRESS, LENDER_ADDRESS, Sandbox, build_sandbox
from .lender import FlashLender
from .pool import SandboxPool
from .router import ConstantProductRouter
from .token import LedgerToken

__all__ = [
    "CONTRACT_ADDRESS",
    "LENDER_ADDRESS",
    "ConstantProductRouter",
    "FlashLender",
    "LedgerToken",
    "Sandbox",
    "SandboxPool",
    "build_sandbox",
]
