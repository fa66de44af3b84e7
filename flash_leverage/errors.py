"""Error types raised by the leverage engine and its collaborators."""
from __future__ import annotations


class LeverageError(Exception):
    """Base class for errors surfaced by the leverage contract."""

    code: int = 0

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__name__)


class InvalidAmount(LeverageError):
    """Non-positive amount requested for a position-changing operation."""

    code = 1


class BadRequest(LeverageError):
    """Unexpected asset in a callback, or a swap outside its bound."""

    code = 2


class Unauthorized(LeverageError):
    """Caller or owner authorization missing."""

    code = 3


class ArithmeticOverflow(LeverageError):
    """Sizing or slippage math left the signed 128-bit range."""

    code = 4


# ---------------------------------------------------------------------------
# Collaborator failures (pool, router, token)
# ---------------------------------------------------------------------------


class CollaboratorError(Exception):
    """Failure reported by an external protocol."""


class InsufficientBalance(CollaboratorError):
    pass


class PoolError(CollaboratorError):
    pass


class RouterError(CollaboratorError):
    pass
