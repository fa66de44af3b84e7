"""Ledger state and the per-invocation transaction context.

The ``Ledger`` is the shared execution environment: token balances,
allowances, the ledger clock, and any collaborator state registered as a
``Transactional`` participant. ``Ledger.atomic()`` is the unwind boundary:
if anything inside it raises, every registered participant is restored to
the snapshot taken on entry and the exception propagates unchanged.
"""
from __future__ import annotations

import copy
import logging
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Protocol

from .errors import InsufficientBalance, InvalidAmount, Unauthorized
from .interfaces.authorizer import Authorizer
from .interfaces.token import TokenClient

logger = logging.getLogger(__name__)


class Transactional(Protocol):
    """State holder that can be rolled back by ``Ledger.atomic``."""

    def snapshot(self) -> Any: ...

    def restore(self, state: Any) -> None: ...


class Ledger:
    """In-process ledger: balances, allowances and clock."""

    def __init__(self, timestamp: int = 0, sequence: int = 0) -> None:
        self.timestamp = timestamp
        self.sequence = sequence
        self._balances: dict[tuple[str, str], int] = {}
        self._allowances: dict[tuple[str, str, str], int] = {}
        self._participants: list[Transactional] = []
        self._depth = 0

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    def balance(self, asset: str, address: str) -> int:
        return self._balances.get((asset, address), 0)

    def mint(self, asset: str, to: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(f"cannot mint negative amount {amount}")
        self._balances[(asset, to)] = self.balance(asset, to) + amount

    def transfer(self, asset: str, from_: str, to: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(f"cannot transfer negative amount {amount}")
        held = self.balance(asset, from_)
        if held < amount:
            raise InsufficientBalance(
                f"{from_} holds {held} {asset}, cannot transfer {amount}"
            )
        self._balances[(asset, from_)] = held - amount
        self._balances[(asset, to)] = self.balance(asset, to) + amount

    # ------------------------------------------------------------------
    # Allowances
    # ------------------------------------------------------------------

    def allowance(self, asset: str, owner: str, spender: str) -> int:
        return self._allowances.get((asset, owner, spender), 0)

    def approve(self, asset: str, owner: str, spender: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(f"cannot approve negative amount {amount}")
        self._allowances[(asset, owner, spender)] = amount

    def transfer_from(
        self, asset: str, spender: str, from_: str, to: str, amount: int
    ) -> None:
        allowed = self.allowance(asset, from_, spender)
        if allowed < amount:
            raise Unauthorized(
                f"{spender} may move {allowed} {asset} of {from_}, not {amount}"
            )
        self.transfer(asset, from_, to, amount)
        self._allowances[(asset, from_, spender)] = allowed - amount

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    def advance(self, seconds: int = 5) -> None:
        """Close the current ledger and move the clock forward."""
        self.timestamp += seconds
        self.sequence += 1

    # ------------------------------------------------------------------
    # Rollback
    # ------------------------------------------------------------------

    def register(self, participant: Transactional) -> None:
        """Include ``participant`` in every atomic snapshot."""
        if participant not in self._participants:
            self._participants.append(participant)

    def snapshot(self) -> Any:
        return (dict(self._balances), dict(self._allowances))

    def restore(self, state: Any) -> None:
        balances, allowances = state
        self._balances = dict(balances)
        self._allowances = dict(allowances)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Run the enclosed block all-or-nothing."""
        members: list[Transactional] = [self, *self._participants]
        saved = [(member, copy.deepcopy(member.snapshot())) for member in members]
        self._depth += 1
        try:
            yield
        except BaseException:
            for member, state in reversed(saved):
                member.restore(state)
            logger.warning(
                "Transaction aborted at depth %d, state rolled back", self._depth
            )
            raise
        finally:
            self._depth -= 1


class SignerSet:
    """Authorizer backed by a fixed set of addresses that signed."""

    def __init__(self, signers: Iterable[str] = ()) -> None:
        self._signers = frozenset(signers)

    def require_auth(self, address: str) -> None:
        if address not in self._signers:
            raise Unauthorized(f"missing authorization for {address}")


@dataclass
class TransactionContext:
    """Environment handle scoped to one contract invocation."""

    ledger: Ledger
    current_contract: str
    authorizer: Authorizer
    tokens: Callable[[str], TokenClient]

    @property
    def timestamp(self) -> int:
        return self.ledger.timestamp

    @property
    def sequence(self) -> int:
        return self.ledger.sequence

    def require_auth(self, address: str) -> None:
        self.authorizer.require_auth(address)

    def token(self, asset: str) -> TokenClient:
        return self.tokens(asset)

    def authorize_transfer(self, asset: str, spender: str, amount: int) -> None:
        """Let ``spender`` pull up to ``amount`` of ``asset`` from this contract."""
        self.ledger.approve(asset, self.current_contract, spender, amount)

    def atomic(self) -> AbstractContextManager[None]:
        return self.ledger.atomic()
