"""Swap router protocol — two-asset path quoting and execution."""
from typing import Protocol, Sequence


class SwapRouter(Protocol):
    """Abstract interface for an AMM router.

    Amount lists follow the path: index 0 is the input consumed, the last
    index is the output produced.
    """

    async def router_pair_for(self, asset_a: str, asset_b: str) -> str: ...

    async def router_get_amounts_out(
        self, amount_in: int, path: Sequence[str]
    ) -> list[int]: ...

    async def router_get_amounts_in(
        self, amount_out: int, path: Sequence[str]
    ) -> list[int]: ...

    async def swap_exact_tokens_for_tokens(
        self,
        sender: str,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        to: str,
        deadline: int,
    ) -> list[int]: ...

    async def swap_tokens_for_exact_tokens(
        self,
        sender: str,
        amount_out: int,
        amount_in_max: int,
        path: Sequence[str],
        to: str,
        deadline: int,
    ) -> list[int]: ...
