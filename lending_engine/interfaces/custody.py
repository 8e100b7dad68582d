"""Custody protocol — the vault that actually holds fungible balances."""
from typing import Protocol


class Custody(Protocol):
    """Synchronous token custody; each call fully succeeds or raises."""

    def hold(self, payer: str, symbol: str, amount: int) -> None: ...

    def release(self, symbol: str, amount: int, recipient: str) -> None: ...
