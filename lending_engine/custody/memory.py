"""In-memory vault implementing the Custody protocol."""
from __future__ import annotations

import logging
import threading

from ..errors import InsufficientBalance, InvalidAmount, TokenNotRegistered

logger = logging.getLogger(__name__)


class InMemoryVault:
    """Holds per-holder balances and a per-token reserve.

    ``hold`` moves a holder's balance into the reserve; ``release`` pays
    out of the reserve. Both check before they write.
    """

    def __init__(self) -> None:
        self._balances: dict[str, dict[str, int]] = {}
        self._reserves: dict[str, int] = {}
        self._lock = threading.Lock()

    @property
    def tokens(self) -> list[str]:
        return sorted(self._reserves)

    def register_token(self, symbol: str) -> None:
        with self._lock:
            self._reserves.setdefault(symbol, 0)

    def _require_token(self, symbol: str) -> None:
        if symbol not in self._reserves:
            raise TokenNotRegistered(f"no vault registered for {symbol!r}")

    @staticmethod
    def _require_amount(amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise InvalidAmount(f"transfer amount must be a non-negative integer, got {amount!r}")

    def credit(self, holder: str, symbol: str, amount: int) -> int:
        """Give ``holder`` an external balance of ``symbol`` (funding/minting)."""
        self._require_amount(amount)
        with self._lock:
            self._require_token(symbol)
            wallet = self._balances.setdefault(holder, {})
            wallet[symbol] = wallet.get(symbol, 0) + amount
            return wallet[symbol]

    def seed_reserve(self, symbol: str, amount: int) -> int:
        """Add liquidity directly to the vault reserve for ``symbol``."""
        self._require_amount(amount)
        with self._lock:
            self._require_token(symbol)
            self._reserves[symbol] += amount
            return self._reserves[symbol]

    def balance_of(self, holder: str, symbol: str) -> int:
        return self._balances.get(holder, {}).get(symbol, 0)

    def reserve_of(self, symbol: str) -> int:
        return self._reserves.get(symbol, 0)

    def hold(self, payer: str, symbol: str, amount: int) -> None:
        self._require_amount(amount)
        with self._lock:
            self._require_token(symbol)
            available = self.balance_of(payer, symbol)
            if available < amount:
                raise InsufficientBalance(
                    f"{payer} has {available} {symbol}, needs {amount}"
                )
            self._balances.setdefault(payer, {})[symbol] = available - amount
            self._reserves[symbol] += amount
        logger.debug("Vault hold: %s -> vault %d %s", payer, amount, symbol)

    def release(self, symbol: str, amount: int, recipient: str) -> None:
        self._require_amount(amount)
        with self._lock:
            self._require_token(symbol)
            reserve = self._reserves[symbol]
            if reserve < amount:
                raise InsufficientBalance(
                    f"vault holds {reserve} {symbol}, cannot release {amount}"
                )
            self._reserves[symbol] = reserve - amount
            wallet = self._balances.setdefault(recipient, {})
            wallet[symbol] = wallet.get(symbol, 0) + amount
        logger.debug("Vault release: vault -> %s %d %s", recipient, amount, symbol)

    def to_dict(self) -> dict:
        return {
            "reserves": dict(self._reserves),
            "balances": {h: dict(b) for h, b in self._balances.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> InMemoryVault:
        vault = cls()
        vault._reserves = {k: int(v) for k, v in data.get("reserves", {}).items()}
        vault._balances = {
            holder: {k: int(v) for k, v in bal.items()}
            for holder, bal in data.get("balances", {}).items()
        }
        return vault
