"""LendingPool aggregate root and its single-writer transaction."""
from __future__ import annotations

import copy
import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from ..errors import AlreadyInitialized, NotInitialized, Unauthorized
from ..models import AssetConfig, Position

logger = logging.getLogger(__name__)


class LendingPool:
    """Owns every AssetConfig and Position record.

    ``admin`` is the one identity allowed to mutate the registry and ``clock``
    returns the current unix time in seconds. All writes go through
    :meth:`transaction`, which serializes callers and restores the previous
    state if the body raises.
    """

    def __init__(self, admin: str, clock: Callable[[], int] | None = None) -> None:
        self.admin = admin
        self.clock: Callable[[], int] = clock or (lambda: int(time.time()))
        self.initialized = False
        self.assets: dict[str, AssetConfig] = {}
        self.positions: dict[str, Position] = {}
        self.active_assets: list[str] = []
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def require_admin(self, caller: str) -> None:
        if caller != self.admin:
            raise Unauthorized(f"{caller!r} is not the pool administrator")

    def require_initialized(self) -> None:
        if not self.initialized:
            raise NotInitialized("lending pool has not been initialized")

    def mark_initialized(self, caller: str) -> None:
        if self.initialized:
            raise AlreadyInitialized("lending pool is already initialized")
        self.require_admin(caller)
        self.initialized = True

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self, *users: str) -> Iterator[LendingPool]:
        """Run the body as one indivisible step.

        Only the positions of ``users`` are snapshotted, so the body may
        mutate those records and nothing else under ``positions``. A position
        created inside a failed transaction is removed again. Nested use on
        the same thread joins the outer transaction.
        """
        with self._lock:
            snapshot = (
                self.initialized,
                dict(self.assets),
                list(self.active_assets),
            )
            saved = {user: copy.deepcopy(self.positions.get(user)) for user in users}
            try:
                yield self
            except BaseException:
                self.initialized, self.assets, self.active_assets = snapshot
                for user, position in saved.items():
                    if position is None:
                        self.positions.pop(user, None)
                    else:
                        self.positions[user] = position
                logger.debug("Transaction rolled back")
                raise

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    def position(self, user: str) -> Position | None:
        return self.positions.get(user)

    def users(self) -> list[str]:
        return sorted(self.positions)
