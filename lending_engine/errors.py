"""Exception hierarchy for the lending engine.

Every failure is terminal for the operation that raised it: the pool is left
exactly as it was before the call. Each class carries a stable ``code`` so
client tooling can branch on the cause without parsing messages.
"""
from __future__ import annotations


class LendingError(Exception):
    """Base exception for all lending-engine errors."""

    code = "LENDING_ERROR"


class Unauthorized(LendingError):
    """Raised when a privileged operation is called by someone other than the admin."""

    code = "UNAUTHORIZED"


class AlreadyInitialized(LendingError):
    """Raised when ``initialize`` is called on a pool that already exists."""

    code = "ALREADY_INITIALIZED"


class NotInitialized(LendingError):
    """Raised when an operation runs against a pool that was never initialized."""

    code = "NOT_INITIALIZED"


class AssetNotSupported(LendingError):
    """Raised when a symbol is not in the asset registry."""

    code = "ASSET_NOT_SUPPORTED"


class InsufficientCollateral(LendingError):
    """Raised when collateral would fall below zero."""

    code = "INSUFFICIENT_COLLATERAL"


class BorrowLimitExceeded(LendingError):
    """Raised when a borrow would push aggregate debt past the LTV cap."""

    code = "BORROW_LIMIT_EXCEEDED"


class InvalidAmount(LendingError):
    """Raised for zero/negative amounts or a repay larger than the outstanding debt."""

    code = "INVALID_AMOUNT"


class UserNoPosition(LendingError):
    """Raised when a user has no position record."""

    code = "USER_NO_POSITION"


class StalePrice(LendingError):
    """Raised when a price is older than the staleness window."""

    code = "STALE_PRICE"


class TokenNotRegistered(LendingError):
    """Raised by custody when a token has no vault."""

    code = "TOKEN_NOT_REGISTERED"


class InsufficientBalance(LendingError):
    """Raised by custody when a payer or the vault reserve cannot cover a transfer."""

    code = "INSUFFICIENT_BALANCE"


class NotLiquidatable(LendingError):
    """Raised when ``liquidate`` targets a position whose health factor is not below 10000."""

    code = "NOT_LIQUIDATABLE"
