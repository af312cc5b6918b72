"""
Cart Errors

Centralized error messages and the exception hierarchy raised by the
cart manager. Not-found lookups are not errors: mutation methods return
False for unknown ids.
"""

from typing import Any

# Context errors
ERROR_CART_NOT_LOADED = "Cart session has not been loaded"
ERROR_CART_CLOSED = "Cart session is closed"
ERROR_CART_ALREADY_LOADED = "Cart session is already loaded"
ERROR_CART_MISSING = "Cart operations require an open CartManager handle"

# Storage errors
ERROR_PERSIST_FAILED = "Failed to persist cart snapshot"
ERROR_STORAGE_UNAVAILABLE = "Cart storage unavailable"


class CartError(Exception):
    """Base error for cart operations."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        retryable: bool = False,
        raw_error: Any = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.retryable = retryable
        self.raw_error = raw_error


class CartPersistenceError(CartError):
    """Snapshot write failed; the in-memory change stands and can be flushed later."""

    def __init__(self, message: str = ERROR_PERSIST_FAILED, raw_error: Any = None) -> None:
        super().__init__(message, code="PERSISTENCE_FAILED", retryable=True, raw_error=raw_error)


class CartStorageError(CartError):
    """Snapshot read failed."""

    def __init__(self, message: str = ERROR_STORAGE_UNAVAILABLE, raw_error: Any = None) -> None:
        super().__init__(message, code="STORAGE_UNAVAILABLE", retryable=True, raw_error=raw_error)


class CartContextError(CartError):
    """Cart used outside of an open session. Programming error."""

    def __init__(self, message: str = ERROR_CART_MISSING) -> None:
        super().__init__(message, code="CONTEXT_MISUSE", retryable=False)
