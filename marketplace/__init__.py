"""
GoMarketplace Core Module

This package contains the client-side cart infrastructure:
- db: Upstash Redis client and storage keys
- cart: cart state manager, reducers and storage adapters
- services.money: Decimal helpers for prices
- logging: centralized logger configuration
- errors: cart exception hierarchy

Note: Imports are lazy so importing the package does not pull in
the Redis client until it is actually needed.
"""

__all__ = [
    "get_redis",
    "CartManager",
    "create_cart_manager",
    "require_cart",
]


def __getattr__(name):
    """Lazy attribute access."""
    if name == "get_redis":
        from marketplace.db import get_redis
        return get_redis
    elif name == "CartManager":
        from marketplace.cart import CartManager
        return CartManager
    elif name == "create_cart_manager":
        from marketplace.cart import create_cart_manager
        return create_cart_manager
    elif name == "require_cart":
        from marketplace.cart import require_cart
        return require_cart
    raise AttributeError(f"module 'marketplace' has no attribute '{name}'")
