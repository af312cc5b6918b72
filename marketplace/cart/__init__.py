"""Cart package: models, reducers, storage adapters and manager."""
from .models import CartItem, CatalogProduct, CartItemRecord
from .service import CartManager, SessionState, create_cart_manager, require_cart
from .storage import PersistentStore, RedisStore, InMemoryStore, StorageKeys

__all__ = [
    "CartItem",
    "CatalogProduct",
    "CartItemRecord",
    "CartManager",
    "SessionState",
    "create_cart_manager",
    "require_cart",
    "PersistentStore",
    "RedisStore",
    "InMemoryStore",
    "StorageKeys",
]
