"""
Pure cart reducers.

Every function takes the current item tuple explicitly and returns the
next one, or None when the target id is not in the cart. Nothing here
touches storage or manager state.
"""
from typing import Optional, Tuple

from .models import CartItem, CatalogProduct

Items = Tuple[CartItem, ...]


def find_item(items: Items, item_id: str) -> Optional[CartItem]:
    return next((item for item in items if item.id == item_id), None)


def add_item(items: Items, product: CatalogProduct) -> Items:
    """Append a new item with quantity 1, or bump an existing one.

    An existing entry keeps its first-seen title, image and price.
    """
    if find_item(items, product.id) is None:
        return items + (CartItem.from_product(product),)
    return tuple(
        item.with_quantity(item.quantity + 1) if item.id == product.id else item
        for item in items
    )


def increment_item(items: Items, item_id: str) -> Optional[Items]:
    if find_item(items, item_id) is None:
        return None
    return tuple(
        item.with_quantity(item.quantity + 1) if item.id == item_id else item
        for item in items
    )


def decrement_item(items: Items, item_id: str) -> Optional[Items]:
    """Decrease quantity by one; an item at quantity 1 is removed."""
    target = find_item(items, item_id)
    if target is None:
        return None
    if target.quantity <= 1:
        return remove_item(items, item_id)
    return tuple(
        item.with_quantity(item.quantity - 1) if item.id == item_id else item
        for item in items
    )


def remove_item(items: Items, item_id: str) -> Optional[Items]:
    if find_item(items, item_id) is None:
        return None
    return tuple(item for item in items if item.id != item_id)
