"""Cart models with Decimal-based pricing."""
import json
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Tuple

from pydantic import BaseModel, Field, TypeAdapter

from marketplace.logging import get_logger, sanitize_id_for_logging
from marketplace.services.money import (
    multiply,
    parse_decimal,
    round_money,
    to_decimal,
    to_float,
    to_json_precision,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class CatalogProduct:
    """Purchasable product as supplied by the catalog (no quantity)."""
    id: str
    title: str
    image_url: str
    price: Decimal

    def __post_init__(self):
        object.__setattr__(self, "price", to_json_precision(self.price))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CatalogProduct":
        """Create from a catalog payload. Prices are not validated here."""
        price = parse_decimal(data["price"])
        if price is None:
            logger.warning(
                f"Unparsable price {data['price']!r} for catalog product "
                f"{sanitize_id_for_logging(str(data['id']))}, using 0"
            )
        return cls(
            id=str(data["id"]),
            title=data["title"],
            image_url=data["image_url"],
            price=to_decimal(price),
        )


@dataclass(frozen=True)
class CartItem:
    """Single line-item in the cart. Immutable: updates produce a new record."""
    id: str
    title: str
    image_url: str
    price: Decimal
    quantity: int = 1

    def __post_init__(self):
        object.__setattr__(self, "price", to_json_precision(self.price))

    @property
    def total_price(self) -> Decimal:
        """Total price for all units."""
        return round_money(multiply(self.price, self.quantity))

    def with_quantity(self, quantity: int) -> "CartItem":
        return replace(self, quantity=quantity)

    @classmethod
    def from_product(cls, product: CatalogProduct) -> "CartItem":
        """First unit of a catalog product."""
        return cls(
            id=product.id,
            title=product.title,
            image_url=product.image_url,
            price=product.price,
            quantity=1,
        )

    def to_dict(self) -> dict:
        """Convert to the persisted record shape."""
        return {
            "id": self.id,
            "title": self.title,
            "image_url": self.image_url,
            "price": to_float(self.price),
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CartItem":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            title=data["title"],
            image_url=data["image_url"],
            price=to_decimal(data["price"]),
            quantity=int(data["quantity"]),
        )


class CartItemRecord(BaseModel):
    """Wire schema of one persisted cart entry."""
    id: str
    title: str
    image_url: str
    price: float  # normalized to Decimal by CartItem
    quantity: int = Field(ge=1)


_snapshot_adapter = TypeAdapter(List[CartItemRecord])


def encode_snapshot(items: Iterable[CartItem]) -> str:
    """Serialize a full cart snapshot for storage."""
    return json.dumps([item.to_dict() for item in items])


def decode_snapshot(raw: str) -> Tuple[CartItem, ...]:
    """
    Parse a stored snapshot.

    Raises:
        ValueError: malformed JSON, wrong record shape, quantity below 1
            or duplicate ids (pydantic's ValidationError is a ValueError).
    """
    records = _snapshot_adapter.validate_json(raw)

    seen = set()
    items = []
    for record in records:
        if record.id in seen:
            raise ValueError(f"Duplicate cart item id in snapshot: {record.id}")
        seen.add(record.id)
        items.append(CartItem(**record.model_dump()))
    return tuple(items)


def total_items(items: Iterable[CartItem]) -> int:
    """Total number of units in the cart."""
    return sum(item.quantity for item in items)


def subtotal(items: Iterable[CartItem]) -> Decimal:
    """Sum of line totals."""
    return round_money(sum((item.total_price for item in items), Decimal("0")))
