"""
Tests for cart models and snapshot encoding
"""

import dataclasses
import json
from decimal import Decimal

import pytest
from pydantic import ValidationError

from marketplace.cart import CartItem, CatalogProduct
from marketplace.cart.models import decode_snapshot, encode_snapshot, subtotal, total_items


class TestCartItem:
    """Tests for CartItem dataclass."""

    def test_create_cart_item(self):
        """Test creating a cart item."""
        item = CartItem(id="1", title="Shoe", image_url="u", price=50, quantity=2)

        assert item.id == "1"
        assert item.quantity == 2
        assert item.price == Decimal("50")

    def test_float_price_normalized(self):
        item = CartItem(id="1", title="Shoe", image_url="u", price=19.99)

        assert item.price == Decimal("19.99")
        assert item.quantity == 1

    def test_is_immutable(self):
        item = CartItem(id="1", title="Shoe", image_url="u", price=50)

        with pytest.raises(dataclasses.FrozenInstanceError):
            item.quantity = 5

    def test_with_quantity_returns_new_record(self):
        item = CartItem(id="1", title="Shoe", image_url="u", price=50)

        updated = item.with_quantity(3)

        assert updated.quantity == 3
        assert item.quantity == 1
        assert updated is not item

    def test_total_price_calculation(self):
        """Test total price for quantity."""
        item = CartItem(id="1", title="Shoe", image_url="u", price=19.99, quantity=3)

        assert item.total_price == Decimal("59.97")

    def test_to_dict(self):
        """Test serialization to the stored record shape."""
        item = CartItem(id="1", title="Shoe", image_url="u", price=50, quantity=2)

        assert item.to_dict() == {
            "id": "1",
            "title": "Shoe",
            "image_url": "u",
            "price": 50.0,
            "quantity": 2,
        }

    def test_from_dict(self):
        """Test deserialization from dict."""
        item = CartItem.from_dict(
            {"id": "2", "title": "Hat", "image_url": "u", "price": 10, "quantity": "4"}
        )

        assert item == CartItem(id="2", title="Hat", image_url="u", price=10, quantity=4)


class TestCatalogProduct:

    def test_from_dict_ignores_extra_fields(self, sample_product):
        product = CatalogProduct.from_dict({**sample_product, "rating": 5})

        assert product.id == "1"
        assert product.price == Decimal("50")

    def test_numeric_id_coerced_to_string(self):
        product = CatalogProduct.from_dict({"id": 7, "title": "Cap", "image_url": "u", "price": 1})

        assert product.id == "7"

    def test_unparsable_price_logged(self, caplog):
        product = CatalogProduct.from_dict({"id": "3", "title": "Bag", "image_url": "u", "price": "abc"})

        assert product.price == Decimal("0")
        assert "Unparsable price 'abc'" in caplog.text

    def test_valid_price_not_logged(self, sample_product, caplog):
        CatalogProduct.from_dict(sample_product)

        assert "Unparsable price" not in caplog.text

    def test_price_kept_at_json_precision(self):
        product = CatalogProduct(id="1", title="Pin", image_url="u", price=Decimal("0.10000000000000000001"))

        assert product.price == Decimal("0.1")

    def test_missing_field(self):
        with pytest.raises(KeyError):
            CatalogProduct.from_dict({"id": "1", "title": "Shoe"})

    def test_first_cart_item(self, sample_product):
        item = CartItem.from_product(CatalogProduct.from_dict(sample_product))

        assert item.quantity == 1
        assert item.title == "Shoe"


class TestSnapshot:
    """Tests for stored snapshot encoding."""

    def test_encode_is_full_array(self):
        items = (
            CartItem(id="1", title="Shoe", image_url="u", price=50, quantity=1),
            CartItem(id="2", title="Hat", image_url="u", price=10.5, quantity=4),
        )

        data = json.loads(encode_snapshot(items))

        assert [record["id"] for record in data] == ["1", "2"]
        assert data[1]["price"] == 10.5
        assert data[1]["quantity"] == 4

    def test_encode_empty(self):
        assert encode_snapshot(()) == "[]"

    def test_decode(self, stored_snapshot):
        items = decode_snapshot(stored_snapshot)

        assert items == (CartItem(id="2", title="Hat", image_url="u", price=10, quantity=4),)

    def test_decode_keeps_order(self):
        raw = json.dumps([
            {"id": "b", "title": "B", "image_url": "u", "price": 1, "quantity": 1},
            {"id": "a", "title": "A", "image_url": "u", "price": 2, "quantity": 2},
        ])

        assert [item.id for item in decode_snapshot(raw)] == ["b", "a"]

    def test_decode_rejects_zero_quantity(self):
        raw = json.dumps([{"id": "1", "title": "Shoe", "image_url": "u", "price": 50, "quantity": 0}])

        with pytest.raises(ValidationError):
            decode_snapshot(raw)

    def test_decode_rejects_duplicate_ids(self):
        record = {"id": "1", "title": "Shoe", "image_url": "u", "price": 50, "quantity": 1}

        with pytest.raises(ValueError, match="Duplicate"):
            decode_snapshot(json.dumps([record, record]))

    @pytest.mark.parametrize("raw", ["not json", "{}", '[{"id": "1"}]'])
    def test_decode_rejects_malformed(self, raw):
        with pytest.raises(ValueError):
            decode_snapshot(raw)


class TestTotals:

    def test_empty(self):
        assert total_items(()) == 0
        assert subtotal(()) == Decimal("0.00")

    def test_with_items(self):
        items = (
            CartItem(id="1", title="Shoe", image_url="u", price=50, quantity=2),
            CartItem(id="2", title="Hat", image_url="u", price=10.5, quantity=1),
        )

        assert total_items(items) == 3
        assert subtotal(items) == Decimal("110.50")
