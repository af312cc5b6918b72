"""Pytest configuration and fixtures"""
import json
import os

import pytest
from unittest.mock import AsyncMock, Mock

# Set test environment variables
os.environ.setdefault("UPSTASH_REDIS_REST_URL", "https://test.upstash.io")
os.environ.setdefault("UPSTASH_REDIS_REST_TOKEN", "test_token")
os.environ.setdefault("CART_PERSIST_MAX_WAIT", "0")

from marketplace.cart import CartManager, InMemoryStore, StorageKeys


class FlakyStore(InMemoryStore):
    """In-memory store whose next `failures` writes raise."""

    def __init__(self, failures: int = 0, initial=None):
        super().__init__(initial)
        self.failures = failures
        self.set_calls = 0

    async def set(self, key, value):
        self.set_calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("storage full")
        await super().set(key, value)


@pytest.fixture
def store():
    """Empty in-memory store"""
    return InMemoryStore()


@pytest.fixture
def sample_product():
    """Catalog payload as returned by the products API"""
    return {
        "id": "1",
        "title": "Shoe",
        "image_url": "u",
        "price": 50,
    }


@pytest.fixture
def another_product():
    return {
        "id": "2",
        "title": "Hat",
        "image_url": "https://cdn.example.com/hat.png",
        "price": 10.5,
    }


@pytest.fixture
def stored_snapshot():
    """Snapshot persisted by a previous session"""
    return json.dumps([
        {"id": "2", "title": "Hat", "image_url": "u", "price": 10, "quantity": 4},
    ])


@pytest.fixture
def manager(store):
    """Unloaded manager over the empty store, no retry backoff"""
    return CartManager(store=store, persist_max_wait=0)


@pytest.fixture
def make_flaky_store():
    """Factory for stores that fail their next N writes"""
    return FlakyStore


@pytest.fixture
def mock_redis():
    """Mock Upstash async client"""
    redis = Mock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value="OK")
    return redis


@pytest.fixture
def persisted():
    """Decode the snapshot currently held by an in-memory store"""
    def _persisted(store, key=StorageKeys.CART_PRODUCTS):
        raw = store.data.get(key)
        return None if raw is None else json.loads(raw)
    return _persisted
