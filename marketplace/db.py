"""
Database Module - Upstash Redis Client

Provides the singleton async Upstash Redis client used as the durable
key-value store behind the cart, and the storage key / config constants.
"""

import os
from typing import Optional

from upstash_redis.asyncio import Redis as AsyncRedis


# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

# Cart persistence tuning
CART_PERSIST_ATTEMPTS = int(os.environ.get("CART_PERSIST_ATTEMPTS", "3"))
CART_PERSIST_MAX_WAIT = float(os.environ.get("CART_PERSIST_MAX_WAIT", "2.0"))


# Singleton instance
_redis_client: Optional[AsyncRedis] = None


def get_redis() -> AsyncRedis:
    """
    Get async Upstash Redis client (singleton).

    Uses standard Upstash env var names:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN
    """
    global _redis_client

    if _redis_client is None:
        if not UPSTASH_REDIS_REST_URL or not UPSTASH_REDIS_REST_TOKEN:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _redis_client = AsyncRedis(url=UPSTASH_REDIS_REST_URL, token=UPSTASH_REDIS_REST_TOKEN)

    return _redis_client


class StorageKeys:
    """Storage keys for persisted client state."""

    # Whole cart snapshot, JSON array of items
    CART_PRODUCTS = "@GoMarketplace:products"
