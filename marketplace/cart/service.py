"""Cart manager service: in-memory cart state kept in sync with durable storage."""
import asyncio
import logging
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Tuple, Union

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    stop_after_attempt,
    wait_exponential,
)

from marketplace.db import CART_PERSIST_ATTEMPTS, CART_PERSIST_MAX_WAIT
from marketplace.errors import (
    CartContextError,
    CartPersistenceError,
    CartStorageError,
    ERROR_CART_ALREADY_LOADED,
    ERROR_CART_CLOSED,
    ERROR_CART_MISSING,
    ERROR_CART_NOT_LOADED,
)
from marketplace.logging import describe_snapshot, get_logger, sanitize_id_for_logging
from marketplace.services.money import to_float
from . import reducers
from .models import (
    CartItem,
    CatalogProduct,
    decode_snapshot,
    encode_snapshot,
    subtotal,
    total_items,
)
from .storage import PersistentStore, RedisStore, StorageKeys

logger = get_logger(__name__)

Snapshot = Tuple[CartItem, ...]
Observer = Callable[[Snapshot], Any]
Candidate = Union[CatalogProduct, CartItem, Mapping[str, Any]]


class SessionState(str, Enum):
    """Lifecycle of a cart session."""
    IDLE = "idle"  # Constructed, load() not called yet
    LOADING = "loading"
    READY = "ready"
    CLOSED = "closed"


class CartManager:
    """
    Owns the authoritative cart for one session.

    Features:
    - Hydrates once from the store, replacing the empty cart wholesale
    - Every mutation runs a pure reducer on the current snapshot and
      persists exactly the snapshot it published
    - Writes are serialized in invocation order
    - Failed writes are retried, then surfaced as CartPersistenceError;
      flush() re-persists the current snapshot
    """

    def __init__(
        self,
        store: Optional[PersistentStore] = None,
        key: str = StorageKeys.CART_PRODUCTS,
        persist_attempts: int = CART_PERSIST_ATTEMPTS,
        persist_max_wait: float = CART_PERSIST_MAX_WAIT,
    ):
        self._store = store  # Lazy initialization
        self._key = key
        self._persist_attempts = max(1, persist_attempts)
        self._persist_max_wait = persist_max_wait

        self._items: Snapshot = ()
        self._observers: List[Observer] = []
        self._state = SessionState.IDLE

        # Held by load() while hydrating; mutations queue behind it in FIFO order
        self._gate = asyncio.Lock()
        self._write_lock = asyncio.Lock()

        # Bumped on every published snapshot
        self._version = 0
        self._persisted_version = 0

    @property
    def store(self) -> PersistentStore:
        """Get the backing store (Redis unless one was injected)."""
        if self._store is None:
            self._store = RedisStore()
        return self._store

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state in (SessionState.LOADING, SessionState.READY)

    @property
    def pending_write(self) -> bool:
        """True while the last published snapshot is not durably stored."""
        return self._persisted_version < self._version

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def load(self) -> Snapshot:
        """Hydrate the cart from storage. Runs once per session."""
        if self._state is SessionState.CLOSED:
            raise CartContextError(ERROR_CART_CLOSED)
        if self._state is not SessionState.IDLE:
            raise CartContextError(ERROR_CART_ALREADY_LOADED)

        self._state = SessionState.LOADING
        async with self._gate:
            try:
                raw = await self.store.get(self._key)
            except BaseException as e:
                # Failed or cancelled: back to IDLE so queued mutations cannot
                # write over the stored cart, and load() can be retried
                if self._state is SessionState.LOADING:
                    self._state = SessionState.IDLE
                if isinstance(e, Exception):
                    logger.error(f"Failed to read cart from storage: {e}")
                    raise CartStorageError(raw_error=e) from e
                logger.warning("Cart load interrupted before hydration")
                raise

            if self._state is SessionState.CLOSED:
                return ()

            items: Snapshot = ()
            if raw:
                try:
                    items = decode_snapshot(raw)
                except ValueError as e:
                    # Left in place; the next mutation overwrites it
                    logger.warning(f"Corrupted cart snapshot under {self._key}, starting empty: {e}")

            self._state = SessionState.READY
            self._version += 1
            self._persisted_version = self._version
            self._publish(items)

        logger.info(f"Cart hydrated: {describe_snapshot(items)}")
        return items

    async def close(self) -> None:
        """End the session. Waits for queued writes; the stored snapshot remains."""
        if self._state is SessionState.CLOSED:
            return
        async with self._write_lock:
            self._state = SessionState.CLOSED
            self._items = ()
            self._observers.clear()

    async def __aenter__(self) -> "CartManager":
        await self.load()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_items(self) -> Snapshot:
        """Current snapshot."""
        self._ensure_open()
        return self._items

    @property
    def items(self) -> Snapshot:
        return self.get_items()

    def get_item(self, item_id: str) -> Optional[CartItem]:
        return reducers.find_item(self.get_items(), item_id)

    @property
    def total_items(self) -> int:
        """Total number of units in cart."""
        return total_items(self.get_items())

    @property
    def subtotal(self):
        return subtotal(self.get_items())

    def get_summary(self) -> dict:
        """Get cart summary for display."""
        items = self.get_items()

        if not items:
            return {
                "is_empty": True,
                "total_items": 0,
                "items": [],
                "subtotal": 0,
            }

        return {
            "is_empty": False,
            "total_items": total_items(items),
            "items": [
                {
                    "id": item.id,
                    "title": item.title,
                    "quantity": item.quantity,
                    "unit_price": to_float(item.price),
                    "total": to_float(item.total_price),
                }
                for item in items
            ],
            "subtotal": to_float(subtotal(items)),
        }

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer; returns a callable that unsubscribes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add_to_cart(self, candidate: Candidate) -> Snapshot:
        """Add one unit of a catalog product. Re-adding increments quantity."""
        product = _to_product(candidate)
        snapshot = await self._apply(lambda items: reducers.add_item(items, product))
        logger.debug(f"Added {sanitize_id_for_logging(product.id)} to cart")
        return snapshot

    async def increment(self, item_id: str) -> bool:
        """Increase quantity by one. False if the id is not in the cart."""
        snapshot = await self._apply(lambda items: reducers.increment_item(items, item_id))
        return snapshot is not None

    async def decrement(self, item_id: str) -> bool:
        """Decrease quantity by one, removing the item at quantity 1. False if not found."""
        snapshot = await self._apply(lambda items: reducers.decrement_item(items, item_id))
        return snapshot is not None

    async def remove(self, item_id: str) -> bool:
        """Remove an item regardless of quantity. False if not found."""
        snapshot = await self._apply(lambda items: reducers.remove_item(items, item_id))
        return snapshot is not None

    async def clear(self) -> bool:
        """Empty the cart. False (and no write) if it was already empty."""
        snapshot = await self._apply(lambda items: () if items else None)
        return snapshot is not None

    async def flush(self) -> bool:
        """Re-persist the current snapshot if the last write did not land."""
        self._ensure_ready()
        if not self.pending_write:
            return False
        await self._persist(self._items, self._version)
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _apply(
        self, reducer: Callable[[Snapshot], Optional[Snapshot]]
    ) -> Optional[Snapshot]:
        """Run a reducer on the current snapshot, publish and persist the result.

        Returns None (no publish, no write) when the reducer reports not-found.
        """
        # Free unless load() is hydrating; no suspension on the fast path
        async with self._gate:
            # Holding the gate, anything but READY means hydration never happened
            self._ensure_ready()
            next_items = reducer(self._items)
            if next_items is None:
                return None
            self._version += 1
            version = self._version
            self._publish(next_items)

        await self._persist(next_items, version)
        return next_items

    def _publish(self, items: Snapshot) -> None:
        self._items = items
        for observer in list(self._observers):
            try:
                observer(items)
            except Exception:
                logger.error("Cart observer failed", exc_info=True)

    async def _persist(self, snapshot: Snapshot, version: int) -> None:
        async with self._write_lock:
            if version <= self._persisted_version:
                # A newer snapshot already landed
                return
            payload = encode_snapshot(snapshot)
            try:
                await self._write(payload)
            except Exception as e:
                logger.error(f"Failed to persist cart snapshot v{version} ({describe_snapshot(snapshot)}): {e}")
                raise CartPersistenceError(raw_error=e) from e
            self._persisted_version = version

    async def _write(self, payload: str) -> None:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._persist_attempts),
            wait=wait_exponential(multiplier=0.1, max=self._persist_max_wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                await self.store.set(self._key, payload)

    def _ensure_open(self) -> None:
        if self._state is SessionState.IDLE:
            raise CartContextError(ERROR_CART_NOT_LOADED)
        if self._state is SessionState.CLOSED:
            raise CartContextError(ERROR_CART_CLOSED)

    def _ensure_ready(self) -> None:
        self._ensure_open()
        if self._state is not SessionState.READY:
            raise CartContextError(ERROR_CART_NOT_LOADED)


def _to_product(candidate: Candidate) -> CatalogProduct:
    if isinstance(candidate, CatalogProduct):
        return candidate
    if isinstance(candidate, CartItem):
        return CatalogProduct(
            id=candidate.id,
            title=candidate.title,
            image_url=candidate.image_url,
            price=candidate.price,
        )
    return CatalogProduct.from_dict(candidate)


def create_cart_manager(store: Optional[PersistentStore] = None) -> CartManager:
    """Create a cart manager, backed by Redis unless a store is given."""
    return CartManager(store=store if store is not None else RedisStore())


def require_cart(handle: Optional[CartManager]) -> CartManager:
    """Return the handle, failing fast if it is missing or not an open session."""
    if handle is None:
        raise CartContextError(ERROR_CART_MISSING)
    handle._ensure_open()
    return handle
