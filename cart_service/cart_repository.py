"""
Cart Repository Module

Persistence adapters for the cart store. The store keeps its collection in memory and
calls a repository after every effective mutation; the repository only turns a tuple of
line items into a stored value and back.

Storage Layout:
    Key: "cart:{session_id}"   one key per browser session
    Value: '[
        {"id": "ard-uno-r3", "name": "Arduino Uno R3", "price": "23.50",
         "image": "/img/uno.jpg", "kind": "part", "quantity": 2},
        {"id": "kit-starter", "name": "Starter Kit", "price": "59.99",
         "image": "/img/kit.jpg", "kind": "kit", "quantity": 1}
    ]'

    Prices are written as decimal strings so a save/load round trip is exact.
    Numeric prices are still accepted when reading.

Failure Handling:
    - Missing key: empty cart
    - Malformed value (bad JSON, wrong shape, quantity < 1, duplicate ids): logged
      and treated as an empty cart
    - Backend errors (Redis unreachable, timeouts): raised as CartPersistenceError;
      the store decides how to degrade

TTL Management (Redis):
    - Each session cart is stored with an expiration (24 hours by default)
    - TTL resets on every write
    - An empty cart deletes its key

Example Usage:
    ```python
    redis_client = redis.Redis(host="localhost", port=6379, db=0, decode_responses=True)
    repo = RedisCartRepository(redis_client, session_id="3f0c1a")

    store = CartStore(repo)
    store.load()
    ```
"""

import json
import logging
from typing import Dict, List, Optional, Sequence, Tuple

import redis
from pydantic import TypeAdapter, ValidationError

from cart_service.exceptions import CartPersistenceError
from cart_service.models import LineItem

logger = logging.getLogger(__name__)

CART_KEY_PREFIX = "cart:"

_items_adapter = TypeAdapter(List[LineItem])


def cart_key(session_id: str) -> str:
    return f"{CART_KEY_PREFIX}{session_id}"


def encode_items(items: Sequence[LineItem]) -> str:
    """Serialize the collection to a JSON array."""
    return _items_adapter.dump_json(list(items)).decode("utf-8")


def decode_items(raw: Optional[str]) -> Tuple[LineItem, ...]:
    """Parse a stored value. Anything unreadable becomes an empty cart."""
    if raw is None or raw == "":
        return ()

    try:
        items = _items_adapter.validate_json(raw)
    except ValidationError as e:
        logger.warning(f"Discarding malformed cart payload: {e.error_count()} validation error(s)")
        return ()

    seen = set()
    for item in items:
        if item.id in seen:
            logger.warning(f"Discarding cart payload with duplicate product id {item.id}")
            return ()
        seen.add(item.id)

    return tuple(items)


class CartRepository:
    """Base persistence adapter for one cart."""

    def __init__(self, session_id: str = "default"):
        self.session_id = session_id

    @property
    def key(self) -> str:
        return cart_key(self.session_id)

    def load(self) -> Tuple[LineItem, ...]:
        return decode_items(self._read())

    def save(self, items: Sequence[LineItem]) -> None:
        if items:
            self._write(encode_items(items))
        else:
            self._delete()

    def clear(self) -> None:
        self._delete()

    def _read(self) -> Optional[str]:
        raise NotImplementedError

    def _write(self, value: str) -> None:
        raise NotImplementedError

    def _delete(self) -> None:
        raise NotImplementedError


class InMemoryCartRepository(CartRepository):
    """Dict-backed repository. Several repositories can share one dict as a key-value store."""

    def __init__(self, session_id: str = "default", storage: Optional[Dict[str, str]] = None):
        super().__init__(session_id)
        self.storage = storage if storage is not None else {}

    def _read(self) -> Optional[str]:
        return self.storage.get(self.key)

    def _write(self, value: str) -> None:
        self.storage[self.key] = value

    def _delete(self) -> None:
        self.storage.pop(self.key, None)


class RedisCartRepository(CartRepository):
    """Repository storing one session cart per Redis key, with expiry."""

    # Abandoned session carts expire after a day without changes
    CART_TTL = 86400

    def __init__(self, redis_client: redis.Redis, session_id: str = "default", ttl: Optional[int] = None):
        super().__init__(session_id)
        self.redis = redis_client
        self.ttl = ttl if ttl is not None else self.CART_TTL

    def _read(self) -> Optional[str]:
        try:
            value = self.redis.get(self.key)
            if isinstance(value, bytes):
                value = value.decode("utf-8")
        except redis.RedisError as e:
            raise CartPersistenceError(f"Failed to read {self.key}: {e}") from e
        except UnicodeDecodeError as e:
            # decode_responses=True clients raise this from get() itself
            logger.warning(f"Discarding undecodable cart payload at {self.key}: {e}")
            return None

        return value

    def _write(self, value: str) -> None:
        try:
            self.redis.set(self.key, value, ex=self.ttl)
        except redis.RedisError as e:
            raise CartPersistenceError(f"Failed to write {self.key}: {e}") from e
        logger.debug(f"Stored cart {self.key} (ttl={self.ttl}s)")

    def _delete(self) -> None:
        try:
            self.redis.delete(self.key)
        except redis.RedisError as e:
            raise CartPersistenceError(f"Failed to delete {self.key}: {e}") from e
        logger.debug(f"Deleted cart {self.key}")

    def time_to_live(self) -> int:
        """Seconds until this cart expires (-2 when the key does not exist)."""
        try:
            return self.redis.ttl(self.key)
        except redis.RedisError as e:
            raise CartPersistenceError(f"Failed to read ttl of {self.key}: {e}") from e

    @staticmethod
    def list_session_ids(redis_client: redis.Redis) -> List[str]:
        """Session ids that currently have a stored cart."""
        session_ids = []
        for key in redis_client.scan_iter(match=f"{CART_KEY_PREFIX}*"):
            if isinstance(key, bytes):
                key = key.decode("utf-8")
            session_ids.append(key[len(CART_KEY_PREFIX):])
        return sorted(session_ids)
