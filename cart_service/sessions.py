"""
One cart store per browser session.

The HTTP layer asks CartSessions for the store of the calling session. The first request
of a session builds the store and loads it before anything reads from it, so a view never
sees an empty cart that is about to be replaced by the restored one.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Dict, Optional, Tuple

import redis

from cart_service.cart_repository import CartRepository, InMemoryCartRepository, RedisCartRepository
from cart_service.cart_store import CartStore
from cart_service.config import Settings

logger = logging.getLogger(__name__)

RepositoryFactory = Callable[[str], CartRepository]


class CartSessions:
    """
    Registry of loaded cart stores keyed by session id.

    Holds at most max_sessions stores, least recently used first out, and drops stores
    not touched for idle_seconds. Every mutation is already persisted, so a dropped
    store loses nothing: the next request for that session reloads it.
    """

    def __init__(
        self,
        repository_factory: RepositoryFactory,
        max_sessions: int = 10000,
        idle_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.repository_factory = repository_factory
        self.max_sessions = max_sessions
        self.idle_seconds = idle_seconds
        self.clock = clock
        # session_id -> (store, last access), oldest access first
        self._stores: "OrderedDict[str, Tuple[CartStore, float]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, session_id: str) -> CartStore:
        with self._lock:
            now = self.clock()
            self._evict_idle(now)

            entry = self._stores.pop(session_id, None)
            if entry is None:
                store = CartStore(self.repository_factory(session_id))
                store.load()
                logger.info("Opened cart session", extra={"session_id": session_id})
            else:
                store = entry[0]

            self._stores[session_id] = (store, now)
            while len(self._stores) > self.max_sessions:
                evicted, _ = self._stores.popitem(last=False)
                logger.debug("Evicted least recently used cart session", extra={"session_id": evicted})

            return store

    def _evict_idle(self, now: float) -> None:
        if self.idle_seconds is None:
            return
        while self._stores:
            session_id, (_, last_seen) = next(iter(self._stores.items()))
            if now - last_seen < self.idle_seconds:
                break
            del self._stores[session_id]
            logger.debug("Dropped idle cart session", extra={"session_id": session_id})

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._stores

    def __len__(self) -> int:
        return len(self._stores)


def memory_repository_factory(storage: Optional[Dict[str, str]] = None) -> RepositoryFactory:
    storage = storage if storage is not None else {}
    return lambda session_id: InMemoryCartRepository(session_id, storage)


def redis_repository_factory(redis_client: redis.Redis, ttl: int) -> RepositoryFactory:
    return lambda session_id: RedisCartRepository(redis_client, session_id, ttl=ttl)


def build_redis_client(settings: Settings) -> redis.Redis:
    client = redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        decode_responses=True,
    )
    client.ping()
    return client
