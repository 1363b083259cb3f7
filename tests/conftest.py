"""Pytest configuration and fixtures"""
from decimal import Decimal
from typing import Dict, List, Optional
from unittest.mock import Mock

import pytest

from cart_service.cart_repository import InMemoryCartRepository
from cart_service.cart_store import CartStore
from cart_service.models import ItemKind, ProductCandidate


def make_candidate(product_id: str, price="10", kind: ItemKind = ItemKind.PART, name: Optional[str] = None):
    return ProductCandidate(
        id=product_id,
        name=name or f"Product {product_id}",
        price=price,
        image=f"/img/{product_id}.jpg",
        kind=kind,
    )


@pytest.fixture
def candidate_a():
    """Part A at 10.00"""
    return make_candidate("A", price=Decimal("10"))


@pytest.fixture
def starter_kit():
    return make_candidate("kit-starter", price=Decimal("59.99"), kind=ItemKind.KIT, name="Arduino Starter Kit")


@pytest.fixture
def storage() -> Dict[str, str]:
    """Shared key-value dict standing in for browser storage"""
    return {}


@pytest.fixture
def repository(storage):
    return InMemoryCartRepository("session-1", storage)


@pytest.fixture
def store(repository):
    """Loaded store backed by the in-memory repository"""
    return CartStore(repository).load()


@pytest.fixture
def events(store) -> List:
    """Events published by the store after the fixture is created"""
    received = []
    store.subscribe(received.append)
    return received


class FakeRedis:
    """Minimal dict-backed stand-in for the redis client calls the repository makes"""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.expiry: Dict[str, int] = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = value
        if ex is not None:
            self.expiry[key] = ex
        return True

    def delete(self, key):
        self.expiry.pop(key, None)
        return 1 if self.data.pop(key, None) is not None else 0

    def ttl(self, key):
        if key not in self.data:
            return -2
        return self.expiry.get(key, -1)

    def scan_iter(self, match=None):
        prefix = (match or "*").rstrip("*")
        return iter([key for key in self.data if key.startswith(prefix)])


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def broken_redis():
    """Redis client whose every call fails"""
    import redis

    client = Mock()
    error = redis.ConnectionError("connection refused")
    client.get.side_effect = error
    client.set.side_effect = error
    client.delete.side_effect = error
    client.ttl.side_effect = error
    return client
