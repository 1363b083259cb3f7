"""Tests for the cart HTTP API"""
import asyncio
import time
from decimal import Decimal

import httpx
import pytest
from fastapi.testclient import TestClient

from cart_service.cart_repository import InMemoryCartRepository
from cart_service.config import Settings
from cart_service.main import create_app
from cart_service.sessions import memory_repository_factory

SESSION = {"X-Cart-Session": "browser-1"}

KIT = {"id": "kit-starter", "name": "Starter Kit", "price": "59.99", "image": "/img/kit.jpg", "kind": "kit"}
PART = {"id": "res-220", "name": "220 Ohm Resistor", "price": 0.1, "image": "/img/res.jpg", "kind": "part"}


@pytest.fixture
def storage():
    return {}


@pytest.fixture
def client(storage):
    settings = Settings(log_level="WARNING")
    app = create_app(settings, repository_factory=memory_repository_factory(storage))
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_missing_session_header_is_rejected(client):
    response = client.get("/cart")

    assert response.status_code == 400
    assert "X-Cart-Session" in response.json()["detail"]


def test_empty_cart(client):
    body = client.get("/cart", headers=SESSION).json()

    assert body["items"] == []
    assert body["total_quantity"] == 0
    assert body["item_count"] == 0


def test_add_merges_and_reports_units(client):
    client.post("/cart/items", json=KIT, headers=SESSION)
    response = client.post("/cart/items", json=KIT, headers=SESSION)

    assert response.status_code == 201
    body = response.json()
    assert body["item_count"] == 1
    assert body["total_quantity"] == 2
    assert body["items"][0]["kind_label"] == "Starter Kit"
    assert Decimal(str(body["items"][0]["line_total"])) == Decimal("119.98")
    assert Decimal(str(body["total_price"])) == Decimal("119.98")


def test_badge_and_summary(client):
    client.post("/cart/items", json=KIT, headers=SESSION)
    client.post("/cart/items", json=PART, headers=SESSION)
    client.put("/cart/items/res-220", json={"quantity": 10}, headers=SESSION)

    assert client.get("/cart/badge", headers=SESSION).json() == {"count": 11}

    summary = client.get("/cart/summary", headers=SESSION).json()
    assert Decimal(str(summary["subtotal"])) == Decimal("60.99")
    assert summary["total"] == summary["subtotal"]
    assert summary["total_quantity"] == 11


def test_update_to_zero_removes_line(client):
    client.post("/cart/items", json=KIT, headers=SESSION)

    response = client.put("/cart/items/kit-starter", json={"quantity": 0}, headers=SESSION)

    assert response.status_code == 200
    assert response.json()["items"] == []


def test_unknown_ids_are_not_errors(client):
    client.post("/cart/items", json=KIT, headers=SESSION)

    update = client.put("/cart/items/ghost", json={"quantity": 3}, headers=SESSION)
    delete = client.delete("/cart/items/ghost", headers=SESSION)

    assert update.status_code == 200
    assert delete.status_code == 200
    assert delete.json()["total_quantity"] == 1


def test_remove_and_clear(client):
    client.post("/cart/items", json=KIT, headers=SESSION)
    client.post("/cart/items", json=PART, headers=SESSION)

    body = client.delete("/cart/items/kit-starter", headers=SESSION).json()
    assert [item["id"] for item in body["items"]] == ["res-220"]

    body = client.delete("/cart", headers=SESSION).json()
    assert body["items"] == []


def test_sessions_do_not_share_carts(client):
    client.post("/cart/items", json=KIT, headers=SESSION)

    other = client.get("/cart", headers={"X-Cart-Session": "browser-2"}).json()

    assert other["items"] == []


def test_invalid_candidate_is_rejected(client):
    response = client.post("/cart/items", json={"id": "x", "name": "No price"}, headers=SESSION)

    assert response.status_code == 422


def test_cart_survives_app_restart(storage):
    settings = Settings(log_level="WARNING")

    with TestClient(create_app(settings, repository_factory=memory_repository_factory(storage))) as first:
        first.post("/cart/items", json=KIT, headers=SESSION)
        first.post("/cart/items", json=PART, headers=SESSION)

    with TestClient(create_app(settings, repository_factory=memory_repository_factory(storage))) as second:
        body = second.get("/cart", headers=SESSION).json()

    assert [item["id"] for item in body["items"]] == ["kit-starter", "res-220"]
    assert body["total_quantity"] == 2


class SlowReadRepository(InMemoryCartRepository):
    """Repository whose restore takes long enough for requests to overlap"""

    def _read(self):
        time.sleep(0.3)
        return super()._read()


def test_concurrent_first_requests_share_one_store(storage):
    settings = Settings(log_level="WARNING")
    app = create_app(settings, repository_factory=lambda session_id: SlowReadRepository(session_id, storage))
    headers = {"X-Cart-Session": "s1"}

    async def scenario():
        async with app.router.lifespan_context(app):
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
                responses = await asyncio.gather(
                    client.post("/cart/items", json=KIT, headers=headers),
                    client.post("/cart/items", json=KIT, headers=headers),
                )
                cart = await client.get("/cart", headers=headers)
        return responses, cart

    responses, cart = asyncio.run(scenario())

    assert [r.status_code for r in responses] == [201, 201]
    assert cart.json()["total_quantity"] == 2
    assert len(app.state.carts) == 1
