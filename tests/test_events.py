"""Tests for cart events and the notifier"""
import json
from decimal import Decimal
from unittest.mock import Mock

from cart_service.notifier import CartNotifier
from shared.events import (
    BaseEvent,
    CartClearedEvent,
    CartItemAddedEvent,
    CartQuantityUpdatedEvent,
    parse_event,
)


def _added_event(**overrides):
    fields = dict(
        items=[{"id": "A", "name": "A", "price": "1.10", "image": "", "kind": "part", "quantity": 2}],
        total_quantity=2,
        total_price=Decimal("2.20"),
        version=3,
        product_id="A",
        quantity=2,
    )
    fields.update(overrides)
    return CartItemAddedEvent(**fields)


def test_event_defaults():
    event = _added_event()

    assert event.event_type == "cart.item_added"
    assert event.event_id
    assert event.correlation_id
    assert event.timestamp.tzinfo is not None


def test_event_json_round_trip():
    event = _added_event()

    parsed = parse_event(json.loads(event.model_dump_json()))

    assert isinstance(parsed, CartItemAddedEvent)
    assert parsed.total_price == Decimal("2.20")
    assert parsed.event_id == event.event_id


def test_unknown_event_type_parses_as_base_event():
    parsed = parse_event({"event_type": "cart.unknown"})

    assert type(parsed) is BaseEvent


def test_quantity_event_type():
    event = CartQuantityUpdatedEvent(
        items=[], total_quantity=0, total_price=Decimal("0"), version=1, product_id="A", quantity=3
    )

    assert event.event_type == "cart.quantity_updated"
    assert event.previous_quantity is None


def test_notifier_delivers_in_subscription_order():
    notifier = CartNotifier()
    calls = []
    notifier.subscribe(lambda event: calls.append("badge"))
    notifier.subscribe(lambda event: calls.append("page"))

    delivered = notifier.publish(CartClearedEvent(items=[], total_quantity=0, total_price=Decimal("0"), version=1))

    assert calls == ["badge", "page"]
    assert delivered == 2


def test_notifier_counts_failed_listeners_out():
    notifier = CartNotifier()
    notifier.subscribe(Mock(side_effect=ValueError("boom")))
    healthy = Mock()
    notifier.subscribe(healthy)

    delivered = notifier.publish(_added_event())

    assert delivered == 1
    healthy.assert_called_once()


def test_listener_can_unsubscribe_during_delivery():
    notifier = CartNotifier()
    received = []
    subscription = None

    def once(event):
        received.append(event.event_type)
        subscription.unsubscribe()

    subscription = notifier.subscribe(once)
    other = Mock()
    notifier.subscribe(other)

    notifier.publish(_added_event())
    notifier.publish(_added_event())

    assert received == ["cart.item_added"]
    assert other.call_count == 2
    assert notifier.listener_count == 1
