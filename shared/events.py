"""
events.py - Cart Event Schema Definitions

PURPOSE:
    Defines the events the cart store publishes to its subscribers (navigation badge,
    cart page, checkout summary). Uses Pydantic for validation and serialization.

EVENT TYPES:
    - cart.restored: Store finished loading persisted state
    - cart.item_added: One unit of a product was added (new line or merge)
    - cart.item_removed: A line was removed (explicitly or by setting quantity <= 0)
    - cart.quantity_updated: A line's quantity was set to a new positive value
    - cart.cleared: The whole cart was emptied by the user

COMMON FIELDS (BaseEvent):
    - event_id: Unique identifier (UUID)
    - event_type: Event category and action
    - timestamp: Time of event creation
    - correlation_id: Links the event to the request or action that caused it

CART SNAPSHOT (CartEvent):
    Every cart event carries the full post-mutation state: items in insertion order,
    total_quantity, total_price and the store version. A subscriber can render
    from the event alone, so it never reads aggregates older than the items.

SERIALIZATION:
    json_data = event.model_dump_json()
    event = parse_event(json.loads(json_data))
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from shared.logging_config import local_now


class BaseEvent(BaseModel):
    """Base model for all cart events."""

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    event_type: str
    timestamp: datetime = Field(default_factory=local_now)
    correlation_id: str = Field(default_factory=lambda: str(uuid4()))


class CartEvent(BaseEvent):
    """Cart event with the post-mutation snapshot."""

    items: List[Dict[str, Any]]
    total_quantity: int
    total_price: Decimal
    version: int


class CartRestoredEvent(CartEvent):
    """
    Published once when the store finishes its initial load.
    Consumers stop showing a loading state on receipt.
    """

    event_type: str = "cart.restored"


class CartItemAddedEvent(CartEvent):
    """
    Published when a product is added to the cart.
    quantity is the line's quantity after the add (1 for a new line).
    """

    event_type: str = "cart.item_added"
    product_id: str
    quantity: int


class CartItemRemovedEvent(CartEvent):
    """Published when a line leaves the cart."""

    event_type: str = "cart.item_removed"
    product_id: str


class CartQuantityUpdatedEvent(CartEvent):
    """Published when a line's quantity is set to a new positive value."""

    event_type: str = "cart.quantity_updated"
    product_id: str
    quantity: int
    previous_quantity: Optional[int] = None


class CartClearedEvent(CartEvent):
    """Published when the user empties the cart."""

    event_type: str = "cart.cleared"


# Event mapping for deserialization
EVENT_TYPE_MAP = {
    "cart.restored": CartRestoredEvent,
    "cart.item_added": CartItemAddedEvent,
    "cart.item_removed": CartItemRemovedEvent,
    "cart.quantity_updated": CartQuantityUpdatedEvent,
    "cart.cleared": CartClearedEvent,
}


def parse_event(event_data: Dict[str, Any]) -> BaseEvent:
    """Rebuild a typed event from its serialized dict."""
    event_class = EVENT_TYPE_MAP.get(event_data.get("event_type"), BaseEvent)
    return event_class.model_validate(event_data)
