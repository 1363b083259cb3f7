"""
Pure cart transitions.

Every function takes the current collection (a tuple of LineItem in insertion order)
and returns a new tuple. Nothing here touches storage or subscribers, so the merge,
removal and quantity rules can be exercised on their own.

Invariants held by every transition:
    - at most one LineItem per product id
    - every LineItem has quantity >= 1
    - surviving items keep their relative order
"""

from decimal import Decimal
from typing import Optional, Tuple

from cart_service.models import LineItem, ProductCandidate

Items = Tuple[LineItem, ...]


def _index_of(items: Items, product_id: str) -> Optional[int]:
    for index, item in enumerate(items):
        if item.id == product_id:
            return index
    return None


def add_item(items: Items, candidate: ProductCandidate) -> Items:
    """Add one unit of a product. Merges into the existing line if the id is present."""
    index = _index_of(items, candidate.id)

    if index is None:
        return items + (LineItem.from_candidate(candidate),)

    # Keep the name/price/image captured by the first add
    existing = items[index]
    merged = existing.model_copy(update={"quantity": existing.quantity + 1})
    return items[:index] + (merged,) + items[index + 1:]


def remove_item(items: Items, product_id: str) -> Items:
    """Drop the line for product_id. Unknown ids leave the collection unchanged."""
    index = _index_of(items, product_id)
    if index is None:
        return items
    return items[:index] + items[index + 1:]


def update_quantity(items: Items, product_id: str, quantity: int) -> Items:
    """Set the absolute quantity of a line. quantity <= 0 removes it."""
    index = _index_of(items, product_id)
    if index is None:
        return items

    if quantity <= 0:
        return items[:index] + items[index + 1:]

    existing = items[index]
    if existing.quantity == quantity:
        return items

    updated = existing.model_copy(update={"quantity": quantity})
    return items[:index] + (updated,) + items[index + 1:]


def clear_items(items: Items) -> Items:
    return ()


def total_quantity(items: Items) -> int:
    """Units in the cart, not distinct products."""
    return sum(item.quantity for item in items)


def total_price(items: Items) -> Decimal:
    """Sum of price x quantity, unrounded."""
    return sum((item.line_total for item in items), Decimal("0"))


def distinct_count(items: Items) -> int:
    return len(items)
