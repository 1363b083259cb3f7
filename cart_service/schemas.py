from decimal import Decimal
from typing import List

from pydantic import BaseModel

from cart_service.cart_store import CartSnapshot
from cart_service.models import ItemKind, LineItem


class UpdateQuantityRequest(BaseModel):
    """Request model for setting a line's quantity."""

    quantity: int


class CartItemResponse(BaseModel):
    """Response model for cart item."""

    id: str
    name: str
    image: str
    kind: ItemKind
    kind_label: str
    price: Decimal
    quantity: int
    line_total: Decimal

    @classmethod
    def from_line_item(cls, item: LineItem) -> "CartItemResponse":
        return cls(
            id=item.id,
            name=item.name,
            image=item.image,
            kind=item.kind,
            kind_label=item.kind.label,
            price=item.price,
            quantity=item.quantity,
            line_total=item.line_total,
        )


class CartResponse(BaseModel):
    """Response model for the cart page."""

    session_id: str
    items: List[CartItemResponse]
    total_quantity: int
    total_price: Decimal
    item_count: int
    version: int

    @classmethod
    def from_snapshot(cls, session_id: str, snapshot: CartSnapshot) -> "CartResponse":
        return cls(
            session_id=session_id,
            items=[CartItemResponse.from_line_item(item) for item in snapshot.items],
            total_quantity=snapshot.total_quantity,
            total_price=snapshot.total_price,
            item_count=snapshot.distinct_count,
            version=snapshot.version,
        )


class BadgeResponse(BaseModel):
    """Response model for the navigation cart badge."""

    count: int


class SummaryResponse(BaseModel):
    """Response model for the checkout summary."""

    subtotal: Decimal
    total: Decimal
    total_quantity: int


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    service: str
    version: str
