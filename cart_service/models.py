"""
Cart data model.

LineItem is the unit held by the cart store: one product, keyed by its catalog id,
with the display fields and price captured at the moment it was first added.
Line items are frozen so that snapshots handed to views cannot alter store state.
"""

from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ItemKind(str, Enum):
    """Where a product came from in the catalog."""

    KIT = "kit"
    PART = "part"

    @property
    def label(self) -> str:
        return "Starter Kit" if self is ItemKind.KIT else "Component"


def _coerce_price(value: Any) -> Any:
    # Decimal(float) keeps binary noise (3.95 -> 3.9500000000000001776...)
    if isinstance(value, float):
        return Decimal(repr(value))
    return value


class ProductCandidate(BaseModel):
    """Product details supplied by a catalog card or detail page."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: Decimal
    image: str
    kind: ItemKind

    @field_validator("price", mode="before")
    @classmethod
    def normalize_price(cls, value: Any) -> Any:
        return _coerce_price(value)


class LineItem(BaseModel):
    """One product entry in the cart."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: Decimal
    image: str
    kind: ItemKind
    quantity: int = Field(ge=1)

    @field_validator("price", mode="before")
    @classmethod
    def normalize_price(cls, value: Any) -> Any:
        return _coerce_price(value)

    @classmethod
    def from_candidate(cls, candidate: ProductCandidate) -> "LineItem":
        return cls(
            id=candidate.id,
            name=candidate.name,
            price=candidate.price,
            image=candidate.image,
            kind=candidate.kind,
            quantity=1,
        )

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity
