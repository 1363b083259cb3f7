"""
Cart Store

Owns the cart collection for one browser session. Views never touch line items directly;
they call the store's operations and either read its queries or subscribe to its events.

Mutation flow:
    1. Apply the pure transition from cart_service.reducer
    2. If nothing changed (unknown id), stop: no write, no event
    3. Swap in the new tuple and bump the version
    4. Save through the repository; a failed save is logged, memory stays authoritative
    5. Publish one event carrying the new items and totals to every subscriber

Lifecycle:
    store = CartStore(repository)      # loaded == False, views show a loading state
    store.load()                       # restores persisted items, publishes cart.restored
    store.add_to_cart(candidate)
"""

import logging
from decimal import Decimal
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

from cart_service import reducer
from cart_service.cart_repository import CartRepository, InMemoryCartRepository
from cart_service.exceptions import CartPersistenceError
from cart_service.models import LineItem, ProductCandidate
from cart_service.notifier import CartNotifier, Listener, Subscription
from shared.events import (
    CartClearedEvent,
    CartEvent,
    CartItemAddedEvent,
    CartItemRemovedEvent,
    CartQuantityUpdatedEvent,
    CartRestoredEvent,
)

logger = logging.getLogger(__name__)


class CartSnapshot(BaseModel):
    """Items and aggregates taken at one version."""

    model_config = ConfigDict(frozen=True)

    items: Tuple[LineItem, ...]
    total_quantity: int
    total_price: Decimal
    version: int

    @property
    def distinct_count(self) -> int:
        return len(self.items)


class CartStore:
    """In-memory cart with a persistence side channel and synchronous notifications."""

    def __init__(
        self,
        repository: Optional[CartRepository] = None,
        notifier: Optional[CartNotifier] = None,
    ):
        self.repository = repository if repository is not None else InMemoryCartRepository()
        self.notifier = notifier if notifier is not None else CartNotifier()
        self._items: reducer.Items = ()
        self.version = 0
        self.loaded = False

    @property
    def session_id(self) -> str:
        return self.repository.session_id

    def _log_extra(self) -> dict:
        return {"session_id": self.session_id, "cart_version": self.version}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> "CartStore":
        """Restore persisted items. Runs once; later calls are no-ops."""
        if self.loaded:
            return self

        try:
            self._items = self.repository.load()
        except CartPersistenceError as e:
            logger.warning(f"Could not restore cart, starting empty: {e}", extra=self._log_extra())
            self._items = ()

        self.loaded = True
        logger.info(f"Restored cart with {len(self._items)} line(s)", extra=self._log_extra())
        self._publish(CartRestoredEvent)
        return self

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def cart_items(self) -> Tuple[LineItem, ...]:
        """Current line items in insertion order. Tuple of frozen items, safe to hand out."""
        return self._items

    def get_total_quantity(self) -> int:
        return reducer.total_quantity(self._items)

    def get_total_price(self) -> Decimal:
        return reducer.total_price(self._items)

    def snapshot(self) -> CartSnapshot:
        return CartSnapshot(
            items=self._items,
            total_quantity=self.get_total_quantity(),
            total_price=self.get_total_price(),
            version=self.version,
        )

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Subscription:
        return self.notifier.subscribe(listener)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_to_cart(self, candidate: ProductCandidate) -> None:
        """Add one unit of candidate, merging with an existing line of the same id."""
        self._ensure_loaded()
        if not self._commit(reducer.add_item(self._items, candidate)):
            return

        line = self._find(candidate.id)
        logger.info(f"Added item {candidate.id} to cart (quantity {line.quantity})", extra=self._log_extra())
        self._publish(CartItemAddedEvent, product_id=candidate.id, quantity=line.quantity)

    def remove_from_cart(self, product_id: str) -> None:
        """Remove the line for product_id. Unknown ids are a no-op."""
        self._ensure_loaded()
        if not self._commit(reducer.remove_item(self._items, product_id)):
            logger.debug(f"Product {product_id} not in cart, nothing to remove", extra=self._log_extra())
            return

        logger.info(f"Removed item {product_id} from cart", extra=self._log_extra())
        self._publish(CartItemRemovedEvent, product_id=product_id)

    def update_quantity(self, product_id: str, new_quantity: int) -> None:
        """Set the absolute quantity of a line; new_quantity <= 0 removes it."""
        self._ensure_loaded()
        existing = self._find(product_id)
        if not self._commit(reducer.update_quantity(self._items, product_id, new_quantity)):
            logger.debug(f"Quantity of {product_id} unchanged", extra=self._log_extra())
            return

        if new_quantity <= 0:
            logger.info(
                f"Removed item {product_id} from cart (quantity set to {new_quantity})",
                extra=self._log_extra(),
            )
            self._publish(CartItemRemovedEvent, product_id=product_id)
        else:
            logger.info(f"Updated item {product_id} quantity to {new_quantity}", extra=self._log_extra())
            self._publish(
                CartQuantityUpdatedEvent,
                product_id=product_id,
                quantity=new_quantity,
                previous_quantity=existing.quantity,
            )

    def clear_cart(self) -> None:
        """Empty the cart. Only called on an explicit user action."""
        self._ensure_loaded()
        if not self._commit(reducer.clear_items(self._items)):
            return

        logger.info("Cleared cart", extra=self._log_extra())
        self._publish(CartClearedEvent)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_loaded(self) -> None:
        # A mutation before load() would otherwise be overwritten by the restore
        if not self.loaded:
            self.load()

    def _find(self, product_id: str) -> Optional[LineItem]:
        for item in self._items:
            if item.id == product_id:
                return item
        return None

    def _commit(self, new_items: reducer.Items) -> bool:
        """Install new_items and persist them. Returns False when nothing changed."""
        if new_items == self._items:
            return False

        self._items = new_items
        self.version += 1

        try:
            self.repository.save(new_items)
        except CartPersistenceError as e:
            logger.error(f"Failed to persist cart: {e}", extra=self._log_extra())

        return True

    def _publish(self, event_class: type, **fields) -> None:
        snapshot = self.snapshot()
        event: CartEvent = event_class(
            items=[item.model_dump(mode="json") for item in snapshot.items],
            total_quantity=snapshot.total_quantity,
            total_price=snapshot.total_price,
            version=snapshot.version,
            **fields,
        )
        self.notifier.publish(event)
