class CartError(Exception):
    """Base class for cart service errors."""


class CartPersistenceError(CartError):
    """Raised when the storage backend cannot read or write a cart."""
