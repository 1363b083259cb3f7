from fastapi import APIRouter, Depends, HTTPException, Request, status

from cart_service.cart_store import CartStore
from cart_service.models import ProductCandidate
from cart_service.schemas import BadgeResponse, CartResponse, SummaryResponse, UpdateQuantityRequest

router = APIRouter(prefix="/cart", tags=["cart"])


async def get_cart_store(request: Request) -> CartStore:
    """Resolve the calling session's store from the session header."""
    # async so it runs on the event loop with the handlers, never in the threadpool
    header = request.app.state.settings.session_header
    session_id = request.headers.get(header)
    if not session_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Missing {header} header",
        )
    return request.app.state.carts.get(session_id)


def _cart_response(store: CartStore) -> CartResponse:
    return CartResponse.from_snapshot(store.session_id, store.snapshot())


@router.get("", response_model=CartResponse)
async def get_cart(store: CartStore = Depends(get_cart_store)) -> CartResponse:
    """Cart page contents."""
    return _cart_response(store)


@router.get("/badge", response_model=BadgeResponse)
async def get_badge(store: CartStore = Depends(get_cart_store)) -> BadgeResponse:
    """Units in the cart, for the navigation badge."""
    return BadgeResponse(count=store.get_total_quantity())


@router.get("/summary", response_model=SummaryResponse)
async def get_summary(store: CartStore = Depends(get_cart_store)) -> SummaryResponse:
    """Numbers consumed by the checkout step. No tax or shipping is added."""
    snapshot = store.snapshot()
    return SummaryResponse(
        subtotal=snapshot.total_price,
        total=snapshot.total_price,
        total_quantity=snapshot.total_quantity,
    )


@router.post("/items", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def add_item(candidate: ProductCandidate, store: CartStore = Depends(get_cart_store)) -> CartResponse:
    """Add one unit of a product to the cart."""
    store.add_to_cart(candidate)
    return _cart_response(store)


# Unknown ids and quantity <= 0 are not errors: the first is a no-op, the second a removal
@router.put("/items/{product_id}", response_model=CartResponse)
async def update_item_quantity(
    product_id: str,
    request: UpdateQuantityRequest,
    store: CartStore = Depends(get_cart_store),
) -> CartResponse:
    """Set a line's quantity."""
    store.update_quantity(product_id, request.quantity)
    return _cart_response(store)


@router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_item(product_id: str, store: CartStore = Depends(get_cart_store)) -> CartResponse:
    """Remove a line from the cart."""
    store.remove_from_cart(product_id)
    return _cart_response(store)


@router.delete("", response_model=CartResponse)
async def clear_cart(store: CartStore = Depends(get_cart_store)) -> CartResponse:
    """Empty the cart."""
    store.clear_cart()
    return _cart_response(store)
