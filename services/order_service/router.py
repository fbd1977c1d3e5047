from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.config.settings import CHECKOUT_RATE_LIMIT
from shared.security import get_owner_id, limiter
from .checkout import CheckoutOrchestrator
from .dependencies import get_checkout_orchestrator
from .exceptions import CartChanged, CheckoutError, InvalidRequest, InvalidStatusTransition, OrderNotFound
from .schemas import CartItemCreate, CartLineResponse, CheckoutRequest, OrderResponse, StatusUpdate
from .service import CartService, OrderService

# Customer routes: every call is scoped to the owner in the bearer token
router = APIRouter()
cart_router = APIRouter(prefix="/cart", tags=["Cart"])
public_router = APIRouter()

@public_router.get("/health")
async def health_check():
    return {"service": "order", "status": "running"}


# --- CHECKOUT ---
@router.post("/", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(CHECKOUT_RATE_LIMIT)
async def create_order(
    request: Request,                          # REQUIRED: slowapi needs this to check IP/Headers
    payload: CheckoutRequest,
    owner_id: int = Depends(get_owner_id),
    orchestrator: CheckoutOrchestrator = Depends(get_checkout_orchestrator),
):
    try:
        return await orchestrator.checkout(
            owner_id=owner_id,
            items=payload.items,
            shipping_address=payload.shipping_address,
        )
    except InvalidRequest as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CartChanged as e:
        raise HTTPException(status_code=409, detail=str(e))
    except CheckoutError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e) or "Internal server error")


@router.get("/", response_model=list[OrderResponse])
async def list_orders(owner_id: int = Depends(get_owner_id), db: AsyncSession = Depends(get_db)):
    return await OrderService.list_orders(db, owner_id)

@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: int, owner_id: int = Depends(get_owner_id), db: AsyncSession = Depends(get_db)):
    order = await OrderService.get_order(db, order_id, owner_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order

@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    payload: StatusUpdate,
    owner_id: int = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await OrderService.update_status(db, order_id, owner_id, payload.status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OrderNotFound:
        raise HTTPException(status_code=404, detail="Order not found")
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail=str(e))


# --- CART ---
@cart_router.get("", response_model=list[CartLineResponse])
async def get_cart(owner_id: int = Depends(get_owner_id), db: AsyncSession = Depends(get_db)):
    return await CartService.get_cart(db, owner_id)

@cart_router.post("/add", response_model=CartLineResponse)
async def add_to_cart(item: CartItemCreate, owner_id: int = Depends(get_owner_id), db: AsyncSession = Depends(get_db)):
    return await CartService.add_item(db, owner_id, item.product_id, item.quantity)

@cart_router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_from_cart(product_id: int, owner_id: int = Depends(get_owner_id), db: AsyncSession = Depends(get_db)):
    removed = await CartService.remove_item(db, owner_id, product_id)
    if not removed:
        raise HTTPException(status_code=404, detail="Item not found in cart")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
