#app/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from app.api.deps import get_current_user_id, get_gateway
from app.data.gateway import StorageGateway
from app.domain.errors import (
    CartItemNotFound,
    InsufficientStock,
    InvalidQuantity,
    OptimisticLockExhausted,
    ProductNotFound,
)
from app.domain.schemas import (
    AddItemIn,
    Cart,
    CartLine,
    ClearCartOut,
    MessageOut,
    UpdateItemIn,
)
from app.services.cart_service import CartService
from app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(gateway: StorageGateway):
    return CartService(gateway)


@router.get("", response_model=Cart)
def get_cart(
    user_id: str = Depends(get_current_user_id),
    gateway: StorageGateway = Depends(get_gateway),
):
    svc = get_service(gateway)
    try:
        return svc.get_cart(user_id)
    except SQLAlchemyError:
        logger.exception(f"Failed to fetch cart of user {user_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch cart")


@router.post("/items", response_model=CartLine, status_code=201)
def add_item(
    payload: AddItemIn,
    user_id: str = Depends(get_current_user_id),
    gateway: StorageGateway = Depends(get_gateway),
):
    svc = get_service(gateway)
    try:
        return svc.add_item(user_id, payload.product_id, payload.quantity)
    except (InvalidQuantity, InsufficientStock) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (ProductNotFound, CartItemNotFound) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OptimisticLockExhausted as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SQLAlchemyError:
        logger.exception(f"Failed to add product {payload.product_id} to cart of user {user_id}")
        raise HTTPException(status_code=500, detail="Failed to add item to cart")


@router.put("/items/{product_id}", response_model=CartLine)
def update_item(
    product_id: str,
    payload: UpdateItemIn,
    user_id: str = Depends(get_current_user_id),
    gateway: StorageGateway = Depends(get_gateway),
):
    svc = get_service(gateway)
    try:
        return svc.update_quantity(user_id, product_id, payload.quantity, payload.version)
    except (InvalidQuantity, InsufficientStock) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (ProductNotFound, CartItemNotFound) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OptimisticLockExhausted as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SQLAlchemyError:
        logger.exception(f"Failed to update product {product_id} in cart of user {user_id}")
        raise HTTPException(status_code=500, detail="Failed to update cart item")


@router.delete("/items/{product_id}", response_model=MessageOut)
def remove_item(
    product_id: str,
    user_id: str = Depends(get_current_user_id),
    gateway: StorageGateway = Depends(get_gateway),
):
    svc = get_service(gateway)
    try:
        svc.remove_item(user_id, product_id)
    except SQLAlchemyError:
        logger.exception(f"Failed to remove product {product_id} from cart of user {user_id}")
        raise HTTPException(status_code=500, detail="Failed to remove item from cart")
    return {"message": "Item removed from cart"}


@router.delete("", response_model=ClearCartOut)
def clear_cart(
    user_id: str = Depends(get_current_user_id),
    gateway: StorageGateway = Depends(get_gateway),
):
    svc = get_service(gateway)
    try:
        return {"removed": svc.clear_cart(user_id)}
    except SQLAlchemyError:
        logger.exception(f"Failed to clear cart of user {user_id}")
        raise HTTPException(status_code=500, detail="Failed to clear cart")
