# app/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from app.api.deps import get_current_user_id, get_gateway
from app.data.gateway import StorageGateway
from app.data.transaction import TransactionValidationError
from app.domain.errors import (
    EmptyCart,
    InsufficientStock,
    OrderNotFound,
    TransactionCancelled,
    TransactionConflict,
)
from app.domain.schemas import Order
from app.services.order_service import OrderService
from app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(gateway: StorageGateway):
    return OrderService(gateway)


@router.post("", response_model=Order, status_code=201)
def create_order(
    user_id: str = Depends(get_current_user_id),
    gateway: StorageGateway = Depends(get_gateway),
):
    """
    Zamowienie z calego koszyka uzytkownika.
    409 przy braku towaru albo konflikcie transakcji - klient ponawia sam.
    """
    svc = get_service(gateway)
    try:
        return svc.create_order(user_id)
    except (EmptyCart, TransactionValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (InsufficientStock, TransactionConflict) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (TransactionCancelled, SQLAlchemyError):
        logger.exception(f"Failed to create order for user {user_id}")
        raise HTTPException(status_code=500, detail="Failed to create order")


@router.get("", response_model=List[Order])
def get_orders(
    user_id: str = Depends(get_current_user_id),
    gateway: StorageGateway = Depends(get_gateway),
):
    svc = get_service(gateway)
    try:
        return svc.get_orders(user_id)
    except SQLAlchemyError:
        logger.exception(f"Failed to fetch orders of user {user_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch orders")


@router.get("/{order_id}", response_model=Order)
def get_order(
    order_id: str,
    user_id: str = Depends(get_current_user_id),
    gateway: StorageGateway = Depends(get_gateway),
):
    """
    Szczegoly zamowienia razem z pozycjami.
    """
    svc = get_service(gateway)
    try:
        return svc.get_order(user_id, order_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SQLAlchemyError:
        logger.exception(f"Failed to fetch order {order_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch order")
