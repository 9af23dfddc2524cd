# app/api/routers/inventory.py
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError

from app.api.deps import get_gateway
from app.data.gateway import StorageGateway
from app.domain.errors import (
    InsufficientStock,
    InvalidChangeType,
    InvalidDateRange,
    InvalidQuantity,
    ProductNotFound,
    TransactionCancelled,
    TransactionConflict,
)
from app.domain.schemas import InventoryLog, StockAdjustIn
from app.services.inventory_service import DEFAULT_LOG_LIMIT, InventoryService
from app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/products", tags=["inventory"])


@router.post("/{product_id}/inventory", response_model=InventoryLog, status_code=201)
def adjust_stock(
    product_id: str,
    payload: StockAdjustIn,
    gateway: StorageGateway = Depends(get_gateway),
):
    svc = InventoryService(gateway)
    try:
        return svc.adjust_stock(
            product_id=product_id,
            change_type=payload.change_type.value,
            quantity=payload.quantity,
            reason=payload.reason,
        )
    except (InvalidChangeType, InvalidQuantity, InsufficientStock) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TransactionConflict as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (TransactionCancelled, SQLAlchemyError):
        logger.exception(f"Failed to adjust stock of product {product_id}")
        raise HTTPException(status_code=500, detail="Failed to adjust stock")


@router.get("/{product_id}/inventory-logs", response_model=List[InventoryLog])
def get_inventory_logs(
    product_id: str,
    limit: int = Query(DEFAULT_LOG_LIMIT, gt=0, le=1000),
    start: date | None = Query(None, description="YYYY-MM-DD, razem z end"),
    end: date | None = Query(None, description="YYYY-MM-DD, wlacznie"),
    gateway: StorageGateway = Depends(get_gateway),
):
    """
    Historia zmian stocku, najnowsze na poczatku.
    start+end -> caly zakres, inaczej ostatnie `limit` wpisow.
    """
    svc = InventoryService(gateway)
    try:
        return svc.get_logs(product_id, limit=limit, start=start, end=end)
    except (InvalidDateRange, InvalidQuantity) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SQLAlchemyError:
        logger.exception(f"Failed to fetch inventory logs of product {product_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch inventory logs")
