# app/services/inventory_service.py
from datetime import date, datetime, time, timedelta, timezone
from typing import List

from app.data.gateway import StorageGateway
from app.domain.errors import (
    InsufficientStock,
    InvalidChangeType,
    InvalidDateRange,
    InvalidQuantity,
)
from app.domain.schemas import ChangeType, InventoryLog
from app.repos.inventory_repo import InventoryRepo
from app.repos.product_repo import ProductRepo
from app.utils.timeutil import utcnow
from app.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_LOG_LIMIT = 50


class InventoryService:
    def __init__(self, gateway: StorageGateway):
        self.repo = InventoryRepo(gateway)
        self.products = ProductRepo(gateway)

    def adjust_stock(
        self,
        product_id: str,
        change_type: str,
        quantity: int,
        reason: str = "",
    ) -> InventoryLog:
        """
        IN     - przyjecie, stock + quantity
        OUT    - wydanie, stock - quantity (brak towaru -> InsufficientStock)
        ADJUST - inwentaryzacja, quantity to nowy stan

        Zapis warunkowy na stanie ktory odczytalismy, wiec rownolegla zmiana
        konczy sie TransactionConflict a nie nadpisaniem.
        """
        try:
            change = ChangeType(change_type)
        except ValueError:
            raise InvalidChangeType(change_type)

        if quantity < 0 or (quantity == 0 and change is not ChangeType.ADJUST):
            raise InvalidQuantity()

        product = self.products.get_by_id(product_id)
        previous = product.stock

        if change is ChangeType.IN:
            new_stock = previous + quantity
        elif change is ChangeType.OUT:
            if previous < quantity:
                raise InsufficientStock([product_id])
            new_stock = previous - quantity
        else:
            new_stock = quantity

        log = InventoryLog(
            product_id=product_id,
            change_type=change,
            quantity=quantity,
            previous_stock=previous,
            new_stock=new_stock,
            reason=reason,
            timestamp=utcnow(),
        )
        self.repo.apply_change(log)

        logger.info(
            f"Stock of product {product_id}: {previous} -> {new_stock} ({change.value}, {reason!r})"
        )
        return log

    #query - historia zmian stocku
    def get_logs(
        self,
        product_id: str,
        limit: int = DEFAULT_LOG_LIMIT,
        start: date | None = None,
        end: date | None = None,
    ) -> List[InventoryLog]:
        """
        Bez zakresu: ostatnie `limit` wpisow.
        Z zakresem: wszystkie wpisy od start do end wlacznie (daty w UTC).
        """
        if limit <= 0:
            raise InvalidQuantity("Limit must be greater than 0")

        self.products.get_by_id(product_id)

        if start is None and end is None:
            return self.repo.get_latest(product_id, limit)
        if start is None or end is None or end < start:
            raise InvalidDateRange(start, end)

        start_at = datetime.combine(start, time.min, tzinfo=timezone.utc)
        end_at = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
        return self.repo.get_between(product_id, start_at, end_at)
