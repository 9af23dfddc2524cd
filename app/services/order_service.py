# app/services/order_service.py
import uuid
from typing import List

from app.data.gateway import StorageGateway
from app.domain.errors import EmptyCart
from app.domain.schemas import Order, OrderLine, OrderStatus
from app.repos.cart_repo import CartRepo
from app.repos.order_repo import OrderRepo
from app.utils.timeutil import utcnow
from app.utils.logging import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Serwis odpowiedzialny za domene zamowien.
    Jedyne miejsce gdzie stock naprawde schodzi.
    """

    def __init__(self, gateway: StorageGateway):
        self.repo = OrderRepo(gateway)
        self.cart_repo = CartRepo(gateway)

    def create_order(self, user_id: str) -> Order:
        """
        Use Case: zamowienie z koszyka.

        1. Pobiera pozycje koszyka (pusty -> EmptyCart)
        2. Buduje pozycje zamowienia i liczy total
        3. Jedna transakcja: naglowek + pozycje + stock - qty + usuniecie koszyka

        Bledy transakcji (InsufficientStock, TransactionConflict) ida do klienta,
        ponowienie calego checkoutu to jego decyzja.
        """
        cart_lines = self.cart_repo.get_by_user(user_id)
        if not cart_lines:
            raise EmptyCart()

        order_id = str(uuid.uuid4())
        now = utcnow()

        items = [
            OrderLine(
                order_id=order_id,
                product_id=line.product_id,
                product_name=line.product_name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                subtotal=line.subtotal,
            )
            for line in cart_lines
        ]

        order = Order(
            id=order_id,
            user_id=user_id,
            status=OrderStatus.CONFIRMED,
            total_amount=sum(i.subtotal for i in items),
            item_count=len(items),
            items=items,
            created_at=now,
            updated_at=now,
        )

        created = self.repo.create_order(order, cart_lines)

        logger.info(
            f"Order {created.id} created for user {user_id}: "
            f"{created.item_count} lines, total {created.total_amount}"
        )
        return created

    def get_orders(self, user_id: str) -> List[Order]:
        return self.repo.get_by_user(user_id)

    def get_order(self, user_id: str, order_id: str) -> Order:
        return self.repo.get_by_id(user_id, order_id)
