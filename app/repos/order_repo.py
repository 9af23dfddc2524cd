# app/repos/order_repo.py
#
#  naglowek:  PK=USER#<userId>    SK=ORDER#<orderId>
#  pozycje:   PK=ORDER#<orderId>  SK=ITEM#<productId>
#
#  Zamowienie powstaje jedna transakcja:
#    1. Put naglowka
#    2. Put kazdej pozycji
#    3. Update stock = stock - qty  WHERE stock >= qty  (per produkt)
#    4. Delete pozycji koszyka  WHERE version = wersja z odczytu
#  wszystko albo nic
from typing import List

from app.data.expressions import UpdateExpression, at_least, equals
from app.data.gateway import StorageGateway
from app.data.transaction import ReasonCode, TransactResult, TransactionBuilder
from app.domain.errors import (
    InsufficientStock,
    OrderNotFound,
    TransactionCancelled,
    TransactionConflict,
)
from app.domain.keys import (
    ITEM_PREFIX,
    ORDER_PREFIX,
    cart_key,
    is_cart_key,
    is_product_key,
    order_key,
    order_line_key,
    product_key,
    user_pk,
)
from app.domain.schemas import CartLine, Order, OrderLine
from app.utils.timeutil import parse_iso, to_iso
from app.utils.logging import get_logger

logger = get_logger(__name__)


def order_to_record(order: Order) -> dict:
    pk, sk = order_key(order.user_id, order.id)
    created = to_iso(order.created_at)
    return {
        "PK": pk,
        "SK": sk,
        #indeks miesieczny
        "GSI1PK": f"ORDERS#{order.created_at.strftime('%Y-%m')}",
        "GSI1SK": f"{created}#{order.id}",
        "orderId": order.id,
        "userId": order.user_id,
        "status": order.status.value,
        "totalAmount": order.total_amount,
        "itemCount": order.item_count,
        "createdAt": created,
        "updatedAt": to_iso(order.updated_at),
    }


def record_to_order(rec: dict) -> Order:
    return Order(
        id=rec["orderId"],
        user_id=rec["userId"],
        status=rec["status"],
        total_amount=rec["totalAmount"],
        item_count=rec["itemCount"],
        created_at=parse_iso(rec["createdAt"]),
        updated_at=parse_iso(rec["updatedAt"]),
    )


def line_to_record(line: OrderLine) -> dict:
    pk, sk = order_line_key(line.order_id, line.product_id)
    return {
        "PK": pk,
        "SK": sk,
        "orderId": line.order_id,
        "productId": line.product_id,
        "productName": line.product_name,
        "price": line.unit_price,
        "quantity": line.quantity,
        "subtotal": line.subtotal,
    }


def record_to_line(rec: dict) -> OrderLine:
    return OrderLine(
        order_id=rec["orderId"],
        product_id=rec["productId"],
        product_name=rec["productName"],
        unit_price=rec["price"],
        quantity=rec["quantity"],
        subtotal=rec["subtotal"],
    )


def classify_cancellation(result: TransactResult) -> Exception:
    """
    Zamienia powody anulowania transakcji na blad domenowy.
    Czysta funkcja - nie zalezy od sterownika bazy.
    """
    failures = result.failures()

    out_of_stock = [
        r.key[0].split("#", 1)[1]
        for r in failures
        if r.code is ReasonCode.CONDITIONAL_CHECK_FAILED and is_product_key(r.key)
    ]
    if out_of_stock:
        return InsufficientStock(out_of_stock)

    #koszyk zmieniony w trakcie checkoutu - klient ponawia z aktualnym koszykiem
    if any(r.code is ReasonCode.CONDITIONAL_CHECK_FAILED and is_cart_key(r.key) for r in failures):
        return TransactionConflict("Cart changed during checkout, please retry")

    if any(r.code is ReasonCode.TRANSACTION_CONFLICT for r in failures):
        return TransactionConflict()

    return TransactionCancelled(result.reasons)


def build_checkout(order: Order, cart_lines: List[CartLine]) -> TransactionBuilder:
    builder = TransactionBuilder()

    builder.create(order_to_record(order))

    for line in order.items:
        builder.create(line_to_record(line))

    for line in order.items:
        builder.conditional_update(
            product_key(line.product_id),
            UpdateExpression(
                set={"updatedAt": to_iso(order.created_at)},
                add={"stock": -line.quantity},
            ),
            #stock nigdy ponizej zera
            at_least("stock", line.quantity),
        )

    for cart_line in cart_lines:
        #pozycja zmieniona po odczycie koszyka -> cala transakcja odpada
        builder.delete(
            cart_key(order.user_id, cart_line.product_id),
            equals("version", cart_line.version),
        )

    return builder


class OrderRepo:
    def __init__(self, gateway: StorageGateway):
        self.gateway = gateway

    def create_order(self, order: Order, cart_lines: List[CartLine]) -> Order:
        builder = build_checkout(order, cart_lines)
        logger.info(f"Submitting checkout transaction for order {order.id} ({len(builder)} operations)")

        result = builder.submit(self.gateway)
        if result.cancelled:
            raise classify_cancellation(result)
        return order

    def get_by_user(self, user_id: str) -> List[Order]:
        records = self.gateway.query(user_pk(user_id), ORDER_PREFIX)
        orders = [record_to_order(r) for r in records]
        #SK zawiera uuid, nie czas - sortujemy po createdAt, najnowsze na poczatku
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def get_by_id(self, user_id: str, order_id: str) -> Order:
        rec = self.gateway.get_item(*order_key(user_id, order_id))
        if rec is None:
            raise OrderNotFound(order_id)

        order = record_to_order(rec)
        order.items = self.get_items(order_id)
        return order

    def get_items(self, order_id: str) -> List[OrderLine]:
        records = self.gateway.query(f"{ORDER_PREFIX}{order_id}", ITEM_PREFIX)
        return [record_to_line(r) for r in records]
