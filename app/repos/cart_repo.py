# app/repos/cart_repo.py
#
#  PK: USER#<userId>   SK: CART#<productId>
#
#  1. cala karta uzytkownika  -> query(PK, begins_with CART#)
#  2. jedna pozycja           -> get_item(PK, SK)
#  3. nowa pozycja            -> put_item + attribute_not_exists
#  4. zmiana ilosci           -> update_item + warunek na version
#  5. usuniecie               -> delete_item
from typing import List

from app.data.expressions import attribute_not_exists, equals
from app.data.gateway import ConditionalCheckFailed, StorageGateway
from app.domain.keys import CART_PREFIX, cart_key, user_pk
from app.domain.schemas import CartLine
from app.utils.timeutil import parse_iso, to_iso, utcnow
from app.utils.logging import get_logger

logger = get_logger(__name__)


class VersionMismatch(Exception):
    """Ktos inny zapisal pozycje wczesniej (wersja w bazie jest inna)."""

    def __init__(self, user_id: str, product_id: str, expected_version: int):
        self.expected_version = expected_version
        super().__init__(
            f"Cart line {user_id}/{product_id} is no longer at version {expected_version}"
        )


class CartLineExists(Exception):
    def __init__(self, user_id: str, product_id: str):
        super().__init__(f"Cart line {user_id}/{product_id} already exists")


def line_to_record(line: CartLine) -> dict:
    pk, sk = cart_key(line.user_id, line.product_id)
    return {
        "PK": pk,
        "SK": sk,
        "userId": line.user_id,
        "productId": line.product_id,
        "productName": line.product_name,
        "price": line.unit_price,
        "quantity": line.quantity,
        "version": line.version,
        "addedAt": to_iso(line.added_at),
        "updatedAt": to_iso(line.updated_at),
    }


def record_to_line(rec: dict) -> CartLine:
    return CartLine(
        user_id=rec["userId"],
        product_id=rec["productId"],
        product_name=rec["productName"],
        unit_price=rec["price"],
        quantity=rec["quantity"],
        version=rec["version"],
        added_at=parse_iso(rec["addedAt"]),
        updated_at=parse_iso(rec["updatedAt"]),
    )


class CartRepo:
    def __init__(self, gateway: StorageGateway):
        self.gateway = gateway

    def get_by_user(self, user_id: str) -> List[CartLine]:
        records = self.gateway.query(user_pk(user_id), CART_PREFIX)
        return [record_to_line(r) for r in records]

    def get_item(self, user_id: str, product_id: str) -> CartLine | None:
        rec = self.gateway.get_item(*cart_key(user_id, product_id))
        return record_to_line(rec) if rec else None

    def add(self, line: CartLine) -> CartLine:
        try:
            self.gateway.put_item(line_to_record(line), condition=attribute_not_exists("PK"))
        except ConditionalCheckFailed:
            raise CartLineExists(line.user_id, line.product_id)
        return line

    def update_quantity(
        self,
        user_id: str,
        product_id: str,
        quantity: int,
        expected_version: int,
    ) -> CartLine:
        """
        Optimistic locking: zapis przejdzie tylko jesli version w bazie == expected_version.
        np. SET quantity=5, version=version+1 WHERE version=3
        """
        try:
            rec = self.gateway.update_item(
                *cart_key(user_id, product_id),
                set={"quantity": quantity, "updatedAt": to_iso(utcnow())},
                add={"version": 1},
                condition=equals("version", expected_version),
            )
        except ConditionalCheckFailed:
            raise VersionMismatch(user_id, product_id, expected_version)
        return record_to_line(rec)

    def delete(self, user_id: str, product_id: str) -> None:
        #delete nieistniejacego klucza nie jest bledem
        self.gateway.delete_item(*cart_key(user_id, product_id))

    def clear(self, user_id: str) -> int:
        """Usuwa pozycje pojedynczo - best effort, bez transakcji."""
        removed = 0
        for line in self.get_by_user(user_id):
            try:
                self.delete(user_id, line.product_id)
                removed += 1
            except Exception:
                logger.warning(
                    f"Failed to remove product {line.product_id} from cart of user {user_id}",
                    exc_info=True,
                )
        return removed
