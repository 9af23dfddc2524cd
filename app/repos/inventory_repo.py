# app/repos/inventory_repo.py
#
#  PK: PRODUCT#<productId>   SK: INVLOG#<timestamp>#<suffix>
#
#  Zmiana stocku i wpis do logu ida jedna transakcja.
#  Odczyt logu: najnowsze N wpisow albo zakres czasu (BETWEEN na SK).
import uuid
from datetime import datetime
from typing import List

from app.data.expressions import UpdateExpression, equals
from app.data.gateway import StorageGateway
from app.data.transaction import ReasonCode, TransactionBuilder
from app.domain.errors import ProductNotFound, TransactionCancelled, TransactionConflict
from app.domain.keys import INVLOG_PREFIX, inventory_log_key, is_product_key, product_key
from app.domain.schemas import InventoryLog
from app.utils.timeutil import parse_iso, to_iso


def log_to_record(log: InventoryLog) -> dict:
    timestamp = to_iso(log.timestamp)
    pk, sk = inventory_log_key(log.product_id, timestamp, uuid.uuid4().hex[:8])
    return {
        "PK": pk,
        "SK": sk,
        "productId": log.product_id,
        "changeType": log.change_type.value,
        "quantity": log.quantity,
        "previousStock": log.previous_stock,
        "newStock": log.new_stock,
        "reason": log.reason,
        "createdAt": timestamp,
    }


def record_to_log(rec: dict) -> InventoryLog:
    return InventoryLog(
        product_id=rec["productId"],
        change_type=rec["changeType"],
        quantity=rec["quantity"],
        previous_stock=rec["previousStock"],
        new_stock=rec["newStock"],
        reason=rec.get("reason", ""),
        timestamp=parse_iso(rec["createdAt"]),
    )


class InventoryRepo:
    def __init__(self, gateway: StorageGateway):
        self.gateway = gateway

    def apply_change(self, log: InventoryLog) -> InventoryLog:
        """
        SET stock = new_stock WHERE stock = previous_stock, plus wpis do logu.
        Jesli ktos zmienil stock po naszym odczycie -> TransactionConflict.
        """
        builder = TransactionBuilder()
        builder.conditional_update(
            product_key(log.product_id),
            UpdateExpression(set={"stock": log.new_stock, "updatedAt": to_iso(log.timestamp)}),
            equals("stock", log.previous_stock),
        )
        builder.create(log_to_record(log))

        result = builder.submit(self.gateway)
        if result.committed:
            return log

        failures = result.failures()
        if any(r.code is ReasonCode.CONDITIONAL_CHECK_FAILED and is_product_key(r.key) for r in failures):
            #produkt usuniety albo stock zmieniony w miedzyczasie
            if self.gateway.get_item(*product_key(log.product_id)) is None:
                raise ProductNotFound(log.product_id)
            raise TransactionConflict("Stock changed concurrently, please retry")
        if any(r.code is ReasonCode.TRANSACTION_CONFLICT for r in failures):
            raise TransactionConflict()
        raise TransactionCancelled(result.reasons)

    def get_latest(self, product_id: str, limit: int) -> List[InventoryLog]:
        #najnowsze na poczatku
        records = self.gateway.query(
            product_key(product_id)[0], INVLOG_PREFIX, ascending=False, limit=limit
        )
        return [record_to_log(r) for r in records]

    def get_between(self, product_id: str, start: datetime, end: datetime) -> List[InventoryLog]:
        """Wpisy z [start, end), najnowsze na poczatku."""
        #SK "INVLOG#<end>#..." jest wieksze niz "INVLOG#<end>", wiec koniec nie wchodzi
        records = self.gateway.query(
            product_key(product_id)[0],
            sk_between=(f"{INVLOG_PREFIX}{to_iso(start)}", f"{INVLOG_PREFIX}{to_iso(end)}"),
            ascending=False,
        )
        return [record_to_log(r) for r in records]
