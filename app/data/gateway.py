# app/data/gateway.py
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from app.data.expressions import Condition, UpdateExpression
from app.data.models.item import ItemModel
from app.data.transaction import (
    CancellationReason,
    ConditionCheck,
    Delete,
    Key,
    Operation,
    Put,
    ReasonCode,
    TransactResult,
    Update,
    validate,
)
from app.utils.logging import get_logger

logger = get_logger(__name__)

#kody postgresa: serialization_failure, deadlock_detected
_CONFLICT_PGCODES = {"40001", "40P01"}
#unique_violation - dwa zapisy tego samego nowego klucza
_UNIQUE_VIOLATION_PGCODE = "23505"


class ConditionalCheckFailed(Exception):
    def __init__(self, key: Key, condition: Optional[Condition] = None):
        self.key = key
        self.condition = condition
        super().__init__(f"Condition failed on {key[0]}/{key[1]}: {condition}")


def _is_conflict(exc: Exception) -> bool:
    orig = getattr(exc, "orig", None)
    pgcode = getattr(orig, "pgcode", None)
    if isinstance(exc, IntegrityError):
        #NOT NULL, FK itp. to blad schematu, nie konflikt
        return pgcode == _UNIQUE_VIOLATION_PGCODE or "UNIQUE constraint failed" in str(orig)
    if pgcode in _CONFLICT_PGCODES:
        return True
    return "database is locked" in str(orig)


class StorageGateway:
    """
    Brama do magazynu klucz-wartosc na jednej tabeli (pk, sk, data).

    Kazdy zapis: SELECT ... FOR UPDATE na dotknietych kluczach,
    sprawdzenie warunkow, zapis, commit. Warunek i zapis sa jedna
    transakcja bazy, wiec dzialaja miedzy procesami.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    #query - odczyt
    def get_item(self, pk: str, sk: str) -> Dict[str, Any] | None:
        with self.session_factory() as session:
            row = session.get(ItemModel, (pk, sk))
            return dict(row.data) if row else None

    def query(
        self,
        pk: str,
        sk_prefix: str = "",
        *,
        sk_between: Tuple[str, str] | None = None,
        ascending: bool = True,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        stmt = select(ItemModel).where(ItemModel.pk == pk)

        if sk_between is not None:
            stmt = stmt.where(ItemModel.sk.between(*sk_between))
        elif sk_prefix:
            stmt = stmt.where(ItemModel.sk.startswith(sk_prefix, autoescape=True))

        stmt = stmt.order_by(ItemModel.sk.asc() if ascending else ItemModel.sk.desc())
        if limit is not None:
            stmt = stmt.limit(limit)

        with self.session_factory() as session:
            return [dict(row.data) for row in session.execute(stmt).scalars()]

    #commands - zapis
    def put_item(self, item: Dict[str, Any], condition: Condition | None = None) -> Dict[str, Any]:
        return self._write_one(Put(item, condition))

    def update_item(
        self,
        pk: str,
        sk: str,
        *,
        set: Dict[str, Any] | None = None,
        add: Dict[str, int] | None = None,
        condition: Condition | None = None,
    ) -> Dict[str, Any]:
        expression = UpdateExpression(set=dict(set or {}), add=dict(add or {}))
        return self._write_one(Update((pk, sk), expression, condition))

    def delete_item(self, pk: str, sk: str, condition: Condition | None = None) -> None:
        self._write_one(Delete((pk, sk), condition))

    def transact_write(self, operations: Sequence[Operation]) -> TransactResult:
        operations = list(operations)
        validate(operations)

        try:
            result = self._commit(operations)
        except (IntegrityError, OperationalError) as e:
            if not _is_conflict(e):
                raise
            logger.warning(f"Transaction conflict on {len(operations)} operations: {e.orig}")
            return TransactResult(
                reasons=tuple(
                    CancellationReason(ReasonCode.TRANSACTION_CONFLICT, op.key) for op in operations
                )
            )

        if result.cancelled:
            logger.info(
                "Transaction cancelled: "
                + ", ".join(f"{r.key[0]}/{r.key[1]}={r.code.value}" for r in result.failures())
            )
        return result

    def _write_one(self, op: Operation) -> Dict[str, Any] | None:
        try:
            result = self._commit([op])
        except IntegrityError as e:
            #ktos inny wstawil ten sam klucz rownolegle
            if op.condition is None or not _is_conflict(e):
                raise
            raise ConditionalCheckFailed(op.key, op.condition)

        if result.cancelled:
            raise ConditionalCheckFailed(op.key, op.condition)
        return result.images[0]

    def _commit(self, operations: List[Operation]) -> TransactResult:
        with self.session_factory() as session, session.begin():
            rows = self._lock_rows(session, [op.key for op in operations])

            reasons = tuple(self._check(op, rows.get(op.key)) for op in operations)
            if any(r.failed for r in reasons):
                #nic nie zostalo zapisane, commit pustej transakcji
                return TransactResult(reasons=reasons)

            images = tuple(self._apply(session, op, rows.get(op.key)) for op in operations)

        return TransactResult(reasons=reasons, images=images)

    @staticmethod
    def _lock_rows(session: Session, keys: List[Key]) -> Dict[Key, ItemModel]:
        #stala kolejnosc blokad zeby uniknac deadlockow
        keys = sorted(set(keys))
        stmt = (
            select(ItemModel)
            .where(or_(*(and_(ItemModel.pk == pk, ItemModel.sk == sk) for pk, sk in keys)))
            .order_by(ItemModel.pk, ItemModel.sk)
            .with_for_update()
        )
        return {(row.pk, row.sk): row for row in session.execute(stmt).scalars()}

    @staticmethod
    def _check(op: Operation, row: ItemModel | None) -> CancellationReason:
        if op.condition is not None and not op.condition.evaluate(row.data if row else None):
            return CancellationReason(ReasonCode.CONDITIONAL_CHECK_FAILED, op.key)
        return CancellationReason(ReasonCode.NONE, op.key)

    @staticmethod
    def _apply(session: Session, op: Operation, row: ItemModel | None) -> Dict[str, Any] | None:
        if isinstance(op, ConditionCheck):
            return dict(row.data) if row else None

        if isinstance(op, Delete):
            if row is not None:
                session.delete(row)
            return None

        if isinstance(op, Put):
            new = dict(op.item)
        else:
            new = op.expression.apply(op.key, row.data if row else None)

        #nowy dict zeby SQLAlchemy zauwazyl zmiane w kolumnie JSON
        if row is None:
            session.add(ItemModel(pk=op.key[0], sk=op.key[1], data=new))
        else:
            row.data = new
        return dict(new)
