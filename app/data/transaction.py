# app/data/transaction.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from app.data.expressions import Condition, UpdateExpression, attribute_not_exists

Key = Tuple[str, str]

#limit operacji w jednej transakcji (tak jak TransactWriteItems)
MAX_TRANSACT_ITEMS = 100


class TransactionValidationError(ValueError):
    pass


@dataclass(frozen=True)
class Put:
    item: Dict[str, Any]
    condition: Optional[Condition] = None

    @property
    def key(self) -> Key:
        return self.item["PK"], self.item["SK"]


@dataclass(frozen=True)
class Update:
    key: Key
    expression: UpdateExpression
    condition: Optional[Condition] = None


@dataclass(frozen=True)
class Delete:
    key: Key
    condition: Optional[Condition] = None


@dataclass(frozen=True)
class ConditionCheck:
    key: Key
    condition: Condition


Operation = Union[Put, Update, Delete, ConditionCheck]


class ReasonCode(str, Enum):
    NONE = "None"
    CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailed"
    TRANSACTION_CONFLICT = "TransactionConflict"


@dataclass(frozen=True)
class CancellationReason:
    code: ReasonCode
    key: Optional[Key] = None

    @property
    def failed(self) -> bool:
        return self.code is not ReasonCode.NONE


@dataclass(frozen=True)
class TransactResult:
    """
    Wynik transakcji: committed albo cancelled z powodem dla kazdej operacji
    (w tej samej kolejnosci co operacje).
    """

    reasons: Tuple[CancellationReason, ...] = ()
    images: Tuple[Optional[Dict[str, Any]], ...] = ()

    @property
    def cancelled(self) -> bool:
        return any(r.failed for r in self.reasons)

    @property
    def committed(self) -> bool:
        return not self.cancelled

    def failures(self) -> List[CancellationReason]:
        return [r for r in self.reasons if r.failed]


def validate(operations: List[Operation]):
    if not operations:
        raise TransactionValidationError("Transaction has no operations")
    if len(operations) > MAX_TRANSACT_ITEMS:
        raise TransactionValidationError(
            f"Transaction has {len(operations)} operations, limit is {MAX_TRANSACT_ITEMS}"
        )
    keys = [op.key for op in operations]
    if len(set(keys)) != len(keys):
        raise TransactionValidationError("Transaction touches the same item more than once")


@dataclass
class TransactionBuilder:
    """Zbiera operacje do jednej listy, potem jeden submit."""

    operations: List[Operation] = field(default_factory=list)

    def create(self, item: Dict[str, Any]) -> "TransactionBuilder":
        self.operations.append(Put(item, attribute_not_exists("PK")))
        return self

    def conditional_update(
        self,
        key: Key,
        expression: UpdateExpression,
        condition: Condition,
    ) -> "TransactionBuilder":
        self.operations.append(Update(key, expression, condition))
        return self

    def delete(self, key: Key, condition: Optional[Condition] = None) -> "TransactionBuilder":
        self.operations.append(Delete(key, condition))
        return self

    def __len__(self) -> int:
        return len(self.operations)

    def submit(self, gateway) -> TransactResult:
        return gateway.transact_write(self.operations)
