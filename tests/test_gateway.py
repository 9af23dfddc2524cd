"""Tests for app.data.gateway, expressions and transactions."""

import pytest
from sqlalchemy.exc import IntegrityError

from app.data.expressions import (
    UpdateExpression,
    at_least,
    attribute_exists,
    attribute_not_exists,
    equals,
)
from app.data.gateway import ConditionalCheckFailed, StorageGateway
from app.data.transaction import (
    MAX_TRANSACT_ITEMS,
    ConditionCheck,
    Delete,
    Put,
    ReasonCode,
    TransactionBuilder,
    TransactionValidationError,
    Update,
)


def _item(pk, sk, **attrs):
    return {"PK": pk, "SK": sk, **attrs}


# ------------------------------------------------------------------ #
#  conditions                                                          #
# ------------------------------------------------------------------ #


class TestCondition:
    def test_exists_on_missing_item(self):
        assert attribute_exists("PK").evaluate(None) is False
        assert attribute_not_exists("PK").evaluate(None) is True

    def test_equals(self):
        assert equals("version", 3).evaluate({"version": 3})
        assert not equals("version", 3).evaluate({"version": 4})

    def test_comparison_on_missing_attribute_is_false(self):
        assert not at_least("stock", 0).evaluate({"PK": "x"})

    def test_at_least_boundary(self):
        assert at_least("stock", 3).evaluate({"stock": 3})
        assert not at_least("stock", 3).evaluate({"stock": 2})

    def test_and(self):
        cond = attribute_exists("PK") & equals("version", 1)
        assert cond.evaluate({"PK": "a", "version": 1})
        assert not cond.evaluate({"PK": "a", "version": 2})

    def test_str(self):
        assert str(at_least("stock", 2)) == "stock >= 2"

    def test_update_expression_on_new_item(self):
        new = UpdateExpression(set={"a": 1}, add={"n": 2}).apply(("P", "S"), None)
        assert new == {"PK": "P", "SK": "S", "a": 1, "n": 2}


# ------------------------------------------------------------------ #
#  single item operations                                              #
# ------------------------------------------------------------------ #


class TestSingleItem:
    def test_get_missing(self, gateway):
        assert gateway.get_item("USER#1", "CART#x") is None

    def test_put_then_get(self, gateway):
        gateway.put_item(_item("USER#1", "CART#a", quantity=2))
        assert gateway.get_item("USER#1", "CART#a")["quantity"] == 2

    def test_conditional_put_rejected_leaves_item(self, gateway):
        gateway.put_item(_item("USER#1", "CART#a", quantity=2))

        with pytest.raises(ConditionalCheckFailed):
            gateway.put_item(
                _item("USER#1", "CART#a", quantity=9),
                condition=attribute_not_exists("PK"),
            )

        assert gateway.get_item("USER#1", "CART#a")["quantity"] == 2

    def test_update_returns_new_image(self, gateway):
        gateway.put_item(_item("USER#1", "CART#a", quantity=2, version=1))

        new = gateway.update_item(
            "USER#1",
            "CART#a",
            set={"quantity": 5},
            add={"version": 1},
            condition=equals("version", 1),
        )

        assert new["quantity"] == 5
        assert new["version"] == 2
        assert gateway.get_item("USER#1", "CART#a") == new

    def test_update_with_stale_version_changes_nothing(self, gateway):
        gateway.put_item(_item("USER#1", "CART#a", quantity=2, version=3))

        with pytest.raises(ConditionalCheckFailed):
            gateway.update_item(
                "USER#1", "CART#a", set={"quantity": 5}, add={"version": 1},
                condition=equals("version", 2),
            )

        assert gateway.get_item("USER#1", "CART#a")["version"] == 3

    def test_conditional_update_of_missing_item_does_not_create(self, gateway):
        with pytest.raises(ConditionalCheckFailed):
            gateway.update_item("USER#1", "CART#a", set={"x": 1}, condition=attribute_exists("PK"))
        assert gateway.get_item("USER#1", "CART#a") is None

    def test_delete_is_idempotent(self, gateway):
        gateway.put_item(_item("USER#1", "CART#a"))
        gateway.delete_item("USER#1", "CART#a")
        gateway.delete_item("USER#1", "CART#a")
        assert gateway.get_item("USER#1", "CART#a") is None


class TestQuery:
    @pytest.fixture(autouse=True)
    def _items(self, gateway):
        for sk in ("CART#b", "CART#a", "ORDER#1", "CART#c"):
            gateway.put_item(_item("USER#1", sk))
        gateway.put_item(_item("USER#2", "CART#z"))

    def test_prefix_in_sort_key_order(self, gateway):
        sks = [i["SK"] for i in gateway.query("USER#1", "CART#")]
        assert sks == ["CART#a", "CART#b", "CART#c"]

    def test_descending_with_limit(self, gateway):
        sks = [i["SK"] for i in gateway.query("USER#1", "CART#", ascending=False, limit=2)]
        assert sks == ["CART#c", "CART#b"]

    def test_between(self, gateway):
        sks = [i["SK"] for i in gateway.query("USER#1", sk_between=("CART#b", "CART#c"))]
        assert sks == ["CART#b", "CART#c"]

    def test_whole_partition(self, gateway):
        assert len(gateway.query("USER#1")) == 4


# ------------------------------------------------------------------ #
#  transactions                                                        #
# ------------------------------------------------------------------ #


class TestTransactWrite:
    def test_commits_all_operations(self, gateway):
        gateway.put_item(_item("PRODUCT#p", "METADATA", stock=5))
        gateway.put_item(_item("USER#1", "CART#p", quantity=2))

        result = (
            TransactionBuilder()
            .create(_item("USER#1", "ORDER#o"))
            .conditional_update(
                ("PRODUCT#p", "METADATA"), UpdateExpression(add={"stock": -2}), at_least("stock", 2)
            )
            .delete(("USER#1", "CART#p"))
            .submit(gateway)
        )

        assert result.committed
        assert gateway.get_item("USER#1", "ORDER#o") is not None
        assert gateway.get_item("PRODUCT#p", "METADATA")["stock"] == 3
        assert gateway.get_item("USER#1", "CART#p") is None

    def test_failed_condition_cancels_everything(self, gateway):
        gateway.put_item(_item("PRODUCT#p", "METADATA", stock=1))
        gateway.put_item(_item("USER#1", "CART#p", quantity=2))

        result = gateway.transact_write([
            Put(_item("USER#1", "ORDER#o"), attribute_not_exists("PK")),
            Update(("PRODUCT#p", "METADATA"), UpdateExpression(add={"stock": -2}), at_least("stock", 2)),
            Delete(("USER#1", "CART#p")),
        ])

        assert result.cancelled
        assert [r.code for r in result.reasons] == [
            ReasonCode.NONE,
            ReasonCode.CONDITIONAL_CHECK_FAILED,
            ReasonCode.NONE,
        ]
        assert result.failures()[0].key == ("PRODUCT#p", "METADATA")
        assert gateway.get_item("USER#1", "ORDER#o") is None
        assert gateway.get_item("PRODUCT#p", "METADATA")["stock"] == 1
        assert gateway.get_item("USER#1", "CART#p")["quantity"] == 2

    def test_condition_check_only(self, gateway):
        gateway.put_item(_item("PRODUCT#p", "METADATA", stock=0))
        result = gateway.transact_write([
            ConditionCheck(("PRODUCT#p", "METADATA"), at_least("stock", 1)),
            Put(_item("X", "Y")),
        ])
        assert result.cancelled
        assert gateway.get_item("X", "Y") is None

    def test_duplicate_keys_rejected(self, gateway):
        with pytest.raises(TransactionValidationError):
            gateway.transact_write([Delete(("A", "B")), Delete(("A", "B"))])

    def test_too_many_operations_rejected(self, gateway):
        ops = [Delete(("A", str(i))) for i in range(MAX_TRANSACT_ITEMS + 1)]
        with pytest.raises(TransactionValidationError):
            gateway.transact_write(ops)

    def test_empty_transaction_rejected(self, gateway):
        with pytest.raises(TransactionValidationError):
            gateway.transact_write([])

    def test_integrity_error_reported_as_conflict(self, session_factory):
        class CollidingGateway(StorageGateway):
            def _commit(self, operations):
                raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

        gateway = CollidingGateway(session_factory)
        result = gateway.transact_write([Delete(("A", "B")), Delete(("A", "C"))])

        assert result.cancelled
        assert {r.code for r in result.reasons} == {ReasonCode.TRANSACTION_CONFLICT}

    @pytest.mark.parametrize("orig", [
        Exception("NOT NULL constraint failed: items.data"),
        Exception("FOREIGN KEY constraint failed"),
    ])
    def test_schema_errors_are_not_conflicts(self, session_factory, orig):
        class BrokenSchemaGateway(StorageGateway):
            def _commit(self, operations):
                raise IntegrityError("INSERT", {}, orig)

        gateway = BrokenSchemaGateway(session_factory)

        with pytest.raises(IntegrityError):
            gateway.transact_write([Delete(("A", "B")), Delete(("A", "C"))])
        with pytest.raises(IntegrityError):
            gateway.put_item(_item("A", "B"), condition=attribute_not_exists("PK"))

    def test_concurrent_insert_of_same_key_is_condition_failure(self, session_factory):
        class LateInsertGateway(StorageGateway):
            def _commit(self, operations):
                raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: items.pk, items.sk"))

        with pytest.raises(ConditionalCheckFailed):
            LateInsertGateway(session_factory).put_item(
                _item("A", "B"), condition=attribute_not_exists("PK")
            )
