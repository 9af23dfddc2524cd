# app/domain/errors.py
"""
Bledy domenowe. Warstwa HTTP mapuje je na kody:
ValueError -> 400, LookupError -> 404, konflikty (RuntimeError) -> 409.
"""


class InvalidQuantity(ValueError):
    def __init__(self, message: str = "Quantity must be greater than 0"):
        super().__init__(message)


class InvalidChangeType(ValueError):
    def __init__(self, change_type: str):
        self.change_type = change_type
        super().__init__(f"Unknown stock change type: {change_type}")


class InsufficientStock(ValueError):
    def __init__(self, product_ids=(), message: str = "Insufficient stock"):
        self.product_ids = list(product_ids)
        if self.product_ids:
            message = f"{message} for products: {', '.join(self.product_ids)}"
        super().__init__(message)


class InvalidDateRange(ValueError):
    def __init__(self, start, end):
        self.start = start
        self.end = end
        super().__init__(f"Invalid date range: start={start}, end={end} (both required, start <= end)")


class EmptyCart(ValueError):
    def __init__(self):
        super().__init__("Cart is empty")


class OptimisticLockExhausted(RuntimeError):
    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Failed to update after {attempts} attempts due to concurrent modifications, please retry"
        )


class TransactionConflict(RuntimeError):
    def __init__(self, message: str = "Transaction conflict, please retry"):
        super().__init__(message)


class TransactionCancelled(Exception):
    """Transakcja anulowana z innego powodu niz sklasyfikowane wyzej."""

    def __init__(self, reasons):
        self.reasons = list(reasons)
        super().__init__(
            "Transaction cancelled: "
            + ", ".join(f"{r.key[0]}/{r.key[1]}={r.code.value}" for r in self.reasons if r.failed)
        )


class OrderNotFound(LookupError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class CartItemNotFound(LookupError):
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product {product_id} is not in the cart")


class ProductNotFound(LookupError):
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")
