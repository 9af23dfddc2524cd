# app/services/cart_service.py
from app.data.gateway import StorageGateway
from app.domain.errors import (
    CartItemNotFound,
    InsufficientStock,
    InvalidQuantity,
    OptimisticLockExhausted,
)
from app.domain.schemas import Cart, CartLine
from app.repos.cart_repo import CartLineExists, CartRepo, VersionMismatch
from app.repos.product_repo import ProductRepo
from app.utils.timeutil import utcnow
from app.utils.logging import get_logger

logger = get_logger(__name__)

MAX_RETRIES = 3


class CartService:
    """
    Use case'y koszyka.
    query (get_cart) tylko odczyt, commands (add, update, remove, clear) zmieniaja stan.

    Sprawdzenie stocku tutaj jest tylko informacyjne - nic nie rezerwuje.
    Stock schodzi dopiero przy zamowieniu (OrderService).
    """

    def __init__(self, gateway: StorageGateway, max_retries: int = MAX_RETRIES):
        self.repo = CartRepo(gateway)
        self.products = ProductRepo(gateway)
        self.max_retries = max_retries

    #query - odczyt
    def get_cart(self, user_id: str) -> Cart:
        items = self.repo.get_by_user(user_id)
        return Cart(
            items=items,
            total_price=sum(i.subtotal for i in items),
            item_count=len(items),
        )

    #commands
    def add_item(self, user_id: str, product_id: str, quantity: int) -> CartLine:
        if quantity <= 0:
            raise InvalidQuantity()

        product = self.products.get_by_id(product_id)
        existing = self.repo.get_item(user_id, product_id)

        #ilosc po dodaniu (razem z tym co juz jest w koszyku)
        total = quantity + (existing.quantity if existing else 0)
        if product.stock < total:
            logger.info(
                f"Product {product_id}: stock {product.stock} < requested {total} (user {user_id})"
            )
            raise InsufficientStock([product_id])

        if existing:
            logger.info(
                f"Product {product_id} already in cart of user {user_id}, "
                f"quantity {existing.quantity} -> {total}"
            )
            return self._update_with_retry(user_id, product_id, total, existing.version)

        now = utcnow()
        #cena i nazwa to snapshot - pozniej juz nie czytamy produktu
        line = CartLine(
            user_id=user_id,
            product_id=product_id,
            product_name=product.name,
            unit_price=product.price,
            quantity=quantity,
            version=1,
            added_at=now,
            updated_at=now,
        )

        try:
            created = self.repo.add(line)
        except CartLineExists:
            #inne zadanie dodalo ten produkt miedzy odczytem a zapisem
            logger.warning(f"Concurrent add of product {product_id} for user {user_id}")
            raise OptimisticLockExhausted(1)

        logger.info(f"Added product {product_id} x{quantity} to cart of user {user_id}")
        return created

    def update_quantity(
        self,
        user_id: str,
        product_id: str,
        quantity: int,
        expected_version: int,
    ) -> CartLine:
        if quantity <= 0:
            raise InvalidQuantity()

        product = self.products.get_by_id(product_id)
        if product.stock < quantity:
            raise InsufficientStock([product_id])

        return self._update_with_retry(user_id, product_id, quantity, expected_version)

    def remove_item(self, user_id: str, product_id: str) -> None:
        logger.info(f"Removing product {product_id} from cart of user {user_id}")
        self.repo.delete(user_id, product_id)

    def clear_cart(self, user_id: str) -> int:
        removed = self.repo.clear(user_id)
        logger.info(f"Cleared {removed} lines from cart of user {user_id}")
        return removed

    def _update_with_retry(
        self,
        user_id: str,
        product_id: str,
        quantity: int,
        version: int,
    ) -> CartLine:
        """
        1. zapis z wersja ktora mamy
        2. VersionMismatch -> ktos byl pierwszy, czytamy aktualna wersje
        3. ponawiamy z ta sama iloscia, max self.max_retries prob
        """
        current_version = version

        for attempt in range(1, self.max_retries + 1):
            try:
                line = self.repo.update_quantity(user_id, product_id, quantity, current_version)
                logger.info(
                    f"Cart line {user_id}/{product_id} updated to quantity {quantity}, "
                    f"version {line.version}"
                )
                return line
            except VersionMismatch:
                logger.warning(
                    f"Version conflict on cart line {user_id}/{product_id} "
                    f"(attempt {attempt}/{self.max_retries}, version {current_version})"
                )

            latest = self.repo.get_item(user_id, product_id)
            if latest is None:
                raise CartItemNotFound(product_id)
            current_version = latest.version

        raise OptimisticLockExhausted(self.max_retries)
