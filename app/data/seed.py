# app/data/seed.py
from app.data.database import SessionLocal, init_db
from app.data.gateway import ConditionalCheckFailed, StorageGateway
from app.domain.schemas import Product
from app.repos.product_repo import ProductRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = [
    Product(id="1", name="Keyboard", price=19999, stock=25, category="peripherals"),
    Product(id="2", name="Mouse", price=4950, stock=100, category="peripherals"),
    Product(id="3", name="Monitor", price=89900, stock=5, category="displays"),
]


def seed(gateway: StorageGateway | None = None) -> int:
    repo = ProductRepo(gateway or StorageGateway(SessionLocal))
    created = 0
    for product in PRODUCTS:
        #not forcing: istniejace produkty zostaja bez zmian
        try:
            repo.create(product)
            created += 1
        except ConditionalCheckFailed:
            logger.info(f"Product {product.id} already exists, skipping")
    return created


if __name__ == "__main__":
    init_db()
    logger.info(f"Seeded {seed()} products")
