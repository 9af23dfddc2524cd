# app/repos/product_repo.py
from app.data.expressions import attribute_not_exists
from app.data.gateway import StorageGateway
from app.domain.errors import ProductNotFound
from app.domain.keys import product_key
from app.domain.schemas import Product
from app.utils.timeutil import parse_iso, to_iso, utcnow


def product_to_record(product: Product) -> dict:
    pk, sk = product_key(product.id)
    return {
        "PK": pk,
        "SK": sk,
        "GSI1PK": "PRODUCT",
        "GSI1SK": f"CATEGORY#{product.category}#{product.id}",
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "price": product.price,
        "category": product.category,
        "stock": product.stock,
        "createdAt": to_iso(product.created_at),
        "updatedAt": to_iso(product.updated_at),
    }


def record_to_product(rec: dict) -> Product:
    return Product(
        id=rec["id"],
        name=rec["name"],
        description=rec.get("description", ""),
        price=rec["price"],
        category=rec.get("category", ""),
        stock=rec["stock"],
        created_at=parse_iso(rec.get("createdAt")),
        updated_at=parse_iso(rec.get("updatedAt")),
    )


class ProductRepo:
    def __init__(self, gateway: StorageGateway):
        self.gateway = gateway

    def get_by_id(self, product_id: str) -> Product:
        rec = self.gateway.get_item(*product_key(product_id))
        if rec is None:
            raise ProductNotFound(product_id)
        return record_to_product(rec)

    def create(self, product: Product) -> Product:
        """Zapis nowego produktu (seed / testy). Nie nadpisuje istniejacego."""
        now = utcnow()
        product = product.model_copy(
            update={
                "created_at": product.created_at or now,
                "updated_at": product.updated_at or now,
            }
        )
        self.gateway.put_item(product_to_record(product), condition=attribute_not_exists("PK"))
        return product
