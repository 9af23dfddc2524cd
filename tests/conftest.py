import os

#przed importem app - silnik z settings nie moze wskazywac na postgresa
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.api import create_app
from app.api.deps import get_gateway
from app.data.database import engine_options, init_db
from app.data.gateway import StorageGateway
from app.domain.schemas import Product
from app.repos.product_repo import ProductRepo
from app.services.cart_service import CartService
from app.services.inventory_service import InventoryService
from app.services.order_service import OrderService


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite://", **engine_options("sqlite://"))
    init_db(engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def gateway(session_factory):
    return StorageGateway(session_factory)


@pytest.fixture
def make_product(gateway):
    repo = ProductRepo(gateway)

    def _make(product_id="p1", price=1000, stock=10, name=None):
        return repo.create(
            Product(id=product_id, name=name or f"Product {product_id}", price=price, stock=stock)
        )

    return _make


@pytest.fixture
def stock_of(gateway):
    def _stock(product_id):
        return ProductRepo(gateway).get_by_id(product_id).stock

    return _stock


@pytest.fixture
def cart_service(gateway):
    return CartService(gateway)


@pytest.fixture
def order_service(gateway):
    return OrderService(gateway)


@pytest.fixture
def inventory_service(gateway):
    return InventoryService(gateway)


@pytest.fixture
def app(gateway):
    app = create_app()
    app.dependency_overrides[get_gateway] = lambda: gateway
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
