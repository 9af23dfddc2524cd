# app/api/__init__.py
from fastapi import FastAPI
from app.api.routers import carts, health, inventory, orders


def create_app() -> FastAPI:
    app = FastAPI(
        title="Cart & Checkout Service",
        version="1.0.0",
    )

    # Include routers
    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(inventory.router)

    return app
