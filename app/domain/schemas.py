# app/domain/schemas.py
from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class ChangeType(str, Enum):
    IN = "IN"
    OUT = "OUT"
    ADJUST = "ADJUST"


class Product(BaseModel):
    """Produkt - core czyta cene/nazwe i zmienia tylko stock."""

    id: str
    name: str
    price: int = Field(..., ge=0, description="Cena w najmniejszej jednostce waluty")
    stock: int = Field(..., ge=0)
    category: str = ""
    description: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CartLine(BaseModel):
    """Pozycja koszyka. unit_price i product_name to snapshot z chwili dodania."""

    user_id: str
    product_id: str
    product_name: str
    unit_price: int
    quantity: int = Field(..., gt=0)
    version: int = 1
    added_at: datetime
    updated_at: datetime

    @property
    def subtotal(self) -> int:
        return self.unit_price * self.quantity


class Cart(BaseModel):
    items: List[CartLine]
    total_price: int
    item_count: int


class OrderLine(BaseModel):
    order_id: str
    product_id: str
    product_name: str
    unit_price: int
    quantity: int
    subtotal: int


class Order(BaseModel):
    id: str
    user_id: str
    status: OrderStatus
    total_amount: int
    item_count: int
    items: List[OrderLine] = []
    created_at: datetime
    updated_at: datetime


class InventoryLog(BaseModel):
    product_id: str
    change_type: ChangeType
    quantity: int
    previous_stock: int
    new_stock: int
    reason: str = ""
    timestamp: datetime


class AddItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: str = Field(..., min_length=1, description="ID produktu")
    quantity: int = Field(..., gt=0, description="Ilosc produktu (musi byc > 0)")


class UpdateItemIn(BaseModel):
    """Schema dla zmiany ilosci. version = wersja ktora klient widzial."""

    quantity: int = Field(..., gt=0, description="Nowa ilosc (musi byc > 0)")
    version: int = Field(..., ge=1, description="Ostatnio odczytana wersja pozycji")


class StockAdjustIn(BaseModel):
    change_type: ChangeType
    quantity: int = Field(..., ge=0)
    reason: str = Field("", max_length=500)


class MessageOut(BaseModel):
    message: str


class ClearCartOut(BaseModel):
    removed: int
