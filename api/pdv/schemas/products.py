from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class CreateProductRequest(BaseModel):
    name: str = Field(min_length=1, max_length=250)
    description: str | None = None
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    cost_price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    stock_quantity: int = Field(default=0, ge=0)
    min_stock: int | None = Field(default=None, ge=0)
    category: str | None = None
    barcode: str | None = Field(default=None, max_length=120)
    image_url: str | None = None


class UpdateProductRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=250)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    cost_price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    stock_quantity: int | None = Field(default=None, ge=0)
    min_stock: int | None = Field(default=None, ge=0)
    category: str | None = None
    barcode: str | None = Field(default=None, max_length=120)
    image_url: str | None = None


class StockAdjustmentRequest(BaseModel):
    # signed delta; negative values remove stock
    quantity: int


class ProductResponse(BaseModel):
    id: int
    name: str
    description: str | None
    price: float
    cost_price: float | None
    stock_quantity: int
    min_stock: int
    category: str | None
    barcode: str | None
    image_url: str | None
    created_at: datetime
    updated_at: datetime


class ListProductsResponse(BaseModel):
    products: list[ProductResponse]


class LowStockItem(BaseModel):
    id: int
    name: str
    category: str | None
    barcode: str | None
    stock_quantity: int
    min_stock: int
