from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class PaymentMethod(str, Enum):
    credit = "credit"
    debit = "debit"
    pix = "pix"
    cash = "cash"


class SaleItemInput(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    total_price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)


class CreateSaleRequest(BaseModel):
    client_id: int | None = None
    total_amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    discount_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    payment_method: PaymentMethod
    payment_installments: int = Field(default=1, ge=1)
    installment_amount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    notes: str | None = None
    items: list[SaleItemInput] = Field(min_length=1)


class ProductRef(BaseModel):
    id: int
    name: str


class ClientRef(BaseModel):
    id: int
    name: str


class SaleItemResponse(BaseModel):
    id: int
    sale_id: int
    product_id: int
    quantity: int
    unit_price: float
    total_price: float
    product: ProductRef | None = None


class SaleResponse(BaseModel):
    id: int
    client_id: int | None
    total_amount: float
    discount_amount: float
    payment_method: str
    payment_installments: int
    installment_amount: float | None
    status: str
    sale_date: datetime
    notes: str | None
    items: list[SaleItemResponse]
    client: ClientRef | None = None


class ListSalesResponse(BaseModel):
    sales: list[SaleResponse]


class SalesStatsResponse(BaseModel):
    total_sales: int
    total_revenue: float
    average_ticket: float
    sales_this_month: int
    revenue_this_month: float
