from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ExchangeStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    cancelled = "cancelled"


class CreateExchangeRequest(BaseModel):
    sale_id: int
    product_id: int
    reason: str = Field(min_length=1)
    description: str | None = None
    new_product_id: int | None = None


class UpdateExchangeRequest(BaseModel):
    status: ExchangeStatus | None = None
    new_product_id: int | None = None
    description: str | None = None


class ExchangeSaleRef(BaseModel):
    id: int
    sale_date: datetime


class ExchangeProductRef(BaseModel):
    id: int
    name: str


class ExchangeResponse(BaseModel):
    id: int
    sale_id: int
    product_id: int
    reason: str
    description: str | None
    new_product_id: int | None
    status: ExchangeStatus
    exchange_date: datetime
    sale: ExchangeSaleRef | None = None
    product: ExchangeProductRef | None = None
    new_product: ExchangeProductRef | None = None


class ListExchangesResponse(BaseModel):
    exchanges: list[ExchangeResponse]
