from pydantic import BaseModel


class TopProduct(BaseModel):
    product_id: int
    name: str | None
    quantity: int
    revenue: float


class PaymentMethodSummary(BaseModel):
    method: str
    count: int
    revenue: float


class SalesReport(BaseModel):
    total_sales: int
    total_revenue: float
    total_discount: float
    average_ticket: float
    top_products: list[TopProduct]
    sales_by_payment_method: list[PaymentMethodSummary]


class CategorySummary(BaseModel):
    category: str
    count: int
    total_value: float


class InventoryReport(BaseModel):
    total_products: int
    total_stock_units: int
    inventory_value: float
    low_stock_count: int
    categories: list[CategorySummary]
