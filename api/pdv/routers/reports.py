from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from pdv.db.session import get_db
from pdv.db.sql import datetime_params
from pdv.schemas.reports import (
    CategorySummary,
    InventoryReport,
    PaymentMethodSummary,
    SalesReport,
    TopProduct,
)
from pdv.services.sale_recorder import day_bounds

router = APIRouter(prefix="/reports", tags=["reports"])

TOP_PRODUCTS_LIMIT = 10

SALES_PERIOD_FILTER = """
    s.status = 'completed'
    AND (:start IS NULL OR s.sale_date >= :start)
    AND (:end IS NULL OR s.sale_date < :end)
"""


@router.get("/sales", response_model=SalesReport)
def sales_report(
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
):
    start, end = day_bounds(start_date, end_date)
    params = {"start": start, "end": end}

    totals = db.execute(
        text(
            f"""
            SELECT
              COUNT(*) AS total_sales,
              COALESCE(SUM(s.total_amount), 0) AS total_revenue,
              COALESCE(SUM(s.discount_amount), 0) AS total_discount
            FROM sales s
            WHERE {SALES_PERIOD_FILTER}
            """
        ).bindparams(*datetime_params("start", "end")),
        params,
    ).mappings().first()

    top_products = db.execute(
        text(
            f"""
            SELECT
              si.product_id,
              p.name,
              SUM(si.quantity) AS quantity,
              SUM(si.total_price) AS revenue
            FROM sale_items si
            JOIN sales s ON s.id = si.sale_id
            LEFT JOIN products p ON p.id = si.product_id
            WHERE {SALES_PERIOD_FILTER}
            GROUP BY si.product_id, p.name
            ORDER BY revenue DESC, si.product_id ASC
            LIMIT :limit
            """
        ).bindparams(*datetime_params("start", "end")),
        {**params, "limit": TOP_PRODUCTS_LIMIT},
    ).mappings().all()

    by_method = db.execute(
        text(
            f"""
            SELECT
              s.payment_method AS method,
              COUNT(*) AS count,
              COALESCE(SUM(s.total_amount), 0) AS revenue
            FROM sales s
            WHERE {SALES_PERIOD_FILTER}
            GROUP BY s.payment_method
            ORDER BY revenue DESC, s.payment_method ASC
            """
        ).bindparams(*datetime_params("start", "end")),
        params,
    ).mappings().all()

    total_sales = int(totals["total_sales"])
    total_revenue = float(totals["total_revenue"])

    return SalesReport(
        total_sales=total_sales,
        total_revenue=total_revenue,
        total_discount=float(totals["total_discount"]),
        average_ticket=total_revenue / total_sales if total_sales else 0.0,
        top_products=[
            TopProduct(
                product_id=row["product_id"],
                name=row["name"],
                quantity=int(row["quantity"]),
                revenue=float(row["revenue"]),
            )
            for row in top_products
        ],
        sales_by_payment_method=[
            PaymentMethodSummary(
                method=row["method"],
                count=int(row["count"]),
                revenue=float(row["revenue"]),
            )
            for row in by_method
        ],
    )


@router.get("/inventory", response_model=InventoryReport)
def inventory_report(db: Session = Depends(get_db)):
    totals = db.execute(
        text(
            """
            SELECT
              COUNT(*) AS total_products,
              COALESCE(SUM(stock_quantity), 0) AS total_stock_units,
              COALESCE(SUM(price * stock_quantity), 0) AS inventory_value,
              COUNT(CASE WHEN stock_quantity <= min_stock THEN 1 END) AS low_stock_count
            FROM products
            """
        )
    ).mappings().first()

    categories = db.execute(
        text(
            """
            SELECT
              COALESCE(category, 'Uncategorized') AS category,
              COUNT(*) AS count,
              COALESCE(SUM(price * stock_quantity), 0) AS total_value
            FROM products
            GROUP BY COALESCE(category, 'Uncategorized')
            ORDER BY total_value DESC, category ASC
            """
        )
    ).mappings().all()

    return InventoryReport(
        total_products=int(totals["total_products"]),
        total_stock_units=int(totals["total_stock_units"]),
        inventory_value=float(totals["inventory_value"]),
        low_stock_count=int(totals["low_stock_count"]),
        categories=[
            CategorySummary(
                category=row["category"],
                count=int(row["count"]),
                total_value=float(row["total_value"]),
            )
            for row in categories
        ],
    )
