from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, status
from sqlalchemy import text
from sqlalchemy.orm import Session

from pdv.core.config import Settings, get_settings
from pdv.db.session import get_db
from pdv.db.sql import datetime_params
from pdv.schemas.sales import (
    CreateSaleRequest,
    ListSalesResponse,
    SaleResponse,
    SalesStatsResponse,
)
from pdv.services.sale_recorder import get_sale, list_sales, record_sale

router = APIRouter(prefix="/sales", tags=["sales"])


@router.post("", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
def create_sale(
    payload: CreateSaleRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    sale = record_sale(
        db,
        payload,
        verify_totals=settings.verify_sale_totals,
        statement_timeout_ms=settings.sale_statement_timeout_ms,
    )
    return SaleResponse(**sale)


@router.get("", response_model=ListSalesResponse)
def read_sales(
    start_date: date | None = None,
    end_date: date | None = None,
    client_id: int | None = None,
    db: Session = Depends(get_db),
):
    sales = list_sales(db, start_date=start_date, end_date=end_date, client_id=client_id)
    return ListSalesResponse(sales=[SaleResponse(**sale) for sale in sales])


@router.get("/stats", response_model=SalesStatsResponse)
def sales_stats(db: Session = Depends(get_db)):
    now = datetime.now(timezone.utc)
    start_of_month = datetime(now.year, now.month, 1)

    stats = db.execute(
        text(
            """
            SELECT
              COUNT(*) AS total_sales,
              COALESCE(SUM(total_amount), 0) AS total_revenue,
              COUNT(CASE WHEN sale_date >= :start_of_month THEN 1 END) AS sales_this_month,
              COALESCE(SUM(CASE WHEN sale_date >= :start_of_month THEN total_amount ELSE 0 END), 0)
                AS revenue_this_month
            FROM sales
            WHERE status = 'completed'
            """
        ).bindparams(*datetime_params("start_of_month")),
        {"start_of_month": start_of_month},
    ).mappings().first()

    total_sales = int(stats["total_sales"])
    total_revenue = float(stats["total_revenue"])

    return SalesStatsResponse(
        total_sales=total_sales,
        total_revenue=total_revenue,
        average_ticket=total_revenue / total_sales if total_sales else 0.0,
        sales_this_month=int(stats["sales_this_month"]),
        revenue_this_month=float(stats["revenue_this_month"]),
    )


@router.get("/{sale_id}", response_model=SaleResponse)
def read_sale(sale_id: int, db: Session = Depends(get_db)):
    return SaleResponse(**get_sale(db, sale_id))
