"""Sale recording and read-back.

``record_sale`` is the only place a sale is written. The header, its items
and the matching stock debits either all commit together or not at all.
"""

import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pdv.core.errors import (
    ClientNotFound,
    InvalidSale,
    LineTotalMismatch,
    PDVError,
    PersistenceFailure,
    SaleNotFound,
    SaleTotalMismatch,
)
from pdv.db.sql import datetime_params, id_list_param, money_params
from pdv.schemas.sales import CreateSaleRequest
from pdv.services.inventory import decrement_stock

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

SALE_COLUMNS = """
    s.id,
    s.client_id,
    s.total_amount,
    s.discount_amount,
    s.payment_method,
    s.payment_installments,
    s.installment_amount,
    s.status,
    s.sale_date,
    s.notes,
    c.name AS client_name
"""

ITEM_COLUMNS = """
    si.id,
    si.sale_id,
    si.product_id,
    si.quantity,
    si.unit_price,
    si.total_price,
    p.name AS product_name
"""


def check_totals(payload: CreateSaleRequest, verify_header: bool = True) -> None:
    """Validate line totals and, optionally, the header total against them."""
    items_total = Decimal("0")

    for index, item in enumerate(payload.items):
        expected = (item.unit_price * item.quantity).quantize(CENTS)
        if item.total_price.quantize(CENTS) != expected:
            raise LineTotalMismatch(index, expected, item.total_price)
        items_total += expected

    if payload.discount_amount > items_total:
        raise InvalidSale(
            f"discount_amount {payload.discount_amount} exceeds the items total {items_total}"
        )

    if verify_header:
        expected_total = (items_total - payload.discount_amount).quantize(CENTS)
        if payload.total_amount.quantize(CENTS) != expected_total:
            raise SaleTotalMismatch(expected_total, payload.total_amount)


def _bound_transaction(db: Session, statement_timeout_ms: int | None) -> None:
    if not statement_timeout_ms or db.get_bind().dialect.name != "postgresql":
        return
    # SET LOCAL takes no bind parameters; the value is forced to int
    db.execute(text(f"SET LOCAL statement_timeout = {int(statement_timeout_ms)}"))


def _ensure_client(db: Session, client_id: int) -> None:
    client = db.execute(
        text("SELECT id FROM clients WHERE id = :client_id"),
        {"client_id": client_id},
    ).first()
    if not client:
        raise ClientNotFound(client_id)


def record_sale(
    db: Session,
    payload: CreateSaleRequest,
    *,
    verify_totals: bool = True,
    statement_timeout_ms: int | None = None,
) -> dict[str, Any]:
    """Persist a sale, its items and the stock debits as one unit of work.

    Lines are processed in the order given. The first line that references a
    missing product or asks for more than is on hand aborts the whole sale
    and nothing is written.
    """
    check_totals(payload, verify_header=verify_totals)

    try:
        _bound_transaction(db, statement_timeout_ms)

        if payload.client_id is not None:
            _ensure_client(db, payload.client_id)

        sale = db.execute(
            text(
                """
                INSERT INTO sales (
                  client_id,
                  total_amount,
                  discount_amount,
                  payment_method,
                  payment_installments,
                  installment_amount,
                  status,
                  sale_date,
                  notes
                )
                VALUES (
                  :client_id,
                  :total_amount,
                  :discount_amount,
                  :payment_method,
                  :payment_installments,
                  :installment_amount,
                  'completed',
                  CURRENT_TIMESTAMP,
                  :notes
                )
                RETURNING
                  id,
                  client_id,
                  total_amount,
                  discount_amount,
                  payment_method,
                  payment_installments,
                  installment_amount,
                  status,
                  sale_date,
                  notes
                """
            ).bindparams(*money_params("total_amount", "discount_amount", "installment_amount")),
            {
                "client_id": payload.client_id,
                "total_amount": payload.total_amount,
                "discount_amount": payload.discount_amount,
                "payment_method": payload.payment_method.value,
                "payment_installments": payload.payment_installments,
                "installment_amount": payload.installment_amount,
                "notes": payload.notes,
            },
        ).mappings().first()

        if not sale:
            raise PersistenceFailure("Failed to create sale")

        items: list[dict[str, Any]] = []
        for item in payload.items:
            decrement_stock(db, item.product_id, item.quantity)

            sale_item = db.execute(
                text(
                    """
                    INSERT INTO sale_items (
                      sale_id,
                      product_id,
                      quantity,
                      unit_price,
                      total_price
                    )
                    VALUES (
                      :sale_id,
                      :product_id,
                      :quantity,
                      :unit_price,
                      :total_price
                    )
                    RETURNING id, sale_id, product_id, quantity, unit_price, total_price
                    """
                ).bindparams(*money_params("unit_price", "total_price")),
                {
                    "sale_id": sale["id"],
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "total_price": item.total_price,
                },
            ).mappings().first()

            if not sale_item:
                raise PersistenceFailure("Failed to create sale item")

            items.append(dict(sale_item))

        db.commit()
    except PDVError as exc:
        db.rollback()
        logger.warning("Sale rejected: %s", exc.message)
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Sale could not be persisted")
        raise PersistenceFailure(f"Sale could not be persisted: {exc.__class__.__name__}") from exc

    logger.info(
        "Recorded sale %s with %d item(s), total %s",
        sale["id"],
        len(items),
        payload.total_amount,
    )
    return get_sale(db, sale["id"])


def _format_sale(row: Any, items: list[dict[str, Any]]) -> dict[str, Any]:
    sale = dict(row)
    client_name = sale.pop("client_name", None)
    sale["client"] = {"id": sale["client_id"], "name": client_name} if sale["client_id"] else None
    sale["items"] = items
    return sale


def _format_item(row: Any) -> dict[str, Any]:
    item = dict(row)
    product_name = item.pop("product_name", None)
    item["product"] = {"id": item["product_id"], "name": product_name} if product_name is not None else None
    return item


def _items_by_sale(db: Session, sale_ids: list[int]) -> dict[int, list[dict[str, Any]]]:
    grouped: dict[int, list[dict[str, Any]]] = {sale_id: [] for sale_id in sale_ids}
    if not sale_ids:
        return grouped

    rows = db.execute(
        text(
            f"""
            SELECT {ITEM_COLUMNS}
            FROM sale_items si
            LEFT JOIN products p ON p.id = si.product_id
            WHERE si.sale_id IN :sale_ids
            ORDER BY si.sale_id, si.id
            """
        ).bindparams(id_list_param("sale_ids")),
        {"sale_ids": sale_ids},
    ).mappings().all()

    for row in rows:
        grouped[row["sale_id"]].append(_format_item(row))
    return grouped


def get_sale(db: Session, sale_id: int) -> dict[str, Any]:
    row = db.execute(
        text(
            f"""
            SELECT {SALE_COLUMNS}
            FROM sales s
            LEFT JOIN clients c ON c.id = s.client_id
            WHERE s.id = :sale_id
            """
        ),
        {"sale_id": sale_id},
    ).mappings().first()

    if not row:
        raise SaleNotFound(sale_id)

    return _format_sale(row, _items_by_sale(db, [sale_id])[sale_id])


def day_bounds(start_date: date | None, end_date: date | None) -> tuple[datetime | None, datetime | None]:
    """Turn an inclusive date range into a half-open datetime range."""
    start = datetime.combine(start_date, time.min) if start_date else None
    end = datetime.combine(end_date + timedelta(days=1), time.min) if end_date else None
    return start, end


def list_sales(
    db: Session,
    start_date: date | None = None,
    end_date: date | None = None,
    client_id: int | None = None,
) -> list[dict[str, Any]]:
    start, end = day_bounds(start_date, end_date)

    rows = db.execute(
        text(
            f"""
            SELECT {SALE_COLUMNS}
            FROM sales s
            LEFT JOIN clients c ON c.id = s.client_id
            WHERE (:start IS NULL OR s.sale_date >= :start)
              AND (:end IS NULL OR s.sale_date < :end)
              AND (:client_id IS NULL OR s.client_id = :client_id)
            ORDER BY s.sale_date DESC, s.id DESC
            """
        ).bindparams(*datetime_params("start", "end")),
        {"start": start, "end": end, "client_id": client_id},
    ).mappings().all()

    items = _items_by_sale(db, [row["id"] for row in rows])
    return [_format_sale(row, items[row["id"]]) for row in rows]
