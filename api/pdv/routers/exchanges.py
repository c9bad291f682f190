import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import text
from sqlalchemy.orm import Session

from pdv.core.errors import ExchangeNotFound, InvalidExchange, InvalidStatusTransition
from pdv.db.session import get_db
from pdv.schemas.exchanges import (
    CreateExchangeRequest,
    ExchangeResponse,
    ExchangeStatus,
    ListExchangesResponse,
    UpdateExchangeRequest,
)
from pdv.services.deps import get_product

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exchanges", tags=["exchanges"])

# exchanges never touch stock; completing one is a bookkeeping step only
ALLOWED_TRANSITIONS = {
    ExchangeStatus.pending: {ExchangeStatus.completed, ExchangeStatus.cancelled},
    ExchangeStatus.completed: set(),
    ExchangeStatus.cancelled: set(),
}

EXCHANGE_QUERY = """
    SELECT
      e.id,
      e.sale_id,
      e.product_id,
      e.reason,
      e.description,
      e.new_product_id,
      e.status,
      e.exchange_date,
      s.sale_date,
      p.name AS product_name,
      np.name AS new_product_name
    FROM exchanges e
    LEFT JOIN sales s ON s.id = e.sale_id
    LEFT JOIN products p ON p.id = e.product_id
    LEFT JOIN products np ON np.id = e.new_product_id
"""


def _format_exchange(row: Any) -> ExchangeResponse:
    exchange = dict(row)
    sale_date = exchange.pop("sale_date")
    product_name = exchange.pop("product_name")
    new_product_name = exchange.pop("new_product_name")

    return ExchangeResponse(
        **exchange,
        sale={"id": exchange["sale_id"], "sale_date": sale_date} if sale_date else None,
        product={"id": exchange["product_id"], "name": product_name} if product_name else None,
        new_product=(
            {"id": exchange["new_product_id"], "name": new_product_name}
            if exchange["new_product_id"] and new_product_name
            else None
        ),
    )


def _fetch_exchange(db: Session, exchange_id: int) -> ExchangeResponse:
    row = db.execute(
        text(f"{EXCHANGE_QUERY} WHERE e.id = :id"),
        {"id": exchange_id},
    ).mappings().first()

    if not row:
        raise ExchangeNotFound(exchange_id)
    return _format_exchange(row)


@router.post("", response_model=ExchangeResponse, status_code=status.HTTP_201_CREATED)
def create_exchange(payload: CreateExchangeRequest, db: Session = Depends(get_db)):
    sale_item = db.execute(
        text(
            """
            SELECT si.id
            FROM sale_items si
            WHERE si.sale_id = :sale_id AND si.product_id = :product_id
            LIMIT 1
            """
        ),
        {"sale_id": payload.sale_id, "product_id": payload.product_id},
    ).first()

    if not sale_item:
        raise InvalidExchange(
            "Product not found in the specified sale",
            payload={"sale_id": payload.sale_id, "product_id": payload.product_id},
        )

    if payload.new_product_id is not None:
        get_product(db, payload.new_product_id)

    created = db.execute(
        text(
            """
            INSERT INTO exchanges (
              sale_id,
              product_id,
              reason,
              description,
              new_product_id,
              status,
              exchange_date
            )
            VALUES (
              :sale_id,
              :product_id,
              :reason,
              :description,
              :new_product_id,
              'pending',
              CURRENT_TIMESTAMP
            )
            RETURNING id
            """
        ),
        payload.model_dump(),
    ).mappings().first()
    db.commit()

    logger.info("Opened exchange %s for sale %s", created["id"], payload.sale_id)
    return _fetch_exchange(db, created["id"])


@router.get("", response_model=ListExchangesResponse)
def list_exchanges(
    status_filter: ExchangeStatus | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
):
    rows = db.execute(
        text(
            f"""
            {EXCHANGE_QUERY}
            WHERE :status IS NULL OR e.status = :status
            ORDER BY e.exchange_date DESC, e.id DESC
            """
        ),
        {"status": status_filter.value if status_filter else None},
    ).mappings().all()

    return ListExchangesResponse(exchanges=[_format_exchange(row) for row in rows])


@router.get("/{exchange_id}", response_model=ExchangeResponse)
def read_exchange(exchange_id: int, db: Session = Depends(get_db)):
    return _fetch_exchange(db, exchange_id)


@router.put("/{exchange_id}", response_model=ExchangeResponse)
def update_exchange(exchange_id: int, payload: UpdateExchangeRequest, db: Session = Depends(get_db)):
    current = _fetch_exchange(db, exchange_id)

    if payload.status is not None and payload.status != current.status:
        if payload.status not in ALLOWED_TRANSITIONS[current.status]:
            raise InvalidStatusTransition(current.status.value, payload.status.value)

    if payload.new_product_id is not None:
        get_product(db, payload.new_product_id)

    # a status write only lands on the status the transition was checked against
    result = db.execute(
        text(
            """
            UPDATE exchanges
            SET
              status = COALESCE(:status, status),
              new_product_id = COALESCE(:new_product_id, new_product_id),
              description = COALESCE(:description, description)
            WHERE id = :id
              AND (:status IS NULL OR status = :current_status)
            """
        ),
        {
            "id": exchange_id,
            "status": payload.status.value if payload.status else None,
            "current_status": current.status.value,
            "new_product_id": payload.new_product_id,
            "description": payload.description,
        },
    )

    if not result.rowcount:
        db.rollback()
        latest = _fetch_exchange(db, exchange_id)
        logger.warning(
            "Exchange %s changed to %s before it could move to %s",
            exchange_id,
            latest.status.value,
            payload.status.value,
        )
        raise InvalidStatusTransition(latest.status.value, payload.status.value)

    db.commit()

    if payload.status is not None and payload.status != current.status:
        logger.info("Exchange %s moved from %s to %s", exchange_id, current.status.value, payload.status.value)

    return _fetch_exchange(db, exchange_id)


@router.delete("/{exchange_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_exchange(exchange_id: int, db: Session = Depends(get_db)):
    result = db.execute(text("DELETE FROM exchanges WHERE id = :id"), {"id": exchange_id})
    db.commit()

    if not result.rowcount:
        raise ExchangeNotFound(exchange_id)
