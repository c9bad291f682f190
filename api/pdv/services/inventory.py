"""Stock mutations.

Every change to ``products.stock_quantity`` goes through ``adjust_stock`` so
the quantity can never go negative, whether it is a sale debit or a manual
restock. The guard lives in the UPDATE itself, which keeps it safe when two
registers sell the same product at the same time.
"""

import logging

from sqlalchemy import text
from sqlalchemy.orm import Session

from pdv.core.errors import InsufficientStock, ProductNotFound

logger = logging.getLogger(__name__)


def adjust_stock(db: Session, product_id: int, delta: int) -> int:
    """Apply a signed stock delta and return the new quantity.

    Raises ``ProductNotFound`` when the product is absent and
    ``InsufficientStock`` when the delta would take stock below zero. The
    caller owns the transaction.
    """
    row = db.execute(
        text(
            """
            UPDATE products
            SET stock_quantity = stock_quantity + :delta,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = :product_id
              AND stock_quantity + :delta >= 0
            RETURNING stock_quantity
            """
        ),
        {"product_id": product_id, "delta": delta},
    ).mappings().first()

    if row:
        return int(row["stock_quantity"])

    current = db.execute(
        text("SELECT stock_quantity FROM products WHERE id = :product_id"),
        {"product_id": product_id},
    ).mappings().first()

    if not current:
        raise ProductNotFound(product_id)

    available = int(current["stock_quantity"])
    logger.debug(
        "Rejected stock change of %s for product %s: only %s available",
        delta,
        product_id,
        available,
    )
    raise InsufficientStock(product_id, requested=-delta, available=available)


def decrement_stock(db: Session, product_id: int, quantity: int) -> int:
    return adjust_stock(db, product_id, -quantity)
