import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pdv.core.config import Settings, get_settings
from pdv.core.errors import Conflict, PDVError, ProductInUse, ProductNotFound
from pdv.db.session import get_db
from pdv.db.sql import money_params
from pdv.schemas.products import (
    CreateProductRequest,
    ListProductsResponse,
    LowStockItem,
    ProductResponse,
    StockAdjustmentRequest,
    UpdateProductRequest,
)
from pdv.services.deps import PRODUCT_COLUMNS, get_product
from pdv.services.inventory import adjust_stock

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


def _barcode_conflict(db: Session, exc: IntegrityError, barcode: str | None) -> Conflict:
    db.rollback()
    logger.info("Rejected product write: %s", exc.orig)
    return Conflict(f"Barcode already registered: {barcode}", payload={"barcode": barcode})


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: CreateProductRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    min_stock = payload.min_stock if payload.min_stock is not None else settings.low_stock_default

    try:
        product = db.execute(
            text(
                f"""
                INSERT INTO products (
                  name,
                  description,
                  price,
                  cost_price,
                  stock_quantity,
                  min_stock,
                  category,
                  barcode,
                  image_url,
                  created_at,
                  updated_at
                )
                VALUES (
                  :name,
                  :description,
                  :price,
                  :cost_price,
                  :stock_quantity,
                  :min_stock,
                  :category,
                  :barcode,
                  :image_url,
                  CURRENT_TIMESTAMP,
                  CURRENT_TIMESTAMP
                )
                RETURNING {PRODUCT_COLUMNS}
                """
            ).bindparams(*money_params("price", "cost_price")),
            {
                "name": payload.name,
                "description": payload.description,
                "price": payload.price,
                "cost_price": payload.cost_price,
                "stock_quantity": payload.stock_quantity,
                "min_stock": min_stock,
                "category": payload.category,
                "barcode": payload.barcode,
                "image_url": payload.image_url,
            },
        ).mappings().first()
        db.commit()
    except IntegrityError as exc:
        raise _barcode_conflict(db, exc, payload.barcode)

    return ProductResponse(**product)


@router.get("", response_model=ListProductsResponse)
def list_products(
    category: str | None = None,
    search: str | None = None,
    db: Session = Depends(get_db),
):
    pattern = f"%{search.lower()}%" if search else None
    rows = db.execute(
        text(
            f"""
            SELECT {PRODUCT_COLUMNS}
            FROM products
            WHERE (:category IS NULL OR category = :category)
              AND (
                :pattern IS NULL
                OR LOWER(name) LIKE :pattern
                OR LOWER(COALESCE(barcode, '')) LIKE :pattern
              )
            ORDER BY name ASC, id ASC
            """
        ),
        {"category": category, "pattern": pattern},
    ).mappings().all()

    return ListProductsResponse(products=[ProductResponse(**row) for row in rows])


@router.get("/low-stock", response_model=list[LowStockItem])
def low_stock_products(db: Session = Depends(get_db)):
    rows = db.execute(
        text(
            """
            SELECT id, name, category, barcode, stock_quantity, min_stock
            FROM products
            WHERE stock_quantity <= min_stock
            ORDER BY stock_quantity ASC, name ASC
            """
        )
    ).mappings().all()

    return [LowStockItem(**row) for row in rows]


@router.get("/{product_id}", response_model=ProductResponse)
def read_product(product_id: int, db: Session = Depends(get_db)):
    return ProductResponse(**get_product(db, product_id))


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(product_id: int, payload: UpdateProductRequest, db: Session = Depends(get_db)):
    try:
        product = db.execute(
            text(
                f"""
                UPDATE products
                SET
                  name = COALESCE(:name, name),
                  description = COALESCE(:description, description),
                  price = COALESCE(:price, price),
                  cost_price = COALESCE(:cost_price, cost_price),
                  stock_quantity = COALESCE(:stock_quantity, stock_quantity),
                  min_stock = COALESCE(:min_stock, min_stock),
                  category = COALESCE(:category, category),
                  barcode = COALESCE(:barcode, barcode),
                  image_url = COALESCE(:image_url, image_url),
                  updated_at = CURRENT_TIMESTAMP
                WHERE id = :id
                RETURNING {PRODUCT_COLUMNS}
                """
            ).bindparams(*money_params("price", "cost_price")),
            {"id": product_id, **payload.model_dump()},
        ).mappings().first()
        db.commit()
    except IntegrityError as exc:
        raise _barcode_conflict(db, exc, payload.barcode)

    if not product:
        raise ProductNotFound(product_id)

    return ProductResponse(**product)


def _product_in_use(db: Session, product_id: int) -> bool:
    row = db.execute(
        text(
            """
            SELECT 1 FROM sale_items WHERE product_id = :id
            UNION ALL
            SELECT 1 FROM exchanges WHERE product_id = :id OR new_product_id = :id
            LIMIT 1
            """
        ),
        {"id": product_id},
    ).first()
    return row is not None


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(product_id: int, db: Session = Depends(get_db)):
    if _product_in_use(db, product_id):
        raise ProductInUse(product_id)

    # a sale committed after the check still trips the sale_items FK
    try:
        result = db.execute(text("DELETE FROM products WHERE id = :id"), {"id": product_id})
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.info("Rejected delete of product %s: %s", product_id, exc.orig)
        raise ProductInUse(product_id)

    if not result.rowcount:
        raise ProductNotFound(product_id)


@router.patch("/{product_id}/stock", response_model=ProductResponse)
def adjust_product_stock(product_id: int, payload: StockAdjustmentRequest, db: Session = Depends(get_db)):
    try:
        stock = adjust_stock(db, product_id, payload.quantity)
        db.commit()
    except PDVError:
        db.rollback()
        raise

    logger.info("Adjusted stock of product %s by %s, now %s", product_id, payload.quantity, stock)
    return ProductResponse(**get_product(db, product_id))
