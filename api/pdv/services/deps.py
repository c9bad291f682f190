from typing import Any

from sqlalchemy import text
from sqlalchemy.orm import Session

from pdv.core.errors import ClientNotFound, ProductNotFound

PRODUCT_COLUMNS = """
    id,
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
"""

CLIENT_COLUMNS = """
    id,
    name,
    email,
    phone,
    cpf_cnpj,
    address,
    city,
    state,
    zip_code,
    birth_date,
    created_at,
    updated_at
"""

SETTINGS_COLUMNS = """
    id,
    company_name,
    trade_name,
    cnpj,
    state_registration,
    address,
    city,
    state,
    zip_code,
    phone,
    email,
    website,
    logo_url,
    pix_key,
    pix_qr_code_url,
    updated_at
"""

COMPANY_SETTINGS_ID = 1


def get_product(db: Session, product_id: int) -> dict[str, Any]:
    row = db.execute(
        text(f"SELECT {PRODUCT_COLUMNS} FROM products WHERE id = :id"),
        {"id": product_id},
    ).mappings().first()

    if not row:
        raise ProductNotFound(product_id)
    return dict(row)


def get_client(db: Session, client_id: int) -> dict[str, Any]:
    row = db.execute(
        text(f"SELECT {CLIENT_COLUMNS} FROM clients WHERE id = :id"),
        {"id": client_id},
    ).mappings().first()

    if not row:
        raise ClientNotFound(client_id)
    return dict(row)


def ensure_company_settings(db: Session) -> dict[str, Any]:
    row = db.execute(
        text(f"SELECT {SETTINGS_COLUMNS} FROM company_settings WHERE id = :id"),
        {"id": COMPANY_SETTINGS_ID},
    ).mappings().first()

    if row:
        return dict(row)

    created = db.execute(
        text(
            f"""
            INSERT INTO company_settings (id, updated_at)
            VALUES (:id, CURRENT_TIMESTAMP)
            RETURNING {SETTINGS_COLUMNS}
            """
        ),
        {"id": COMPANY_SETTINGS_ID},
    ).mappings().first()
    db.commit()
    return dict(created)
