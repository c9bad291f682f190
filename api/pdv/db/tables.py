"""Table definitions used to create the schema.

Handlers talk to these tables through hand-written SQL; the metadata here only
exists so ``init_db`` can emit portable DDL for PostgreSQL and SQLite.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    func,
    text,
)
from sqlalchemy.engine import Engine

MONEY = Numeric(12, 2)

metadata = MetaData()

products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(250), nullable=False),
    Column("description", Text),
    Column("price", MONEY, nullable=False),
    Column("cost_price", MONEY),
    Column("stock_quantity", Integer, nullable=False, server_default="0"),
    Column("min_stock", Integer, nullable=False, server_default="0"),
    Column("category", String(120)),
    Column("barcode", String(120), unique=True),
    Column("image_url", Text),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("price >= 0", name="ck_products_price"),
    CheckConstraint("stock_quantity >= 0", name="ck_products_stock_quantity"),
    CheckConstraint("min_stock >= 0", name="ck_products_min_stock"),
)

clients = Table(
    "clients",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(250), nullable=False),
    Column("email", String(250)),
    Column("phone", String(40)),
    Column("cpf_cnpj", String(20)),
    Column("address", Text),
    Column("city", String(120)),
    Column("state", String(60)),
    Column("zip_code", String(20)),
    Column("birth_date", Date),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

sales = Table(
    "sales",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("client_id", Integer, ForeignKey("clients.id", ondelete="SET NULL")),
    Column("total_amount", MONEY, nullable=False),
    Column("discount_amount", MONEY, nullable=False, server_default="0"),
    Column("payment_method", String(20), nullable=False),
    Column("payment_installments", Integer, nullable=False, server_default="1"),
    Column("installment_amount", MONEY),
    Column("status", String(20), nullable=False, server_default="completed"),
    Column("sale_date", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("notes", Text),
    CheckConstraint("discount_amount >= 0", name="ck_sales_discount_amount"),
    CheckConstraint("payment_installments >= 1", name="ck_sales_payment_installments"),
)

sale_items = Table(
    "sale_items",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("sale_id", Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("product_id", Integer, ForeignKey("products.id"), nullable=False, index=True),
    Column("quantity", Integer, nullable=False),
    Column("unit_price", MONEY, nullable=False),
    Column("total_price", MONEY, nullable=False),
    CheckConstraint("quantity > 0", name="ck_sale_items_quantity"),
)

exchanges = Table(
    "exchanges",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("sale_id", Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False),
    Column("product_id", Integer, ForeignKey("products.id"), nullable=False),
    Column("reason", Text, nullable=False),
    Column("description", Text),
    Column("new_product_id", Integer, ForeignKey("products.id")),
    Column("status", String(20), nullable=False, server_default="pending"),
    Column("exchange_date", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

company_settings = Table(
    "company_settings",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("company_name", String(250)),
    Column("trade_name", String(250)),
    Column("cnpj", String(20)),
    Column("state_registration", String(40)),
    Column("address", Text),
    Column("city", String(120)),
    Column("state", String(60)),
    Column("zip_code", String(20)),
    Column("phone", String(40)),
    Column("email", String(250)),
    Column("website", String(250)),
    Column("logo_url", Text),
    Column("pix_key", String(250)),
    Column("pix_qr_code_url", Text),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("id = 1", name="ck_company_settings_singleton"),
)


def init_db(engine: Engine) -> None:
    metadata.create_all(engine)
    with engine.begin() as conn:
        exists = conn.execute(text("SELECT 1 FROM company_settings WHERE id = 1")).first()
        if not exists:
            conn.execute(text("INSERT INTO company_settings (id) VALUES (1)"))
