import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from pdv.core.config import Settings
from pdv.db.session import build_engine, make_session_factory
from pdv.db.sql import money_params
from pdv.db.tables import init_db
from pdv.main import create_app


@pytest.fixture(scope='function')
def settings(tmp_path):
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'pdv.db'}",
        log_level='DEBUG',
        cors_origins=['*'],
    )


@pytest.fixture(scope='function')
def client(settings):
    """HTTP client; entering the context runs the app lifespan (schema creation)."""
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope='function')
def engine(settings):
    engine = build_engine(settings.database_url)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope='function')
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture(scope='function')
def db(session_factory):
    """Database session for service-level tests."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(scope='function')
def make_product(db):
    """Insert a product directly and return its id."""
    def _make(name='Camiseta', price='10.00', stock=5, min_stock=0, category=None, barcode=None):
        row = db.execute(
            text(
                """
                INSERT INTO products (name, price, stock_quantity, min_stock, category, barcode)
                VALUES (:name, :price, :stock, :min_stock, :category, :barcode)
                RETURNING id
                """
            ).bindparams(*money_params('price')),
            {
                'name': name,
                'price': price,
                'stock': stock,
                'min_stock': min_stock,
                'category': category,
                'barcode': barcode,
            },
        ).mappings().first()
        db.commit()
        return row['id']

    return _make


@pytest.fixture(scope='function')
def stock_of(session_factory):
    """Read a product's stock through a fresh session."""
    def _stock(product_id):
        with session_factory() as session:
            row = session.execute(
                text('SELECT stock_quantity FROM products WHERE id = :id'),
                {'id': product_id},
            ).first()
            return row[0] if row else None

    return _stock


@pytest.fixture(scope='function')
def count_rows(session_factory):
    def _count(table):
        with session_factory() as session:
            return session.execute(text(f'SELECT COUNT(*) FROM {table}')).scalar_one()

    return _count


@pytest.fixture(scope='function')
def api_product(client):
    """Create a product through the API and return the response body."""
    def _create(**overrides):
        payload = {'name': 'Vestido', 'price': 10.0, 'stock_quantity': 5}
        payload.update(overrides)
        response = client.post('/products', json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _create


def sale_payload(*lines, discount=0, **extra):
    """Build a CreateSale body from (product_id, quantity, unit_price) tuples."""
    items = []
    total = 0
    for product_id, quantity, unit_price in lines:
        line_total = round(quantity * unit_price, 2)
        items.append({
            'product_id': product_id,
            'quantity': quantity,
            'unit_price': unit_price,
            'total_price': line_total,
        })
        total += line_total

    payload = {
        'total_amount': round(total - discount, 2),
        'discount_amount': discount,
        'payment_method': 'cash',
        'items': items,
    }
    payload.update(extra)
    return payload


@pytest.fixture(scope='function')
def build_sale():
    return sale_payload
