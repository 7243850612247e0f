"""
Pytest fixtures for nooda inventory tests.

Provides test database setup, catalog builders, and test client.
"""

import pytest
from nooda import create_app
from nooda.extensions import db
from nooda.models import Component, Product, PROCESS_PRODUCTION, PROCESS_SALE
from nooda.services.recipe_service import set_recipe


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'STOCK_WARNING_LIMIT': 20,
    'DIGEST_TIMEZONE': 'UTC',
    'LEDGER_RETRY_ATTEMPTS': 3,
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def make_component(name: str, stock: int, unit: str = "pcs", warning_limit=None) -> Component:
    component = Component(name=name, stock=stock, unit=unit, warning_limit=warning_limit)
    db.session.add(component)
    db.session.commit()
    return component


def make_product(sku: str, name: str, stock: int = 0, sort_order: int = 0, warning_limit=None) -> Product:
    product = Product(sku=sku, name=name, stock=stock, sort_order=sort_order, warning_limit=warning_limit)
    db.session.add(product)
    db.session.commit()
    return product


def make_recipe(product, process_type: str, lines) -> None:
    """lines: [(component, quantity_per_unit), ...]"""
    set_recipe(product.id, process_type, [(c.id, q) for c, q in lines])
    db.session.commit()


def stock_of(entity) -> int:
    """Persisted stock, bypassing any cached ORM state."""
    table = type(entity).__table__
    return db.session.execute(
        db.select(table.c.stock).where(table.c.id == entity.id)
    ).scalar_one()


@pytest.fixture(scope='function')
def production_catalog(db_session):
    """
    Product P (stock 10) made from 2x Component C (stock 25) per unit.
    """
    component = make_component("C", 25)
    product = make_product("P-001", "P", stock=10)
    make_recipe(product, PROCESS_PRODUCTION, [(component, 2)])
    return {"product": product, "component": component}


@pytest.fixture(scope='function')
def sale_catalog(db_session):
    """
    P1 and P2 both consume 1x Tape per unit sold; P2 also consumes a Box.
    """
    tape = make_component("Tape", 10, unit="roll")
    box = make_component("Box", 50)
    p1 = make_product("P1-001", "P1", stock=20, sort_order=0)
    p2 = make_product("P2-001", "P2", stock=20, sort_order=1)
    make_recipe(p1, PROCESS_SALE, [(tape, 1)])
    make_recipe(p2, PROCESS_SALE, [(tape, 1), (box, 1)])
    return {"p1": p1, "p2": p2, "tape": tape, "box": box}


@pytest.fixture(scope='function')
def actor_headers():
    """Identity forwarded by the upstream auth layer."""
    return {'X-User-Id': '7', 'X-Username': 'ayu'}
