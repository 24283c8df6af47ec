"""
Pytest fixtures for retailpos backend tests.

Provides test database setup, shop/product/ledger fixtures, and test client.
"""

import pytest

from retailpos import create_app
from retailpos.extensions import db
from retailpos.models import Customer, Product, Shop
from retailpos.services import ledger_service
from retailpos.services.inventory_service import derive_stock_status


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LOG_LEVEL': 'DEBUG',
    })

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


@pytest.fixture(scope='function')
def ohada_codes(db_session):
    """Seed the default OHADA chart (701 included)."""
    ledger_service.seed_default_codes()
    return db_session


@pytest.fixture(scope='function')
def shop(db_session):
    shop = Shop(name="Shop A - Douala", code="DLA")
    db_session.add(shop)
    db_session.commit()
    return shop


@pytest.fixture(scope='function')
def other_shop(db_session):
    shop = Shop(name="Shop B - Yaounde", code="YDE")
    db_session.add(shop)
    db_session.commit()
    return shop


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(shop, quantity=10, selling=1000, purchase=600, reorder_point=5)."""
    counter = {"n": 0}

    def _make(shop, *, quantity=10, selling=1000, purchase=600, reorder_point=5, name=None):
        counter["n"] += 1
        product = Product(
            shop_id=shop.id,
            sku=f"TEST-{counter['n']:04d}",
            name=name or f"Product {counter['n']}",
            selling_price_cents=selling,
            purchase_price_cents=purchase,
            quantity=quantity,
            reorder_point=reorder_point,
            status=derive_stock_status(quantity, reorder_point),
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def product(shop, make_product):
    """Ten units at 1000 (cost 600), reorder point 5."""
    return make_product(shop, name="Rice 5kg")


@pytest.fixture(scope='function')
def customer(db_session, shop):
    customer = Customer(shop_id=shop.id, name="Awa Ngono", phone="+237600000001", email="awa@example.cm")
    db_session.add(customer)
    db_session.commit()
    return customer

