"""
Pytest fixtures for wholesale backend tests.

Provides test database setup, catalog/client factories, and test client.
"""

import os

# Engine is created at init_app time, so the URI must be set before create_app()
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

import pytest
from wholesale import create_app
from wholesale.extensions import db
from wholesale.models import Client, Product, ProductVariant
from wholesale.models.catalog import PRODUCT_TYPE_FABRIC


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app()
    app.config.update({
        'TESTING': True,
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'FACTORY_DISCOUNT_RATE': 0.03,
        'PERSIST_RETRY_ATTEMPTS': 1,
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
def make_product(db_session):
    """Factory: make_product(sku="...", price=10.0, available_qty=5, variants=[("A", "Navy", 10)])."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        variants = overrides.pop("variants", None) or []
        fields = {
            "sku": f"SKU-{counter['n']:03d}",
            "title": f"Product {counter['n']}",
            "type": PRODUCT_TYPE_FABRIC,
            "category": "General",
            "price": 10.0,
            "unit": "m",
            "moq": 1,
            "available_qty": 0,
            "reserved_qty": 0,
            "purchase_price": 6.0,
            "logistics_cost": 1.0,
            "supplier_name": "Test Supplier",
            "supplier_wechat": "test_wechat",
        }
        fields.update(overrides)
        product = Product(**fields)
        product.variants = [
            ProductVariant(code=code, name=name, stock=stock) for code, name, stock in variants
        ]
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def make_client(db_session):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "telegram_id": str(1000 + counter["n"]),
            "username": f"client_{counter['n']}",
            "name": f"Client {counter['n']}",
            "brand": f"Brand {counter['n']}",
            "phone": "+996555000000",
            "balance": 0.0,
        }
        fields.update(overrides)
        c = Client(**fields)
        db_session.add(c)
        db_session.commit()
        return c

    return _make


@pytest.fixture(scope='function')
def wholesale_client(make_client):
    """A single client account (named to avoid clashing with the Flask test client)."""
    return make_client(name="Acme Textiles", brand="ACME", username="acme")
