"""
Pytest fixtures for TimeSeats backend tests.

Provides the in-memory app, a wiped database per test, engine services bound
to a fixed clock, and small builders for products, slots and stock.
"""

from datetime import datetime

import pytest
from timeseats import create_app
from timeseats.extensions import db
from timeseats.services.factory import build_services


# Fixed "now" for every test: 2026-05-01 10:10 UTC
NOW = datetime(2026, 5, 1, 10, 10)


def at(hour: int, minute: int = 0, day: int = 1) -> datetime:
    """UTC-naive datetime on the test day."""
    return datetime(2026, 5, day, hour, minute)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app, db_session):
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
def services(app, db_session):
    """Engine services wired to the test session and a fixed clock."""
    return build_services(db_session, app.config, clock=lambda: NOW)


@pytest.fixture(scope='function')
def make_product(services):
    def _make(name="Yakisoba", price_cents=500, **extra):
        result = services.products.create_product({"name": name, "price_cents": price_cents, **extra})
        assert result.ok
        return result.value
    return _make


@pytest.fixture(scope='function')
def make_slot(services):
    def _make(start=None, end=None, is_active=True):
        start = start or at(10, 0)
        end = end or at(10, 30)
        result = services.slots.create_slot(start, end, is_active=is_active)
        assert result.ok, result
        return result.value
    return _make


@pytest.fixture(scope='function')
def stock(services):
    def _stock(product, slot, quantity):
        result = services.ledger.set_initial_level(product.id, slot.id, quantity)
        assert result.ok, result
        return result.value
    return _stock
