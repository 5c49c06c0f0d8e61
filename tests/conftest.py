import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from taproom import create_app
from taproom import database
from taproom.models import (
    Order, OrderStatus, ProductVariant, Keg, Promotion, PromotionType
)


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.TestingConfig')
    return app


@pytest.fixture(scope='function')
def session(app):
    """Fresh schema on the in-memory database for each test."""
    database.create_all()
    session = database.get_session()
    yield session
    session.rollback()
    session.remove()
    database.drop_all()


@pytest.fixture(scope='function')
def client(app, session):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def now():
    """Friday 16 October 2026, 18:30 (happy hour)."""
    return datetime(2026, 10, 16, 18, 30)


@pytest.fixture(scope='function')
def variant(session):
    """Bottled variant, stock 20, not keg-linked."""
    variant = ProductVariant(
        name='Lemon soda 0.33 L',
        price=Decimal('4.50'),
        stock_qty=20,
        active=True
    )
    session.add(variant)
    session.commit()
    return variant


@pytest.fixture(scope='function')
def keg(session):
    """Full 30 L keg."""
    keg = Keg(
        name='House IPA 30 L',
        total_liters=Decimal('30.000'),
        remaining_liters=Decimal('30.000'),
        active=True
    )
    session.add(keg)
    session.commit()
    return keg


@pytest.fixture(scope='function')
def draught_variant(session, keg):
    """Pint tapped from the keg; no own serving volume, so 0.5 L per unit."""
    variant = ProductVariant(
        name='House IPA pint',
        price=Decimal('6.00'),
        stock_qty=100,
        keg_id=keg.id,
        active=True
    )
    session.add(variant)
    session.commit()
    return variant


@pytest.fixture(scope='function')
def order(session):
    """Open order with no items."""
    order = Order(
        status=OrderStatus.PENDING,
        total=Decimal('0.00'),
        discount_amount=Decimal('0.00')
    )
    session.add(order)
    session.commit()
    return order


@pytest.fixture(scope='function')
def make_promotion(session, now):
    """Factory for persisted promotions valid around ``now``."""
    def _make(**overrides):
        fields = dict(
            name='Promo',
            type=PromotionType.PERCENTAGE,
            value=Decimal('10'),
            valid_from=now.date() - timedelta(days=7),
            valid_until=now.date() + timedelta(days=7),
            current_uses=0,
            active=True
        )
        weekdays = overrides.pop('weekdays', None)
        fields.update(overrides)
        promotion = Promotion(**fields)
        if weekdays is not None:
            promotion.weekdays = weekdays
        session.add(promotion)
        session.commit()
        return promotion
    return _make
