import sys
import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from media_pricing.store.db import drop_db, init_db
from media_pricing.store.models import PricingFactor, PricingFactorRule, User


@pytest.fixture
def db_engine():
    """In-memory SQLite shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    drop_db(engine)
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine)


@pytest.fixture
def session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def users(session):
    """An admin, two regular users and one inactive user."""
    admin = User(id=1, email="admin@agency.test", first_name="Ada", last_name="Admin", role="admin")
    alice = User(id=2, email="alice@agency.test", first_name="Alice", last_name="Buyer", role="user")
    bob = User(id=3, email="bob@agency.test", first_name="Bob", last_name="Buyer", role="user")
    gone = User(id=4, email="gone@agency.test", role="user", is_active=False)
    session.add_all([admin, alice, bob, gone])
    session.commit()
    return {"admin": admin, "alice": alice, "bob": bob, "gone": gone}


@pytest.fixture
def factors(session, users):
    """Default factor (id 1) plus a tiered factor and an empty one."""
    default = PricingFactor(id=1, name="Default", description="System default")
    default.rules = [PricingFactorRule(min_price=0, max_price=None, addition_type="fixed", addition_value=500)]

    tiered = PricingFactor(id=2, name="Tiered", description="Two tiers", created_by=users["admin"].id)
    # Inserted out of order; the store must hand them back by min_price
    tiered.rules = [
        PricingFactorRule(min_price=501, max_price=None, addition_type="percentage", addition_value=20),
        PricingFactorRule(min_price=0, max_price=500, addition_type="fixed", addition_value=100),
    ]

    empty = PricingFactor(id=3, name="Empty", description="No rules yet")

    session.add_all([default, tiered, empty])
    session.commit()
    return {"default": default, "tiered": tiered, "empty": empty}
