"""Store subpackage - database models and session handling."""
from .models import Base, User, PricingFactor, PricingFactorRule, UserPricingFactor
from .db import get_session, init_db, make_engine

__all__ = [
    'Base', 'User', 'PricingFactor', 'PricingFactorRule', 'UserPricingFactor',
    'get_session', 'init_db', 'make_engine',
]
