"""
Database models for users, pricing factors and factor assignments.
"""
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class BaseModel(Base):
    """Base model with common fields for all models."""
    __abstract__ = True

    id = Column(Integer, primary_key=True)
    created_at = Column(DateTime, default=func.now())


class User(BaseModel):
    """
    Dashboard user.
    Only the fields the pricing and admin paths read are kept here.
    """
    __tablename__ = 'users'

    email = Column(String(255), nullable=False, unique=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    role = Column(String(20), nullable=False, default='user')  # 'admin' or 'user'
    is_active = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    factor_assignment = relationship(
        "UserPricingFactor",
        back_populates="user",
        uselist=False,
        foreign_keys="UserPricingFactor.user_id",
        cascade="all, delete-orphan",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'


class PricingFactor(BaseModel):
    """
    Named, ordered set of pricing rules assignable to users.
    Deleting a factor only marks it inactive.
    """
    __tablename__ = 'pricing_factors'

    name = Column(String(255), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    creator = relationship("User", foreign_keys=[created_by])
    rules = relationship(
        "PricingFactorRule",
        back_populates="factor",
        cascade="all, delete-orphan",
        order_by="PricingFactorRule.min_price",
    )


class PricingFactorRule(BaseModel):
    """Price range to markup mapping inside a factor."""
    __tablename__ = 'pricing_factor_rules'
    __table_args__ = (
        CheckConstraint('min_price >= 0', name='ck_rule_min_price'),
        CheckConstraint('max_price IS NULL OR max_price >= min_price', name='ck_rule_max_price'),
        CheckConstraint('addition_value >= 0', name='ck_rule_addition_value'),
        CheckConstraint("addition_type IN ('fixed', 'percentage')", name='ck_rule_addition_type'),
    )

    factor_id = Column(Integer, ForeignKey('pricing_factors.id', ondelete='CASCADE'), nullable=False)
    min_price = Column(Float, nullable=False)
    max_price = Column(Float, nullable=True)  # NULL = no upper bound
    addition_type = Column(String(20), nullable=False)
    addition_value = Column(Float, nullable=False)

    factor = relationship("PricingFactor", back_populates="rules")


class UserPricingFactor(BaseModel):
    """Assignment of one factor to one user (unique per user)."""
    __tablename__ = 'user_pricing_factors'

    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)
    factor_id = Column(Integer, ForeignKey('pricing_factors.id'), nullable=False)
    assigned_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    assigned_at = Column(DateTime, default=func.now(), nullable=False)

    user = relationship("User", foreign_keys=[user_id], back_populates="factor_assignment")
    factor = relationship("PricingFactor")
    assigner = relationship("User", foreign_keys=[assigned_by])
