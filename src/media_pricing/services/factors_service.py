"""
Factors Service - Administration of pricing factors and user assignments.

Factor and rule writes happen in one transaction; updating a factor
replaces its whole rule list.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, aliased

from ..engine.models import ADDITION_TYPES, PricingRule
from ..store.models import PricingFactor, PricingFactorRule, User, UserPricingFactor

logger = logging.getLogger(__name__)

DEFAULT_FACTOR_ID = 1
DEFAULT_FACTOR_NAME = "Default"


class NotFoundError(ValueError):
    """A referenced user or factor does not exist."""


@dataclass
class ValidationResult:
    """Result of factor validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _rule_to_dict(rule: PricingFactorRule) -> dict:
    return {
        'id': rule.id,
        'factor_id': rule.factor_id,
        'min_price': rule.min_price,
        'max_price': rule.max_price,
        'addition_type': rule.addition_type,
        'addition_value': rule.addition_value,
        'created_at': rule.created_at,
    }


def _factor_to_dict(factor: PricingFactor) -> dict:
    return {
        'id': factor.id,
        'name': factor.name,
        'description': factor.description,
        'is_active': factor.is_active,
        'created_by': factor.created_by,
        'created_by_email': factor.creator.email if factor.creator else None,
        'created_at': factor.created_at,
        'updated_at': factor.updated_at,
    }


class FactorsService:
    """Service for managing pricing factors."""

    def __init__(self, session: Session, default_factor_id: int = DEFAULT_FACTOR_ID):
        self.session = session
        self.default_factor_id = default_factor_id

    def list_factors(self) -> list[dict]:
        """List active factors ordered by name."""
        stmt = (
            select(PricingFactor)
            .where(PricingFactor.is_active.is_(True))
            .order_by(PricingFactor.name)
        )
        return [_factor_to_dict(f) for f in self.session.execute(stmt).scalars()]

    def get_factor(self, factor_id: int) -> Optional[dict]:
        """Get a factor with its rules ordered by min_price, or None."""
        factor = self.session.get(PricingFactor, factor_id)
        if factor is None:
            return None
        rules = sorted(factor.rules, key=lambda r: (r.min_price, r.id))
        return {
            'factor': _factor_to_dict(factor),
            'rules': [_rule_to_dict(r) for r in rules],
        }

    def create_factor(self, name: str, description: Optional[str], rules: list[PricingRule],
                      created_by: Optional[int] = None) -> dict:
        """Create a factor and its rules."""
        factor = PricingFactor(name=name, description=description, created_by=created_by)
        factor.rules = [self._build_rule(rule) for rule in rules]
        self.session.add(factor)
        self._commit()
        logger.info(f"Created pricing factor '{name}' (ID: {factor.id}) with {len(rules)} rules")
        return _factor_to_dict(factor)

    def update_factor(self, factor_id: int, name: str, description: Optional[str],
                      rules: list[PricingRule]) -> dict:
        """Rename a factor and replace all of its rules."""
        factor = self.session.get(PricingFactor, factor_id)
        if factor is None:
            raise NotFoundError(f"Pricing factor {factor_id} not found")

        factor.name = name
        factor.description = description
        factor.updated_at = datetime.now()
        factor.rules.clear()
        self.session.flush()
        factor.rules.extend(self._build_rule(rule) for rule in rules)
        self._commit()
        logger.info(f"Updated pricing factor {factor_id} with {len(rules)} rules")
        return _factor_to_dict(factor)

    def delete_factor(self, factor_id: int) -> bool:
        """Mark a factor inactive. The default factor cannot be deleted."""
        if factor_id == self.default_factor_id:
            raise ValueError("Cannot delete default pricing factor")

        factor = self.session.get(PricingFactor, factor_id)
        if factor is None:
            raise NotFoundError(f"Pricing factor {factor_id} not found")

        factor.is_active = False
        factor.updated_at = datetime.now()
        self._commit()
        logger.info(f"Deactivated pricing factor {factor_id}")
        return True

    def assign_to_user(self, user_id: int, factor_id: int, assigned_by: Optional[int] = None) -> dict:
        """Assign a factor to a user, replacing any existing assignment."""
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        if not user.is_active:
            raise ValueError(f"User {user_id} is inactive")

        factor = self.session.get(PricingFactor, factor_id)
        if factor is None:
            raise NotFoundError(f"Pricing factor {factor_id} not found")
        if not factor.is_active:
            raise ValueError(f"Pricing factor {factor_id} is inactive")

        assignment = self.session.execute(
            select(UserPricingFactor).where(UserPricingFactor.user_id == user_id)
        ).scalars().first()

        if assignment is None:
            assignment = UserPricingFactor(user_id=user_id)
            self.session.add(assignment)

        assignment.factor_id = factor_id
        assignment.assigned_by = assigned_by
        assignment.assigned_at = datetime.now()
        self._commit()
        logger.info(f"Assigned pricing factor {factor_id} to user {user_id}")
        return {
            'user_id': assignment.user_id,
            'factor_id': assignment.factor_id,
            'assigned_by': assignment.assigned_by,
            'assigned_at': assignment.assigned_at,
        }

    def remove_from_user(self, user_id: int) -> bool:
        """Remove a user's factor assignment. Returns False if there was none."""
        assignment = self.session.execute(
            select(UserPricingFactor).where(UserPricingFactor.user_id == user_id)
        ).scalars().first()
        if assignment is None:
            return False

        self.session.delete(assignment)
        self._commit()
        logger.info(f"Removed pricing factor assignment from user {user_id}")
        return True

    def list_users_with_factors(self) -> list[dict]:
        """Active users with their assigned factor (if any), ordered by email."""
        assigner = aliased(User)
        stmt = (
            select(
                User.id, User.email, User.first_name, User.last_name, User.role,
                PricingFactor.id.label('factor_id'),
                PricingFactor.name.label('factor_name'),
                UserPricingFactor.assigned_at,
                assigner.email.label('assigned_by_email'),
            )
            .outerjoin(UserPricingFactor, UserPricingFactor.user_id == User.id)
            .outerjoin(PricingFactor, UserPricingFactor.factor_id == PricingFactor.id)
            .outerjoin(assigner, UserPricingFactor.assigned_by == assigner.id)
            .where(User.is_active.is_(True))
            .order_by(User.email)
        )
        return [dict(row._mapping) for row in self.session.execute(stmt)]

    def validate_factor(self, name: Optional[str], rules: Optional[list[PricingRule]]) -> ValidationResult:
        """Validate a factor before saving."""
        result = ValidationResult(valid=True)

        if not name or not name.strip():
            result.errors.append("Name is required")
            result.valid = False

        if rules is None:
            result.errors.append("Rules are required")
            result.valid = False
            return result

        for index, rule in enumerate(rules, start=1):
            bounds = [rule.min_price, rule.addition_value]
            if rule.max_price is not None:
                bounds.append(rule.max_price)
            if not all(math.isfinite(v) for v in bounds):
                result.errors.append(f"Rule {index}: prices and addition value must be finite numbers")
                continue
            if rule.addition_type not in ADDITION_TYPES:
                result.errors.append(f"Rule {index}: addition type must be one of {', '.join(ADDITION_TYPES)}")
            if rule.min_price < 0:
                result.errors.append(f"Rule {index}: min price cannot be negative")
            if rule.max_price is not None and rule.max_price < rule.min_price:
                result.errors.append(f"Rule {index}: max price must be greater than or equal to min price")
            if rule.addition_value < 0:
                result.errors.append(f"Rule {index}: addition value cannot be negative")

        if result.errors:
            result.valid = False

        if not rules:
            result.warnings.append("Factor has no rules; every price will use the default formula")

        result.warnings.extend(self._check_overlaps(rules))
        return result

    def _check_overlaps(self, rules: list[PricingRule]) -> list[str]:
        """Report overlapping ranges; the lower min_price wins at evaluation time."""
        warnings = []
        ordered = sorted(enumerate(rules, start=1), key=lambda pair: pair[1].min_price)

        for i, (pos_a, a) in enumerate(ordered):
            for pos_b, b in ordered[i + 1:]:
                a_upper = float('inf') if a.max_price is None else a.max_price
                if b.min_price <= a_upper:
                    warnings.append(
                        f"Rule {pos_a} ({a.describe_range()}) overlaps rule {pos_b} "
                        f"({b.describe_range()}); rule {pos_a} takes precedence"
                    )
        return warnings

    def ensure_default_factor(self) -> dict:
        """Create the default factor if it does not exist yet."""
        factor = self.session.get(PricingFactor, self.default_factor_id)
        if factor is None:
            factor = PricingFactor(
                id=self.default_factor_id,
                name=DEFAULT_FACTOR_NAME,
                description="System default pricing factor",
            )
            self.session.add(factor)
            self._commit()
            logger.info(f"Created default pricing factor (ID: {self.default_factor_id})")
        return _factor_to_dict(factor)

    def _build_rule(self, rule: PricingRule) -> PricingFactorRule:
        return PricingFactorRule(
            min_price=rule.min_price,
            max_price=rule.max_price,
            addition_type=rule.addition_type,
            addition_value=rule.addition_value,
        )

    def _commit(self):
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
