"""
Rule Store - Resolves the ordered pricing rules for a viewer.

Lookup failures are treated as "no factor assigned" so a listing page
always renders with default pricing instead of failing.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..engine.models import PricingRule
from ..store.models import PricingFactor, PricingFactorRule, UserPricingFactor

logger = logging.getLogger(__name__)


class RuleStore:
    """Read-only access to assigned factor rules."""

    def __init__(self, session: Session):
        self.session = session

    def find_assigned_factor(self, user_id: int) -> Optional[PricingFactor]:
        """Return the user's active assigned factor, or None."""
        stmt = (
            select(PricingFactor)
            .join(UserPricingFactor, UserPricingFactor.factor_id == PricingFactor.id)
            .where(UserPricingFactor.user_id == user_id)
            .where(PricingFactor.is_active.is_(True))
        )
        return self.session.execute(stmt).scalars().first()

    def fetch_factor_rules(self, factor_id: int) -> list[PricingRule]:
        """Rules of a factor ordered by ascending min_price."""
        stmt = (
            select(PricingFactorRule)
            .where(PricingFactorRule.factor_id == factor_id)
            .order_by(PricingFactorRule.min_price.asc(), PricingFactorRule.id.asc())
        )
        rows = self.session.execute(stmt).scalars().all()
        return [
            PricingRule.from_row({
                'min_price': row.min_price,
                'max_price': row.max_price,
                'addition_type': row.addition_type,
                'addition_value': row.addition_value,
            })
            for row in rows
        ]

    def get_rules_for_user(self, user_id: Optional[int]) -> Optional[list[PricingRule]]:
        """
        Resolve the effective rule list for a viewer.

        Returns None when the viewer has no active assignment (default formula),
        or an ordered list, possibly empty, of the assigned factor's rules.
        Any store or data error also returns None.
        """
        if user_id is None:
            logger.info("Anonymous viewer - using default pricing")
            return None

        try:
            factor = self.find_assigned_factor(user_id)
            if factor is None:
                logger.info(f"User {user_id} has no assigned factor - using default pricing")
                return None

            rules = self.fetch_factor_rules(factor.id)
        except SQLAlchemyError as e:
            logger.error(f"Rule lookup failed for user {user_id}, falling back to default pricing: {e}")
            self.session.rollback()
            return None
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Malformed pricing rule data for user {user_id}, falling back to default pricing: {e}")
            return None

        logger.info(f"User {user_id} has factor '{factor.name}' (ID: {factor.id}) with {len(rules)} rules")
        for index, rule in enumerate(rules, start=1):
            logger.debug(f"  Rule {index}: {rule.describe_range()} → {rule.addition_type} {rule.addition_value:g}")
        return rules
