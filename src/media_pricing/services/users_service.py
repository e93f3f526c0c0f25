"""
Users Service - Account listing and activation for the admin pages.

Restricting a user takes effect on their next request: inactive users are
left out of the assignment list and cannot be given a factor.
"""
import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..store.models import User
from .factors_service import NotFoundError

logger = logging.getLogger(__name__)


class ProtectedUserError(PermissionError):
    """Admin accounts cannot be restricted or re-activated through the admin API."""


def _user_to_dict(user: User) -> dict:
    return {
        'id': user.id,
        'email': user.email,
        'role': user.role,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'is_active': user.is_active,
        'created_at': user.created_at,
        'updated_at': user.updated_at,
    }


class UsersService:
    """Service for managing dashboard users."""

    def __init__(self, session: Session):
        self.session = session

    def list_users(self) -> list[dict]:
        """All users, active or not, newest first."""
        stmt = select(User).order_by(User.created_at.desc(), User.id.desc())
        return [_user_to_dict(u) for u in self.session.execute(stmt).scalars()]

    def set_user_active(self, user_id: int, is_active: bool) -> dict:
        """Activate or restrict a regular user."""
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        if user.is_admin:
            raise ProtectedUserError("Cannot modify admin accounts")

        user.is_active = is_active
        user.updated_at = datetime.now()
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(f"User {user_id} {'activated' if is_active else 'restricted'}")
        return _user_to_dict(user)
