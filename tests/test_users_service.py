from datetime import datetime

import pytest

from media_pricing.services.factors_service import FactorsService, NotFoundError
from media_pricing.services.users_service import ProtectedUserError, UsersService
from media_pricing.store.models import User


@pytest.fixture
def service(session):
    return UsersService(session)


def test_list_users_includes_inactive_newest_first(service, users):
    users["alice"].created_at = datetime(2024, 3, 1)
    users["admin"].created_at = datetime(2024, 2, 1)
    users["bob"].created_at = datetime(2024, 1, 1)
    users["gone"].created_at = datetime(2024, 1, 1)
    service.session.commit()

    rows = service.list_users()

    # bob and gone share a created_at; the newer id comes first
    assert [r["id"] for r in rows] == [2, 1, 4, 3]
    gone = rows[2]
    assert gone["email"] == "gone@agency.test"
    assert gone["is_active"] is False
    assert set(gone) == {"id", "email", "role", "first_name", "last_name", "is_active", "created_at", "updated_at"}


def test_restrict_and_reactivate_user(service, users):
    bob = users["bob"].id

    assert service.set_user_active(bob, False)["is_active"] is False
    assert service.session.get(User, bob).is_active is False

    assert service.set_user_active(bob, True)["is_active"] is True
    assert service.session.get(User, bob).is_active is True


def test_restricted_user_leaves_assignment_list(service, users, factors):
    service.set_user_active(users["alice"].id, False)

    factors_service = FactorsService(service.session)
    emails = [r["email"] for r in factors_service.list_users_with_factors()]
    assert "alice@agency.test" not in emails
    with pytest.raises(ValueError, match="inactive"):
        factors_service.assign_to_user(users["alice"].id, factors["tiered"].id)


def test_admin_accounts_are_protected(service, users):
    with pytest.raises(ProtectedUserError, match="admin"):
        service.set_user_active(users["admin"].id, False)
    assert service.session.get(User, users["admin"].id).is_active is True


def test_unknown_user(service, users):
    with pytest.raises(NotFoundError):
        service.set_user_active(999, True)
