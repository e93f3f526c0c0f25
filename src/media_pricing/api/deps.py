"""
Request dependencies shared by the API routers.

The viewer is identified by the X-User-Id header set by the session layer
in front of this service.
"""
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from ..config.settings import get_settings
from ..engine.models import PricingRule, TraceStep
from ..services.factors_service import FactorsService
from ..services.rule_store import RuleStore
from ..services.users_service import UsersService
from ..store.db import get_session
from ..store.models import User

logger = logging.getLogger(__name__)
trace_logger = logging.getLogger("media_pricing.trace")


def get_viewer_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[int]:
    """Viewer id from the header; anything that is not an integer counts as anonymous."""
    if x_user_id is None or not x_user_id.strip():
        return None
    try:
        return int(x_user_id.strip())
    except ValueError:
        logger.warning(f"Ignoring malformed X-User-Id header {x_user_id!r}")
        return None


def get_viewer_rules(
    viewer_id: Optional[int] = Depends(get_viewer_id),
    session: Session = Depends(get_session),
) -> Optional[list[PricingRule]]:
    """Resolve the viewer's rules once per request."""
    return RuleStore(session).get_rules_for_user(viewer_id)


def get_admin_user(
    viewer_id: Optional[int] = Depends(get_viewer_id),
    session: Session = Depends(get_session),
) -> User:
    """Only active admins may use the admin routes."""
    if viewer_id is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    user = session.get(User, viewer_id)
    if user is None or not user.is_active or not user.is_admin:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def get_factors_service(session: Session = Depends(get_session)) -> FactorsService:
    return FactorsService(session, default_factor_id=get_settings().default_factor_id)


def get_users_service(session: Session = Depends(get_session)) -> UsersService:
    return UsersService(session)


def log_trace_step(step: TraceStep):
    """Trace hook that writes each calculation step at DEBUG."""
    if step.value:
        trace_logger.debug(f"{step.step}: {step.description} = {step.value}")
    else:
        trace_logger.debug(f"{step.step}: {step.description}")
