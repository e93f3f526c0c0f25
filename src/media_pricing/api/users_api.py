"""
Users API - FastAPI router for user account administration.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, StrictBool

from ..services.factors_service import NotFoundError
from ..services.users_service import ProtectedUserError, UsersService
from ..store.models import User
from .deps import get_admin_user, get_users_service

router = APIRouter(prefix="/api/admin", tags=["users"])


class UserResponse(BaseModel):
    id: int
    email: str
    role: str
    first_name: Optional[str]
    last_name: Optional[str]
    is_active: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class ToggleStatusRequest(BaseModel):
    user_id: int = Field(alias="userId")
    is_active: StrictBool = Field(alias="isActive")

    model_config = {"populate_by_name": True}


@router.get("/users", response_model=list[UserResponse])
async def list_users(
    admin: User = Depends(get_admin_user),
    service: UsersService = Depends(get_users_service),
):
    """List every user, newest first."""
    return service.list_users()


@router.post("/users/toggle-status")
async def toggle_user_status(
    data: ToggleStatusRequest,
    admin: User = Depends(get_admin_user),
    service: UsersService = Depends(get_users_service),
):
    """Activate or restrict a regular user."""
    try:
        service.set_user_active(data.user_id, data.is_active)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ProtectedUserError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return {
        "success": True,
        "message": f"User {'activated' if data.is_active else 'restricted'} successfully",
    }
