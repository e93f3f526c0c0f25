"""
Factors API - FastAPI router for pricing factor administration.
"""
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..engine.models import PricingRule
from ..services.factors_service import FactorsService, NotFoundError
from ..store.models import User
from .deps import get_admin_user, get_factors_service

router = APIRouter(prefix="/api/admin", tags=["admin"])


# Pydantic models for API
class RuleIn(BaseModel):
    """A rule as submitted by the admin UI."""
    model_config = {"allow_inf_nan": False}

    min_price: float
    max_price: Optional[float] = None
    addition_type: Literal['fixed', 'percentage']
    addition_value: float

    def to_rule(self) -> PricingRule:
        return PricingRule(
            min_price=self.min_price,
            max_price=self.max_price,
            addition_type=self.addition_type,
            addition_value=self.addition_value,
        )


class FactorIn(BaseModel):
    """Request model for creating or updating a factor."""
    name: str
    description: Optional[str] = None
    rules: list[RuleIn]


class FactorResponse(BaseModel):
    """Response model for a factor."""
    id: int
    name: str
    description: Optional[str]
    is_active: bool
    created_by: Optional[int]
    created_by_email: Optional[str] = None
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class RuleResponse(BaseModel):
    """Response model for a stored rule."""
    id: int
    factor_id: int
    min_price: float
    max_price: Optional[float]
    addition_type: str
    addition_value: float
    created_at: Optional[datetime]


class FactorDetailResponse(BaseModel):
    factor: FactorResponse
    rules: list[RuleResponse]


class ValidationResponse(BaseModel):
    """Response model for validation."""
    valid: bool
    errors: list[str]
    warnings: list[str]


class AssignRequest(BaseModel):
    user_id: int = Field(alias="userId")
    factor_id: int = Field(alias="factorId")

    model_config = {"populate_by_name": True}


class UnassignRequest(BaseModel):
    user_id: int = Field(alias="userId")

    model_config = {"populate_by_name": True}


class UserFactorResponse(BaseModel):
    id: int
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    role: str
    factor_id: Optional[int]
    factor_name: Optional[str]
    assigned_at: Optional[datetime]
    assigned_by_email: Optional[str]


def _validate_or_400(service: FactorsService, data: FactorIn):
    validation = service.validate_factor(data.name, [r.to_rule() for r in data.rules])
    if not validation.valid:
        raise HTTPException(status_code=400, detail={"errors": validation.errors})


# Endpoints

@router.get("/pricing-factors", response_model=list[FactorResponse])
async def list_factors(
    admin: User = Depends(get_admin_user),
    service: FactorsService = Depends(get_factors_service),
):
    """List active pricing factors."""
    return service.list_factors()


@router.post("/pricing-factors", response_model=FactorResponse, status_code=201)
async def create_factor(
    data: FactorIn,
    admin: User = Depends(get_admin_user),
    service: FactorsService = Depends(get_factors_service),
):
    """Create a pricing factor with its rules."""
    _validate_or_400(service, data)
    return service.create_factor(
        name=data.name,
        description=data.description,
        rules=[r.to_rule() for r in data.rules],
        created_by=admin.id,
    )


@router.post("/pricing-factors/validate", response_model=ValidationResponse)
async def validate_factor(
    data: FactorIn,
    admin: User = Depends(get_admin_user),
    service: FactorsService = Depends(get_factors_service),
):
    """Validate a factor without saving; overlapping ranges come back as warnings."""
    result = service.validate_factor(data.name, [r.to_rule() for r in data.rules])
    return ValidationResponse(valid=result.valid, errors=result.errors, warnings=result.warnings)


@router.get("/pricing-factors/{factor_id}", response_model=FactorDetailResponse)
async def get_factor(
    factor_id: int,
    admin: User = Depends(get_admin_user),
    service: FactorsService = Depends(get_factors_service),
):
    """Get a factor and its rules."""
    factor = service.get_factor(factor_id)
    if not factor:
        raise HTTPException(status_code=404, detail="Factor not found")
    return factor


@router.put("/pricing-factors/{factor_id}")
async def update_factor(
    factor_id: int,
    data: FactorIn,
    admin: User = Depends(get_admin_user),
    service: FactorsService = Depends(get_factors_service),
):
    """Replace a factor's name, description and rules."""
    _validate_or_400(service, data)
    try:
        service.update_factor(
            factor_id,
            name=data.name,
            description=data.description,
            rules=[r.to_rule() for r in data.rules],
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Factor updated successfully"}


@router.delete("/pricing-factors/{factor_id}")
async def delete_factor(
    factor_id: int,
    admin: User = Depends(get_admin_user),
    service: FactorsService = Depends(get_factors_service),
):
    """Deactivate a factor."""
    if factor_id == service.default_factor_id:
        raise HTTPException(status_code=400, detail="Cannot delete default pricing factor")
    try:
        service.delete_factor(factor_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Factor deleted successfully"}


@router.get("/user-factors", response_model=list[UserFactorResponse])
async def list_user_factors(
    admin: User = Depends(get_admin_user),
    service: FactorsService = Depends(get_factors_service),
):
    """List active users with their assigned factors."""
    return service.list_users_with_factors()


@router.post("/user-factors")
async def assign_factor(
    data: AssignRequest,
    admin: User = Depends(get_admin_user),
    service: FactorsService = Depends(get_factors_service),
):
    """Assign a factor to a user, replacing any previous assignment."""
    try:
        service.assign_to_user(data.user_id, data.factor_id, assigned_by=admin.id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"message": "Factor assigned successfully"}


@router.delete("/user-factors")
async def remove_factor(
    data: UnassignRequest,
    admin: User = Depends(get_admin_user),
    service: FactorsService = Depends(get_factors_service),
):
    """Remove a user's factor assignment."""
    service.remove_from_user(data.user_id)
    return {"message": "Factor assignment removed successfully"}
