"""
Collaborator Pydantic schemas
"""
import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from app.core.validators import require_value
from app.schemas.user import UserResponse
from app.schemas.city import CityResponse


class CollaboratorCreate(BaseModel):
    user_id: str
    city_id: str
    revenue_goal: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    consultation_goal: int = Field(0, ge=0)
    is_active: bool = True


class CollaboratorUpdate(BaseModel):
    """Patchable collaborator fields"""
    city_id: Optional[str] = None
    revenue_goal: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    consultation_goal: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None

    class Config:
        extra = "forbid"

    @field_validator('city_id', 'revenue_goal', 'consultation_goal', 'is_active')
    @classmethod
    def reject_null(cls, v):
        return require_value(v)


class CollaboratorResponse(BaseModel):
    id: str
    user_id: str
    city_id: str
    revenue_goal: Decimal
    consultation_goal: int
    is_active: bool
    created_at: datetime.datetime
    updated_at: datetime.datetime
    user: UserResponse
    city: CityResponse

    class Config:
        from_attributes = True
