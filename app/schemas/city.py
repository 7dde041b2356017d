"""
City Pydantic schemas
"""
import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from app.core.validators import validate_state_code, validate_decimal_string, sanitize_input, require_value


class CityBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    state: str = Field(..., min_length=2, max_length=2)
    description: Optional[str] = None
    monthly_goal: Optional[str] = None
    quarterly_goal: Optional[str] = None
    yearly_goal: Optional[str] = None


class CityCreate(CityBase):

    @field_validator('name')
    @classmethod
    def sanitize_name(cls, v):
        return sanitize_input(v, max_length=120)

    @field_validator('state')
    @classmethod
    def check_state(cls, v):
        return validate_state_code(v)

    @field_validator('monthly_goal', 'quarterly_goal', 'yearly_goal', mode='before')
    @classmethod
    def check_goals(cls, v):
        return validate_decimal_string(v)


class CityUpdate(BaseModel):
    """Patchable city fields"""
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    state: Optional[str] = Field(None, min_length=2, max_length=2)
    description: Optional[str] = None
    monthly_goal: Optional[str] = None
    quarterly_goal: Optional[str] = None
    yearly_goal: Optional[str] = None

    class Config:
        extra = "forbid"

    @field_validator('name', 'state')
    @classmethod
    def reject_null(cls, v):
        return require_value(v)

    @field_validator('name')
    @classmethod
    def sanitize_name(cls, v):
        if v:
            return sanitize_input(v, max_length=120)
        return v

    @field_validator('state')
    @classmethod
    def check_state(cls, v):
        if v:
            return validate_state_code(v)
        return v

    @field_validator('monthly_goal', 'quarterly_goal', 'yearly_goal', mode='before')
    @classmethod
    def check_goals(cls, v):
        return validate_decimal_string(v)


class CityResponse(CityBase):
    id: str
    created_at: datetime.datetime

    class Config:
        from_attributes = True


class CityMetricsResponse(BaseModel):
    city_id: str
    city_name: str
    total_patients: int
    total_collaborators: int
    monthly_revenue: float
    goal_progress: float
