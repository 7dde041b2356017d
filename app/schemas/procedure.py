from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from app.models import ProcedureStatus
from app.core.dates import as_utc
from app.core.validators import require_value
from app.schemas.patient import PatientSummary


# Procedure Template Schemas
class ProcedureTemplateBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Name of the procedure")
    description: Optional[str] = Field(None, description="Detailed description of the procedure")
    default_price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="Suggested sale price")
    validity_days: int = Field(365, ge=1, le=3650, description="Days the procedure stays valid after it is performed")
    category: Optional[str] = Field(None, max_length=100)
    is_active: bool = Field(True, description="Whether the template can be offered")


class ProcedureTemplateCreate(ProcedureTemplateBase):
    pass


class ProcedureTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    default_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    validity_days: Optional[int] = Field(None, ge=1, le=3650)
    category: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None

    class Config:
        extra = "forbid"

    @field_validator('name', 'default_price', 'validity_days', 'is_active')
    @classmethod
    def reject_null(cls, v):
        return require_value(v)


class ProcedureTemplateResponse(ProcedureTemplateBase):
    id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# Procedure Schemas
class ProcedureCreate(BaseModel):
    patient_id: str
    template_id: Optional[str] = None
    collaborator_id: Optional[str] = Field(None, description="Defaults to the calling collaborator")
    name: Optional[str] = Field(None, min_length=1, max_length=255, description="Defaults to the template name")
    value: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2, description="Defaults to the template price")
    performed_date: Optional[datetime] = None
    validity_date: Optional[datetime] = None
    closed_date: Optional[datetime] = None
    status: ProcedureStatus = ProcedureStatus.ACTIVE
    notes: Optional[str] = None

    @field_validator('performed_date', 'validity_date', 'closed_date')
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)


class ProcedureUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    value: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    performed_date: Optional[datetime] = None
    validity_date: Optional[datetime] = None
    closed_date: Optional[datetime] = None
    status: Optional[ProcedureStatus] = None
    notes: Optional[str] = None

    class Config:
        extra = "forbid"

    @field_validator('name', 'value', 'performed_date', 'status')
    @classmethod
    def reject_null(cls, v):
        return require_value(v)

    @field_validator('performed_date', 'validity_date', 'closed_date')
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)


class ProcedureResponse(BaseModel):
    id: str
    template_id: Optional[str] = None
    patient_id: str
    collaborator_id: str
    name: str
    value: Decimal
    validity_date: Optional[datetime] = None
    performed_date: datetime
    closed_date: Optional[datetime] = None
    status: ProcedureStatus
    notes: Optional[str] = None
    created_at: datetime
    patient: Optional[PatientSummary] = None

    class Config:
        from_attributes = True
