"""
Patient Pydantic schemas for request/response validation
"""
import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from app.models import Classification, PatientStatus, FollowupStatus, CompletionType, NoteType
from app.core.dates import as_utc
from app.core.validators import validate_phone, validate_email, sanitize_input, require_value
from app.schemas.city import CityResponse
from app.schemas.collaborator import CollaboratorResponse


def _check_status(v):
    if v == PatientStatus.DEACTIVATED:
        raise ValueError('Use the deactivate endpoint to deactivate a patient')
    return v


class PatientBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=100)
    city_id: Optional[str] = None
    collaborator_id: Optional[str] = None
    classification: Classification = Classification.BRONZE
    current_status: Optional[str] = None
    next_steps: Optional[str] = None
    last_consultation_date: Optional[datetime.datetime] = None
    clinic_goals: Optional[str] = None
    main_concerns: Optional[str] = None
    important_notes: Optional[str] = None


class PatientCreate(PatientBase):
    is_registration_complete: bool = False
    status: PatientStatus = PatientStatus.ACTIVE
    followup_status: Optional[FollowupStatus] = None

    @field_validator('phone')
    @classmethod
    def validate_phone_field(cls, v):
        if v:
            return validate_phone(v)
        return v

    @field_validator('email')
    @classmethod
    def validate_email_field(cls, v):
        if v:
            return validate_email(v)
        return v

    @field_validator('name')
    @classmethod
    def sanitize_name(cls, v):
        return sanitize_input(v, max_length=200)

    @field_validator('status')
    @classmethod
    def check_status(cls, v):
        return _check_status(v)

    @field_validator('followup_status', mode='before')
    @classmethod
    def normalize_followup(cls, v):
        return FollowupStatus.normalize(v)

    @field_validator('last_consultation_date')
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)


class PatientUpdate(BaseModel):
    """
    Patchable patient fields.
    Lifecycle columns (deactivation, registration flag, photo) have dedicated endpoints.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=100)
    city_id: Optional[str] = None
    collaborator_id: Optional[str] = None
    classification: Optional[Classification] = None
    current_status: Optional[str] = None
    next_steps: Optional[str] = None
    last_consultation_date: Optional[datetime.datetime] = None
    clinic_goals: Optional[str] = None
    main_concerns: Optional[str] = None
    important_notes: Optional[str] = None
    status: Optional[PatientStatus] = None
    followup_status: Optional[FollowupStatus] = None

    class Config:
        extra = "forbid"

    @field_validator('name', 'classification', 'status')
    @classmethod
    def reject_null(cls, v):
        return require_value(v)

    @field_validator('phone')
    @classmethod
    def validate_phone_field(cls, v):
        if v:
            return validate_phone(v)
        return v

    @field_validator('email')
    @classmethod
    def validate_email_field(cls, v):
        if v:
            return validate_email(v)
        return v

    @field_validator('name')
    @classmethod
    def sanitize_name(cls, v):
        if v:
            return sanitize_input(v, max_length=200)
        return v

    @field_validator('status')
    @classmethod
    def check_status(cls, v):
        return _check_status(v)

    @field_validator('followup_status', mode='before')
    @classmethod
    def normalize_followup(cls, v):
        return FollowupStatus.normalize(v)

    @field_validator('last_consultation_date')
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)


class PatientSummary(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    classification: Classification
    status: PatientStatus
    followup_status: Optional[FollowupStatus] = None
    city_id: Optional[str] = None
    collaborator_id: Optional[str] = None
    is_registration_complete: bool

    class Config:
        from_attributes = True


class PatientResponse(PatientBase):
    id: str
    photo: Optional[str] = None
    is_registration_complete: bool
    status: PatientStatus
    followup_status: Optional[FollowupStatus] = None
    deactivated_at: Optional[datetime.datetime] = None
    deactivation_reason: Optional[str] = None
    deactivated_by: Optional[str] = None
    created_at: datetime.datetime
    updated_at: datetime.datetime
    city: Optional[CityResponse] = None
    collaborator: Optional[CollaboratorResponse] = None

    class Config:
        from_attributes = True


# ==================== Lifecycle requests ====================

class DeactivateRequest(BaseModel):
    reason: Optional[str] = None


class ReactivateRequest(BaseModel):
    reason: Optional[str] = None


class CompleteRegistrationRequest(BaseModel):
    """Turns an admin-created stub into a full record in one step"""
    phone: str = Field(..., min_length=1, max_length=20)
    city_id: str = Field(..., min_length=1)
    collaborator_id: str = Field(..., min_length=1)
    classification: Optional[Classification] = None
    current_status: Optional[str] = None
    next_steps: Optional[str] = None
    last_consultation_date: Optional[datetime.datetime] = None
    consultation_result: CompletionType
    closed_procedure_template_id: Optional[str] = None
    procedure_value: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    consultation_notes: Optional[str] = None

    @field_validator('phone')
    @classmethod
    def validate_phone_field(cls, v):
        return validate_phone(v)

    @field_validator('consultation_result', mode='before')
    @classmethod
    def normalize_result(cls, v):
        return CompletionType.normalize(v)

    @field_validator('last_consultation_date')
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)

    @model_validator(mode='after')
    def check_closed_procedure(self):
        if self.consultation_result == CompletionType.PROCEDURE_CLOSED:
            if not self.closed_procedure_template_id or self.procedure_value is None:
                raise ValueError('A procedure template and value are required when the procedure was closed')
        return self


# ==================== Notes and files ====================

class PatientNoteCreate(BaseModel):
    content: str = Field(..., min_length=1)
    type: NoteType = NoteType.NOTE
    title: Optional[str] = Field(None, max_length=255)
    amount: Optional[str] = Field(None, max_length=20)


class PatientNoteResponse(BaseModel):
    id: str
    patient_id: str
    content: str
    type: NoteType
    title: Optional[str] = None
    amount: Optional[str] = None
    created_at: datetime.datetime

    class Config:
        from_attributes = True


class PatientFileCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)


class PatientPhotoResponse(BaseModel):
    photo: str
