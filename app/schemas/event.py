"""
Event Pydantic schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from app.models import EventType, EventStatus, CompletionType
from app.core.dates import as_utc
from app.core.validators import require_value
from app.schemas.patient import PatientSummary
from app.schemas.collaborator import CollaboratorResponse
from app.schemas.procedure import ProcedureResponse


class EventCreate(BaseModel):
    type: EventType
    title: str = Field(..., min_length=1, max_length=255)
    scheduled_date: datetime
    patient_id: Optional[str] = None
    collaborator_id: Optional[str] = Field(None, description="Defaults to the calling collaborator")
    procedure_id: Optional[str] = None
    description: Optional[str] = None
    status: EventStatus = EventStatus.PENDING
    notes: Optional[str] = None
    requires_feedback: bool = False
    feedback_question: Optional[str] = None

    @field_validator('scheduled_date')
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)


class EventUpdate(BaseModel):
    """Patchable event fields; completion goes through the complete endpoint"""
    type: Optional[EventType] = None
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    scheduled_date: Optional[datetime] = None
    patient_id: Optional[str] = None
    procedure_id: Optional[str] = None
    description: Optional[str] = None
    status: Optional[EventStatus] = None
    notes: Optional[str] = None
    requires_feedback: Optional[bool] = None
    feedback_question: Optional[str] = None

    class Config:
        extra = "forbid"

    @field_validator('type', 'title', 'scheduled_date', 'status', 'requires_feedback')
    @classmethod
    def reject_null(cls, v):
        return require_value(v)

    @field_validator('scheduled_date')
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)


class EventResponse(BaseModel):
    id: str
    patient_id: Optional[str] = None
    collaborator_id: str
    procedure_id: Optional[str] = None
    type: EventType
    title: str
    description: Optional[str] = None
    scheduled_date: datetime
    status: EventStatus
    notes: Optional[str] = None
    completion_type: Optional[CompletionType] = None
    completion_notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    closed_procedure_id: Optional[str] = None
    requires_feedback: bool
    feedback_completed: bool
    feedback_question: Optional[str] = None
    feedback_response: Optional[str] = None
    feedback_date: Optional[datetime] = None
    patient_responded: bool
    created_at: datetime
    updated_at: datetime
    patient: Optional[PatientSummary] = None
    collaborator: Optional[CollaboratorResponse] = None

    class Config:
        from_attributes = True


class EventCompleteRequest(BaseModel):
    # Optional so that a missing value reaches the handler and gets the explicit 400 message
    completion_type: Optional[CompletionType] = None
    notes: Optional[str] = None
    closed_procedure_template_id: Optional[str] = None
    procedure_value: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)

    @field_validator('completion_type', mode='before')
    @classmethod
    def normalize_type(cls, v):
        return CompletionType.normalize(v)


class EventCompletionResponse(BaseModel):
    event: EventResponse
    completion_type: CompletionType
    procedure: Optional[ProcedureResponse] = None


class EventFeedbackRequest(BaseModel):
    feedback_response: Optional[str] = None
    feedback_question: Optional[str] = None
    patient_responded: bool = True
