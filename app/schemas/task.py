"""
Admin task schemas
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from app.models import TaskPriority, TaskStatus, TaskCategory, RecurringPattern
from app.core.dates import as_utc
from app.core.validators import require_value
from app.schemas.event import EventResponse
from app.schemas.patient import PatientSummary
from app.schemas.collaborator import CollaboratorResponse


class AdminTaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    assigned_to: str = Field(..., min_length=1)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    patient_id: Optional[str] = None
    category: TaskCategory = TaskCategory.GENERAL
    is_recurring: bool = False
    recurring_pattern: Optional[RecurringPattern] = None

    @field_validator('due_date')
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)

    @model_validator(mode='after')
    def check_recurrence(self):
        if self.is_recurring and self.recurring_pattern is None:
            raise ValueError('recurring_pattern is required for recurring tasks')
        return self


class AdminTaskUpdate(BaseModel):
    status: Optional[TaskStatus] = None
    completion_notes: Optional[str] = None

    class Config:
        extra = "forbid"

    @field_validator('status')
    @classmethod
    def reject_null(cls, v):
        return require_value(v)


class AdminTaskResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    assigned_to: str
    assigned_by: str
    priority: TaskPriority
    status: TaskStatus
    category: TaskCategory
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    completion_notes: Optional[str] = None
    patient_id: Optional[str] = None
    is_recurring: bool
    recurring_pattern: Optional[RecurringPattern] = None
    created_at: datetime
    updated_at: datetime
    assignee: Optional[CollaboratorResponse] = None
    patient: Optional[PatientSummary] = None

    class Config:
        from_attributes = True


class AdminTaskCreateResponse(BaseModel):
    task: AdminTaskResponse
    event: Optional[EventResponse] = None
