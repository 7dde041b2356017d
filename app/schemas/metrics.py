"""
Metrics, progress and activity schemas
"""
import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from app.core.dates import as_utc
from app.schemas.patient import PatientSummary
from app.schemas.collaborator import CollaboratorResponse
from app.schemas.task import AdminTaskResponse


# ==================== Collaborator metrics ====================

class GoalProgress(BaseModel):
    """Percentages of goal reached; not clamped, 0 when the goal is unset"""
    monthly: float = 0
    quarterly: float = 0
    yearly: float = 0
    sales: float = 0
    consultations: float = 0


class CollaboratorMetrics(BaseModel):
    total_patients: int = 0
    active_patients: int = 0
    total_procedures: int = 0
    monthly_revenue: float = 0
    quarterly_revenue: float = 0
    yearly_revenue: float = 0
    consultations_this_month: int = 0
    goal_progress: GoalProgress = Field(default_factory=GoalProgress)


class WeeklyProgress(BaseModel):
    procedures: int = 0
    consultations: int = 0
    revenue: float = 0


class CollaboratorDashboardStats(BaseModel):
    total_patients: int
    stalled_patients: int
    completed_tasks: int
    pending_tasks: int
    monthly_revenue: float
    weekly_progress: WeeklyProgress


class CollaboratorPerformance(CollaboratorResponse):
    current_revenue: float
    current_consultations: int
    active_patients: int
    goal_progress: float


class CollaboratorDetail(CollaboratorResponse):
    metrics: CollaboratorMetrics
    pending_tasks: List[AdminTaskResponse]
    active_patients: List[PatientSummary]


# ==================== Dashboard / global ====================

class DashboardMetrics(BaseModel):
    total_patients: int
    active_procedures: int
    pending_followups: int
    monthly_revenue: float


class TopPerformer(BaseModel):
    collaborator_id: str
    name: Optional[str] = None
    total_revenue: float
    total_procedures: int


class GlobalStats(BaseModel):
    total_patients: int
    active_patients: int
    stalled_patients: int
    total_revenue: float
    monthly_growth: float
    weekly_growth: float
    top_performers: List[TopPerformer]


class MetricsOverview(BaseModel):
    active_collaborators: int
    total_revenue: float
    total_consultations: int
    overall_goal_progress: float


# ==================== Performance snapshots ====================

class PerformanceMetricCreate(BaseModel):
    collaborator_id: str
    metric_date: datetime.date
    patients_contacted: int = Field(0, ge=0)
    appointments_scheduled: int = Field(0, ge=0)
    procedures_completed: int = Field(0, ge=0)
    revenue_generated: Decimal = Field(Decimal("0"), ge=0)
    feedbacks_completed: int = Field(0, ge=0)
    tasks_completed: int = Field(0, ge=0)
    average_response_time: Optional[int] = Field(None, ge=0)
    patient_satisfaction_score: Optional[Decimal] = Field(None, ge=0, le=5)
    notes: Optional[str] = None


class PerformanceMetricResponse(PerformanceMetricCreate):
    id: str
    created_at: datetime.datetime

    class Config:
        from_attributes = True


# ==================== Patient progress ====================

class PatientProgressCreate(BaseModel):
    patient_id: str
    progress_type: str = Field(..., min_length=1, max_length=50)
    description: str = Field(..., min_length=1)
    status_before: Optional[str] = None
    status_after: Optional[str] = None
    days_since_last_contact: Optional[int] = Field(None, ge=0)
    is_stalled: bool = False
    stall_reason: Optional[str] = None
    next_action: Optional[str] = None
    next_action_date: Optional[datetime.datetime] = None

    @field_validator('next_action_date')
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)


class PatientProgressResponse(BaseModel):
    id: str
    patient_id: str
    collaborator_id: str
    progress_type: str
    description: str
    status_before: Optional[str] = None
    status_after: Optional[str] = None
    days_since_last_contact: Optional[int] = None
    is_stalled: bool
    stall_reason: Optional[str] = None
    next_action: Optional[str] = None
    next_action_date: Optional[datetime.datetime] = None
    created_at: datetime.datetime

    class Config:
        from_attributes = True


class StalledPatientResponse(PatientProgressResponse):
    patient: PatientSummary
    collaborator: CollaboratorResponse


# ==================== Activity ====================

class ActivityLogResponse(BaseModel):
    id: str
    user_id: str
    type: str
    description: str
    entity_id: Optional[str] = None
    entity_type: Optional[str] = None
    created_at: datetime.datetime

    class Config:
        from_attributes = True
