"""
Performance tracking models
Daily collaborator snapshots and the patient progress log used for stall detection
"""
from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, Text, Numeric, ForeignKey
from sqlalchemy.orm import relationship

from app.models import BaseModel


class PerformanceMetric(BaseModel):
    """Per-collaborator, per-day performance snapshot"""
    __tablename__ = "performance_metrics"

    collaborator_id = Column(String(36), ForeignKey("collaborators.id"), nullable=False, index=True)
    metric_date = Column(Date, nullable=False, index=True)
    patients_contacted = Column(Integer, default=0, nullable=False)
    appointments_scheduled = Column(Integer, default=0, nullable=False)
    procedures_completed = Column(Integer, default=0, nullable=False)
    revenue_generated = Column(Numeric(10, 2), default=0, nullable=False)
    feedbacks_completed = Column(Integer, default=0, nullable=False)
    tasks_completed = Column(Integer, default=0, nullable=False)
    average_response_time = Column(Integer, nullable=True)  # minutes
    patient_satisfaction_score = Column(Numeric(3, 2), nullable=True)
    notes = Column(Text, nullable=True)

    collaborator = relationship("Collaborator", lazy="selectin")


class PatientProgress(BaseModel):
    """
    Append-only log of patient status transitions.
    A patient counts as stalled only through rows flagged ``is_stalled``.
    """
    __tablename__ = "patient_progress"

    patient_id = Column(String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    collaborator_id = Column(String(36), ForeignKey("collaborators.id"), nullable=False, index=True)
    progress_type = Column(String(50), nullable=False)  # contact_made, appointment_scheduled, ...
    description = Column(Text, nullable=False)
    status_before = Column(String(50), nullable=True)
    status_after = Column(String(50), nullable=True)
    days_since_last_contact = Column(Integer, nullable=True)
    is_stalled = Column(Boolean, default=False, nullable=False, index=True)
    stall_reason = Column(Text, nullable=True)
    next_action = Column(Text, nullable=True)
    next_action_date = Column(DateTime(timezone=True), nullable=True)

    patient = relationship("Patient", lazy="selectin")
    collaborator = relationship("Collaborator", lazy="selectin")
