"""
Event Model
Scheduled consultations, procedures, follow-ups, returns and task reminders
"""
from sqlalchemy import Column, String, DateTime, Boolean, Text, ForeignKey
from sqlalchemy.orm import relationship

from app.models import TimestampedModel, EventType, EventStatus, CompletionType, enum_column


class Event(TimestampedModel):
    __tablename__ = "events"

    patient_id = Column(String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=True, index=True)
    collaborator_id = Column(String(36), ForeignKey("collaborators.id"), nullable=False, index=True)
    procedure_id = Column(String(36), ForeignKey("procedures.id", ondelete="SET NULL"), nullable=True)

    type = Column(enum_column(EventType), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    scheduled_date = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(enum_column(EventStatus), nullable=False, default=EventStatus.PENDING, index=True)
    notes = Column(Text, nullable=True)

    # Consultation outcome
    completion_type = Column(enum_column(CompletionType), nullable=True)
    completion_notes = Column(Text, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    closed_procedure_id = Column(String(36), ForeignKey("procedures.id", ondelete="SET NULL"), nullable=True)

    # Feedback
    requires_feedback = Column(Boolean, default=False, nullable=False)
    feedback_completed = Column(Boolean, default=False, nullable=False)
    feedback_question = Column(Text, nullable=True)
    feedback_response = Column(Text, nullable=True)
    feedback_date = Column(DateTime(timezone=True), nullable=True)
    patient_responded = Column(Boolean, default=False, nullable=False)

    # Relationships
    patient = relationship("Patient", lazy="selectin")
    collaborator = relationship("Collaborator", lazy="selectin")

    def __repr__(self):
        return f"<Event(id={self.id}, type='{self.type}', status='{self.status}')>"
