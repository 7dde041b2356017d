"""
Admin Task Model
Represents work items an admin assigns to a collaborator
"""
from sqlalchemy import Column, String, DateTime, Boolean, Text, ForeignKey
from sqlalchemy.orm import relationship

from app.models import (
    TimestampedModel, TaskPriority, TaskStatus, TaskCategory, RecurringPattern, enum_column
)


class AdminTask(TimestampedModel):
    """
    Admin Task Model
    Optionally tied to a patient and optionally recurring
    """
    __tablename__ = "admin_tasks"

    # Task Details
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(enum_column(TaskPriority), nullable=False, default=TaskPriority.MEDIUM, index=True)
    status = Column(enum_column(TaskStatus), nullable=False, default=TaskStatus.PENDING, index=True)
    category = Column(enum_column(TaskCategory), nullable=False, default=TaskCategory.GENERAL)
    due_date = Column(DateTime(timezone=True), nullable=True, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    completion_notes = Column(Text, nullable=True)
    is_recurring = Column(Boolean, default=False, nullable=False)
    recurring_pattern = Column(enum_column(RecurringPattern), nullable=True)

    # Foreign Keys
    assigned_to = Column(String(36), ForeignKey("collaborators.id"), nullable=False, index=True)
    assigned_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    patient_id = Column(String(36), ForeignKey("patients.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    assignee = relationship("Collaborator", foreign_keys=[assigned_to], lazy="selectin")
    patient = relationship("Patient", foreign_keys=[patient_id], lazy="selectin")

    def __repr__(self):
        return f"<AdminTask(id={self.id}, title='{self.title}', status='{self.status}')>"
