from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from app.models import TimestampedModel, BaseModel, ProcedureStatus, enum_column


# Models
class ProcedureTemplate(TimestampedModel):
    """Reusable catalog entry instantiated into a Procedure when a sale closes"""
    __tablename__ = "procedure_templates"

    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    default_price = Column(Numeric(10, 2), nullable=False, default=0)
    validity_days = Column(Integer, nullable=False, default=365)
    category = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<ProcedureTemplate(id={self.id}, name='{self.name}', default_price={self.default_price})>"


class Procedure(BaseModel):
    """A procedure sold to a patient by a collaborator"""
    __tablename__ = "procedures"

    template_id = Column(String(36), ForeignKey("procedure_templates.id"), nullable=True, index=True)
    patient_id = Column(String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    collaborator_id = Column(String(36), ForeignKey("collaborators.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    value = Column(Numeric(10, 2), nullable=False, default=0)
    validity_date = Column(DateTime(timezone=True), nullable=True)  # performed_date + template validity
    performed_date = Column(DateTime(timezone=True), nullable=False)
    closed_date = Column(DateTime(timezone=True), nullable=True)  # When it was closed in a consultation
    status = Column(enum_column(ProcedureStatus), nullable=False, default=ProcedureStatus.ACTIVE)
    notes = Column(Text, nullable=True)

    # Relationships
    template = relationship("ProcedureTemplate", lazy="selectin")
    patient = relationship("Patient", lazy="selectin")
    collaborator = relationship("Collaborator", lazy="selectin")

    def __repr__(self):
        return f"<Procedure(id={self.id}, name='{self.name}', value={self.value})>"
